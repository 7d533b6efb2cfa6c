"""
DevTasks Backend - Authentication Routes
=========================================

    POST /api/auth/login   email + password → bearer token (own rate limit)
    GET  /api/auth/me      the authenticated caller's profile
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from devtasks.auth.gates import get_current_principal, get_token_verifier
from devtasks.auth.principal import Principal
from devtasks.auth.tokens import TokenVerifier
from devtasks.database import get_db_session
from devtasks.middleware.rate_limit import rate_limit
from devtasks.middleware.validation import validate_body
from devtasks.schemas.auth import AuthResponse, LoginRequest
from devtasks.schemas.common import ErrorResponse
from devtasks.schemas.rules import LOGIN_RULES
from devtasks.schemas.user import UserPublic
from devtasks.services.auth_service import auth_service
from devtasks.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={
        400: {"description": "Validation failed", "model": ErrorResponse},
        401: {"description": "Incorrect credentials or deactivated account", "model": ErrorResponse},
        429: {"description": "Too many login attempts", "model": ErrorResponse},
    },
    summary="Log in with email and password",
    dependencies=[Depends(rate_limit("auth_rate_limiter"))],
)
async def login(
    payload: Dict[str, Any] = Depends(validate_body(LOGIN_RULES)),
    verifier: TokenVerifier = Depends(get_token_verifier),
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    data = LoginRequest.model_validate(payload)
    return await auth_service.login(db, verifier, data.email, data.password)


@router.get(
    "/me",
    response_model=UserPublic,
    responses={401: {"description": "Not authenticated", "model": ErrorResponse}},
    summary="Current user's profile",
)
async def me(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
) -> UserPublic:
    return await user_service.get_user(db, principal.id)
