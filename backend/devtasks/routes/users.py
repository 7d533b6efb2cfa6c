"""
DevTasks Backend - User Routes
===============================

    POST /api/users        create a user (CEO only)
    GET  /api/users/{id}   self, direct superior, or executive
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from devtasks.auth.access import ResourceKind, require_resource_access
from devtasks.auth.gates import require_roles
from devtasks.auth.principal import Role
from devtasks.database import get_db_session
from devtasks.middleware.validation import validate_body
from devtasks.schemas.common import ErrorResponse
from devtasks.schemas.rules import CREATE_USER_RULES
from devtasks.schemas.user import UserCreate, UserPublic
from devtasks.services.user_service import user_service

router = APIRouter(prefix="/api/users", tags=["Users"])

_ERRORS = {
    400: {"description": "Validation failed or email taken", "model": ErrorResponse},
    401: {"description": "Not authenticated", "model": ErrorResponse},
    403: {"description": "Not allowed", "model": ErrorResponse},
    404: {"description": "User not found", "model": ErrorResponse},
}


@router.post(
    "",
    response_model=UserPublic,
    status_code=status.HTTP_201_CREATED,
    responses=_ERRORS,
    summary="Create a user",
    dependencies=[Depends(require_roles(Role.CEO))],
)
async def create_user(
    payload: Dict[str, Any] = Depends(validate_body(CREATE_USER_RULES)),
    db: AsyncSession = Depends(get_db_session),
) -> UserPublic:
    return await user_service.create_user(db, UserCreate.model_validate(payload))


@router.get(
    "/{id}",
    response_model=UserPublic,
    responses=_ERRORS,
    summary="Get a user profile",
    dependencies=[Depends(require_resource_access(ResourceKind.USER))],
)
async def get_user(id: str, db: AsyncSession = Depends(get_db_session)) -> UserPublic:
    return await user_service.get_user(db, id.lower())
