"""
DevTasks Backend - Authentication Service
==========================================

What:  Email/password login that issues a bearer token.
How:   Looks the user up by (lower-cased) email, checks the bcrypt hash,
       refuses deactivated accounts, then signs a token with the app's
       TokenVerifier.
Who:   POST /api/auth/login.

Unknown email and wrong password produce the same 401 so the endpoint
does not reveal which accounts exist.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from devtasks.auth.gates import ACCOUNT_DEACTIVATED
from devtasks.auth.tokens import TokenVerifier
from devtasks.exceptions import InternalError, NotAuthenticatedError
from devtasks.models import User
from devtasks.schemas.auth import AuthResponse
from devtasks.schemas.user import UserPublic
from devtasks.services.security import check_password_async

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Incorrect email or password"


class AuthService:
    """Stateless; the session and verifier are passed per call."""

    async def login(
        self,
        db: AsyncSession,
        verifier: TokenVerifier,
        email: str,
        password: str,
    ) -> AuthResponse:
        if not verifier.configured:
            raise InternalError("JWT secret not configured", operational=True)

        result = await db.execute(select(User).where(User.email == email.strip().lower()))
        user = result.scalar_one_or_none()

        if user is None or not await check_password_async(password, user.password_hash):
            logger.info("Failed login for %s", email)
            raise NotAuthenticatedError(INVALID_CREDENTIALS)
        if not user.is_active:
            raise NotAuthenticatedError(ACCOUNT_DEACTIVATED)

        token = verifier.issue(user.id, role=user.role, email=user.email)
        logger.info("User %s logged in", user.id)
        return AuthResponse(token=token, user=UserPublic.model_validate(user))


auth_service = AuthService()
