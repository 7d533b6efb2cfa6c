"""
DevTasks Backend - User Service
================================

What:  Creates users and reads single user profiles.
Who:   /api/users routes and GET /api/auth/me.

Duplicate emails are caught by the unique index: flush() raises
IntegrityError inside the request, and the error normalizer turns it into
"email '<value>' already exists. ..." (400).
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from devtasks.exceptions import NotFoundError
from devtasks.models import User
from devtasks.schemas.user import UserCreate, UserPublic
from devtasks.services.security import hash_password_async

logger = logging.getLogger(__name__)


class UserService:

    async def create_user(self, db: AsyncSession, data: UserCreate) -> UserPublic:
        if data.reports_to is not None:
            manager = await db.get(User, data.reports_to)
            if manager is None:
                raise NotFoundError("Manager", data.reports_to, message="reportsTo user not found")

        user = User(
            email=data.email.strip().lower(),
            password_hash=await hash_password_async(data.password),
            first_name=data.first_name.strip(),
            last_name=data.last_name.strip(),
            role=data.role.value,
            department=data.department.strip(),
            reports_to_id=data.reports_to,
            is_active=True,
        )
        db.add(user)
        await db.flush()
        logger.info("User created: %s (%s)", user.id, user.role)
        return UserPublic.model_validate(user)

    async def get_user(self, db: AsyncSession, user_id: str) -> UserPublic:
        result = await db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError("User", user_id)
        return UserPublic.model_validate(user)


user_service = UserService()
