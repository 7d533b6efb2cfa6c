"""
DevTasks Backend - User Model
==============================

What:  ORM model for the `users` table: credentials, role and position in
       the reporting hierarchy.

Hierarchy:
    reports_to_id is the single superior of a user. `direct_reports` is the
    inverse relationship over the same foreign key, so a user's subordinate
    set and each subordinate's reports_to reference always agree.
"""

from typing import List, Optional

from sqlalchemy import Boolean, ForeignKey, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from devtasks.auth.principal import Role
from devtasks.database import Base
from devtasks.models.base import ObjectIdColumn, TimestampMixin


class User(TimestampMixin, Base):
    __tablename__ = "users"

    id: Mapped[str] = ObjectIdColumn(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)

    # Stored as the Role value (e.g. "PROJECT_MANAGER")
    role: Mapped[str] = mapped_column(
        String(40),
        nullable=False,
        default=Role.SOFTWARE_ENGINEER.value,
    )
    department: Mapped[str] = mapped_column(String(100), nullable=False, default="")

    reports_to_id: Mapped[Optional[str]] = ObjectIdColumn(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    reports_to: Mapped[Optional["User"]] = relationship(
        "User",
        remote_side="User.id",
        back_populates="direct_reports",
    )
    direct_reports: Mapped[List["User"]] = relationship(
        "User",
        back_populates="reports_to",
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=text("true"),
    )
    profile_image: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    __table_args__ = (
        Index("idx_users_role", "role"),
        Index("idx_users_reports_to", "reports_to_id"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
