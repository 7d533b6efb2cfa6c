"""
DevTasks Backend - Project Model
=================================

What:  ORM model for the `projects` table and the `project_members`
       association table.

Roles on a project:
    pm_id          managing principal (required)
    apm_id         secondary manager (optional)
    team_lead_id   team lead (optional)
    team_members   engineers working on the project
"""

import enum
from datetime import datetime
from typing import List, Optional

from sqlalchemy import CheckConstraint, Column, DateTime, Float, ForeignKey, Index, Integer, String, Table, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from devtasks.database import Base
from devtasks.models.base import OBJECT_ID_LENGTH, ObjectIdColumn, TimestampMixin
from devtasks.models.user import User


class ProjectStatus(str, enum.Enum):
    PLANNING = "PLANNING"
    IN_PROGRESS = "IN_PROGRESS"
    TESTING = "TESTING"
    DEPLOYMENT = "DEPLOYMENT"
    COMPLETED = "COMPLETED"
    ON_HOLD = "ON_HOLD"


project_members = Table(
    "project_members",
    Base.metadata,
    Column(
        "project_id",
        String(OBJECT_ID_LENGTH),
        ForeignKey("projects.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "user_id",
        String(OBJECT_ID_LENGTH),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Index("idx_project_members_user", "user_id"),
)


class Project(TimestampMixin, Base):
    __tablename__ = "projects"

    id: Mapped[str] = ObjectIdColumn(primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ProjectStatus.PLANNING.value,
    )

    pm_id: Mapped[str] = ObjectIdColumn(ForeignKey("users.id"), nullable=False)
    apm_id: Mapped[Optional[str]] = ObjectIdColumn(ForeignKey("users.id"), nullable=True)
    team_lead_id: Mapped[Optional[str]] = ObjectIdColumn(ForeignKey("users.id"), nullable=True)
    team_members: Mapped[List[User]] = relationship(secondary=project_members)

    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    estimated_hours: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    actual_hours: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    budget: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    __table_args__ = (
        Index("idx_projects_pm", "pm_id"),
        Index("idx_projects_apm", "apm_id"),
        Index("idx_projects_status", "status"),
        CheckConstraint("progress >= 0 AND progress <= 100", name="ck_projects_progress_range"),
    )

    @property
    def team_member_ids(self) -> List[str]:
        return [member.id for member in self.team_members]

    def __repr__(self) -> str:
        return f"<Project(id={self.id}, name='{self.name}', status='{self.status}')>"
