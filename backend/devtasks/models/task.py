"""
DevTasks Backend - Task Model
==============================

What:  ORM model for the `tasks` table.

project_id is nullable with ON DELETE SET NULL: deleting a project leaves its
tasks in place, reachable only by their assignee (and executives).
"""

import enum
from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, DateTime, Float, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from devtasks.database import Base
from devtasks.models.base import ObjectIdColumn, TimestampMixin


class TaskStatus(str, enum.Enum):
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    REVIEW = "REVIEW"
    COMPLETED = "COMPLETED"


class TaskPriority(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class Task(TimestampMixin, Base):
    __tablename__ = "tasks"

    id: Mapped[str] = ObjectIdColumn(primary_key=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=TaskStatus.TODO.value)
    priority: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=TaskPriority.MEDIUM.value,
    )

    project_id: Mapped[Optional[str]] = ObjectIdColumn(
        ForeignKey("projects.id", ondelete="SET NULL"),
        nullable=True,
    )
    assigned_to_id: Mapped[str] = ObjectIdColumn(ForeignKey("users.id"), nullable=False)
    assigned_by_id: Mapped[Optional[str]] = ObjectIdColumn(ForeignKey("users.id"), nullable=True)

    estimated_hours: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    actual_hours: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    start_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    due_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    completed_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    tags: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    __table_args__ = (
        Index("idx_tasks_project", "project_id"),
        Index("idx_tasks_assigned_to", "assigned_to_id"),
        Index("idx_tasks_status", "status"),
        Index("idx_tasks_due_date", "due_date"),
    )

    def __repr__(self) -> str:
        return f"<Task(id={self.id}, title='{self.title}', status='{self.status}')>"
