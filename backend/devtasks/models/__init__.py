"""
DevTasks Backend - ORM Models
==============================

Importing this package registers every table on Base.metadata (used by
Alembic and database.ensure_schema()).
"""

from devtasks.models.base import new_object_id
from devtasks.models.project import Project, ProjectStatus, project_members
from devtasks.models.task import Task, TaskPriority, TaskStatus
from devtasks.models.user import User

__all__ = [
    "new_object_id",
    "Project",
    "ProjectStatus",
    "project_members",
    "Task",
    "TaskPriority",
    "TaskStatus",
    "User",
]
