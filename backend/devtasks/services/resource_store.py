"""
DevTasks Backend - Resource Store
==================================

What:  Read-only lookups the gates need: principals, projects, tasks, users.
How:   Each finder runs one SELECT and returns an immutable snapshot (or
       None when the row does not exist). Gates never see ORM objects, so
       they cannot mutate resources and can be tested against plain fakes.
Who:   Authentication Gate (find_principal_by_id) and Resource-Access Gate.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from devtasks.auth.principal import Principal
from devtasks.models import Project, Task, User


@dataclass(frozen=True)
class ProjectRef:
    id: str
    manager_id: str
    secondary_manager_id: Optional[str] = None
    team_lead_id: Optional[str] = None
    member_ids: FrozenSet[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class TaskRef:
    id: str
    assignee_id: str
    project_id: Optional[str] = None


@dataclass(frozen=True)
class UserRef:
    id: str
    reports_to_id: Optional[str] = None


class ResourceStore:
    """SQLAlchemy-backed store bound to one request's session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_principal_by_id(self, principal_id: str) -> Optional[Principal]:
        result = await self.db.execute(
            select(User)
            .options(selectinload(User.direct_reports))
            .where(User.id == principal_id)
        )
        user = result.scalar_one_or_none()
        return Principal.from_user(user) if user is not None else None

    async def find_project_by_id(self, project_id: str) -> Optional[ProjectRef]:
        result = await self.db.execute(
            select(Project)
            .options(selectinload(Project.team_members))
            .where(Project.id == project_id)
        )
        project = result.scalar_one_or_none()
        if project is None:
            return None
        return ProjectRef(
            id=project.id,
            manager_id=project.pm_id,
            secondary_manager_id=project.apm_id,
            team_lead_id=project.team_lead_id,
            member_ids=frozenset(member.id for member in project.team_members),
        )

    async def find_task_by_id(self, task_id: str) -> Optional[TaskRef]:
        result = await self.db.execute(select(Task).where(Task.id == task_id))
        task = result.scalar_one_or_none()
        if task is None:
            return None
        return TaskRef(id=task.id, assignee_id=task.assigned_to_id, project_id=task.project_id)

    async def find_user_by_id(self, user_id: str) -> Optional[UserRef]:
        result = await self.db.execute(select(User.id, User.reports_to_id).where(User.id == user_id))
        row = result.one_or_none()
        if row is None:
            return None
        return UserRef(id=row.id, reports_to_id=row.reports_to_id)
