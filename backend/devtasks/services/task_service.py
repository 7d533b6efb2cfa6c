"""
DevTasks Backend - Task Service
================================

What:  Creates tasks inside a project and reads single tasks.
Who:   /api/tasks routes.

Creating a task requires access to its project (same rule as
GET /api/projects/{id}), and the assignee must exist.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from devtasks.auth.access import ResourceAccessGate, ResourceKind
from devtasks.auth.principal import Principal
from devtasks.exceptions import NotFoundError
from devtasks.models import Task, TaskStatus, User
from devtasks.schemas.task import TaskCreate, TaskResponse
from devtasks.services.resource_store import ResourceStore

logger = logging.getLogger(__name__)


class TaskService:

    async def create_task(
        self,
        db: AsyncSession,
        principal: Principal,
        data: TaskCreate,
    ) -> TaskResponse:
        # Raises 404 for an unknown project, 403 without access to it
        await ResourceAccessGate(ResourceStore(db)).check(
            principal, ResourceKind.PROJECT, data.project
        )
        if await db.get(User, data.assigned_to) is None:
            raise NotFoundError("User", data.assigned_to, message="Assignee not found")

        task = Task(
            title=data.title.strip(),
            description=data.description,
            status=TaskStatus.TODO.value,
            priority=data.priority.value,
            project_id=data.project,
            assigned_to_id=data.assigned_to,
            assigned_by_id=principal.id,
            estimated_hours=data.estimated_hours,
            actual_hours=0,
            start_date=data.start_date or datetime.now(timezone.utc),
            due_date=data.due_date,
            tags=[tag.strip() for tag in data.tags if tag.strip()],
        )
        db.add(task)
        await db.flush()
        logger.info("Task created: %s in project %s for %s", task.id, task.project_id, task.assigned_to_id)
        return TaskResponse.model_validate(task)

    async def get_task(self, db: AsyncSession, task_id: str) -> TaskResponse:
        result = await db.execute(select(Task).where(Task.id == task_id))
        task = result.scalar_one_or_none()
        if task is None:
            raise NotFoundError("Task", task_id)
        return TaskResponse.model_validate(task)


task_service = TaskService()
