"""
DevTasks Backend - Task Routes
===============================

    POST /api/tasks        create (project managers, assistant PMs, team leaders)
    GET  /api/tasks/{id}   assignee, parent project's leads, executives
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from devtasks.auth.access import ResourceKind, require_resource_access
from devtasks.auth.gates import require_roles
from devtasks.auth.principal import Principal, Role
from devtasks.database import get_db_session
from devtasks.middleware.validation import validate_body
from devtasks.schemas.common import ErrorResponse
from devtasks.schemas.rules import CREATE_TASK_RULES
from devtasks.schemas.task import TaskCreate, TaskResponse
from devtasks.services.task_service import task_service

router = APIRouter(prefix="/api/tasks", tags=["Tasks"])

_ERRORS = {
    400: {"description": "Validation failed", "model": ErrorResponse},
    401: {"description": "Not authenticated", "model": ErrorResponse},
    403: {"description": "Not allowed", "model": ErrorResponse},
    404: {"description": "Task, project or assignee not found", "model": ErrorResponse},
}

TASK_CREATORS = (Role.PROJECT_MANAGER, Role.ASSISTANT_PROJECT_MANAGER, Role.TEAM_LEADER)


@router.post(
    "",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_ERRORS,
    summary="Create a task",
)
async def create_task(
    principal: Principal = Depends(require_roles(*TASK_CREATORS)),
    payload: Dict[str, Any] = Depends(validate_body(CREATE_TASK_RULES)),
    db: AsyncSession = Depends(get_db_session),
) -> TaskResponse:
    return await task_service.create_task(db, principal, TaskCreate.model_validate(payload))


@router.get(
    "/{id}",
    response_model=TaskResponse,
    responses=_ERRORS,
    summary="Get a task",
    dependencies=[Depends(require_resource_access(ResourceKind.TASK))],
)
async def get_task(id: str, db: AsyncSession = Depends(get_db_session)) -> TaskResponse:
    return await task_service.get_task(db, id.lower())
