"""
DevTasks Backend - Project Routes
==================================

    POST /api/projects        create (CEO, project managers)
    GET  /api/projects/{id}   managers, team lead, members, executives
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
from devtasks.schemas.project import ProjectCreate, ProjectResponse
from devtasks.schemas.rules import CREATE_PROJECT_RULES
from devtasks.services.project_service import project_service

router = APIRouter(prefix="/api/projects", tags=["Projects"])

_ERRORS = {
    400: {"description": "Validation failed", "model": ErrorResponse},
    401: {"description": "Not authenticated", "model": ErrorResponse},
    403: {"description": "Not allowed", "model": ErrorResponse},
    404: {"description": "Project or referenced user not found", "model": ErrorResponse},
}


@router.post(
    "",
    response_model=ProjectResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_ERRORS,
    summary="Create a project",
    dependencies=[Depends(require_roles(Role.CEO, Role.PROJECT_MANAGER))],
)
async def create_project(
    payload: Dict[str, Any] = Depends(validate_body(CREATE_PROJECT_RULES)),
    db: AsyncSession = Depends(get_db_session),
) -> ProjectResponse:
    return await project_service.create_project(db, ProjectCreate.model_validate(payload))


@router.get(
    "/{id}",
    response_model=ProjectResponse,
    responses=_ERRORS,
    summary="Get a project",
    dependencies=[Depends(require_resource_access(ResourceKind.PROJECT))],
)
async def get_project(id: str, db: AsyncSession = Depends(get_db_session)) -> ProjectResponse:
    return await project_service.get_project(db, id.lower())
