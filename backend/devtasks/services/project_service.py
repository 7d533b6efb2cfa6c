"""
DevTasks Backend - Project Service
===================================

What:  Creates projects and reads a single project with its team.
Who:   /api/projects routes.

Every referenced user (manager, secondary manager, team lead, members)
must exist; the first missing one is reported as a 404.
"""

import logging
from typing import Iterable, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from devtasks.exceptions import NotFoundError
from devtasks.models import Project, ProjectStatus, User
from devtasks.schemas.project import ProjectCreate, ProjectResponse

logger = logging.getLogger(__name__)


async def _load_users(db: AsyncSession, user_ids: Iterable[str]) -> List[User]:
    wanted = list(dict.fromkeys(user_ids))
    if not wanted:
        return []
    result = await db.execute(select(User).where(User.id.in_(wanted)))
    found = {user.id: user for user in result.scalars()}
    for user_id in wanted:
        if user_id not in found:
            raise NotFoundError("User", user_id)
    return [found[user_id] for user_id in wanted]


class ProjectService:

    async def create_project(self, db: AsyncSession, data: ProjectCreate) -> ProjectResponse:
        leads = [data.project_manager]
        if data.assistant_project_manager:
            leads.append(data.assistant_project_manager)
        if data.team_leader:
            leads.append(data.team_leader)
        await _load_users(db, leads)
        members = await _load_users(db, data.team_members)

        project = Project(
            name=data.name.strip(),
            description=data.description,
            status=ProjectStatus.PLANNING.value,
            pm_id=data.project_manager,
            apm_id=data.assistant_project_manager,
            team_lead_id=data.team_leader,
            team_members=members,
            start_date=data.start_date,
            end_date=data.end_date,
            estimated_hours=data.estimated_hours,
            actual_hours=0,
            progress=0,
            budget=data.budget,
        )
        db.add(project)
        await db.flush()
        logger.info("Project created: %s (pm=%s, %d members)", project.id, project.pm_id, len(members))
        return ProjectResponse.model_validate(project)

    async def get_project(self, db: AsyncSession, project_id: str) -> ProjectResponse:
        result = await db.execute(
            select(Project)
            .options(selectinload(Project.team_members))
            .where(Project.id == project_id)
        )
        project = result.scalar_one_or_none()
        if project is None:
            raise NotFoundError("Project", project_id)
        return ProjectResponse.model_validate(project)


project_service = ProjectService()
