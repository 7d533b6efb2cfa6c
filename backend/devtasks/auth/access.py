"""
DevTasks Backend - Resource-Access Gate
========================================

What:  Decides whether an authenticated caller may touch a specific
       project, task or user.
How:   The caller's relationships to the target are computed from store
       snapshots, then intersected with ACCESS_GRANTS for the resource
       kind. Any shared relationship grants access.

Relationships per kind:
    project   manager, secondary manager, team lead, team member
    task      assignee; or manager / secondary manager / team lead of the
              parent project (project membership alone does not grant)
    user      self; target reports to caller; target in caller's
              subordinate set

Executives (FULL_ACCESS_ROLES) bypass every check.

Degraded access:
    When a task's parent project cannot be found (deleted, or never set),
    only the assignee relationship remains. That is a policy, not an error.
"""

import enum
import logging
from typing import Callable, Dict, FrozenSet, Optional, Protocol, Set

from fastapi import Depends

from devtasks.auth.gates import get_current_principal, get_resource_store
from devtasks.auth.principal import Principal, Role
from devtasks.exceptions import (
    DevTasksError,
    ForbiddenError,
    InternalError,
    NotAuthenticatedError,
    NotFoundError,
)
from devtasks.middleware.validation import validate_object_id
from devtasks.services.resource_store import ProjectRef, TaskRef, UserRef

logger = logging.getLogger(__name__)


class ResourceKind(str, enum.Enum):
    PROJECT = "project"
    TASK = "task"
    USER = "user"


class Relationship(str, enum.Enum):
    MANAGER = "manager"
    SECONDARY_MANAGER = "secondary_manager"
    TEAM_LEAD = "team_lead"
    MEMBER = "member"
    ASSIGNEE = "assignee"
    SELF = "self"
    SUPERIOR = "superior"                # target.reports_to == caller
    LISTED_SUPERIOR = "listed_superior"  # target in caller.subordinate_ids


ACCESS_GRANTS: Dict[ResourceKind, FrozenSet[Relationship]] = {
    ResourceKind.PROJECT: frozenset({
        Relationship.MANAGER,
        Relationship.SECONDARY_MANAGER,
        Relationship.TEAM_LEAD,
        Relationship.MEMBER,
    }),
    ResourceKind.TASK: frozenset({
        Relationship.ASSIGNEE,
        Relationship.MANAGER,
        Relationship.SECONDARY_MANAGER,
        Relationship.TEAM_LEAD,
    }),
    ResourceKind.USER: frozenset({
        Relationship.SELF,
        Relationship.SUPERIOR,
        Relationship.LISTED_SUPERIOR,
    }),
}

FULL_ACCESS_ROLES: FrozenSet[Role] = frozenset({Role.CEO})

_LABELS = {
    ResourceKind.PROJECT: "Project",
    ResourceKind.TASK: "Task",
    ResourceKind.USER: "User",
}


class AccessStore(Protocol):
    async def find_project_by_id(self, project_id: str) -> Optional[ProjectRef]: ...
    async def find_task_by_id(self, task_id: str) -> Optional[TaskRef]: ...
    async def find_user_by_id(self, user_id: str) -> Optional[UserRef]: ...


def project_relationships(principal_id: str, project: ProjectRef) -> Set[Relationship]:
    found: Set[Relationship] = set()
    if project.manager_id == principal_id:
        found.add(Relationship.MANAGER)
    if project.secondary_manager_id == principal_id:
        found.add(Relationship.SECONDARY_MANAGER)
    if project.team_lead_id == principal_id:
        found.add(Relationship.TEAM_LEAD)
    if principal_id in project.member_ids:
        found.add(Relationship.MEMBER)
    return found


def task_relationships(
    principal_id: str,
    task: TaskRef,
    parent: Optional[ProjectRef],
) -> Set[Relationship]:
    found: Set[Relationship] = set()
    if task.assignee_id == principal_id:
        found.add(Relationship.ASSIGNEE)
    if parent is not None:
        found |= project_relationships(principal_id, parent)
    return found


def user_relationships(principal: Principal, target: UserRef) -> Set[Relationship]:
    found: Set[Relationship] = set()
    if target.id == principal.id:
        found.add(Relationship.SELF)
    if target.reports_to_id is not None and target.reports_to_id == principal.id:
        found.add(Relationship.SUPERIOR)
    if target.id in principal.subordinate_ids:
        found.add(Relationship.LISTED_SUPERIOR)
    return found


def is_granted(kind: ResourceKind, relationships: Set[Relationship]) -> bool:
    return bool(ACCESS_GRANTS[kind] & relationships)


class ResourceAccessGate:
    """Checks a principal's access to one resource; raises on denial."""

    def __init__(self, store: AccessStore):
        self.store = store

    async def check(
        self,
        principal: Optional[Principal],
        kind: ResourceKind,
        resource_id: str,
    ) -> None:
        """
        Raises:
            NotAuthenticatedError (401): no principal
            NotFoundError (404):         target resource missing
            ForbiddenError (403):        no granting relationship
            InternalError (500):         the store failed unexpectedly
        """
        if principal is None:
            raise NotAuthenticatedError("User not authenticated")
        resource_id = resource_id.lower()
        if principal.role in FULL_ACCESS_ROLES:
            return

        try:
            relationships = await self._relationships(principal, kind, resource_id)
        except DevTasksError:
            raise
        except Exception as exc:
            logger.error(
                "Access check failed for %s on %s %s: %s",
                principal.id,
                kind.value,
                resource_id,
                exc,
                exc_info=True,
            )
            raise InternalError(
                "Error checking resource access",
                context={"kind": kind.value, "resource_id": resource_id},
            ) from exc

        if not is_granted(kind, relationships):
            logger.info("Access denied: %s → %s %s", principal.id, kind.value, resource_id)
            raise ForbiddenError(f"You do not have access to this {kind.value}")

    async def _relationships(
        self,
        principal: Principal,
        kind: ResourceKind,
        resource_id: str,
    ) -> Set[Relationship]:
        if kind is ResourceKind.PROJECT:
            project = await self.store.find_project_by_id(resource_id)
            if project is None:
                raise NotFoundError(_LABELS[kind], resource_id)
            return project_relationships(principal.id, project)

        if kind is ResourceKind.TASK:
            task = await self.store.find_task_by_id(resource_id)
            if task is None:
                raise NotFoundError(_LABELS[kind], resource_id)
            parent = None
            if task.project_id is not None:
                parent = await self.store.find_project_by_id(task.project_id)
            return task_relationships(principal.id, task, parent)

        # Own profile needs no lookup
        if resource_id == principal.id:
            return {Relationship.SELF}
        target = await self.store.find_user_by_id(resource_id)
        if target is None:
            raise NotFoundError(_LABELS[kind], resource_id)
        return user_relationships(principal, target)


def require_resource_access(kind: ResourceKind, param_name: str = "id") -> Callable:
    """
    Dependency factory: authenticate, check the identifier format of the
    path parameter, then run the Resource-Access Gate.

    Returns the Principal so handlers can use it directly.
    """

    async def dependency(
        principal: Principal = Depends(get_current_principal),
        resource_id: str = Depends(validate_object_id(param_name)),
        store=Depends(get_resource_store),
    ) -> Principal:
        await ResourceAccessGate(store).check(principal, kind, resource_id)
        return principal

    return dependency
