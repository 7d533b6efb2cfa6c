"""
DevTasks Backend - Authentication and Role Gates
=================================================

What:  Resolve the bearer credential on a request to an active Principal,
       and restrict routes to an allow-list of roles.
How:   AuthenticationGate / check_role hold the decision logic and know
       nothing about FastAPI; the dependency functions at the bottom adapt
       them to routes and attach the Principal to request.state.
Who:   Every protected route, via Depends(get_current_principal) or
       Depends(require_roles(...)).

Failure messages (all 401 unless noted):
    no / malformed header   "You are not logged in! ..."
    expired token           "Your token has expired. ..."
    invalid token           "Invalid token. ..."
    unknown subject         "The user belonging to this token no longer exists."
    inactive account        "Your account has been deactivated. ..."
    secret not configured   500 "JWT secret not configured"
    role not allowed        403 "You do not have permission to perform this action"
"""

import logging
from typing import Callable, Iterable, Optional, Protocol

import jwt
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from devtasks.auth.principal import Principal, Role
from devtasks.auth.tokens import TokenVerifier
from devtasks.database import get_db_session
from devtasks.exceptions import (
    ForbiddenError,
    InternalError,
    NotAuthenticatedError,
)
from devtasks.services.resource_store import ResourceStore

logger = logging.getLogger(__name__)

NOT_LOGGED_IN = "You are not logged in! Please log in to get access."
TOKEN_EXPIRED = "Your token has expired. Please log in again."
TOKEN_INVALID = "Invalid token. Please log in again."
USER_GONE = "The user belonging to this token no longer exists."
ACCOUNT_DEACTIVATED = "Your account has been deactivated. Please contact support."


class PrincipalStore(Protocol):
    async def find_principal_by_id(self, principal_id: str) -> Optional[Principal]: ...


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token from "Bearer <token>", or None for anything else."""
    if not authorization:
        return None
    scheme, _, credentials = authorization.strip().partition(" ")
    if scheme != "Bearer":
        return None
    token = credentials.strip()
    if not token or " " in token:
        return None
    return token


class AuthenticationGate:
    """Verifies the bearer token and resolves it to an active Principal."""

    def __init__(self, verifier: TokenVerifier, store: PrincipalStore):
        self.verifier = verifier
        self.store = store

    async def authenticate(self, authorization: Optional[str]) -> Principal:
        token = extract_bearer_token(authorization)
        if token is None:
            raise NotAuthenticatedError(NOT_LOGGED_IN)

        if not self.verifier.configured:
            raise InternalError("JWT secret not configured", operational=True)

        try:
            claims = self.verifier.verify(token)
        except jwt.ExpiredSignatureError:
            raise NotAuthenticatedError(TOKEN_EXPIRED)
        except jwt.InvalidTokenError:
            raise NotAuthenticatedError(TOKEN_INVALID)

        try:
            principal = await self.store.find_principal_by_id(claims.subject_id)
        except Exception as exc:
            logger.warning("Principal lookup failed for %s: %s", claims.subject_id, exc)
            raise NotAuthenticatedError("Authentication failed") from exc

        if principal is None:
            raise NotAuthenticatedError(USER_GONE)
        if not principal.is_active:
            raise NotAuthenticatedError(ACCOUNT_DEACTIVATED)
        return principal


def check_role(principal: Optional[Principal], allowed: Iterable[Role]) -> Principal:
    """
    Role Gate.

    Raises:
        NotAuthenticatedError: no principal (authentication did not run first)
        ForbiddenError:        principal's role is not in `allowed`
    """
    allowed = frozenset(allowed)
    if principal is None:
        raise NotAuthenticatedError("User not authenticated")
    if principal.role not in allowed:
        logger.info(
            "Role %s denied (allowed: %s)",
            principal.role.value,
            sorted(r.value for r in allowed),
        )
        raise ForbiddenError()
    return principal


# ── FastAPI dependencies ──────────────────────────────────────────────────

def get_token_verifier(request: Request) -> TokenVerifier:
    return request.app.state.token_verifier


async def get_resource_store(db: AsyncSession = Depends(get_db_session)) -> ResourceStore:
    return ResourceStore(db)


async def get_current_principal(
    request: Request,
    verifier: TokenVerifier = Depends(get_token_verifier),
    store: ResourceStore = Depends(get_resource_store),
) -> Principal:
    """Authentication Gate as a dependency; stores the result on request.state."""
    gate = AuthenticationGate(verifier, store)
    principal = await gate.authenticate(request.headers.get("Authorization"))
    request.state.principal = principal
    return principal


def require_roles(*roles: Role) -> Callable:
    """
    Dependency factory for the Role Gate.

    Usage:
        @router.post("/projects", dependencies=[Depends(require_roles(Role.CEO, Role.PROJECT_MANAGER))])
    """
    allowed = frozenset(roles)

    async def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        return check_role(principal, allowed)

    return dependency
