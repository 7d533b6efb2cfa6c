"""
DevTasks Backend - Test Configuration (conftest.py)
====================================================

Shared fixtures for the test suite.

Fixture hierarchy (all function-scoped):
    ├── mock_db_session:  AsyncMock session for service unit tests
    ├── verifier:         TokenVerifier with the test secret
    ├── make_principal:   factory for Principal snapshots
    ├── fake_store:       in-memory principal / resource store for gate tests
    ├── database:         fresh SQLite schema per test (aiosqlite)
    ├── app / client:     FastAPI app + httpx AsyncClient over ASGITransport
    └── seed:             helpers inserting users / projects / tasks
"""

import os
import tempfile

# Settings are read at import time; configure them before importing devtasks
_TEST_DIR = tempfile.mkdtemp(prefix="devtasks_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/test.db"
os.environ["JWT_SECRET"] = "test-secret-not-for-production-0123456789"
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"
os.environ["AUTH_RATE_LIMIT_REQUESTS"] = "1000"

from datetime import datetime, timedelta, timezone
from typing import Dict, Optional
from unittest.mock import AsyncMock, MagicMock

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from devtasks.auth.principal import Principal, Role
from devtasks.auth.tokens import TokenVerifier
from devtasks.config import RenderMode, settings
from devtasks.models.base import new_object_id
from devtasks.services.resource_store import ProjectRef, TaskRef, UserRef

TEST_SECRET = settings.jwt_secret
TEST_PASSWORD = "correct-horse-battery"


# ══════════════════════════════════════════════════════════════════════════
# Fakes
# ══════════════════════════════════════════════════════════════════════════

class FakeStore:
    """
    Dict-backed stand-in for ResourceStore.

    Set `fail_with` to an exception to make every lookup raise it.
    """

    def __init__(self):
        self.principals: Dict[str, Principal] = {}
        self.projects: Dict[str, ProjectRef] = {}
        self.tasks: Dict[str, TaskRef] = {}
        self.users: Dict[str, UserRef] = {}
        self.fail_with: Optional[Exception] = None
        self.calls = []

    def _lookup(self, table: dict, key: str):
        self.calls.append(key)
        if self.fail_with is not None:
            raise self.fail_with
        return table.get(key)

    async def find_principal_by_id(self, principal_id):
        return self._lookup(self.principals, principal_id)

    async def find_project_by_id(self, project_id):
        return self._lookup(self.projects, project_id)

    async def find_task_by_id(self, task_id):
        return self._lookup(self.tasks, task_id)

    async def find_user_by_id(self, user_id):
        return self._lookup(self.users, user_id)

    def add_principal(self, principal: Principal) -> Principal:
        self.principals[principal.id] = principal
        self.users[principal.id] = UserRef(id=principal.id, reports_to_id=principal.reports_to_id)
        return principal


# ══════════════════════════════════════════════════════════════════════════
# Unit-test fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.get = AsyncMock(return_value=None)
    session.add = MagicMock()
    return session


@pytest.fixture
def verifier():
    return TokenVerifier(secret=TEST_SECRET, algorithm="HS256", expires_minutes=60)


@pytest.fixture
def make_principal():
    def _make(role: Role = Role.SOFTWARE_ENGINEER, **kwargs) -> Principal:
        kwargs.setdefault("id", new_object_id())
        kwargs.setdefault("email", f"{kwargs['id'][:6]}@devtasks.test")
        return Principal(role=role, **kwargs)

    return _make


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def expired_token():
    """A correctly signed token whose exp is an hour in the past."""

    def _make(subject_id: str) -> str:
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        payload = {
            "sub": subject_id,
            "iat": int(past.timestamp()),
            "exp": int((past + timedelta(hours=1)).timestamp()),
        }
        return jwt.encode(payload, TEST_SECRET, algorithm="HS256")

    return _make


# ══════════════════════════════════════════════════════════════════════════
# API fixtures (SQLite)
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def database():
    """Create every table before the test and drop them afterwards."""
    import devtasks.models  # noqa: F401
    from devtasks.database import Base, engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    # Pooled connections are bound to this test's event loop
    await engine.dispose()


@pytest.fixture
def app(verifier):
    from devtasks.main import create_app

    return create_app(render_mode=RenderMode.MINIMAL, verifier=verifier)


@pytest_asyncio.fixture
async def client(app, database):
    """
    httpx client over ASGITransport. ASGITransport skips the lifespan, so
    the `database` fixture provides the schema instead.
    """
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


class Seeder:
    """Inserts rows directly through a session, bypassing the API."""

    def __init__(self, verifier: TokenVerifier):
        self.verifier = verifier
        self.password = TEST_PASSWORD

    async def user(
        self,
        role: Role = Role.SOFTWARE_ENGINEER,
        email: Optional[str] = None,
        reports_to_id: Optional[str] = None,
        is_active: bool = True,
        password: str = TEST_PASSWORD,
    ):
        from devtasks.database import async_session_factory
        from devtasks.models import User
        from devtasks.services.security import hash_password

        async with async_session_factory() as session:
            user = User(
                id=new_object_id(),
                email=email or f"{new_object_id()[:8]}@devtasks.test",
                password_hash=hash_password(password, rounds=4),
                first_name="Test",
                last_name=role.value.title(),
                role=role.value,
                department="Engineering",
                reports_to_id=reports_to_id,
                is_active=is_active,
            )
            session.add(user)
            await session.commit()
            return user

    async def project(self, pm_id: str, apm_id=None, team_lead_id=None, member_ids=()):
        from devtasks.database import async_session_factory
        from devtasks.models import Project, User

        async with async_session_factory() as session:
            members = [await session.get(User, member_id) for member_id in member_ids]
            project = Project(
                id=new_object_id(),
                name="Apollo",
                description="Moon shot",
                pm_id=pm_id,
                apm_id=apm_id,
                team_lead_id=team_lead_id,
                team_members=members,
                start_date=datetime.now(timezone.utc),
                estimated_hours=100,
            )
            session.add(project)
            await session.commit()
            return project

    async def task(self, assigned_to_id: str, project_id: Optional[str] = None, assigned_by_id=None):
        from devtasks.database import async_session_factory
        from devtasks.models import Task

        async with async_session_factory() as session:
            task = Task(
                id=new_object_id(),
                title="Write the docs",
                description="All of them",
                project_id=project_id,
                assigned_to_id=assigned_to_id,
                assigned_by_id=assigned_by_id,
                estimated_hours=4,
                start_date=datetime.now(timezone.utc),
                due_date=datetime.now(timezone.utc) + timedelta(days=7),
                tags=["docs"],
            )
            session.add(task)
            await session.commit()
            return task

    def auth_header(self, user) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.verifier.issue(user.id, role=user.role)}"}


@pytest.fixture
def seed(database, verifier):
    return Seeder(verifier)
