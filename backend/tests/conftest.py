"""Pytest configuration and fixtures for WorkHub tests.

Each test gets a fresh in-memory SQLite database (aiosqlite) with the full
schema, and Redis is replaced by a small in-process fake that answers the
commands session revocation uses.
"""

import itertools
import time
from dataclasses import dataclass
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from workhub.auth import revocation
from workhub.auth.identity import EmployeeProfile, IdentityContext
from workhub.auth.jwt import create_access_token
from workhub.database import Base, get_db
from workhub.main import app
from workhub.models import (
    AccessLevel,
    Department,
    Employee,
    Organization,
    Project,
    ProjectAccess,
    User,
    UserRole,
)


# ── Test Database Setup ──────────────────────────────────────────

@pytest_asyncio.fixture
async def test_engine():
    """In-memory database shared by every connection of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def client(db_session) -> AsyncGenerator[AsyncClient, None]:
    """Test client with the database dependency pointed at db_session."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# ── Redis Fixtures ───────────────────────────────────────────────

class FakeRedis:
    """Just enough of redis.asyncio.Redis for TokenRevocation and health checks."""

    def __init__(self):
        self.store: dict[str, tuple[str, float]] = {}
        self.fail = False

    def _check(self):
        if self.fail:
            raise RedisConnectionError("Connection refused")

    async def setex(self, key: str, ttl: int, value: str):
        self._check()
        self.store[key] = (value, time.time() + ttl)
        return True

    async def exists(self, key: str) -> int:
        self._check()
        return int(key in self.store)

    async def ping(self) -> bool:
        self._check()
        return True


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch) -> FakeRedis:
    fake = FakeRedis()
    monkeypatch.setattr(revocation, "_redis_client", fake)
    return fake


# ── Test Data Fixtures ───────────────────────────────────────────

@dataclass
class Member:
    """A user together with their employee profile in one organization."""
    user: User
    employee: Employee

    @property
    def id(self) -> str:
        return self.user.id

    @property
    def identity(self) -> IdentityContext:
        return IdentityContext(
            user_id=self.user.id,
            global_role=UserRole(self.user.role),
            organization_id=self.employee.organization_id,
            employee=EmployeeProfile.from_model(self.employee),
        )

    @property
    def token(self) -> str:
        return create_access_token(
            user_id=self.user.id,
            role=UserRole(self.user.role).value,
            organization_id=self.employee.organization_id,
        )

    @property
    def headers(self) -> dict:
        return {"Authorization": f"Bearer {self.token}"}


async def _organization(db: AsyncSession, name: str, slug: str) -> Organization:
    organization = Organization(name=name, slug=slug)
    db.add(organization)
    await db.flush()
    return organization


@pytest_asyncio.fixture
async def organization(db_session: AsyncSession) -> Organization:
    return await _organization(db_session, "Acme Corp", "acme")


@pytest_asyncio.fixture
async def other_organization(db_session: AsyncSession) -> Organization:
    return await _organization(db_session, "Globex", "globex")


@pytest.fixture
def add_member(db_session: AsyncSession):
    """Factory: create a user with a profile in `organization`."""
    counter = itertools.count(1)

    async def _add(
        organization: Organization,
        department: Department = Department.OPERATIONS,
        *,
        role: str = "user",
        is_manager: bool = False,
        global_role: UserRole = UserRole.USER,
        is_active: bool = True,
        active_organization: bool = True,
    ) -> Member:
        n = next(counter)
        name = f"{department.value.title()} User {n}"
        user = User(
            email=f"user{n}@{organization.slug}.example.com",
            full_name=name,
            role=global_role,
            is_active=is_active,
            active_organization_id=organization.id if active_organization else None,
        )
        db_session.add(user)
        await db_session.flush()

        employee = Employee(
            organization_id=organization.id,
            auth_id=user.id,
            name=name,
            email=user.email,
            staff_number=f"EMP-{n:04d}",
            department=department,
            role=role,
            is_manager=is_manager,
        )
        db_session.add(employee)
        await db_session.flush()
        return Member(user=user, employee=employee)

    return _add


@pytest.fixture
def add_project(db_session: AsyncSession):
    """Factory: create a project, optionally with explicit grants."""
    counter = itertools.count(1)

    async def _add(
        organization: Organization,
        *,
        created_by: Member | None = None,
        supervisor: Member | None = None,
        grants: tuple[tuple[Member, AccessLevel], ...] = (),
    ) -> Project:
        n = next(counter)
        project = Project(
            organization_id=organization.id,
            name=f"Project {n}",
            code=f"{organization.slug.upper()}-{n:03d}",
            created_by=created_by.id if created_by else None,
            supervisor_id=supervisor.id if supervisor else None,
        )
        db_session.add(project)
        await db_session.flush()

        for member, level in grants:
            db_session.add(
                ProjectAccess(
                    project_id=project.id,
                    user_id=member.id,
                    access_level=level,
                    organization_id=organization.id,
                )
            )
        await db_session.flush()
        return project

    return _add


@pytest_asyncio.fixture
async def admin(organization, add_member) -> Member:
    """Global admin."""
    return await add_member(organization, Department.ADMIN, global_role=UserRole.ADMIN)


@pytest_asyncio.fixture
async def org_admin(organization, add_member) -> Member:
    """Admin by employee role only."""
    return await add_member(organization, Department.OPERATIONS, role="Admin ")


@pytest_asyncio.fixture
async def manager(organization, add_member) -> Member:
    return await add_member(organization, Department.OPERATIONS, is_manager=True)


@pytest_asyncio.fixture
async def staff(organization, add_member) -> Member:
    return await add_member(organization, Department.OPERATIONS)


@pytest_asyncio.fixture
async def colleague(organization, add_member) -> Member:
    return await add_member(organization, Department.OPERATIONS)


@pytest_asyncio.fixture
async def hr_staff(organization, add_member) -> Member:
    return await add_member(organization, Department.HR)


@pytest_asyncio.fixture
async def finance_staff(organization, add_member) -> Member:
    return await add_member(organization, Department.FINANCE)


# ── Identity without a database ──────────────────────────────────

@pytest.fixture
def make_identity():
    """Factory: build an IdentityContext directly, for pure gate tests."""

    def _make(
        department: Department = Department.OPERATIONS,
        *,
        role: str = "user",
        is_manager: bool = False,
        global_role: UserRole = UserRole.USER,
        user_id: str = "user-1",
        organization_id: str = "org-1",
    ) -> IdentityContext:
        return IdentityContext(
            user_id=user_id,
            global_role=global_role,
            organization_id=organization_id,
            employee=EmployeeProfile(
                id=1,
                name="Test Employee",
                department=department,
                role=role,
                is_manager=is_manager,
            ),
        )

    return _make


# ── Test Markers ─────────────────────────────────────────────────

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "auth: Authentication and identity tests")
    config.addinivalue_line("markers", "api: HTTP route tests")
