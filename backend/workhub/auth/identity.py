"""Identity context: who is calling, in which organization, with which profile.

Every protected operation starts here. `resolve_identity()` turns a bearer
token into an IdentityContext or raises:

  UnauthenticatedError        token missing, malformed, expired or revoked;
                              user missing or inactive
  NoActiveOrganizationError   no organization claim/selection, or it is gone
  NoEmployeeProfileError      no Employee row for (user, organization)
  DependencyFailure           database or Redis unreachable

The context is built once per request by the `get_identity` dependency
(FastAPI caches a dependency's result for the lifetime of one request) and is
then passed explicitly to every gate and resolver. Nothing is cached across
requests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from workhub.auth.jwt import decode_token
from workhub.auth.revocation import TokenRevocation
from workhub.database import get_db
from workhub.errors import (
    NoActiveOrganizationError,
    NoEmployeeProfileError,
    UnauthenticatedError,
)
from workhub.models.employee import Department, Employee
from workhub.models.organization import Organization
from workhub.models.user import User, UserRole
from workhub.utils.datastore import data_store

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

ORG_ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class EmployeeProfile:
    """Read-only snapshot of the caller's Employee row."""
    id: int
    name: str
    department: Department
    role: str
    is_manager: bool

    @classmethod
    def from_model(cls, employee: Employee) -> EmployeeProfile:
        return cls(
            id=employee.id,
            name=employee.name,
            department=Department(employee.department),
            role=(employee.role or "").lower().strip(),
            is_manager=bool(employee.is_manager),
        )


@dataclass(frozen=True)
class IdentityContext:
    user_id: str
    global_role: UserRole
    organization_id: str
    employee: EmployeeProfile

    @property
    def department(self) -> Department:
        return self.employee.department

    @property
    def is_manager(self) -> bool:
        return self.employee.is_manager

    @property
    def is_global_admin(self) -> bool:
        """Global (session) role is admin."""
        return self.global_role == UserRole.ADMIN

    @property
    def is_org_admin(self) -> bool:
        """Global admin, or admin role on the employee profile."""
        return self.is_global_admin or self.employee.role == ORG_ADMIN_ROLE


async def resolve_identity(db: AsyncSession, token: str | None) -> IdentityContext:
    if not token:
        raise UnauthenticatedError()

    payload = decode_token(token)
    user_id: str | None = payload.get("sub")
    if not user_id or payload.get("type") != "access":
        raise UnauthenticatedError("Invalid or expired token")

    if await TokenRevocation.is_revoked(token):
        raise UnauthenticatedError("Session has been revoked")

    async with data_store("load user"):
        result = await db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
    if not user or not user.is_active:
        raise UnauthenticatedError("User not found or inactive")

    organization_id = payload.get("org") or user.active_organization_id
    if not organization_id:
        raise NoActiveOrganizationError()

    async with data_store("load organization"):
        result = await db.execute(
            select(Organization.id).where(Organization.id == organization_id)
        )
        if result.scalar_one_or_none() is None:
            raise NoActiveOrganizationError("Active organization no longer exists")

        result = await db.execute(
            select(Employee)
            .where(
                Employee.auth_id == user.id,
                Employee.organization_id == organization_id,
            )
            .limit(1)
        )
        employee = result.scalar_one_or_none()
    if employee is None:
        logger.info(
            "No employee profile for user in organization",
            extra={"user_id": user.id, "organization_id": organization_id},
        )
        raise NoEmployeeProfileError()

    return IdentityContext(
        user_id=user.id,
        global_role=UserRole(user.role),
        organization_id=organization_id,
        employee=EmployeeProfile.from_model(employee),
    )


# ── FastAPI dependencies ────────────────────────────────────

def get_bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str | None:
    return credentials.credentials if credentials else None


async def get_identity(
    token: str | None = Depends(get_bearer_token),
    db: AsyncSession = Depends(get_db),
) -> IdentityContext:
    """Resolve the caller once per request."""
    return await resolve_identity(db, token)
