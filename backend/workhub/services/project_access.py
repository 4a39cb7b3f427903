"""Project team management: who holds an explicit grant on a project.

Every mutation is guarded by `require_project_permission(..., MANAGE)` before
it touches a row, so the permission resolver is also the gate for its own
write path. Grants are idempotent: granting again updates the existing row in
place (last write wins).

Members may be referenced by user id or by numeric employee id; both are
resolved inside the caller's organization, and users without a profile there
cannot be granted access.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from workhub.auth.identity import IdentityContext
from workhub.errors import BusinessLogicError, ResourceNotFoundError
from workhub.models.employee import Employee
from workhub.models.project import AccessLevel, Project, ProjectAccess
from workhub.models.user import User
from workhub.services.project_permissions import ProjectPermission, require_project_permission
from workhub.utils.datastore import data_store
from workhub.utils.notifications import notify

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TeamMemberSpec:
    """A member to add while creating a project."""
    user: str
    access_level: AccessLevel = AccessLevel.READ


# ── Helpers ──────────────────────────────────────────────────

async def load_project(db: AsyncSession, organization_id: str, project_id: int) -> Project:
    async with data_store("load project"):
        result = await db.execute(
            select(Project).where(
                Project.id == project_id,
                Project.organization_id == organization_id,
            )
        )
        project = result.scalar_one_or_none()
    if project is None:
        raise ResourceNotFoundError("Project", project_id)
    return project


async def resolve_member_ids(
    db: AsyncSession, organization_id: str, refs: list[str]
) -> dict[str, str]:
    """Map each reference (user id or numeric employee id) to a user id.

    Raises ResourceNotFoundError for any reference with no profile in the
    organization.
    """
    employee_ids = [int(ref) for ref in refs if ref.isdigit()]
    user_ids = [ref for ref in refs if not ref.isdigit()]

    conditions = []
    if employee_ids:
        conditions.append(Employee.id.in_(employee_ids))
    if user_ids:
        conditions.append(Employee.auth_id.in_(user_ids))
    if not conditions:
        return {}

    async with data_store("resolve team members"):
        result = await db.execute(
            select(Employee.id, Employee.auth_id).where(
                Employee.organization_id == organization_id,
                or_(*conditions),
            )
        )
        rows = result.all()

    resolved: dict[str, str] = {}
    for row in rows:
        resolved[str(row.id)] = row.auth_id
        resolved[row.auth_id] = row.auth_id

    missing = [ref for ref in refs if ref not in resolved]
    if missing:
        raise ResourceNotFoundError("Employee", ", ".join(missing))
    return {ref: resolved[ref] for ref in refs}


async def _resolve_member(db: AsyncSession, organization_id: str, ref: str) -> str:
    return (await resolve_member_ids(db, organization_id, [ref]))[ref]


async def _find_grant(
    db: AsyncSession, organization_id: str, project_id: int, user_id: str
) -> ProjectAccess | None:
    async with data_store("load project access"):
        result = await db.execute(
            select(ProjectAccess).where(
                ProjectAccess.project_id == project_id,
                ProjectAccess.user_id == user_id,
                ProjectAccess.organization_id == organization_id,
            )
        )
        return result.scalar_one_or_none()


def project_label(project: Project) -> str:
    return f'"{project.name}" ({project.code})'


# ── Queries ──────────────────────────────────────────────────

async def list_team_members(
    db: AsyncSession, identity: IdentityContext, project_id: int
) -> list[dict]:
    """Explicit grants on a project, oldest first. Requires view."""
    await require_project_permission(db, identity, project_id, ProjectPermission.VIEW)

    async with data_store("list team members"):
        result = await db.execute(
            select(
                ProjectAccess.id,
                ProjectAccess.user_id,
                User.full_name.label("name"),
                User.email,
                ProjectAccess.access_level,
                ProjectAccess.granted_by,
                ProjectAccess.created_at,
            )
            .join(User, User.id == ProjectAccess.user_id)
            .where(
                ProjectAccess.project_id == project_id,
                ProjectAccess.organization_id == identity.organization_id,
            )
            .order_by(ProjectAccess.created_at, ProjectAccess.id)
        )
        return [dict(row) for row in result.mappings().all()]


# ── Mutations ────────────────────────────────────────────────

async def add_team_member(
    db: AsyncSession,
    identity: IdentityContext,
    project_id: int,
    member: str,
    access_level: AccessLevel,
) -> ProjectAccess:
    """Grant `access_level`, or update the existing grant in place."""
    await require_project_permission(db, identity, project_id, ProjectPermission.MANAGE)
    project = await load_project(db, identity.organization_id, project_id)
    user_id = await _resolve_member(db, identity.organization_id, member)

    grant = await _find_grant(db, identity.organization_id, project_id, user_id)
    if grant is not None:
        grant.access_level = access_level
        grant.updated_at = datetime.utcnow()
        title = "Project Access Updated"
        message = (
            f"Your access to project {project_label(project)} has been updated "
            f"to {access_level.value} permission"
        )
    else:
        grant = ProjectAccess(
            project_id=project_id,
            user_id=user_id,
            access_level=access_level,
            granted_by=identity.user_id,
            organization_id=identity.organization_id,
        )
        db.add(grant)
        title = "Added to Project"
        message = (
            f"You've been added to project {project_label(project)} "
            f"with {access_level.value} permission"
        )

    notify(
        db,
        organization_id=identity.organization_id,
        created_by=identity.user_id,
        user_id=user_id,
        title=title,
        message=message,
        reference_id=project_id,
    )
    await db.flush()
    logger.info(
        "Project access granted",
        extra={"project_id": project_id, "user_id": user_id, "access_level": access_level.value},
    )
    return grant


async def update_team_member_permission(
    db: AsyncSession,
    identity: IdentityContext,
    project_id: int,
    member: str,
    access_level: AccessLevel,
) -> ProjectAccess:
    await require_project_permission(db, identity, project_id, ProjectPermission.MANAGE)
    project = await load_project(db, identity.organization_id, project_id)
    user_id = await _resolve_member(db, identity.organization_id, member)

    grant = await _find_grant(db, identity.organization_id, project_id, user_id)
    if grant is None:
        raise ResourceNotFoundError("Project access", user_id)

    grant.access_level = access_level
    grant.updated_at = datetime.utcnow()
    notify(
        db,
        organization_id=identity.organization_id,
        created_by=identity.user_id,
        user_id=user_id,
        title="Project Permission Updated",
        message=(
            f"Your permission for project {project_label(project)} "
            f"has been updated to {access_level.value}"
        ),
        reference_id=project_id,
    )
    await db.flush()
    return grant


async def remove_team_member(
    db: AsyncSession,
    identity: IdentityContext,
    project_id: int,
    member: str,
) -> None:
    """Revoke an explicit grant. Creator and supervisor cannot be removed."""
    await require_project_permission(db, identity, project_id, ProjectPermission.MANAGE)
    project = await load_project(db, identity.organization_id, project_id)
    user_id = await _resolve_member(db, identity.organization_id, member)

    if user_id in (project.created_by, project.supervisor_id):
        raise BusinessLogicError(
            "Cannot remove project creator or supervisor from team access",
            error_code="PROTECTED_MEMBER",
        )

    async with data_store("revoke project access"):
        result = await db.execute(
            delete(ProjectAccess).where(
                ProjectAccess.project_id == project_id,
                ProjectAccess.user_id == user_id,
                ProjectAccess.organization_id == identity.organization_id,
            )
        )
    if result.rowcount == 0:
        raise ResourceNotFoundError("Project access", user_id)

    notify(
        db,
        organization_id=identity.organization_id,
        created_by=identity.user_id,
        user_id=user_id,
        title="Removed from Project",
        message=f"You've been removed from project {project_label(project)}",
        reference_id=project_id,
    )
    await db.flush()
    logger.info("Project access revoked", extra={"project_id": project_id, "user_id": user_id})


async def update_project_supervisor(
    db: AsyncSession,
    identity: IdentityContext,
    project_id: int,
    supervisor: str,
) -> Project:
    await require_project_permission(db, identity, project_id, ProjectPermission.MANAGE)
    project = await load_project(db, identity.organization_id, project_id)
    supervisor_id = await _resolve_member(db, identity.organization_id, supervisor)

    previous = project.supervisor_id
    if previous == supervisor_id:
        return project

    project.supervisor_id = supervisor_id
    project.updated_at = datetime.utcnow()

    notify(
        db,
        organization_id=identity.organization_id,
        created_by=identity.user_id,
        user_id=supervisor_id,
        title="Assigned as Project Supervisor",
        message=f"You've been assigned as supervisor for project {project_label(project)}",
        reference_id=project_id,
    )
    if previous:
        notify(
            db,
            organization_id=identity.organization_id,
            created_by=identity.user_id,
            user_id=previous,
            title="Project Supervisor Changed",
            message=f"You're no longer the supervisor for project {project_label(project)}",
            reference_id=project_id,
        )
    await db.flush()
    return project


async def add_team_members(
    db: AsyncSession,
    project: Project,
    members: list[TeamMemberSpec],
    granted_by: str,
) -> list[ProjectAccess]:
    """Bulk-grant access while a project is being created.

    Callers are responsible for having authorized the creation itself.
    """
    if not members:
        return []

    resolved = await resolve_member_ids(
        db, project.organization_id, [m.user for m in members]
    )

    grants: dict[str, ProjectAccess] = {}
    for member in members:
        user_id = resolved[member.user]
        # Later entries for the same user win, keeping one row per (project, user)
        grants[user_id] = ProjectAccess(
            project_id=project.id,
            user_id=user_id,
            access_level=member.access_level,
            granted_by=granted_by,
            organization_id=project.organization_id,
        )

    for user_id, grant in grants.items():
        db.add(grant)
        notify(
            db,
            organization_id=project.organization_id,
            created_by=granted_by,
            user_id=user_id,
            title="Added to Project",
            message=(
                f"You've been added to project {project_label(project)} "
                f"with {grant.access_level.value} permission"
            ),
            reference_id=project.id,
        )
    await db.flush()
    return list(grants.values())
