"""Project permission resolution.

Permission hierarchy (highest precedence first):
  1. Organization admin (global role admin, or employee role admin) → manage.
     Decided without loading the project.
  2. Project not found in the caller's organization                → None
  3. Creator or supervisor                                         → manage
  4. Explicit ProjectAccess row: write → edit, read → view
  5. Nothing matched                                               → None

`None` means "no access" and is an ordinary result, not an error. The
`require_*` helpers turn it into AccessDeniedError; the `can_*` / `has_*`
predicates turn denials into False but let DependencyFailure through.

`get_projects_permissions()` applies the same rules to many projects with a
single query. It is an optimization only: for any input its result equals
calling `get_project_permission()` per id and dropping the None entries.

Every query is scoped to `identity.organization_id`. Nothing is cached; each
call reads the current state of the data store.
"""

from __future__ import annotations

import enum
import logging
from collections import defaultdict
from typing import Iterable

from sqlalchemy import and_, exists, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from workhub.auth.identity import IdentityContext
from workhub.errors import AccessDeniedError, DataIntegrityError, PermissionDeniedError
from workhub.models.project import AccessLevel, Project, ProjectAccess
from workhub.utils.datastore import data_store

logger = logging.getLogger(__name__)


class ProjectPermission(str, enum.Enum):
    VIEW = "view"
    EDIT = "edit"
    MANAGE = "manage"

    @property
    def level(self) -> int:
        return PERMISSION_LEVELS[self]

    def satisfies(self, required: ProjectPermission | str) -> bool:
        return self.level >= ProjectPermission(required).level


PERMISSION_LEVELS: dict[ProjectPermission, int] = {
    ProjectPermission.VIEW: 1,
    ProjectPermission.EDIT: 2,
    ProjectPermission.MANAGE: 3,
}

ACCESS_LEVEL_PERMISSIONS: dict[AccessLevel, ProjectPermission] = {
    AccessLevel.READ: ProjectPermission.VIEW,
    AccessLevel.WRITE: ProjectPermission.EDIT,
}


def _resolve(
    user_id: str,
    created_by: str | None,
    supervisor_id: str | None,
    access_level: AccessLevel | None,
) -> ProjectPermission | None:
    """Steps 3-5 for a project already known to be in the caller's organization."""
    if user_id in (created_by, supervisor_id):
        return ProjectPermission.MANAGE
    if access_level is None:
        return None
    return ACCESS_LEVEL_PERMISSIONS[AccessLevel(access_level)]


def _single_grant(project_id: int, levels: list[AccessLevel]) -> AccessLevel | None:
    if len(levels) > 1:
        raise DataIntegrityError(
            f"Project {project_id} has {len(levels)} access rows for one user"
        )
    return levels[0] if levels else None


# ── Single project ──────────────────────────────────────────

async def get_project_permission(
    db: AsyncSession,
    identity: IdentityContext,
    project_id: int,
) -> ProjectPermission | None:
    if identity.is_org_admin:
        return ProjectPermission.MANAGE

    async with data_store("load project"):
        result = await db.execute(
            select(Project.id, Project.created_by, Project.supervisor_id).where(
                Project.id == project_id,
                Project.organization_id == identity.organization_id,
            )
        )
        project = result.one_or_none()
        if project is None:
            return None

        if identity.user_id in (project.created_by, project.supervisor_id):
            return ProjectPermission.MANAGE

        result = await db.execute(
            select(ProjectAccess.access_level).where(
                ProjectAccess.project_id == project_id,
                ProjectAccess.user_id == identity.user_id,
                ProjectAccess.organization_id == identity.organization_id,
            )
        )
        levels = list(result.scalars().all())

    return _resolve(
        identity.user_id,
        project.created_by,
        project.supervisor_id,
        _single_grant(project_id, levels),
    )


async def require_project_permission(
    db: AsyncSession,
    identity: IdentityContext,
    project_id: int,
    required: ProjectPermission | str,
) -> ProjectPermission:
    """Return the caller's permission, or raise AccessDeniedError if below `required`."""
    required = ProjectPermission(required)
    permission = await get_project_permission(db, identity, project_id)

    if permission is None:
        logger.info(
            "Project access denied",
            extra={
                "user_id": identity.user_id,
                "organization_id": identity.organization_id,
                "project_id": project_id,
                "required": required.value,
            },
        )
        raise AccessDeniedError(
            "Access denied: You don't have access to this project",
            required=required.value,
        )

    if not permission.satisfies(required):
        logger.info(
            "Project permission insufficient",
            extra={
                "user_id": identity.user_id,
                "project_id": project_id,
                "required": required.value,
                "actual": permission.value,
            },
        )
        raise AccessDeniedError(
            f"Access denied: {required.value} permission required, "
            f"but you only have {permission.value} permission",
            required=required.value,
            actual=permission.value,
        )

    return permission


# ── Fail-closed predicates (for conditional logic) ──────────

async def _meets(
    db: AsyncSession,
    identity: IdentityContext,
    project_id: int,
    required: ProjectPermission,
) -> bool:
    try:
        await require_project_permission(db, identity, project_id, required)
    except PermissionDeniedError:
        return False
    return True


async def has_manage_access(db: AsyncSession, identity: IdentityContext, project_id: int) -> bool:
    return await _meets(db, identity, project_id, ProjectPermission.MANAGE)


async def can_view_project(db: AsyncSession, identity: IdentityContext, project_id: int) -> bool:
    return await _meets(db, identity, project_id, ProjectPermission.VIEW)


async def can_edit_project_content(
    db: AsyncSession, identity: IdentityContext, project_id: int
) -> bool:
    """Milestones and expenses need edit or manage."""
    return await _meets(db, identity, project_id, ProjectPermission.EDIT)


# ── Bulk ────────────────────────────────────────────────────

async def get_projects_permissions(
    db: AsyncSession,
    identity: IdentityContext,
    project_ids: Iterable[int],
) -> dict[int, ProjectPermission]:
    """Resolve many projects at once. Projects without access are omitted."""
    project_ids = list(dict.fromkeys(project_ids))
    if not project_ids:
        return {}

    if identity.is_org_admin:
        return {project_id: ProjectPermission.MANAGE for project_id in project_ids}

    stmt = (
        select(
            Project.id,
            Project.created_by,
            Project.supervisor_id,
            ProjectAccess.access_level,
        )
        .outerjoin(
            ProjectAccess,
            and_(
                ProjectAccess.project_id == Project.id,
                ProjectAccess.user_id == identity.user_id,
                ProjectAccess.organization_id == identity.organization_id,
            ),
        )
        .where(
            Project.id.in_(project_ids),
            Project.organization_id == identity.organization_id,
        )
    )
    async with data_store("load project permissions"):
        rows = (await db.execute(stmt)).all()

    owners: dict[int, tuple[str | None, str | None]] = {}
    grants: dict[int, list[AccessLevel]] = defaultdict(list)
    for row in rows:
        owners[row.id] = (row.created_by, row.supervisor_id)
        if row.access_level is not None:
            grants[row.id].append(row.access_level)

    permissions: dict[int, ProjectPermission] = {}
    for project_id, (created_by, supervisor_id) in owners.items():
        permission = _resolve(
            identity.user_id,
            created_by,
            supervisor_id,
            _single_grant(project_id, grants[project_id]),
        )
        if permission is not None:
            permissions[project_id] = permission
    return permissions


# ── Creation & listing ──────────────────────────────────────

def can_create_project(identity: IdentityContext) -> bool:
    """Organization admins and managers may create projects."""
    return identity.is_org_admin or identity.is_manager


def require_can_create_project(identity: IdentityContext) -> IdentityContext:
    if not can_create_project(identity):
        raise AccessDeniedError("Access denied: Only admins and managers can create projects")
    return identity


def project_visibility_filter(identity: IdentityContext):
    """WHERE clause limiting Project rows to those the caller can see.

    Returns None for organization admins (no extra filtering). The
    organization predicate itself is always applied by the caller.
    """
    if identity.is_org_admin:
        return None

    has_grant = exists(
        select(ProjectAccess.id).where(
            ProjectAccess.project_id == Project.id,
            ProjectAccess.user_id == identity.user_id,
            ProjectAccess.organization_id == identity.organization_id,
        )
    )
    return or_(
        Project.created_by == identity.user_id,
        Project.supervisor_id == identity.user_id,
        has_grant,
    )


async def list_visible_projects(
    db: AsyncSession,
    identity: IdentityContext,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[Project], int]:
    """Page of projects the caller can see, newest first, plus the total count."""
    conditions = [Project.organization_id == identity.organization_id]
    visibility = project_visibility_filter(identity)
    if visibility is not None:
        conditions.append(visibility)

    async with data_store("list projects"):
        total = await db.scalar(select(func.count(Project.id)).where(*conditions)) or 0
        result = await db.execute(
            select(Project)
            .where(*conditions)
            .order_by(Project.created_at.desc(), Project.id.desc())
            .limit(limit)
            .offset(offset)
        )
        items = list(result.scalars().all())
    return items, total
