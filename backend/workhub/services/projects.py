"""Project lifecycle: creation, lookup, edits and removal.

Edits and removal need manage permission (creator, supervisor or
organization admin). Removing a project takes its explicit grants with it,
so former members resolve to no permission afterwards.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from workhub.auth.identity import IdentityContext
from workhub.models.project import Project, ProjectAccess, ProjectStatus
from workhub.services.project_access import (
    TeamMemberSpec,
    add_team_members,
    load_project,
    project_label,
    resolve_member_ids,
)
from workhub.services.project_permissions import (
    ProjectPermission,
    require_can_create_project,
    require_project_permission,
)
from workhub.utils.datastore import data_store
from workhub.utils.notifications import notify

logger = logging.getLogger(__name__)


async def create_project(
    db: AsyncSession,
    identity: IdentityContext,
    *,
    name: str,
    code: str,
    description: str | None = None,
    supervisor: str | None = None,
    members: list[TeamMemberSpec] | None = None,
) -> Project:
    """Create a project owned by the caller, with optional supervisor and team."""
    require_can_create_project(identity)

    supervisor_id = None
    if supervisor:
        supervisor_id = (await resolve_member_ids(db, identity.organization_id, [supervisor]))[supervisor]

    project = Project(
        organization_id=identity.organization_id,
        name=name,
        code=code,
        description=description,
        created_by=identity.user_id,
        supervisor_id=supervisor_id,
    )
    db.add(project)
    await db.flush()

    await add_team_members(db, project, members or [], granted_by=identity.user_id)
    return project


async def get_project(
    db: AsyncSession, identity: IdentityContext, project_id: int
) -> tuple[Project, ProjectPermission]:
    permission = await require_project_permission(db, identity, project_id, ProjectPermission.VIEW)
    project = await load_project(db, identity.organization_id, project_id)
    return project, permission


async def update_project(
    db: AsyncSession,
    identity: IdentityContext,
    project_id: int,
    changes: dict,
) -> Project:
    """Apply `changes` (name, description, status, supervisor) to a project.

    Only keys present in `changes` are touched. A `supervisor` of None clears
    the supervisor. The supervisor in place after the edit is told what changed.
    """
    await require_project_permission(db, identity, project_id, ProjectPermission.MANAGE)
    project = await load_project(db, identity.organization_id, project_id)

    summary: list[str] = []
    name = changes.get("name")
    if name and name != project.name:
        project.name = name
        summary.append(f'Name updated to "{name}"')
    if "description" in changes and changes["description"] != project.description:
        project.description = changes["description"]
        summary.append("Description updated")
    status = changes.get("status")
    if status is not None and ProjectStatus(status) != project.status:
        project.status = ProjectStatus(status)
        summary.append(f"Status updated to {project.status.value}")

    previous = project.supervisor_id
    supervisor_changed = False
    if "supervisor" in changes:
        ref = changes["supervisor"]
        supervisor_id = (
            (await resolve_member_ids(db, identity.organization_id, [ref]))[ref] if ref else None
        )
        supervisor_changed = supervisor_id != previous
        project.supervisor_id = supervisor_id

    if not summary and not supervisor_changed:
        return project
    project.updated_at = datetime.utcnow()

    def _notify(user_id: str, title: str, message: str) -> None:
        notify(
            db,
            organization_id=identity.organization_id,
            created_by=identity.user_id,
            user_id=user_id,
            title=title,
            message=message,
            reference_id=project_id,
        )

    label = project_label(project)
    if supervisor_changed and project.supervisor_id:
        _notify(
            project.supervisor_id,
            "Assigned as Project Supervisor",
            f"You've been assigned as supervisor for project {label}",
        )
    if supervisor_changed and previous:
        _notify(
            previous,
            "Project Supervision Ended",
            f"You are no longer assigned to supervise project {label}",
        )
    if summary and project.supervisor_id:
        _notify(
            project.supervisor_id,
            "Project Updated",
            f"Project {label} updated: {'; '.join(summary)}",
        )

    await db.flush()
    logger.info(
        "Project updated",
        extra={"project_id": project_id, "changes": sorted(changes), "user_id": identity.user_id},
    )
    return project


async def delete_project(db: AsyncSession, identity: IdentityContext, project_id: int) -> None:
    await require_project_permission(db, identity, project_id, ProjectPermission.MANAGE)
    project = await load_project(db, identity.organization_id, project_id)
    supervisor_id = project.supervisor_id
    label = project_label(project)

    async with data_store("delete project"):
        await db.execute(
            delete(ProjectAccess).where(
                ProjectAccess.project_id == project_id,
                ProjectAccess.organization_id == identity.organization_id,
            )
        )
        await db.execute(
            delete(Project).where(
                Project.id == project_id,
                Project.organization_id == identity.organization_id,
            )
        )

    if supervisor_id:
        notify(
            db,
            organization_id=identity.organization_id,
            created_by=identity.user_id,
            user_id=supervisor_id,
            title="Project Cancelled",
            message=f"Project {label} has been removed",
            reference_id=project_id,
        )
    await db.flush()
    logger.info("Project deleted", extra={"project_id": project_id, "user_id": identity.user_id})
