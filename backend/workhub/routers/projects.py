"""Project routes. Every endpoint resolves the caller once, then asks the
project permission resolver.

  GET    /                          visible projects, each with the caller's permission
  POST   /                          create (admins and managers)
  GET    /{id}                      view
  PATCH  /{id}                      manage, edit fields or supervisor
  DELETE /{id}                      manage, removes the team grants too
  GET    /{id}/permission           caller's permission (null when none)
  GET    /{id}/team                 view
  POST   /{id}/team                 manage, grant or re-grant
  PATCH  /{id}/team/{user}          manage
  DELETE /{id}/team/{user}          manage
  PUT    /{id}/supervisor           manage
"""

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from workhub.auth.identity import IdentityContext, get_identity
from workhub.auth.modules import Module, require_module
from workhub.database import get_db
from workhub.schemas.common import PaginatedResponse
from workhub.schemas.project import (
    ProjectCreate,
    ProjectOut,
    ProjectPermissionOut,
    ProjectUpdate,
    SupervisorUpdate,
    TeamMemberGrant,
    TeamMemberOut,
    TeamMemberUpdate,
)
from workhub.services import project_access
from workhub.services.project_permissions import (
    ProjectPermission,
    get_project_permission,
    get_projects_permissions,
    list_visible_projects,
)
from workhub.services.projects import (
    TeamMemberSpec,
    create_project,
    delete_project,
    get_project,
    update_project,
)

router = APIRouter()


@router.get("/", response_model=PaginatedResponse[ProjectOut])
async def list_projects(
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    identity: IdentityContext = Depends(require_module(Module.PROJECTS)),
):
    items, total = await list_visible_projects(db, identity, limit=limit, offset=offset)
    permissions = await get_projects_permissions(db, identity, [p.id for p in items])

    items_out = []
    for project in items:
        out = ProjectOut.model_validate(project)
        permission = permissions.get(project.id)
        out.permission = permission.value if permission else None
        items_out.append(out)

    return PaginatedResponse(items=items_out, total=total, limit=limit, offset=offset)


@router.post("/", response_model=ProjectOut, status_code=status.HTTP_201_CREATED)
async def create(
    body: ProjectCreate,
    db: AsyncSession = Depends(get_db),
    identity: IdentityContext = Depends(require_module(Module.PROJECTS)),
):
    project = await create_project(
        db,
        identity,
        name=body.name,
        code=body.code,
        description=body.description,
        supervisor=body.supervisor,
        members=[TeamMemberSpec(user=m.user, access_level=m.access_level) for m in body.team],
    )
    out = ProjectOut.model_validate(project)
    out.permission = ProjectPermission.MANAGE.value
    return out


@router.get("/{project_id}", response_model=ProjectOut)
async def read(
    project_id: int,
    db: AsyncSession = Depends(get_db),
    identity: IdentityContext = Depends(get_identity),
):
    project, permission = await get_project(db, identity, project_id)
    out = ProjectOut.model_validate(project)
    out.permission = permission.value
    return out


@router.get("/{project_id}/permission", response_model=ProjectPermissionOut)
async def read_permission(
    project_id: int,
    db: AsyncSession = Depends(get_db),
    identity: IdentityContext = Depends(get_identity),
):
    permission = await get_project_permission(db, identity, project_id)
    return ProjectPermissionOut(
        project_id=project_id,
        permission=permission.value if permission else None,
    )


@router.patch("/{project_id}", response_model=ProjectOut)
async def update(
    project_id: int,
    body: ProjectUpdate,
    db: AsyncSession = Depends(get_db),
    identity: IdentityContext = Depends(get_identity),
):
    project = await update_project(db, identity, project_id, body.model_dump(exclude_unset=True))
    out = ProjectOut.model_validate(project)
    # Clearing their own supervision can leave the caller without access
    permission = await get_project_permission(db, identity, project_id)
    out.permission = permission.value if permission else None
    return out


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove(
    project_id: int,
    db: AsyncSession = Depends(get_db),
    identity: IdentityContext = Depends(get_identity),
):
    await delete_project(db, identity, project_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Team ─────────────────────────────────────────────────────

@router.get("/{project_id}/team", response_model=list[TeamMemberOut])
async def list_team(
    project_id: int,
    db: AsyncSession = Depends(get_db),
    identity: IdentityContext = Depends(get_identity),
):
    return await project_access.list_team_members(db, identity, project_id)


@router.post("/{project_id}/team", status_code=status.HTTP_204_NO_CONTENT)
async def grant(
    project_id: int,
    body: TeamMemberGrant,
    db: AsyncSession = Depends(get_db),
    identity: IdentityContext = Depends(get_identity),
):
    await project_access.add_team_member(db, identity, project_id, body.user, body.access_level)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{project_id}/team/{member}", status_code=status.HTTP_204_NO_CONTENT)
async def update_grant(
    project_id: int,
    member: str,
    body: TeamMemberUpdate,
    db: AsyncSession = Depends(get_db),
    identity: IdentityContext = Depends(get_identity),
):
    await project_access.update_team_member_permission(
        db, identity, project_id, member, body.access_level
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{project_id}/team/{member}", status_code=status.HTTP_204_NO_CONTENT)
async def revoke(
    project_id: int,
    member: str,
    db: AsyncSession = Depends(get_db),
    identity: IdentityContext = Depends(get_identity),
):
    await project_access.remove_team_member(db, identity, project_id, member)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{project_id}/supervisor", response_model=ProjectOut)
async def set_supervisor(
    project_id: int,
    body: SupervisorUpdate,
    db: AsyncSession = Depends(get_db),
    identity: IdentityContext = Depends(get_identity),
):
    project = await project_access.update_project_supervisor(db, identity, project_id, body.supervisor)
    out = ProjectOut.model_validate(project)
    # The caller may have handed over their own supervisor role
    permission = await get_project_permission(db, identity, project_id)
    out.permission = permission.value if permission else None
    return out
