from datetime import datetime

from pydantic import BaseModel, Field

from workhub.models.project import AccessLevel, ProjectStatus


# ── Projects ─────────────────────────────────────────────────

class TeamMemberIn(BaseModel):
    # User id, or numeric employee id
    user: str
    access_level: AccessLevel = AccessLevel.READ


class ProjectCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    code: str = Field(min_length=1, max_length=50)
    description: str | None = None
    supervisor: str | None = None
    team: list[TeamMemberIn] = []


class ProjectUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    status: ProjectStatus | None = None
    # User id or numeric employee id; null clears the supervisor
    supervisor: str | None = None


class ProjectOut(BaseModel):
    id: int
    name: str
    code: str
    description: str | None
    status: ProjectStatus
    created_by: str | None
    supervisor_id: str | None
    created_at: datetime
    permission: str | None = None

    model_config = {"from_attributes": True}


class ProjectPermissionOut(BaseModel):
    project_id: int
    permission: str | None


# ── Team ─────────────────────────────────────────────────────

class TeamMemberGrant(BaseModel):
    user: str
    access_level: AccessLevel


class TeamMemberUpdate(BaseModel):
    access_level: AccessLevel


class TeamMemberOut(BaseModel):
    id: int
    user_id: str
    name: str | None
    email: str
    access_level: AccessLevel
    granted_by: str | None
    created_at: datetime


class SupervisorUpdate(BaseModel):
    supervisor: str
