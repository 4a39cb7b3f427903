from pydantic import BaseModel


class EmployeeProfileOut(BaseModel):
    id: int
    name: str
    department: str
    role: str
    is_manager: bool


class IdentityOut(BaseModel):
    """The caller as the access-control layer sees them."""
    user_id: str
    global_role: str
    organization_id: str
    employee: EmployeeProfileOut
    modules: list[str]
    can_create_projects: bool


class ModuleRuleOut(BaseModel):
    module: str
    departments: list[str]
    managers: bool
