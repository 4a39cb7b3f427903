"""Session routes.

Route overview:
  GET  /me                    the caller's identity context and the modules they can open
  POST /logout                revoke the bearer token until it expires
  GET  /modules/{department}  modules a department opens (HR or admin)
  GET  /module-rules          the full module rule table (admin)

Login and token issuance belong to the external auth provider.
"""

from fastapi import APIRouter, Depends, Response, status

from workhub.auth.deps import require_admin, require_hr_or_admin
from workhub.auth.identity import IdentityContext, get_bearer_token, get_identity
from workhub.auth.jwt import decode_token
from workhub.auth.modules import MODULE_RULES, accessible_modules, modules_for_department
from workhub.auth.revocation import TokenRevocation
from workhub.models.employee import Department
from workhub.schemas.auth import EmployeeProfileOut, IdentityOut, ModuleRuleOut
from workhub.services.project_permissions import can_create_project

router = APIRouter()


@router.get("/me", response_model=IdentityOut)
async def me(identity: IdentityContext = Depends(get_identity)):
    employee = identity.employee
    return IdentityOut(
        user_id=identity.user_id,
        global_role=identity.global_role.value,
        organization_id=identity.organization_id,
        employee=EmployeeProfileOut(
            id=employee.id,
            name=employee.name,
            department=employee.department.value,
            role=employee.role,
            is_manager=employee.is_manager,
        ),
        modules=[m.value for m in accessible_modules(identity)],
        can_create_projects=can_create_project(identity),
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    token: str | None = Depends(get_bearer_token),
    identity: IdentityContext = Depends(get_identity),
):
    payload = decode_token(token)
    await TokenRevocation.revoke_token(token, float(payload["exp"]))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/modules/{department}", response_model=list[str])
async def department_modules(
    department: Department,
    identity: IdentityContext = Depends(require_hr_or_admin),
):
    return [m.value for m in modules_for_department(department)]


@router.get("/module-rules", response_model=list[ModuleRuleOut])
async def module_rules(identity: IdentityContext = Depends(require_admin)):
    return [
        ModuleRuleOut(
            module=module.value,
            departments=sorted(d.value for d in rule.departments),
            managers=rule.managers,
        )
        for module, rule in MODULE_RULES.items()
    ]
