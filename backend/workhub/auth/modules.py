"""Module gate: which feature areas a caller may open.

Design:
  - `Module` enumerates every feature area; `MODULE_RULES` maps each one to a
    `ModuleRule` (allowed departments + whether managers of any department
    are also admitted).
  - `validate_module_rules()` runs at import time and again at startup. A
    module without a rule, or a rule that admits nobody, is a configuration
    error, never a silent allow/deny.
  - Global admins open every module. Everyone else is judged by the table.

Routes map onto modules through `ROUTE_MODULES`; unmapped routes are open to
any authenticated caller.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Iterable

from fastapi import Depends

from workhub.auth.identity import IdentityContext, get_identity
from workhub.errors import ForbiddenError, ModuleConfigError
from workhub.models.employee import Department

logger = logging.getLogger(__name__)


class Module(str, enum.Enum):
    DASHBOARD = "dashboard"
    ATTENDANCE = "attendance"
    DOCUMENTS = "documents"
    MAIL = "mail"
    PROJECTS = "projects"
    TASKS = "tasks"
    HR_EMPLOYEES = "hr-employees"
    ASK_HR = "ask-hr"
    LOAN_MANAGEMENT = "loan-management"
    LEAVE_MANAGEMENT = "leave-management"
    RECRUITMENT = "recruitment"
    FINANCE = "finance"
    INVOICING = "invoicing"
    PAYABLES = "payables"
    FLEET = "fleet"
    PAYROLL = "payroll"
    NOTIFICATIONS = "notifications"
    NEWS_VIEW = "news-view"
    NEWS_MANAGE = "news-manage"
    SUPPORT = "support"
    DATA_EXPORT = "data-export"


@dataclass(frozen=True)
class ModuleRule:
    departments: frozenset[Department]
    managers: bool = False

    def admits(self, department: Department, is_manager: bool) -> bool:
        return department in self.departments or (self.managers and is_manager)


# ── Module → rule table ─────────────────────────────────────

_EVERYONE = frozenset(Department)


def _rule(*departments: Department, managers: bool = False) -> ModuleRule:
    return ModuleRule(frozenset((Department.ADMIN, *departments)), managers)


MODULE_RULES: dict[Module, ModuleRule] = {
    # General workspace, open to every department
    Module.DASHBOARD: ModuleRule(_EVERYONE),
    Module.ATTENDANCE: ModuleRule(_EVERYONE),
    Module.DOCUMENTS: ModuleRule(_EVERYONE),
    Module.MAIL: ModuleRule(_EVERYONE),
    Module.PROJECTS: ModuleRule(_EVERYONE),
    Module.TASKS: ModuleRule(_EVERYONE),
    Module.ASK_HR: ModuleRule(_EVERYONE),
    Module.LOAN_MANAGEMENT: ModuleRule(_EVERYONE),
    Module.NOTIFICATIONS: ModuleRule(_EVERYONE),
    Module.NEWS_VIEW: ModuleRule(_EVERYONE),
    Module.SUPPORT: ModuleRule(_EVERYONE),

    # HR
    Module.HR_EMPLOYEES: _rule(Department.HR),
    Module.LEAVE_MANAGEMENT: _rule(Department.HR, managers=True),
    Module.RECRUITMENT: _rule(Department.HR),
    Module.PAYROLL: _rule(Department.HR),
    Module.NEWS_MANAGE: _rule(Department.HR),

    # Finance
    Module.FINANCE: _rule(Department.FINANCE),
    Module.INVOICING: _rule(Department.FINANCE),
    Module.PAYABLES: _rule(Department.FINANCE, Department.PROCUREMENT),

    # Operations
    Module.FLEET: _rule(Department.OPERATIONS),

    Module.DATA_EXPORT: _rule(Department.HR, Department.FINANCE),
}


ROUTE_MODULES: dict[str, Module] = {
    "/": Module.DASHBOARD,
    "/attendance": Module.ATTENDANCE,
    "/hr/attendance": Module.ATTENDANCE,
    "/documents": Module.DOCUMENTS,
    "/mail": Module.MAIL,
    "/projects": Module.PROJECTS,
    "/tasks": Module.TASKS,
    "/hr/employees": Module.HR_EMPLOYEES,
    "/hr/ask-hr": Module.ASK_HR,
    "/hr/leaves": Module.LEAVE_MANAGEMENT,
    "/loans": Module.LOAN_MANAGEMENT,
    "/recruitment": Module.RECRUITMENT,
    "/recruitment/jobs": Module.RECRUITMENT,
    "/recruitment/candidates": Module.RECRUITMENT,
    "/finance": Module.FINANCE,
    "/finance/balance": Module.FINANCE,
    "/finance/payruns": Module.FINANCE,
    "/finance/gl": Module.FINANCE,
    "/invoicing": Module.INVOICING,
    "/invoicing/invoices": Module.INVOICING,
    "/invoicing/clients": Module.INVOICING,
    "/invoicing/payments": Module.INVOICING,
    "/payables": Module.PAYABLES,
    "/payables/bills": Module.PAYABLES,
    "/payables/vendors": Module.PAYABLES,
    "/fleet": Module.FLEET,
    "/fleet/vehicles": Module.FLEET,
    "/fleet/drivers": Module.FLEET,
    "/payroll": Module.PAYROLL,
    "/payroll/structure": Module.PAYROLL,
    "/payroll/employees": Module.PAYROLL,
    "/notification": Module.NOTIFICATIONS,
    "/notification-preferences": Module.NOTIFICATIONS,
    "/news": Module.NEWS_VIEW,
    "/news/manage": Module.NEWS_MANAGE,
    "/support": Module.SUPPORT,
    "/export": Module.DATA_EXPORT,
}


def validate_module_rules(rules: dict[Module, ModuleRule] | None = None) -> None:
    """Raise ModuleConfigError unless every module has a usable rule."""
    rules = MODULE_RULES if rules is None else rules

    missing = [m.value for m in Module if m not in rules]
    if missing:
        raise ModuleConfigError(f"Modules without an access rule: {', '.join(missing)}")

    for module, rule in rules.items():
        if not rule.departments and not rule.managers:
            raise ModuleConfigError(f"Module {module.value!r} admits nobody")
        if Department.ADMIN not in rule.departments:
            raise ModuleConfigError(f"Module {module.value!r} excludes the admin department")

    unmapped = {m for m in ROUTE_MODULES.values() if m not in rules}
    if unmapped:
        raise ModuleConfigError(f"Routes point at unknown modules: {sorted(m.value for m in unmapped)}")


validate_module_rules()


# ── Checks ──────────────────────────────────────────────────

def _coerce_module(module: Module | str) -> Module:
    try:
        return Module(module)
    except ValueError:
        raise ModuleConfigError(f"Unknown module: {module!r}") from None


def can_access_module(identity: IdentityContext, module: Module | str) -> bool:
    module = _coerce_module(module)
    if identity.is_global_admin:
        return True
    return MODULE_RULES[module].admits(identity.department, identity.is_manager)


def modules_for_department(department: Department) -> list[Module]:
    """Modules a non-manager of `department` can open, in declaration order."""
    return [m for m in Module if department in MODULE_RULES[m].departments]


def filter_modules(identity: IdentityContext, modules: Iterable[Module | str]) -> list[Module]:
    return [m for m in map(_coerce_module, modules) if can_access_module(identity, m)]


def accessible_modules(identity: IdentityContext) -> list[Module]:
    return filter_modules(identity, Module)


def can_access_route(identity: IdentityContext, path: str) -> bool:
    normalized = path[:-1] if path.endswith("/") and path != "/" else path
    module = ROUTE_MODULES.get(normalized)
    if module is None:
        return True
    return can_access_module(identity, module)


def require_module(module: Module | str):
    """Dependency factory: restrict a route to callers who can open `module`.

    Usage:
        @router.get("/fleet/vehicles")
        async def list_vehicles(identity = Depends(require_module(Module.FLEET))):
            ...
    """
    module = _coerce_module(module)

    async def _check(identity: IdentityContext = Depends(get_identity)) -> IdentityContext:
        if not can_access_module(identity, module):
            logger.info(
                "Module access denied",
                extra={"user_id": identity.user_id, "module": module.value},
            )
            raise ForbiddenError(f"No access to {module.value} module")
        return identity

    return _check
