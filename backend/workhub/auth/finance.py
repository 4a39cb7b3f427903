"""Department gates for the money-handling areas: finance, invoicing, payables.

Each area has a view gate and a narrower write gate. The write departments
must always be a subset of the view departments; this is checked when the
module is imported so a bad edit fails at startup instead of in production.

  finance / invoicing
    view   global admin, or department in {admin, finance, hr}
    write  global admin, or department == finance

  payables (organization admins pass as well)
    view     department in {admin, finance, hr, procurement}
    write    department in {admin, finance}
    approve  finance managers only

Guards take an IdentityContext and return it unchanged, or raise
ForbiddenError. `*_dependency` objects wrap them for FastAPI routes.
"""

import logging
from typing import Callable

from fastapi import Depends

from workhub.auth.identity import IdentityContext, get_identity
from workhub.errors import ForbiddenError, ModuleConfigError
from workhub.models.employee import Department

logger = logging.getLogger(__name__)

FINANCE_VIEW_DEPARTMENTS = frozenset({Department.ADMIN, Department.FINANCE, Department.HR})
FINANCE_WRITE_DEPARTMENTS = frozenset({Department.FINANCE})

INVOICING_VIEW_DEPARTMENTS = FINANCE_VIEW_DEPARTMENTS
INVOICING_WRITE_DEPARTMENTS = FINANCE_WRITE_DEPARTMENTS

PAYABLES_VIEW_DEPARTMENTS = frozenset(
    {Department.ADMIN, Department.FINANCE, Department.HR, Department.PROCUREMENT}
)
PAYABLES_WRITE_DEPARTMENTS = frozenset({Department.ADMIN, Department.FINANCE})


def check_write_within_view() -> None:
    for area, write, view in (
        ("finance", FINANCE_WRITE_DEPARTMENTS, FINANCE_VIEW_DEPARTMENTS),
        ("invoicing", INVOICING_WRITE_DEPARTMENTS, INVOICING_VIEW_DEPARTMENTS),
        ("payables", PAYABLES_WRITE_DEPARTMENTS, PAYABLES_VIEW_DEPARTMENTS),
    ):
        extra = write - view
        if extra:
            raise ModuleConfigError(
                f"{area} write access granted to departments without view access: "
                f"{sorted(d.value for d in extra)}"
            )


check_write_within_view()


def _deny(identity: IdentityContext, gate: str, message: str) -> ForbiddenError:
    logger.info(
        "Department gate denied",
        extra={
            "gate": gate,
            "user_id": identity.user_id,
            "organization_id": identity.organization_id,
            "department": identity.department.value,
        },
    )
    return ForbiddenError(message)


# ── Finance ─────────────────────────────────────────────────

def require_finance_view_access(identity: IdentityContext) -> IdentityContext:
    if identity.is_global_admin or identity.department in FINANCE_VIEW_DEPARTMENTS:
        return identity
    raise _deny(identity, "finance.view", "No access to finance module")


def require_finance_write_access(identity: IdentityContext) -> IdentityContext:
    if identity.is_global_admin or identity.department in FINANCE_WRITE_DEPARTMENTS:
        return identity
    raise _deny(
        identity,
        "finance.write",
        "Finance department access required for finance operations",
    )


# ── Invoicing ───────────────────────────────────────────────

def require_invoicing_view_access(identity: IdentityContext) -> IdentityContext:
    if identity.is_global_admin or identity.department in INVOICING_VIEW_DEPARTMENTS:
        return identity
    raise _deny(identity, "invoicing.view", "No access to invoicing module")


def require_invoicing_write_access(identity: IdentityContext) -> IdentityContext:
    if identity.is_global_admin or identity.department in INVOICING_WRITE_DEPARTMENTS:
        return identity
    raise _deny(
        identity,
        "invoicing.write",
        "Finance department access required for invoicing operations",
    )


# ── Payables ────────────────────────────────────────────────

def require_payables_view_access(identity: IdentityContext) -> IdentityContext:
    if identity.is_org_admin or identity.department in PAYABLES_VIEW_DEPARTMENTS:
        return identity
    raise _deny(identity, "payables.view", "You do not have permission to view accounts payable")


def require_payables_write_access(identity: IdentityContext) -> IdentityContext:
    if identity.is_org_admin or identity.department in PAYABLES_WRITE_DEPARTMENTS:
        return identity
    raise _deny(identity, "payables.write", "You do not have permission to modify accounts payable")


def require_payables_approval_access(identity: IdentityContext) -> IdentityContext:
    is_finance_manager = identity.department == Department.FINANCE and identity.is_manager
    if identity.is_org_admin or is_finance_manager:
        return identity
    raise _deny(
        identity,
        "payables.approve",
        "You do not have permission to approve bills or purchase orders",
    )


# ── FastAPI dependencies ────────────────────────────────────

def as_dependency(guard: Callable[[IdentityContext], IdentityContext]):
    """Wrap a guard so routes can declare it with Depends()."""

    async def _check(identity: IdentityContext = Depends(get_identity)) -> IdentityContext:
        return guard(identity)

    _check.__name__ = guard.__name__
    return _check


finance_view_dependency = as_dependency(require_finance_view_access)
finance_write_dependency = as_dependency(require_finance_write_access)
invoicing_view_dependency = as_dependency(require_invoicing_view_access)
invoicing_write_dependency = as_dependency(require_invoicing_write_access)
payables_view_dependency = as_dependency(require_payables_view_access)
payables_write_dependency = as_dependency(require_payables_write_access)
payables_approval_dependency = as_dependency(require_payables_approval_access)
