"""Finance-area capability probe.

  GET  /access        which money-handling operations the caller may perform,
                      so clients can hide controls they cannot use (finance view)
  POST /access/check  finance write gate only
"""

from typing import Callable

from fastapi import APIRouter, Depends

from workhub.auth.finance import (
    finance_view_dependency,
    finance_write_dependency,
    require_finance_view_access,
    require_finance_write_access,
    require_invoicing_view_access,
    require_invoicing_write_access,
    require_payables_approval_access,
    require_payables_view_access,
    require_payables_write_access,
)
from workhub.auth.identity import IdentityContext
from workhub.errors import ForbiddenError

router = APIRouter()


def _allowed(guard: Callable[[IdentityContext], IdentityContext], identity: IdentityContext) -> bool:
    try:
        guard(identity)
    except ForbiddenError:
        return False
    return True


@router.get("/access")
async def finance_access(identity: IdentityContext = Depends(finance_view_dependency)):
    return {
        "finance": {
            "view": _allowed(require_finance_view_access, identity),
            "write": _allowed(require_finance_write_access, identity),
        },
        "invoicing": {
            "view": _allowed(require_invoicing_view_access, identity),
            "write": _allowed(require_invoicing_write_access, identity),
        },
        "payables": {
            "view": _allowed(require_payables_view_access, identity),
            "write": _allowed(require_payables_write_access, identity),
            "approve": _allowed(require_payables_approval_access, identity),
        },
    }


@router.post("/access/check")
async def finance_write_check(identity: IdentityContext = Depends(finance_write_dependency)):
    """Succeeds only for callers who may post finance entries."""
    return {"finance": {"write": True}, "department": identity.department.value}
