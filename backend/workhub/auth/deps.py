"""FastAPI dependencies for role-based gates.

Dependencies:
  get_identity           → IdentityContext for the caller (re-exported)
  require_admin          → global admins only
  require_hr_or_admin    → global admins or the HR department
  require_manager        → managers or global admins
"""

from fastapi import Depends

from workhub.auth.identity import IdentityContext, get_identity
from workhub.errors import ForbiddenError
from workhub.models.employee import Department

__all__ = ["get_identity", "require_admin", "require_hr_or_admin", "require_manager"]


async def require_admin(
    identity: IdentityContext = Depends(get_identity),
) -> IdentityContext:
    if not identity.is_global_admin:
        raise ForbiddenError("Admin access required")
    return identity


async def require_hr_or_admin(
    identity: IdentityContext = Depends(get_identity),
) -> IdentityContext:
    if not identity.is_global_admin and identity.department != Department.HR:
        raise ForbiddenError("HR or Admin access required")
    return identity


async def require_manager(
    identity: IdentityContext = Depends(get_identity),
) -> IdentityContext:
    if not identity.is_manager and not identity.is_global_admin:
        raise ForbiddenError("Manager or Admin access required")
    return identity
