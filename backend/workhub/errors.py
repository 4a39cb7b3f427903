"""Application exception hierarchy.

Every error carries the HTTP status and machine-readable code that the
request boundary (see workhub.middleware.exceptions) renders. Code below the
boundary raises these and never builds HTTP responses itself.

Taxonomy:
  UnauthenticatedError        no valid session
  NoActiveOrganizationError   session has no resolvable organization
  NoEmployeeProfileError      user has no profile in that organization
  PermissionDeniedError       authenticated but not allowed
    ├─ ForbiddenError         module / department / role gates
    └─ AccessDeniedError      per-resource gates (projects)
  DependencyFailure           data store or session store unreachable
    └─ DataIntegrityError     stored data violates a schema guarantee
  ModuleConfigError           static access tables are inconsistent
"""

from fastapi import status


class WorkHubException(Exception):
    """Base exception for WorkHub application errors."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: str = "INTERNAL_ERROR",
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(self.message)


class UnauthenticatedError(WorkHubException):
    def __init__(self, message: str = "Authentication required"):
        super().__init__(
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code="UNAUTHENTICATED",
        )


class NoActiveOrganizationError(WorkHubException):
    def __init__(self, message: str = "No active organization; create or join one first"):
        super().__init__(
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            error_code="NO_ACTIVE_ORGANIZATION",
        )


class NoEmployeeProfileError(WorkHubException):
    def __init__(self, message: str = "No employee profile in the active organization"):
        super().__init__(
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            error_code="NO_EMPLOYEE_PROFILE",
        )


class PermissionDeniedError(WorkHubException):
    """Authenticated caller lacks the privilege for the operation."""

    def __init__(self, message: str = "Permission denied", error_code: str = "PERMISSION_DENIED"):
        super().__init__(
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            error_code=error_code,
        )


class ForbiddenError(PermissionDeniedError):
    def __init__(self, message: str = "Forbidden"):
        super().__init__(message=message, error_code="FORBIDDEN")


class AccessDeniedError(PermissionDeniedError):
    """Raised by per-resource checks; `required`/`actual` name the levels involved."""

    def __init__(
        self,
        message: str = "Access denied",
        required: str | None = None,
        actual: str | None = None,
    ):
        self.required = required
        self.actual = actual
        super().__init__(message=message, error_code="ACCESS_DENIED")


class ResourceNotFoundError(WorkHubException):
    def __init__(self, resource: str, identifier: str | int):
        super().__init__(
            message=f"{resource} not found: {identifier}",
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="RESOURCE_NOT_FOUND",
        )


class BusinessLogicError(WorkHubException):
    def __init__(self, message: str, error_code: str = "BUSINESS_LOGIC_ERROR"):
        super().__init__(
            message=message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            error_code=error_code,
        )


class DependencyFailure(WorkHubException):
    """A collaborator (database, Redis) failed; never a statement about access."""

    def __init__(self, message: str = "A required service is unavailable", error_code: str = "DEPENDENCY_FAILURE"):
        super().__init__(
            message=message,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            error_code=error_code,
        )


class DataIntegrityError(DependencyFailure):
    def __init__(self, message: str):
        super().__init__(message=message, error_code="DATA_INTEGRITY_ERROR")


class ModuleConfigError(WorkHubException):
    """Static access tables are incomplete or contradictory."""

    def __init__(self, message: str):
        super().__init__(message=message, error_code="MODULE_CONFIG_ERROR")
