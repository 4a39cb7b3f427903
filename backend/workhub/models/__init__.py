"""Aggregate model imports so Base.metadata sees every table."""

from workhub.models.organization import Organization  # noqa: F401
from workhub.models.user import User, UserRole  # noqa: F401
from workhub.models.employee import Department, Employee  # noqa: F401
from workhub.models.project import (  # noqa: F401
    AccessLevel,
    Project,
    ProjectAccess,
    ProjectStatus,
)
from workhub.models.notification import Notification, NotificationType  # noqa: F401
