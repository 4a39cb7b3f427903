"""Employee: the per-organization profile of a user.

One row per (user, organization) membership. The access-control layer only
reads it: department, role and the manager flag drive every gate.
"""

import enum
from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from workhub.database import Base


class Department(str, enum.Enum):
    ADMIN = "admin"
    HR = "hr"
    FINANCE = "finance"
    OPERATIONS = "operations"
    PROCUREMENT = "procurement"


class Employee(Base):
    __tablename__ = "employees"
    __table_args__ = (
        UniqueConstraint("auth_id", "organization_id", name="employees_auth_org_unique"),
        Index("employees_department_role_idx", "department", "role"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    organization_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Auth-provider user this profile belongs to
    auth_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    staff_number: Mapped[str | None] = mapped_column(String(50))

    department: Mapped[Department] = mapped_column(SAEnum(Department), nullable=False)
    # Organization-level role: "admin" grants full access inside the organization
    role: Mapped[str] = mapped_column(String(50), nullable=False, default="user")
    is_manager: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    manager_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id"))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    organization = relationship("Organization", back_populates="employees")
