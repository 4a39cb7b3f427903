"""Notification: in-app notice shown to a single user.

Rows are appended by the actions that change what a user can see (team
grants, revocations, supervisor changes). Delivery beyond the in-app feed
is handled elsewhere.
"""

import enum
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum as SAEnum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from workhub.database import Base


class NotificationType(str, enum.Enum):
    APPROVAL = "approval"
    DEADLINE = "deadline"
    MESSAGE = "message"
    WARNING = "warning"


class Notification(Base):
    __tablename__ = "notifications"
    __table_args__ = (
        Index("notifications_user_org_idx", "user_id", "organization_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    organization_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )

    # ── Who ────────────────────────────────────────────────────
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    created_by: Mapped[str] = mapped_column(String(36), nullable=False)

    # ── What ───────────────────────────────────────────────────
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    notification_type: Mapped[NotificationType] = mapped_column(
        SAEnum(NotificationType), default=NotificationType.MESSAGE, nullable=False
    )
    # Id of the entity the notice is about (project id, ...)
    reference_id: Mapped[int | None] = mapped_column(Integer)

    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False, index=True
    )
