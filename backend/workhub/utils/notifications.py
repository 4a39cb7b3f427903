"""Lightweight helper for queuing in-app notifications.

Usage:
    notify(
        db, organization_id=org_id, created_by=actor_id, user_id=member_id,
        title="Added to Project",
        message=f'You\'ve been added to project "{project.name}"',
        reference_id=project.id,
    )

The row is added to the current session and committed with the
enclosing transaction; no extra flush is performed.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from workhub.models.notification import Notification, NotificationType


def notify(
    db: AsyncSession,
    *,
    organization_id: str,
    created_by: str,
    user_id: str,
    title: str,
    message: str,
    reference_id: int | None = None,
    notification_type: NotificationType = NotificationType.MESSAGE,
) -> Notification:
    """Append a notification for `user_id` to the current DB session."""
    entry = Notification(
        organization_id=organization_id,
        user_id=user_id,
        created_by=created_by,
        title=title,
        message=message,
        notification_type=notification_type,
        reference_id=reference_id,
    )
    db.add(entry)
    return entry
