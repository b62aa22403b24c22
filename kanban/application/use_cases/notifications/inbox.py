"""Use cases reading and transitioning a user's notifications."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Iterable

from sqlalchemy.orm import Session

from kanban.domain.entities import Notification, NotificationStatus
from kanban.infrastructure.repositories import NotificationRepository

MAX_PAGE_SIZE = 100


@dataclass
class NotificationPage:
    notifications: Sequence[Notification]
    total: int
    unread_count: int


def list_notifications(
    session: Session,
    user_id: int,
    *,
    page: int = 1,
    limit: int = 20,
    status: NotificationStatus | None = None,
) -> NotificationPage:
    """Return one newest-first page of the user's notifications."""

    if page < 1:
        raise ValueError("page must be greater than or equal to 1")
    if not 1 <= limit <= MAX_PAGE_SIZE:
        raise ValueError(f"limit must be between 1 and {MAX_PAGE_SIZE}")

    repository = NotificationRepository(session)
    notifications, total = repository.list_for_user(
        user_id, offset=(page - 1) * limit, limit=limit, status=status
    )
    return NotificationPage(
        notifications=notifications,
        total=total,
        unread_count=repository.count_unread(user_id),
    )


def get_unread_count(session: Session, user_id: int) -> int:
    return NotificationRepository(session).count_unread(user_id)


def mark_notification_read(session: Session, notification_id: int, *, user_id: int) -> Notification:
    """Mark one notification as read; already read or archived ones are left as is.

    Raises :class:`LookupError` when the notification does not belong to the user.
    """

    repository = NotificationRepository(session)
    if repository.get_for_user(notification_id, user_id=user_id) is None:
        raise LookupError(f"Notification {notification_id} not found")
    repository.mark_as_read([notification_id], user_id=user_id)
    return repository.get_for_user(notification_id, user_id=user_id)


def acknowledge_notifications(session: Session, notification_ids: Iterable[object], *, user_id: int) -> int:
    """Mark the integer ids in ``notification_ids`` as read, ignoring anything else."""

    ids = [value for value in notification_ids if isinstance(value, int) and not isinstance(value, bool)]
    return NotificationRepository(session).mark_as_read(ids, user_id=user_id)


def mark_all_notifications_read(session: Session, user_id: int) -> int:
    return NotificationRepository(session).mark_all_as_read(user_id)


def archive_notification(session: Session, notification_id: int, *, user_id: int) -> Notification:
    """Archive one notification.

    Raises :class:`LookupError` when the notification does not belong to the user.
    """

    repository = NotificationRepository(session)
    if repository.get_for_user(notification_id, user_id=user_id) is None:
        raise LookupError(f"Notification {notification_id} not found")
    repository.archive(notification_id, user_id=user_id)
    return repository.get_for_user(notification_id, user_id=user_id)


__all__ = [
    "MAX_PAGE_SIZE",
    "NotificationPage",
    "acknowledge_notifications",
    "archive_notification",
    "get_unread_count",
    "list_notifications",
    "mark_all_notifications_read",
    "mark_notification_read",
]
