"""Utility helpers to push notifications to their recipient."""

from __future__ import annotations

from typing import Any

from kanban.domain.entities import NOTIFICATION_EVENT, Notification
from kanban.utils import isoformat_or_none

from .realtime import RealtimeEventPublisher


class NotificationPublisher:
    """Serialize notifications and schedule their delivery."""

    def __init__(self, realtime: RealtimeEventPublisher) -> None:
        self._realtime = realtime

    def dispatch(self, notification: Notification) -> None:
        """Schedule ``notification`` to be delivered to its user."""

        self._realtime.dispatch(
            notification.user_id,
            event_type=NOTIFICATION_EVENT,
            payload=serialize_notification(notification),
        )


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Return the push payload representation for ``notification``."""

    return {
        "id": notification.id,
        "user_id": notification.user_id,
        "notification_type": notification.type.value,
        "status": notification.status.value,
        "title": notification.title,
        "message": notification.message,
        "project_id": notification.project_id,
        "task_id": notification.task_id,
        "from_user_id": notification.from_user_id,
        "metadata": notification.metadata or {},
        "created_at": isoformat_or_none(notification.created_at),
        "read_at": isoformat_or_none(notification.read_at),
    }


__all__ = ["NotificationPublisher", "serialize_notification"]
