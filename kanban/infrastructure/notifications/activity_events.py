"""Helpers to broadcast project activity to the project's members."""

from __future__ import annotations

from typing import Any, Iterable

from kanban.domain.entities import ACTIVITY_EVENT, Activity
from kanban.utils import isoformat_or_none

from .realtime import RealtimeEventPublisher


class ActivityPublisher:
    """Serialize :class:`Activity` records and deliver them to members."""

    def __init__(self, realtime: RealtimeEventPublisher) -> None:
        self._realtime = realtime

    def dispatch(self, activity: Activity, member_ids: Iterable[int | None]) -> None:
        """Schedule ``activity`` for every user in ``member_ids``."""

        self._realtime.dispatch_many(
            member_ids,
            event_type=ACTIVITY_EVENT,
            payload={
                "project_id": activity.project_id,
                "activity": serialize_activity(activity),
            },
        )


def serialize_activity(activity: Activity) -> dict[str, Any]:
    """Return a JSON-serializable representation of ``activity``."""

    return {
        "id": activity.id,
        "type": activity.action.value,
        "description": activity.description,
        "user_id": activity.user_id,
        "user_name": activity.user_name,
        "user_avatar": activity.user_avatar,
        "metadata": activity.metadata or {},
        "entity_type": activity.entity_type,
        "entity_id": activity.entity_id,
        "created_at": isoformat_or_none(activity.created_at),
    }


__all__ = ["ActivityPublisher", "serialize_activity"]
