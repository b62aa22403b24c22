"""Use cases for recording and reading project activity."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from sqlalchemy.orm import Session

from kanban.domain.entities import Activity, ActivityType
from kanban.infrastructure.notifications import ActivityPublisher
from kanban.infrastructure.repositories import ActivityRepository, ProjectMemberRepository
from kanban.utils import local_now


@dataclass
class ActivityFeed:
    activities: Sequence[Activity]
    total: int


def log_activity(
    session: Session,
    *,
    project_id: int,
    user_id: int,
    action: ActivityType,
    description: str,
    metadata: dict[str, Any] | None = None,
    entity_type: str | None = None,
    entity_id: int | None = None,
    is_visible: bool = True,
    publisher: ActivityPublisher | None = None,
) -> Activity:
    """Append an activity record and push it to the project's active members.

    Hidden activities are stored but never pushed.
    """

    activity = ActivityRepository(session).create(
        Activity(
            id=None,
            project_id=project_id,
            user_id=user_id,
            action=action,
            description=description,
            metadata=metadata or {},
            entity_type=entity_type,
            entity_id=entity_id,
            is_visible=is_visible,
            created_at=local_now(),
        )
    )
    if publisher is not None and activity.is_visible:
        member_ids = ProjectMemberRepository(session).list_active_member_ids(project_id)
        publisher.dispatch(activity, member_ids)
    return activity


def get_project_activity(
    session: Session,
    project_id: int,
    *,
    limit: int = 20,
    action: ActivityType | None = None,
) -> ActivityFeed:
    activities, total = ActivityRepository(session).list_for_project(
        project_id, limit=limit, action=action
    )
    return ActivityFeed(activities=activities, total=total)


def get_user_activity(session: Session, user_id: int, *, limit: int = 20) -> ActivityFeed:
    activities, total = ActivityRepository(session).list_for_user(user_id, limit=limit)
    return ActivityFeed(activities=activities, total=total)


__all__ = ["ActivityFeed", "get_project_activity", "get_user_activity", "log_activity"]
