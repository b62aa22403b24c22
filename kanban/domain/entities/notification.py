"""Domain entity representing a user notification."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class NotificationType(str, Enum):
    """Closed set of events that produce a notification."""

    PROJECT_INVITE = "project_invite"
    PROJECT_MEMBER_ADDED = "project_member_added"
    PROJECT_MEMBER_REMOVED = "project_member_removed"
    TASK_ASSIGNED = "task_assigned"
    TASK_UNASSIGNED = "task_unassigned"
    TASK_MOVED = "task_moved"
    TASK_COMMENTED = "task_commented"
    TASK_CREATED = "task_created"
    TASK_UPDATED = "task_updated"
    TASK_DELETED = "task_deleted"
    TASK_FILE_UPLOADED = "task_file_uploaded"
    TASK_DUE_SOON = "task_due_soon"
    TASK_OVERDUE = "task_overdue"


class NotificationStatus(str, Enum):
    UNREAD = "unread"
    READ = "read"
    ARCHIVED = "archived"


@dataclass
class Notification:
    """Information message delivered to exactly one user."""

    id: int | None
    user_id: int
    type: NotificationType
    title: str
    message: str
    status: NotificationStatus = NotificationStatus.UNREAD
    project_id: int | None = None
    task_id: int | None = None
    from_user_id: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None
    read_at: datetime | None = None
    archived_at: datetime | None = None

    @property
    def is_unread(self) -> bool:
        return self.status is NotificationStatus.UNREAD

    def mark_read(self, when: datetime) -> None:
        """Transition to ``read``; archived notifications stay archived."""

        if self.status is NotificationStatus.UNREAD:
            self.status = NotificationStatus.READ
            self.read_at = when

    def archive(self, when: datetime) -> None:
        """Transition to ``archived`` from any other status."""

        if self.status is not NotificationStatus.ARCHIVED:
            self.status = NotificationStatus.ARCHIVED
            self.archived_at = when


__all__ = ["Notification", "NotificationStatus", "NotificationType"]
