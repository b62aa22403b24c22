"""Domain entity describing an item of project activity."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class ActivityType(str, Enum):
    """Actions recorded in a project's activity log."""

    TASK_CREATED = "task_created"
    TASK_UPDATED = "task_updated"
    TASK_DELETED = "task_deleted"
    TASK_MOVED = "task_moved"
    TASK_COMMENTED = "task_commented"
    TASK_ASSIGNED = "task_assigned"
    TASK_UNASSIGNED = "task_unassigned"
    MEMBER_ADDED = "member_added"
    MEMBER_REMOVED = "member_removed"
    MEMBER_ROLE_CHANGED = "member_role_changed"
    PROJECT_CREATED = "project_created"
    PROJECT_UPDATED = "project_updated"
    PROJECT_DELETED = "project_deleted"
    BOARD_CREATED = "board_created"
    BOARD_UPDATED = "board_updated"
    BOARD_DELETED = "board_deleted"
    COLUMN_CREATED = "column_created"
    COLUMN_UPDATED = "column_updated"
    COLUMN_DELETED = "column_deleted"
    FILE_UPLOADED = "file_uploaded"
    FILE_DELETED = "file_deleted"


@dataclass
class Activity:
    """Append-only record of an action taken within one project."""

    id: int | None
    project_id: int
    user_id: int
    action: ActivityType
    description: str
    metadata: dict[str, Any] = field(default_factory=dict)
    entity_type: str | None = None
    entity_id: int | None = None
    is_visible: bool = True
    created_at: datetime | None = None
    user_name: str | None = None
    user_avatar: str | None = None
    project_name: str | None = None


__all__ = ["Activity", "ActivityType"]
