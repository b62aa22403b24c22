"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from kanban.domain.entities import NotificationStatus, NotificationType


class NotificationRead(BaseModel):
    """Representation of a notification delivered to the client."""

    id: int
    user_id: int
    type: NotificationType
    status: NotificationStatus
    title: str
    message: str
    project_id: int | None = None
    task_id: int | None = None
    from_user_id: int | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    read_at: datetime | None = None
    archived_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class NotificationList(BaseModel):
    notifications: list[NotificationRead]
    total: int = Field(..., ge=0)
    unread_count: int = Field(..., ge=0)


class UnreadCountRead(BaseModel):
    unread_count: int = Field(..., ge=0)


class NotificationBulkUpdateRead(BaseModel):
    updated: int = Field(..., ge=0, description="Cantidad de notificaciones actualizadas")


__all__ = [
    "NotificationBulkUpdateRead",
    "NotificationList",
    "NotificationRead",
    "UnreadCountRead",
]
