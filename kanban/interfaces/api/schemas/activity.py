"""Pydantic schemas for activity feed endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from kanban.domain.entities import ActivityType


class ActivityRead(BaseModel):
    id: int = Field(..., description="Identificador de la actividad")
    project_id: int
    project_name: str | None = None
    type: ActivityType = Field(
        ..., validation_alias=AliasChoices("action", "type"), description="Acción registrada"
    )
    description: str
    user_id: int
    user_name: str | None = None
    user_avatar: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    entity_type: str | None = None
    entity_id: int | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ActivityFeedRead(BaseModel):
    activities: list[ActivityRead]
    total: int = Field(..., ge=0)


__all__ = ["ActivityFeedRead", "ActivityRead"]
