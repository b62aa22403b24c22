"""Domain entity describing a user's membership in a project."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class ProjectMember:
    """Links a user to a project with a role."""

    id: int | None
    project_id: int
    user_id: int
    role: str
    is_active: bool = True
    joined_at: datetime | None = None


__all__ = ["ProjectMember"]
