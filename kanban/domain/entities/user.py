"""Domain entity representing a user."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class User:
    """Core attributes describing an application user."""

    id: int | None
    username: str
    full_name: str
    email: str
    password: str
    avatar: str | None
    is_active: bool
    last_login: datetime | None
    created_at: datetime | None
    updated_at: datetime | None

    @property
    def display_name(self) -> str:
        """Name shown to other users in notifications and activity feeds."""

        return self.full_name or self.username


__all__ = ["User"]
