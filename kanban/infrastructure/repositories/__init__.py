"""Repository implementations for infrastructure layer."""

from .activity_repository import ActivityRepository
from .notification_repository import NotificationRepository
from .project_member_repository import ProjectMemberRepository
from .user_repository import UserRepository

__all__ = [
    "ActivityRepository",
    "NotificationRepository",
    "ProjectMemberRepository",
    "UserRepository",
]
