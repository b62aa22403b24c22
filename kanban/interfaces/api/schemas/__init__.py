from .activity import ActivityFeedRead, ActivityRead
from .auth import Token
from .notification import (
    NotificationBulkUpdateRead,
    NotificationList,
    NotificationRead,
    UnreadCountRead,
)
from .project import ProjectCreate, ProjectCreated, ProjectMemberAdd, ProjectMemberRead
from .user import UserCreate, UserRead

__all__ = [
    "ActivityFeedRead",
    "ActivityRead",
    "NotificationBulkUpdateRead",
    "NotificationList",
    "NotificationRead",
    "ProjectCreate",
    "ProjectCreated",
    "ProjectMemberAdd",
    "ProjectMemberRead",
    "Token",
    "UnreadCountRead",
    "UserCreate",
    "UserRead",
]
