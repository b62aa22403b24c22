"""ORM models used by the application infrastructure."""

from .activity_log import ActivityLogModel
from .notification import NotificationModel
from .project import ProjectMemberModel, ProjectModel
from .user import UserModel

__all__ = [
    "ActivityLogModel",
    "NotificationModel",
    "ProjectMemberModel",
    "ProjectModel",
    "UserModel",
]
