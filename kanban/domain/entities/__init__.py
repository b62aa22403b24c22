"""Domain entities exposed by the application."""

from .activity import Activity, ActivityType
from .notification import Notification, NotificationStatus, NotificationType
from .project_member import ProjectMember
from .push_event import (
    ACTIVITY_EVENT,
    CONNECTED_EVENT,
    HEARTBEAT_EVENT,
    NOTIFICATION_EVENT,
    ActivityEvent,
    MalformedEnvelopeError,
    NotificationEvent,
    OtherEvent,
    PushEvent,
    build_envelope,
    decode_envelope,
    encode_envelope,
)
from .user import User

__all__ = [
    "Activity",
    "ActivityType",
    "Notification",
    "NotificationStatus",
    "NotificationType",
    "ProjectMember",
    "User",
    "ACTIVITY_EVENT",
    "CONNECTED_EVENT",
    "HEARTBEAT_EVENT",
    "NOTIFICATION_EVENT",
    "ActivityEvent",
    "MalformedEnvelopeError",
    "NotificationEvent",
    "OtherEvent",
    "PushEvent",
    "build_envelope",
    "decode_envelope",
    "encode_envelope",
]
