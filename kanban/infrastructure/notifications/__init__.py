"""Realtime push delivery for notifications and project activity."""

from .activity_events import ActivityPublisher, serialize_activity
from .publisher import NotificationPublisher, serialize_notification
from .realtime import RealtimeEventPublisher
from .registry import ChannelRegistration, ChannelRegistry, PushConnection

__all__ = [
    "ActivityPublisher",
    "ChannelRegistration",
    "ChannelRegistry",
    "NotificationPublisher",
    "PushConnection",
    "RealtimeEventPublisher",
    "serialize_activity",
    "serialize_notification",
]
