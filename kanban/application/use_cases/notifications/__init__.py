"""Public helpers for emitting and managing notifications."""

from .events import (
    NotificationDraft,
    create_notification,
    notify,
    notify_many,
    notify_project_member_added,
    notify_project_member_removed,
    notify_task_assigned,
    notify_task_due,
    notify_task_file_uploaded,
    notify_task_moved,
)
from .inbox import (
    MAX_PAGE_SIZE,
    NotificationPage,
    acknowledge_notifications,
    archive_notification,
    get_unread_count,
    list_notifications,
    mark_all_notifications_read,
    mark_notification_read,
)

__all__ = [
    "NotificationDraft",
    "create_notification",
    "notify",
    "notify_many",
    "notify_project_member_added",
    "notify_project_member_removed",
    "notify_task_assigned",
    "notify_task_due",
    "notify_task_file_uploaded",
    "notify_task_moved",
    "MAX_PAGE_SIZE",
    "NotificationPage",
    "acknowledge_notifications",
    "archive_notification",
    "get_unread_count",
    "list_notifications",
    "mark_all_notifications_read",
    "mark_notification_read",
]
