"""Utility helpers to generate and dispatch domain notifications."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from sqlalchemy.orm import Session

from kanban.domain.entities import Notification, NotificationStatus, NotificationType, User
from kanban.infrastructure.notifications import NotificationPublisher
from kanban.infrastructure.repositories import NotificationRepository
from kanban.utils import local_now

logger = logging.getLogger(__name__)

# (title, message) per type. Messages are ``str.format`` templates over the
# keys built in ``_template_values``.
_TEMPLATES: dict[NotificationType, tuple[str, str]] = {
    NotificationType.PROJECT_INVITE: (
        "Project Invitation",
        '{actor} invited you to join project "{project}" as {role}',
    ),
    NotificationType.PROJECT_MEMBER_ADDED: (
        "Added to Project",
        '{actor} added you to project "{project}" as {role}',
    ),
    NotificationType.PROJECT_MEMBER_REMOVED: (
        "Removed from Project",
        '{actor} removed you from project "{project}"',
    ),
    NotificationType.TASK_ASSIGNED: (
        "Task Assigned",
        '{actor} assigned you to task "{task}" in project "{project}"',
    ),
    NotificationType.TASK_UNASSIGNED: (
        "Task Unassigned",
        '{actor} unassigned you from task "{task}" in project "{project}"',
    ),
    NotificationType.TASK_MOVED: (
        "Task Moved",
        '{actor} moved task "{task}" in project "{project}"{column_change}',
    ),
    NotificationType.TASK_COMMENTED: (
        "New Comment",
        '{actor} commented on task "{task}" in project "{project}"',
    ),
    NotificationType.TASK_CREATED: (
        "Task Created",
        '{actor} created task "{task}" in project "{project}"',
    ),
    NotificationType.TASK_UPDATED: (
        "Task Updated",
        '{actor} updated task "{task}" in project "{project}"',
    ),
    NotificationType.TASK_DELETED: (
        "Task Deleted",
        '{actor} deleted task "{task}" in project "{project}"',
    ),
    NotificationType.TASK_FILE_UPLOADED: (
        "File Uploaded",
        '{actor} uploaded file "{file_name}" to task "{task}" in project "{project}"',
    ),
    NotificationType.TASK_DUE_SOON: (
        "Task Due Soon",
        'Task "{task}" in project "{project}" is due {due_date}',
    ),
    NotificationType.TASK_OVERDUE: (
        "Task Overdue",
        'Task "{task}" in project "{project}" is overdue since {due_date}',
    ),
}


@dataclass
class NotificationDraft:
    """Values needed to create a notification before it is persisted."""

    user_id: int
    type: NotificationType
    title: str
    message: str
    project_id: int | None = None
    task_id: int | None = None
    from_user_id: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


def create_notification(
    session: Session,
    draft: NotificationDraft,
    *,
    publisher: NotificationPublisher | None = None,
) -> Notification:
    """Persist ``draft`` as an unread notification and push it to its user."""

    notification = Notification(
        id=None,
        user_id=draft.user_id,
        type=draft.type,
        title=draft.title,
        message=draft.message,
        status=NotificationStatus.UNREAD,
        project_id=draft.project_id,
        task_id=draft.task_id,
        from_user_id=draft.from_user_id,
        metadata=dict(draft.metadata),
        created_at=local_now(),
    )
    saved = NotificationRepository(session).create(notification)
    if publisher is not None:
        publisher.dispatch(saved)
    logger.debug("Notification %s (%s) created for user %s", saved.id, saved.type.value, saved.user_id)
    return saved


def notify(
    session: Session,
    notification_type: NotificationType,
    *,
    recipient_id: int,
    actor: User | None = None,
    project_id: int | None = None,
    project_name: str | None = None,
    task_id: int | None = None,
    task_title: str | None = None,
    publisher: NotificationPublisher | None = None,
    **details: Any,
) -> Notification | None:
    """Render the template for ``notification_type`` and create the notification.

    Returns ``None`` without creating anything when ``recipient_id`` is the
    actor; nobody is notified about their own actions.
    """

    if actor is not None and actor.id == recipient_id:
        return None

    title, template = _TEMPLATES[notification_type]
    values = _template_values(actor, project_name, task_title, details)
    metadata: dict[str, Any] = {
        key: value
        for key, value in {
            "project_name": project_name,
            "task_title": task_title,
            "from_user_name": actor.display_name if actor else None,
            "from_user_avatar": actor.avatar if actor else None,
        }.items()
        if value is not None
    }
    metadata.update({key: value for key, value in details.items() if value is not None})

    draft = NotificationDraft(
        user_id=recipient_id,
        type=notification_type,
        title=title,
        message=template.format(**values),
        project_id=project_id,
        task_id=task_id,
        from_user_id=actor.id if actor else None,
        metadata=metadata,
    )
    return create_notification(session, draft, publisher=publisher)


def notify_many(
    session: Session,
    notification_type: NotificationType,
    *,
    recipient_ids: Iterable[int | None],
    **kwargs: Any,
) -> list[Notification]:
    """Call :func:`notify` once for every distinct recipient."""

    created: list[Notification] = []
    seen: set[int] = set()
    for recipient_id in recipient_ids:
        if not recipient_id or recipient_id in seen:
            continue
        seen.add(recipient_id)
        notification = notify(session, notification_type, recipient_id=recipient_id, **kwargs)
        if notification is not None:
            created.append(notification)
    return created


def notify_project_member_added(
    session: Session,
    *,
    recipient_id: int,
    actor: User,
    project_id: int,
    project_name: str,
    role: str,
    publisher: NotificationPublisher | None = None,
) -> Notification | None:
    return notify(
        session,
        NotificationType.PROJECT_MEMBER_ADDED,
        recipient_id=recipient_id,
        actor=actor,
        project_id=project_id,
        project_name=project_name,
        role=role,
        publisher=publisher,
    )


def notify_project_member_removed(
    session: Session,
    *,
    recipient_id: int,
    actor: User,
    project_id: int,
    project_name: str,
    publisher: NotificationPublisher | None = None,
) -> Notification | None:
    return notify(
        session,
        NotificationType.PROJECT_MEMBER_REMOVED,
        recipient_id=recipient_id,
        actor=actor,
        project_id=project_id,
        project_name=project_name,
        publisher=publisher,
    )


def notify_task_assigned(
    session: Session,
    *,
    recipient_id: int,
    actor: User,
    task_id: int,
    task_title: str,
    project_id: int,
    project_name: str,
    publisher: NotificationPublisher | None = None,
) -> Notification | None:
    return notify(
        session,
        NotificationType.TASK_ASSIGNED,
        recipient_id=recipient_id,
        actor=actor,
        project_id=project_id,
        project_name=project_name,
        task_id=task_id,
        task_title=task_title,
        publisher=publisher,
    )


def notify_task_moved(
    session: Session,
    *,
    recipient_id: int,
    actor: User,
    task_id: int,
    task_title: str,
    project_id: int,
    project_name: str,
    column_name: str | None = None,
    old_column_name: str | None = None,
    publisher: NotificationPublisher | None = None,
) -> Notification | None:
    return notify(
        session,
        NotificationType.TASK_MOVED,
        recipient_id=recipient_id,
        actor=actor,
        project_id=project_id,
        project_name=project_name,
        task_id=task_id,
        task_title=task_title,
        column_name=column_name,
        old_column_name=old_column_name,
        publisher=publisher,
    )


def notify_task_file_uploaded(
    session: Session,
    *,
    recipient_id: int,
    actor: User,
    task_id: int,
    task_title: str,
    project_id: int,
    project_name: str,
    file_name: str,
    publisher: NotificationPublisher | None = None,
) -> Notification | None:
    return notify(
        session,
        NotificationType.TASK_FILE_UPLOADED,
        recipient_id=recipient_id,
        actor=actor,
        project_id=project_id,
        project_name=project_name,
        task_id=task_id,
        task_title=task_title,
        file_name=file_name,
        publisher=publisher,
    )


def notify_task_due(
    session: Session,
    *,
    recipient_id: int,
    task_id: int,
    task_title: str,
    project_id: int,
    project_name: str,
    due_date: str,
    overdue: bool = False,
    publisher: NotificationPublisher | None = None,
) -> Notification | None:
    """Reminder about a task's due date; these have no acting user."""

    return notify(
        session,
        NotificationType.TASK_OVERDUE if overdue else NotificationType.TASK_DUE_SOON,
        recipient_id=recipient_id,
        project_id=project_id,
        project_name=project_name,
        task_id=task_id,
        task_title=task_title,
        due_date=due_date,
        publisher=publisher,
    )


def _template_values(
    actor: User | None,
    project_name: str | None,
    task_title: str | None,
    details: dict[str, Any],
) -> dict[str, Any]:
    old_column = details.get("old_column_name")
    new_column = details.get("column_name")
    column_change = ""
    if old_column and new_column:
        column_change = f' from "{old_column}" to "{new_column}"'
    elif new_column:
        column_change = f' to "{new_column}"'

    return {
        "actor": actor.display_name if actor else "Someone",
        "project": project_name or "",
        "task": task_title or "",
        "role": details.get("role") or "member",
        "file_name": details.get("file_name") or "",
        "due_date": details.get("due_date") or "",
        "column_change": column_change,
    }


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
]
