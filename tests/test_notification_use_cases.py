"""Tests for the notification and activity use cases against SQLite."""

from __future__ import annotations

import pytest

from kanban.application.use_cases.activity import (
    get_project_activity,
    get_user_activity,
    log_activity,
)
from kanban.application.use_cases.notifications import (
    acknowledge_notifications,
    archive_notification,
    get_unread_count,
    list_notifications,
    mark_all_notifications_read,
    mark_notification_read,
    notify_many,
    notify_task_assigned,
    notify_task_due,
    notify_task_moved,
)
from kanban.application.use_cases.users import create_user
from kanban.domain.entities import ActivityType, NotificationStatus, NotificationType
from kanban.infrastructure.database import SessionLocal
from kanban.infrastructure.repositories import ProjectMemberRepository

pytestmark = pytest.mark.usefixtures("clean_database")


class RecordingNotificationPublisher:
    def __init__(self) -> None:
        self.dispatched = []

    def dispatch(self, notification) -> None:
        self.dispatched.append(notification)


class RecordingActivityPublisher:
    def __init__(self) -> None:
        self.dispatched = []

    def dispatch(self, activity, member_ids) -> None:
        self.dispatched.append((activity, list(member_ids)))


@pytest.fixture
def session():
    with SessionLocal() as db:
        yield db


def _create_user(session, username: str):
    return create_user(
        session,
        username=username,
        full_name=username.title(),
        email=f"{username}@example.com",
        password="StrongPass123",
    )


def test_notify_persists_unread_notification_and_pushes_it(session):
    actor = _create_user(session, "alice")
    recipient = _create_user(session, "bob")
    publisher = RecordingNotificationPublisher()

    notification = notify_task_assigned(
        session,
        recipient_id=recipient.id,
        actor=actor,
        task_id=12,
        task_title="Write release notes",
        project_id=3,
        project_name="Launch",
        publisher=publisher,
    )

    assert notification.id is not None
    assert notification.status is NotificationStatus.UNREAD
    assert notification.type is NotificationType.TASK_ASSIGNED
    assert notification.message == 'Alice assigned you to task "Write release notes" in project "Launch"'
    assert notification.metadata["from_user_name"] == "Alice"
    assert notification.metadata["task_title"] == "Write release notes"
    assert publisher.dispatched == [notification]
    assert get_unread_count(session, recipient.id) == 1


def test_actor_is_never_notified_about_own_action(session):
    actor = _create_user(session, "alice")
    other = _create_user(session, "bob")
    publisher = RecordingNotificationPublisher()

    created = notify_many(
        session,
        NotificationType.TASK_UPDATED,
        recipient_ids=[actor.id, other.id, other.id, None],
        actor=actor,
        project_id=1,
        project_name="Launch",
        task_id=4,
        task_title="Design",
        publisher=publisher,
    )

    assert [n.user_id for n in created] == [other.id]
    assert len(publisher.dispatched) == 1
    assert get_unread_count(session, actor.id) == 0


def test_task_moved_message_mentions_columns(session):
    actor = _create_user(session, "alice")
    recipient = _create_user(session, "bob")

    notification = notify_task_moved(
        session,
        recipient_id=recipient.id,
        actor=actor,
        task_id=1,
        task_title="Design",
        project_id=1,
        project_name="Launch",
        column_name="Done",
        old_column_name="Doing",
    )

    assert notification.message.endswith('from "Doing" to "Done"')
    assert notification.metadata["column_name"] == "Done"


def test_due_reminders_have_no_actor(session):
    recipient = _create_user(session, "bob")

    overdue = notify_task_due(
        session,
        recipient_id=recipient.id,
        task_id=1,
        task_title="Design",
        project_id=1,
        project_name="Launch",
        due_date="2024-05-01",
        overdue=True,
    )

    assert overdue.type is NotificationType.TASK_OVERDUE
    assert overdue.from_user_id is None


def test_read_and_archive_transitions(session):
    actor = _create_user(session, "alice")
    recipient = _create_user(session, "bob")
    created = notify_many(
        session,
        NotificationType.TASK_COMMENTED,
        recipient_ids=[recipient.id],
        actor=actor,
        project_name="Launch",
        task_title="Design",
    ) + notify_many(
        session,
        NotificationType.TASK_CREATED,
        recipient_ids=[recipient.id],
        actor=actor,
        project_name="Launch",
        task_title="Build",
    )

    read = mark_notification_read(session, created[0].id, user_id=recipient.id)
    assert read.status is NotificationStatus.READ
    assert read.read_at is not None
    assert get_unread_count(session, recipient.id) == 1

    archived = archive_notification(session, created[0].id, user_id=recipient.id)
    assert archived.status is NotificationStatus.ARCHIVED
    assert archived.archived_at is not None

    assert mark_all_notifications_read(session, recipient.id) == 1
    assert get_unread_count(session, recipient.id) == 0

    with pytest.raises(LookupError):
        mark_notification_read(session, created[1].id, user_id=actor.id)


def test_list_notifications_pages_newest_first(session):
    actor = _create_user(session, "alice")
    recipient = _create_user(session, "bob")
    for title in ("one", "two", "three"):
        notify_many(
            session,
            NotificationType.TASK_CREATED,
            recipient_ids=[recipient.id],
            actor=actor,
            project_name="Launch",
            task_title=title,
        )

    first_page = list_notifications(session, recipient.id, page=1, limit=2)
    second_page = list_notifications(session, recipient.id, page=2, limit=2)

    assert first_page.total == 3
    assert first_page.unread_count == 3
    assert [n.metadata["task_title"] for n in first_page.notifications] == ["three", "two"]
    assert [n.metadata["task_title"] for n in second_page.notifications] == ["one"]

    with pytest.raises(ValueError):
        list_notifications(session, recipient.id, page=0)


def test_acknowledge_ignores_foreign_and_invalid_ids(session):
    actor = _create_user(session, "alice")
    recipient = _create_user(session, "bob")
    (notification,) = notify_many(
        session,
        NotificationType.TASK_CREATED,
        recipient_ids=[recipient.id],
        actor=actor,
        project_name="Launch",
        task_title="Design",
    )

    assert acknowledge_notifications(session, ["x", True, notification.id], user_id=actor.id) == 0
    assert acknowledge_notifications(session, ["x", True, notification.id], user_id=recipient.id) == 1
    assert get_unread_count(session, recipient.id) == 0


def test_log_activity_pushes_visible_activity_to_active_members(session):
    owner = _create_user(session, "alice")
    member = _create_user(session, "bob")
    former = _create_user(session, "carol")
    members = ProjectMemberRepository(session)
    project_id = members.create_project(name="Launch", owner_id=owner.id)
    members.add_member(project_id, member.id)
    members.add_member(project_id, former.id)
    members.deactivate_member(project_id, former.id)
    publisher = RecordingActivityPublisher()

    activity = log_activity(
        session,
        project_id=project_id,
        user_id=owner.id,
        action=ActivityType.TASK_MOVED,
        description='moved "Design" to Done',
        entity_type="task",
        entity_id=5,
        publisher=publisher,
    )
    log_activity(
        session,
        project_id=project_id,
        user_id=owner.id,
        action=ActivityType.TASK_UPDATED,
        description="internal bookkeeping",
        is_visible=False,
        publisher=publisher,
    )

    assert activity.user_name == "Alice"
    assert activity.project_name == "Launch"
    assert publisher.dispatched == [(activity, [owner.id, member.id])]

    feed = get_project_activity(session, project_id, limit=10)
    assert feed.total == 1
    assert [item.action for item in feed.activities] == [ActivityType.TASK_MOVED]

    assert get_project_activity(session, project_id, action=ActivityType.MEMBER_ADDED).activities == []
    assert get_user_activity(session, owner.id).total == 1
