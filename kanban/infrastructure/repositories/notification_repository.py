"""Persistence helpers for notification entities."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Iterable

from sqlalchemy.orm import Session

from kanban.domain.entities import Notification, NotificationStatus
from kanban.infrastructure.models import NotificationModel
from kanban.utils import local_now, to_local, to_storage


class NotificationRepository:
    """Provide the queries and state transitions for :class:`Notification`."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_for_user(self, notification_id: int, *, user_id: int) -> Notification | None:
        model = (
            self.session.query(NotificationModel)
            .filter(NotificationModel.id == notification_id)
            .filter(NotificationModel.user_id == user_id)
            .first()
        )
        return self._to_entity(model) if model else None

    def list_for_user(
        self,
        user_id: int,
        *,
        offset: int = 0,
        limit: int | None = 20,
        status: NotificationStatus | None = None,
    ) -> tuple[Sequence[Notification], int]:
        """Return a newest-first page of notifications and the unpaged total."""

        query = self.session.query(NotificationModel).filter(
            NotificationModel.user_id == user_id
        )
        if status is not None:
            query = query.filter(NotificationModel.status == status)
        total = query.count()
        query = query.order_by(
            NotificationModel.created_at.desc(), NotificationModel.id.desc()
        ).offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()], total

    def count_unread(self, user_id: int) -> int:
        return (
            self.session.query(NotificationModel)
            .filter(NotificationModel.user_id == user_id)
            .filter(NotificationModel.status == NotificationStatus.UNREAD)
            .count()
        )

    def create(self, notification: Notification) -> Notification:
        model = NotificationModel()
        model.created_at = to_storage(
            notification.created_at or local_now()
        )
        self._apply_entity_to_model(model, notification)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def mark_as_read(self, notification_ids: Iterable[int], *, user_id: int) -> int:
        """Move the given unread notifications of ``user_id`` to ``read``."""

        ids = [notification_id for notification_id in notification_ids if notification_id is not None]
        if not ids:
            return 0
        query = self.session.query(NotificationModel).filter(
            NotificationModel.id.in_(ids),
            NotificationModel.user_id == user_id,
            NotificationModel.status == NotificationStatus.UNREAD,
        )
        return self._transition(query, NotificationStatus.READ)

    def mark_all_as_read(self, user_id: int) -> int:
        query = self.session.query(NotificationModel).filter(
            NotificationModel.user_id == user_id,
            NotificationModel.status == NotificationStatus.UNREAD,
        )
        return self._transition(query, NotificationStatus.READ)

    def archive(self, notification_id: int, *, user_id: int) -> int:
        query = self.session.query(NotificationModel).filter(
            NotificationModel.id == notification_id,
            NotificationModel.user_id == user_id,
            NotificationModel.status != NotificationStatus.ARCHIVED,
        )
        return self._transition(query, NotificationStatus.ARCHIVED)

    def _transition(self, query, status: NotificationStatus) -> int:
        now = to_storage(local_now())
        values = {NotificationModel.status: status, NotificationModel.updated_at: now}
        if status is NotificationStatus.READ:
            values[NotificationModel.read_at] = now
        elif status is NotificationStatus.ARCHIVED:
            values[NotificationModel.archived_at] = now
        updated = query.update(values, synchronize_session=False)
        self.session.commit()
        return updated

    @staticmethod
    def _apply_entity_to_model(model: NotificationModel, notification: Notification) -> None:
        model.user_id = notification.user_id
        model.project_id = notification.project_id
        model.task_id = notification.task_id
        model.from_user_id = notification.from_user_id
        model.type = notification.type
        model.status = notification.status
        model.title = notification.title
        model.message = notification.message
        model.metadata_ = notification.metadata or {}
        model.read_at = to_storage(notification.read_at)
        model.archived_at = to_storage(notification.archived_at)

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            user_id=model.user_id,
            type=model.type,
            title=model.title,
            message=model.message,
            status=model.status,
            project_id=model.project_id,
            task_id=model.task_id,
            from_user_id=model.from_user_id,
            metadata=model.metadata_ or {},
            created_at=to_local(model.created_at),
            updated_at=to_local(model.updated_at),
            read_at=to_local(model.read_at),
            archived_at=to_local(model.archived_at),
        )


__all__ = ["NotificationRepository"]
