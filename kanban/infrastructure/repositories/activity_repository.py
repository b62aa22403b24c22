"""Persistence helpers for project activity logs."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.orm import Session

from kanban.domain.entities import Activity, ActivityType
from kanban.infrastructure.models import ActivityLogModel
from kanban.utils import local_now, to_local, to_storage


class ActivityRepository:
    """Append and query :class:`Activity` records."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def create(self, activity: Activity) -> Activity:
        model = ActivityLogModel(
            project_id=activity.project_id,
            user_id=activity.user_id,
            action=activity.action,
            description=activity.description,
            metadata_=activity.metadata or {},
            entity_type=activity.entity_type,
            entity_id=activity.entity_id,
            is_visible=activity.is_visible,
            created_at=to_storage(
                activity.created_at or local_now()
            ),
        )
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def list_for_project(
        self,
        project_id: int,
        *,
        limit: int = 20,
        action: ActivityType | None = None,
    ) -> tuple[Sequence[Activity], int]:
        """Return the latest visible activities of a project and their total."""

        base = (
            self.session.query(ActivityLogModel)
            .filter(ActivityLogModel.project_id == project_id)
            .filter(ActivityLogModel.is_visible.is_(True))
        )
        total = base.count()
        query = base
        if action is not None:
            query = query.filter(ActivityLogModel.action == action)
        query = query.order_by(
            ActivityLogModel.created_at.desc(), ActivityLogModel.id.desc()
        ).limit(limit)
        return [self._to_entity(model) for model in query.all()], total

    def list_for_user(self, user_id: int, *, limit: int = 20) -> tuple[Sequence[Activity], int]:
        base = (
            self.session.query(ActivityLogModel)
            .filter(ActivityLogModel.user_id == user_id)
            .filter(ActivityLogModel.is_visible.is_(True))
        )
        total = base.count()
        query = base.order_by(
            ActivityLogModel.created_at.desc(), ActivityLogModel.id.desc()
        ).limit(limit)
        return [self._to_entity(model) for model in query.all()], total

    @staticmethod
    def _to_entity(model: ActivityLogModel) -> Activity:
        user = model.user
        project = model.project
        return Activity(
            id=model.id,
            project_id=model.project_id,
            user_id=model.user_id,
            action=model.action,
            description=model.description,
            metadata=model.metadata_ or {},
            entity_type=model.entity_type,
            entity_id=model.entity_id,
            is_visible=model.is_visible,
            created_at=to_local(model.created_at),
            user_name=(user.full_name or user.username) if user else None,
            user_avatar=user.avatar if user else None,
            project_name=project.name if project else None,
        )


__all__ = ["ActivityRepository"]
