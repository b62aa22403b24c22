"""Persistence helpers for project membership."""

from __future__ import annotations

from sqlalchemy.orm import Session

from kanban.domain.entities import ProjectMember
from kanban.infrastructure.models import ProjectMemberModel, ProjectModel
from kanban.utils import to_local


class ProjectMemberRepository:
    """Answer membership questions used to route activity events."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def list_active_member_ids(self, project_id: int) -> list[int]:
        query = (
            self.session.query(ProjectMemberModel.user_id)
            .filter(ProjectMemberModel.project_id == project_id)
            .filter(ProjectMemberModel.is_active.is_(True))
            .order_by(ProjectMemberModel.user_id)
        )
        return [user_id for (user_id,) in query.all()]

    def is_active_member(self, project_id: int, user_id: int) -> bool:
        query = (
            self.session.query(ProjectMemberModel.id)
            .filter(ProjectMemberModel.project_id == project_id)
            .filter(ProjectMemberModel.user_id == user_id)
            .filter(ProjectMemberModel.is_active.is_(True))
        )
        return query.first() is not None

    def get_project_name(self, project_id: int) -> str | None:
        model = self.session.get(ProjectModel, project_id)
        return model.name if model else None

    def create_project(self, *, name: str, owner_id: int) -> int:
        """Create a project owned by ``owner_id`` and enrol the owner."""

        project = ProjectModel(name=name, owner_id=owner_id)
        project.members.append(ProjectMemberModel(user_id=owner_id, role="owner"))
        self.session.add(project)
        self.session.commit()
        self.session.refresh(project)
        return project.id

    def add_member(self, project_id: int, user_id: int, *, role: str = "member") -> ProjectMember:
        model = (
            self.session.query(ProjectMemberModel)
            .filter_by(project_id=project_id, user_id=user_id)
            .first()
        )
        if model is None:
            model = ProjectMemberModel(project_id=project_id, user_id=user_id)
        model.role = role
        model.is_active = True
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def deactivate_member(self, project_id: int, user_id: int) -> None:
        self.session.query(ProjectMemberModel).filter_by(
            project_id=project_id, user_id=user_id
        ).update({ProjectMemberModel.is_active: False}, synchronize_session=False)
        self.session.commit()

    @staticmethod
    def _to_entity(model: ProjectMemberModel) -> ProjectMember:
        return ProjectMember(
            id=model.id,
            project_id=model.project_id,
            user_id=model.user_id,
            role=model.role,
            is_active=model.is_active,
            joined_at=to_local(model.joined_at),
        )


__all__ = ["ProjectMemberRepository"]
