"""Project membership endpoints that emit notifications and activity."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from kanban.application.use_cases.activity import log_activity
from kanban.application.use_cases.notifications import (
    notify_project_member_added,
    notify_project_member_removed,
)
from kanban.domain.entities import ActivityType, User
from kanban.infrastructure.database import get_db
from kanban.infrastructure.notifications import ActivityPublisher, NotificationPublisher
from kanban.infrastructure.repositories import ProjectMemberRepository, UserRepository
from kanban.interfaces.api.dependencies import (
    get_activity_publisher,
    get_current_active_user,
    get_notification_publisher,
)
from kanban.interfaces.api.schemas import (
    ProjectCreate,
    ProjectCreated,
    ProjectMemberAdd,
    ProjectMemberRead,
)

router = APIRouter(prefix="/projects", tags=["projects"])


def _require_project_member(
    repository: ProjectMemberRepository, project_id: int, user_id: int
) -> str:
    project_name = repository.get_project_name(project_id)
    if project_name is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Proyecto no encontrado")
    if not repository.is_active_member(project_id, user_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="No autorizado")
    return project_name


@router.post("/", response_model=ProjectCreated, status_code=status.HTTP_201_CREATED)
def create_project(
    project_in: ProjectCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    activity_publisher: ActivityPublisher = Depends(get_activity_publisher),
) -> ProjectCreated:
    """Crea un proyecto y registra al usuario autenticado como propietario."""

    project_id = ProjectMemberRepository(db).create_project(
        name=project_in.name, owner_id=current_user.id
    )
    log_activity(
        db,
        project_id=project_id,
        user_id=current_user.id,
        action=ActivityType.PROJECT_CREATED,
        description=f'created project "{project_in.name}"',
        entity_type="project",
        entity_id=project_id,
        publisher=activity_publisher,
    )
    return ProjectCreated(id=project_id, name=project_in.name)


@router.post(
    "/{project_id}/members",
    response_model=ProjectMemberRead,
    status_code=status.HTTP_201_CREATED,
)
def add_project_member(
    project_id: int,
    member_in: ProjectMemberAdd,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    notification_publisher: NotificationPublisher = Depends(get_notification_publisher),
    activity_publisher: ActivityPublisher = Depends(get_activity_publisher),
) -> ProjectMemberRead:
    """Agrega un usuario al proyecto y le notifica."""

    repository = ProjectMemberRepository(db)
    project_name = _require_project_member(repository, project_id, current_user.id)
    member_user = UserRepository(db).get(member_in.user_id)
    if member_user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Usuario no encontrado")

    member = repository.add_member(project_id, member_user.id, role=member_in.role)
    notify_project_member_added(
        db,
        recipient_id=member_user.id,
        actor=current_user,
        project_id=project_id,
        project_name=project_name,
        role=member.role,
        publisher=notification_publisher,
    )
    log_activity(
        db,
        project_id=project_id,
        user_id=current_user.id,
        action=ActivityType.MEMBER_ADDED,
        description=f"added {member_user.display_name} as {member.role}",
        metadata={"member_id": member_user.id, "role": member.role},
        entity_type="member",
        entity_id=member_user.id,
        publisher=activity_publisher,
    )
    return ProjectMemberRead.model_validate(member)


@router.delete("/{project_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_project_member(
    project_id: int,
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    notification_publisher: NotificationPublisher = Depends(get_notification_publisher),
    activity_publisher: ActivityPublisher = Depends(get_activity_publisher),
) -> Response:
    """Retira a un miembro del proyecto."""

    repository = ProjectMemberRepository(db)
    project_name = _require_project_member(repository, project_id, current_user.id)
    if not repository.is_active_member(project_id, user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Miembro no encontrado")

    member_user = UserRepository(db).get(user_id)
    repository.deactivate_member(project_id, user_id)
    notify_project_member_removed(
        db,
        recipient_id=user_id,
        actor=current_user,
        project_id=project_id,
        project_name=project_name,
        publisher=notification_publisher,
    )
    log_activity(
        db,
        project_id=project_id,
        user_id=current_user.id,
        action=ActivityType.MEMBER_REMOVED,
        description=f"removed {member_user.display_name if member_user else user_id}",
        metadata={"member_id": user_id},
        entity_type="member",
        entity_id=user_id,
        publisher=activity_publisher,
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]
