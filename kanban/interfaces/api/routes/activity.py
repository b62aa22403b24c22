"""Endpoints providing project and personal activity feeds."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from kanban.application.use_cases.activity import get_project_activity, get_user_activity
from kanban.domain.entities import ActivityType, User
from kanban.infrastructure.database import get_db
from kanban.infrastructure.repositories import ProjectMemberRepository
from kanban.interfaces.api.dependencies import get_current_active_user
from kanban.interfaces.api.schemas import ActivityFeedRead, ActivityRead

router = APIRouter(tags=["activity"])


@router.get("/projects/{project_id}/activity", response_model=ActivityFeedRead)
def read_project_activity(
    project_id: int,
    limit: int = Query(20, ge=1, le=100, description="Número máximo de eventos a retornar"),
    action: ActivityType | None = Query(None, description="Filtra por tipo de acción"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> ActivityFeedRead:
    """Devuelve la actividad reciente de un proyecto del que el usuario es miembro."""

    if not ProjectMemberRepository(db).is_active_member(project_id, current_user.id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="No autorizado")
    feed = get_project_activity(db, project_id, limit=limit, action=action)
    return ActivityFeedRead(
        activities=[ActivityRead.model_validate(item) for item in feed.activities],
        total=feed.total,
    )


@router.get("/activity/me", response_model=ActivityFeedRead)
def read_my_activity(
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> ActivityFeedRead:
    """Devuelve la actividad reciente del usuario autenticado en todos sus proyectos."""

    feed = get_user_activity(db, current_user.id, limit=limit)
    return ActivityFeedRead(
        activities=[ActivityRead.model_validate(item) for item in feed.activities],
        total=feed.total,
    )


__all__ = ["router"]
