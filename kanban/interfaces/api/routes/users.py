"""Rutas para registrar usuarios y consultar el usuario autenticado."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from kanban.application.use_cases.users import create_user as create_user_uc
from kanban.domain.entities import User
from kanban.infrastructure.database import get_db
from kanban.interfaces.api.dependencies import get_current_active_user
from kanban.interfaces.api.schemas import UserCreate, UserRead

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def register_user(user_in: UserCreate, db: Session = Depends(get_db)) -> UserRead:
    """Crea un nuevo usuario con credenciales de acceso a la API."""

    try:
        user = create_user_uc(
            db,
            username=user_in.username,
            full_name=user_in.full_name,
            email=user_in.email,
            password=user_in.password,
            avatar=user_in.avatar,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return UserRead.model_validate(user)


@router.get("/me", response_model=UserRead)
def read_current_user(current_user: User = Depends(get_current_active_user)) -> UserRead:
    """Devuelve la información del usuario autenticado."""

    return UserRead.model_validate(current_user)


__all__ = ["router"]
