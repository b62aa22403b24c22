"""Endpoints relacionados con autenticación."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from kanban.application.use_cases.users import (
    AuthenticationStatus,
    authenticate_user,
    record_login,
)
from kanban.infrastructure.database import get_db
from kanban.infrastructure.security import issue_access_token
from kanban.interfaces.api.schemas import Token

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)

_FAILURES = {
    AuthenticationStatus.INVALID_CREDENTIALS: (
        status.HTTP_401_UNAUTHORIZED,
        "Credenciales incorrectas",
    ),
    AuthenticationStatus.INACTIVE: (status.HTTP_403_FORBIDDEN, "Usuario inactivo"),
}


@router.post("/token", response_model=Token)
def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
) -> Token:
    """Autentica al usuario por correo o nombre de usuario y devuelve un token JWT.

    El mismo token sirve para abrir el canal de notificaciones en tiempo real.
    """

    result = authenticate_user(db, form_data.username, form_data.password)
    if result.status in _FAILURES:
        status_code, detail = _FAILURES[result.status]
        raise HTTPException(
            status_code=status_code,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )

    record_login(db, result.user.id)
    logger.info("User %s logged in", result.user.id)
    return Token(access_token=issue_access_token(result.user), token_type="bearer")


__all__ = ["router"]
