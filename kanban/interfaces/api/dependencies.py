"""FastAPI dependency utilities."""

from fastapi import Depends, HTTPException, Request, Response, status
from fastapi.requests import HTTPConnection
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from kanban.domain.entities import User
from kanban.infrastructure.database import get_db
from kanban.infrastructure.notifications import (
    ActivityPublisher,
    ChannelRegistry,
    NotificationPublisher,
    RealtimeEventPublisher,
)
from kanban.infrastructure.repositories import UserRepository
from kanban.infrastructure.security import (
    decode_access_token,
    password_signature,
    refresh_access_token,
)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token")


def _unauthorized(detail: str = "Credenciales inválidas") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def resolve_current_user(token: str, db: Session) -> User:
    """Resolve the authenticated user for the provided token."""

    try:
        payload = decode_access_token(token)
    except ValueError as exc:
        raise _unauthorized() from exc

    email = payload.get("sub")
    signature_claim = payload.get("pwd_sig")
    if not isinstance(email, str) or not isinstance(signature_claim, str):
        raise _unauthorized()

    user = UserRepository(db).get_by_email(email)
    if user is None:
        raise _unauthorized("Usuario no encontrado")

    if signature_claim != password_signature(user.password, user.is_active):
        raise _unauthorized()

    return user


def get_current_user(
    request: Request,
    response: Response,
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Return the authenticated user from the provided token."""

    user = resolve_current_user(token, db)

    try:
        refreshed_token = refresh_access_token(token)
    except ValueError as exc:
        raise _unauthorized() from exc

    response.headers["X-Refreshed-Token"] = refreshed_token
    request.state.refreshed_token = refreshed_token

    return user


def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    """Ensure the authenticated user is active."""

    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Usuario inactivo",
        )
    return current_user


def get_channel_registry(connection: HTTPConnection) -> ChannelRegistry:
    """Return the registry created by the application lifespan."""

    return connection.app.state.channel_registry


def get_realtime_publisher(connection: HTTPConnection) -> RealtimeEventPublisher:
    return connection.app.state.realtime_publisher


def get_notification_publisher(
    realtime: RealtimeEventPublisher = Depends(get_realtime_publisher),
) -> NotificationPublisher:
    return NotificationPublisher(realtime)


def get_activity_publisher(
    realtime: RealtimeEventPublisher = Depends(get_realtime_publisher),
) -> ActivityPublisher:
    return ActivityPublisher(realtime)
