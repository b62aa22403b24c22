"""Endpoints, event stream and websocket handler for realtime notifications."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Query,
    Request,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session
from starlette.websockets import WebSocketState

from kanban.application.use_cases.notifications import (
    MAX_PAGE_SIZE,
    acknowledge_notifications,
    archive_notification,
    get_unread_count,
    list_notifications,
    mark_all_notifications_read,
    mark_notification_read,
)
from kanban.config import get_settings
from kanban.domain.entities import (
    CONNECTED_EVENT,
    HEARTBEAT_EVENT,
    NotificationStatus,
    User,
    encode_envelope,
)
from kanban.infrastructure.database import SessionLocal, get_db
from kanban.infrastructure.notifications import ChannelRegistry, PushConnection
from kanban.interfaces.api.dependencies import (
    get_channel_registry,
    get_current_active_user,
    resolve_current_user,
)
from kanban.interfaces.api.schemas import (
    NotificationBulkUpdateRead,
    NotificationList,
    NotificationRead,
    UnreadCountRead,
)
from kanban.utils import local_now

router = APIRouter(prefix="/notifications", tags=["notifications"])
logger = logging.getLogger(__name__)

_STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


@router.get("/", response_model=NotificationList)
def read_notifications(
    page: int = Query(1, ge=1, description="Número de página"),
    limit: int = Query(20, ge=1, le=MAX_PAGE_SIZE, description="Elementos por página"),
    status_filter: NotificationStatus | None = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> NotificationList:
    """Devuelve las notificaciones del usuario autenticado, las más recientes primero."""

    result = list_notifications(
        db, current_user.id, page=page, limit=limit, status=status_filter
    )
    return NotificationList(
        notifications=[NotificationRead.model_validate(n) for n in result.notifications],
        total=result.total,
        unread_count=result.unread_count,
    )


@router.get("/unread-count", response_model=UnreadCountRead)
def read_unread_count(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> UnreadCountRead:
    return UnreadCountRead(unread_count=get_unread_count(db, current_user.id))


@router.patch("/read-all", response_model=NotificationBulkUpdateRead)
def mark_all_read(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> NotificationBulkUpdateRead:
    """Marca como leídas todas las notificaciones pendientes del usuario."""

    return NotificationBulkUpdateRead(updated=mark_all_notifications_read(db, current_user.id))


@router.patch("/{notification_id}/read", response_model=NotificationRead)
def mark_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> NotificationRead:
    try:
        notification = mark_notification_read(db, notification_id, user_id=current_user.id)
    except LookupError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Notificación no encontrada"
        ) from exc
    return NotificationRead.model_validate(notification)


@router.patch("/{notification_id}/archive", response_model=NotificationRead)
def archive(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> NotificationRead:
    try:
        notification = archive_notification(db, notification_id, user_id=current_user.id)
    except LookupError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Notificación no encontrada"
        ) from exc
    return NotificationRead.model_validate(notification)


def _authenticate_stream(token: str | None) -> tuple[User, int]:
    """Resolve ``token`` for a push channel and read the user's unread count."""

    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token requerido")
    with SessionLocal() as session:
        user = resolve_current_user(token, session)
        if not user.is_active:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Usuario inactivo")
        return user, get_unread_count(session, user.id)


def _connected_message(user_id: int, unread_count: int) -> str:
    return encode_envelope(
        CONNECTED_EVENT,
        {
            "user_id": user_id,
            "unread_count": unread_count,
            "timestamp": local_now(),
        },
    )


def _heartbeat_message() -> str:
    return encode_envelope(HEARTBEAT_EVENT, {"timestamp": local_now()})


async def push_event_stream(
    registry: ChannelRegistry,
    user_id: int,
    unread_count: int,
    *,
    heartbeat_seconds: float,
) -> AsyncIterator[str]:
    """Yield ``text/event-stream`` frames for one connection of ``user_id``.

    The connection is registered when the stream starts and released when
    it ends, whether the client went away, the stream was cancelled or the
    registry evicted the connection.
    """

    connection = registry.open_connection(user_id)
    registration = await registry.register(user_id, connection)
    async with registration:
        connection.offer(_connected_message(user_id, unread_count))
        while True:
            try:
                message = await connection.next_message(timeout=heartbeat_seconds)
            except TimeoutError:
                message = _heartbeat_message()
            if message is None:
                break
            yield f"data: {message}\n\n"


@router.get("/stream")
async def notifications_stream(
    request: Request,
    token: str | None = Query(None, description="Token JWT del usuario"),
    registry: ChannelRegistry = Depends(get_channel_registry),
) -> StreamingResponse:
    """Canal SSE que entrega notificaciones y actividad al usuario autenticado."""

    if token is None:
        scheme, _, credentials = request.headers.get("Authorization", "").partition(" ")
        if scheme.lower() == "bearer" and credentials:
            token = credentials
    user, unread_count = _authenticate_stream(token)
    return StreamingResponse(
        push_event_stream(
            registry,
            user.id,
            unread_count,
            heartbeat_seconds=get_settings().push_heartbeat_seconds,
        ),
        media_type="text/event-stream",
        headers=_STREAM_HEADERS,
    )


async def _forward_to_websocket(
    websocket: WebSocket, connection: PushConnection, heartbeat_seconds: float
) -> None:
    while True:
        try:
            message = await connection.next_message(timeout=heartbeat_seconds)
        except TimeoutError:
            message = _heartbeat_message()
        if message is None:
            return
        await websocket.send_text(message)


async def _handle_client_messages(websocket: WebSocket, user_id: int) -> None:
    while True:
        raw = await websocket.receive_text()
        try:
            message = json.loads(raw)
        except ValueError:
            continue
        if not isinstance(message, dict):
            continue

        message_type = message.get("type")
        if message_type == "ping":
            await websocket.send_text(encode_envelope("pong", {}))
        elif message_type == "ack":
            ids = message.get("ids")
            if isinstance(ids, list) and ids:
                with SessionLocal() as session:
                    acknowledge_notifications(session, ids, user_id=user_id)


@router.websocket("/ws")
async def notifications_websocket(websocket: WebSocket) -> None:
    """Websocket endpoint that streams notifications to the authenticated user."""

    try:
        user, unread_count = _authenticate_stream(websocket.query_params.get("token"))
    except HTTPException:
        await websocket.close(code=1008)
        return

    await websocket.accept()
    registry = get_channel_registry(websocket)
    connection = registry.open_connection(user.id)
    registration = await registry.register(user.id, connection)
    connection.offer(_connected_message(user.id, unread_count))

    forward = asyncio.create_task(
        _forward_to_websocket(websocket, connection, get_settings().push_heartbeat_seconds)
    )
    receive = asyncio.create_task(_handle_client_messages(websocket, user.id))
    try:
        done, pending = await asyncio.wait(
            {forward, receive}, return_when=asyncio.FIRST_COMPLETED
        )
        for task in pending:
            task.cancel()
        for task in done:
            if task.cancelled():
                continue
            exc = task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                logger.warning("Push websocket for user %s failed: %s", user.id, exc)
    finally:
        forward.cancel()
        receive.cancel()
        await registration.release()
        if websocket.client_state == WebSocketState.CONNECTED:
            await websocket.close()


__all__ = ["push_event_stream", "router"]
