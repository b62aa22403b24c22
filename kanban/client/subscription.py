"""Client side of the push channel: dispatch, status and reconnection."""

from __future__ import annotations

import asyncio
import inspect
import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from kanban.domain.entities import (
    ActivityEvent,
    MalformedEnvelopeError,
    NotificationEvent,
    decode_envelope,
)

from .transport import EventStreamTransport

logger = logging.getLogger(__name__)

Unsubscribe = Callable[[], None]


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    BACKOFF = "backoff"


@dataclass(frozen=True)
class ReconnectPolicy:
    """Exponential backoff between reconnect attempts.

    ``max_attempts`` bounds consecutive failed attempts; ``None`` retries
    until :meth:`PushSubscriptionClient.disconnect` is called.
    """

    base_delay: float = 1.0
    multiplier: float = 2.0
    max_delay: float = 30.0
    max_attempts: int | None = None

    def __post_init__(self) -> None:
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("Reconnect delays cannot be negative")
        if self.multiplier < 1:
            raise ValueError("multiplier must be at least 1")
        if self.max_attempts is not None and self.max_attempts < 0:
            raise ValueError("max_attempts cannot be negative")

    def delay(self, attempt: int) -> float:
        """Seconds to wait before reconnect ``attempt`` (counted from 1)."""

        if attempt < 1:
            return 0.0
        return min(self.base_delay * self.multiplier ** (attempt - 1), self.max_delay)

    def allows(self, attempt: int) -> bool:
        return self.max_attempts is None or attempt <= self.max_attempts


class PushSubscriptionClient:
    """Keep one push connection open for a user and fan its events out.

    A single supervisor task owns the transport, so there is never more
    than one connect attempt in flight. Events are decoded once and handed
    to the listeners of their kind in registration order; a listener that
    raises is logged and the remaining listeners still run. Listeners of
    every kind, status listeners included, may be coroutine functions;
    each result is awaited before the next listener is called. Transport
    failures never reach the caller of :meth:`connect`, they show up as
    state changes on the connection-status listeners.
    """

    def __init__(
        self,
        transport: EventStreamTransport,
        *,
        policy: ReconnectPolicy | None = None,
    ) -> None:
        self._transport = transport
        self._policy = policy or ReconnectPolicy()
        self._state = ConnectionState.DISCONNECTED
        self._user_id: int | None = None
        self._task: asyncio.Task | None = None
        self._listener_ids = itertools.count()
        self._notification_listeners: dict[int, Callable[[NotificationEvent], Any]] = {}
        self._activity_listeners: dict[int, Callable[[ActivityEvent], Any]] = {}
        self._status_listeners: dict[int, Callable[[ConnectionState], Any]] = {}

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def user_id(self) -> int | None:
        return self._user_id

    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    def on_notification(self, listener: Callable[[NotificationEvent], Any]) -> Unsubscribe:
        return self._subscribe(self._notification_listeners, listener)

    def on_activity_update(self, listener: Callable[[ActivityEvent], Any]) -> Unsubscribe:
        return self._subscribe(self._activity_listeners, listener)

    def on_connection_status(self, listener: Callable[[ConnectionState], Any]) -> Unsubscribe:
        return self._subscribe(self._status_listeners, listener)

    async def connect(self, user_id: int) -> None:
        """Start receiving events for ``user_id``.

        Returns immediately; the connection is established in the
        background. Connecting again for the same user is a no-op, while a
        different user replaces the current subscription.
        """

        if self._task is not None and not self._task.done():
            if self._user_id == user_id:
                return
            await self.disconnect()
        self._user_id = user_id
        self._task = asyncio.create_task(
            self._run(user_id), name=f"push-subscription-{user_id}"
        )

    async def disconnect(self) -> None:
        """Close the connection and cancel any pending reconnect.

        Listener registrations are kept, so a later :meth:`connect` resumes
        delivery to the same listeners.
        """

        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            if task is not asyncio.current_task():
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        await self._set_state(ConnectionState.DISCONNECTED)

    async def _run(self, user_id: int) -> None:
        attempt = 0
        while True:
            await self._set_state(ConnectionState.CONNECTING)
            try:
                async with self._transport.open(user_id) as frames:
                    await self._set_state(ConnectionState.CONNECTED)
                    attempt = 0
                    async for frame in frames:
                        await self._dispatch(frame)
                logger.info("Push stream for user %s closed by the server", user_id)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.warning("Push stream for user %s failed: %s", user_id, exc)

            attempt += 1
            if not self._policy.allows(attempt):
                logger.error(
                    "Giving up on push stream for user %s after %d attempts", user_id, attempt - 1
                )
                await self._set_state(ConnectionState.DISCONNECTED)
                return
            delay = self._policy.delay(attempt)
            await self._set_state(ConnectionState.BACKOFF)
            logger.info("Reconnecting push stream for user %s in %.1fs", user_id, delay)
            await asyncio.sleep(delay)

    async def _dispatch(self, frame: str) -> None:
        try:
            event = decode_envelope(frame)
        except MalformedEnvelopeError as exc:
            logger.warning("Dropping malformed push envelope: %s", exc)
            return

        if isinstance(event, NotificationEvent):
            listeners = list(self._notification_listeners.values())
        elif isinstance(event, ActivityEvent):
            listeners = list(self._activity_listeners.values())
        else:
            logger.debug("Ignoring push event of kind %r", event.kind)
            return

        await _call_in_order(listeners, event, "Push listener %r failed")

    async def _set_state(self, state: ConnectionState) -> None:
        if state is self._state:
            return
        logger.debug("Push subscription %s -> %s", self._state.value, state.value)
        self._state = state
        await _call_in_order(
            list(self._status_listeners.values()),
            state,
            "Connection status listener %r failed",
        )

    def _subscribe(self, listeners: dict[int, Callable], listener: Callable) -> Unsubscribe:
        key = next(self._listener_ids)
        listeners[key] = listener

        def unsubscribe() -> None:
            listeners.pop(key, None)

        return unsubscribe


async def _call_in_order(listeners: list[Callable], value: Any, failure: str) -> None:
    """Call each listener with ``value``, awaiting coroutine results before the next."""

    for listener in listeners:
        try:
            result = listener(value)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception(failure, listener)


__all__ = ["ConnectionState", "PushSubscriptionClient", "ReconnectPolicy", "Unsubscribe"]
