"""Registry of open push connections grouped by user."""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, DefaultDict, Iterable

from kanban.domain.entities import encode_envelope

logger = logging.getLogger(__name__)

_connection_ids = itertools.count(1)


class PushConnection:
    """One open stream to a client, backed by a bounded send queue.

    Producers call :meth:`offer`, which never waits: once the queue is full
    the offer is refused and the registry evicts the connection. The stream
    handler drains the queue with :meth:`next_message`, which returns
    ``None`` once the connection has been closed.
    """

    def __init__(self, user_id: int, *, max_queue_size: int = 100) -> None:
        if max_queue_size <= 0:
            raise ValueError("max_queue_size must be positive")
        self.user_id = user_id
        self.connection_id = next(_connection_ids)
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=max_queue_size)
        self._closed = asyncio.Event()

    def __repr__(self) -> str:
        return f"<PushConnection #{self.connection_id} user={self.user_id}>"

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def offer(self, message: str) -> bool:
        """Queue ``message`` for delivery; return ``False`` if it was refused."""

        if self.closed:
            return False
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            return False
        return True

    async def next_message(self, timeout: float | None = None) -> str | None:
        """Wait for the next queued message.

        Returns ``None`` when the connection is closed. Raises
        :class:`TimeoutError` if ``timeout`` elapses first.
        """

        if self.closed:
            return None
        if not self._queue.empty():
            return self._queue.get_nowait()

        getter = asyncio.ensure_future(self._queue.get())
        closer = asyncio.ensure_future(self._closed.wait())
        try:
            done, _ = await asyncio.wait(
                {getter, closer}, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            closer.cancel()
            if not getter.done():
                getter.cancel()

        if getter in done and not getter.cancelled():
            if self.closed:
                return None
            return getter.result()
        if closer in done:
            return None
        raise TimeoutError

    def close(self) -> None:
        """Refuse further messages and release the buffered ones."""

        if self.closed:
            return
        self._closed.set()
        while not self._queue.empty():
            self._queue.get_nowait()


class ChannelRegistration:
    """Handle returned by :meth:`ChannelRegistry.register`.

    Releasing it unregisters and closes the connection; doing so more than
    once has no further effect. It can also be used as an async context
    manager so the stream handler releases it however the stream ends.
    """

    def __init__(self, registry: "ChannelRegistry", connection: PushConnection) -> None:
        self._registry = registry
        self.connection = connection

    @property
    def user_id(self) -> int:
        return self.connection.user_id

    @property
    def released(self) -> bool:
        return self.connection.closed

    async def release(self) -> None:
        await self._registry.unregister(self.connection.user_id, self.connection)

    async def __aenter__(self) -> PushConnection:
        return self.connection

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.release()


class ChannelRegistry:
    """Track open per-user push connections and fan out events to them.

    The registry is created once per process (see the application lifespan)
    and lives on the event loop. Mutations of a user's connection set happen
    under that user's lock; :meth:`publish` copies the set under the same
    lock and writes outside of it, so delivery never touches a connection
    that is being torn down.
    """

    def __init__(self, *, queue_size: int = 100) -> None:
        if queue_size <= 0:
            raise ValueError("queue_size must be positive")
        self.queue_size = queue_size
        self._connections: DefaultDict[int, set[PushConnection]] = defaultdict(set)
        self._locks: dict[int, asyncio.Lock] = {}
        self._lock_users: dict[int, int] = {}
        self._closed = False

    def open_connection(self, user_id: int) -> PushConnection:
        """Return a new connection sized with the registry's queue limit."""

        return PushConnection(user_id, max_queue_size=self.queue_size)

    @asynccontextmanager
    async def _user_lock(self, user_id: int) -> AsyncIterator[None]:
        # A lock lives only while some task holds or waits on it.
        lock = self._locks.get(user_id)
        if lock is None:
            lock = self._locks[user_id] = asyncio.Lock()
        self._lock_users[user_id] = self._lock_users.get(user_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._lock_users[user_id] - 1
            if remaining:
                self._lock_users[user_id] = remaining
            else:
                del self._lock_users[user_id]
                del self._locks[user_id]

    async def register(self, user_id: int, connection: PushConnection) -> ChannelRegistration:
        """Add ``connection`` to the connections of ``user_id``."""

        if self._closed:
            raise RuntimeError("Channel registry is closed")
        if connection.user_id != user_id:
            raise ValueError("Connection belongs to a different user")
        async with self._user_lock(user_id):
            connections = self._connections[user_id]
            went_online = not connections
            connections.add(connection)
            count = len(connections)
        if went_online:
            logger.info("User %s is online for push delivery", user_id)
        logger.debug("Registered %r (%d open)", connection, count)
        return ChannelRegistration(self, connection)

    async def unregister(self, user_id: int, connection: PushConnection) -> None:
        """Remove ``connection``; unknown connections are ignored."""

        async with self._user_lock(user_id):
            connections = self._connections.get(user_id)
            removed = connections is not None and connection in connections
            if removed:
                connections.discard(connection)
            went_offline = removed and not connections
            if connections is not None and not connections:
                self._connections.pop(user_id, None)
            connection.close()
        if removed:
            logger.debug("Unregistered %r", connection)
        if went_offline:
            logger.info("User %s is offline for push delivery", user_id)

    async def publish(self, user_id: int, event_kind: str, payload: dict[str, Any]) -> int:
        """Send an event to every open connection of ``user_id``.

        Returns the number of connections that accepted the event. Users
        without connections are skipped silently; the event is not kept.
        """

        if user_id not in self._connections:
            return 0
        async with self._user_lock(user_id):
            snapshot = list(self._connections.get(user_id, ()))
        if not snapshot:
            return 0

        message = encode_envelope(event_kind, payload)
        delivered = 0
        stalled: list[PushConnection] = []
        dropped: list[PushConnection] = []
        for connection in snapshot:
            if connection.offer(message):
                delivered += 1
            elif connection.closed:
                dropped.append(connection)
            else:
                stalled.append(connection)

        for connection in dropped:
            logger.debug("Pruning %r: closed by its stream", connection)
            await self.unregister(user_id, connection)
        for connection in stalled:
            logger.warning(
                "Evicting %r: send queue full (%d pending)", connection, connection.pending
            )
            await self.unregister(user_id, connection)
        return delivered

    async def publish_many(
        self, user_ids: Iterable[int | None], event_kind: str, payload: dict[str, Any]
    ) -> int:
        """Publish the same event once to each distinct user in ``user_ids``."""

        delivered = 0
        seen: set[int] = set()
        for user_id in user_ids:
            if not user_id or user_id in seen:
                continue
            seen.add(user_id)
            delivered += await self.publish(user_id, event_kind, payload)
        return delivered

    def connection_count(self, user_id: int) -> int:
        """Count open connections; ones closed by their stream are not counted."""

        return sum(1 for connection in self._connections.get(user_id, ()) if not connection.closed)

    def is_online(self, user_id: int) -> bool:
        return self.connection_count(user_id) > 0

    def online_user_ids(self) -> list[int]:
        return sorted(user_id for user_id in list(self._connections) if self.is_online(user_id))

    async def close(self) -> None:
        """Close every connection; called when the application shuts down."""

        self._closed = True
        for user_id in list(self._connections):
            for connection in list(self._connections.get(user_id, ())):
                await self.unregister(user_id, connection)
        logger.info("Channel registry closed")


__all__ = ["ChannelRegistration", "ChannelRegistry", "PushConnection"]
