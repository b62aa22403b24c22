"""Helpers to hand realtime events to the channel registry."""

from __future__ import annotations

import asyncio
import copy
import logging
from typing import Any, Iterable

from anyio import from_thread

from .registry import ChannelRegistry

logger = logging.getLogger(__name__)


class RealtimeEventPublisher:
    """Schedule structured events for delivery through a :class:`ChannelRegistry`.

    Callers may be coroutines running on the event loop or synchronous
    request handlers running on anyio worker threads; either way the call
    returns without waiting for any client.
    """

    def __init__(self, registry: ChannelRegistry) -> None:
        self._registry = registry
        self._pending: set[asyncio.Task] = set()

    @property
    def registry(self) -> ChannelRegistry:
        return self._registry

    def dispatch(self, user_id: int | None, *, event_type: str, payload: dict[str, Any]) -> None:
        """Schedule an ``event_type`` event for ``user_id``."""

        if not user_id:
            return
        self._schedule(self._registry.publish, user_id, event_type, copy.deepcopy(payload))

    def dispatch_many(
        self,
        user_ids: Iterable[int | None],
        *,
        event_type: str,
        payload: dict[str, Any],
    ) -> None:
        """Schedule the same event for every distinct user in ``user_ids``."""

        recipients = sorted({user_id for user_id in user_ids if user_id})
        if not recipients:
            return
        self._schedule(
            self._registry.publish_many, recipients, event_type, copy.deepcopy(payload)
        )

    async def drain(self) -> None:
        """Wait until every delivery scheduled on the running loop finished."""

        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _schedule(self, func, *args: Any) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            try:
                from_thread.run(func, *args)
            except RuntimeError:
                logger.warning(
                    "No event loop reachable from this thread; dropping realtime event"
                )
        else:
            task = loop.create_task(func(*args))
            self._pending.add(task)
            task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Realtime delivery failed", exc_info=task.exception())


__all__ = ["RealtimeEventPublisher"]
