"""Event stream transports used by :class:`PushSubscriptionClient`."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterable, AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import AsyncContextManager, Protocol

import httpx

logger = logging.getLogger(__name__)

DEFAULT_STREAM_PATH = "/notifications/stream"


class EventStreamTransport(Protocol):
    """Opens one push connection and exposes it as raw envelope strings."""

    def open(self, user_id: int) -> AsyncContextManager[AsyncIterator[str]]:
        ...


async def iter_sse_data(lines: AsyncIterable[str]) -> AsyncIterator[str]:
    """Yield the ``data`` payload of every event in a ``text/event-stream``.

    Multiple ``data:`` lines of one event are joined with newlines and the
    event is emitted on the blank line that ends it. Comments and the
    ``event``/``id``/``retry`` fields are ignored. An unterminated event at
    the end of the stream is discarded.
    """

    data_lines: list[str] = []
    async for line in lines:
        line = line.rstrip("\r\n")
        if not line:
            if data_lines:
                yield "\n".join(data_lines)
                data_lines = []
            continue
        if line.startswith(":"):
            continue
        field, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if field == "data":
            data_lines.append(value)


class HttpEventStreamTransport:
    """Reads the server's SSE push channel with :mod:`httpx`.

    ``token`` may be a string or a callable returning the current token,
    which is read again on every (re)connect. ``read_timeout`` should exceed
    the server heartbeat interval so that a silent connection is detected
    as failed.
    """

    def __init__(
        self,
        base_url: str,
        token: str | Callable[[], str],
        *,
        path: str = DEFAULT_STREAM_PATH,
        connect_timeout: float = 10.0,
        read_timeout: float | None = 90.0,
        verify: bool = True,
    ) -> None:
        self._url = base_url.rstrip("/") + path
        self._token = token
        self._timeout = httpx.Timeout(connect_timeout, read=read_timeout)
        self._verify = verify

    @property
    def url(self) -> str:
        return self._url

    def _current_token(self) -> str:
        return self._token() if callable(self._token) else self._token

    @asynccontextmanager
    async def open(self, user_id: int) -> AsyncIterator[AsyncIterator[str]]:
        async with httpx.AsyncClient(timeout=self._timeout, verify=self._verify) as client:
            async with client.stream(
                "GET",
                self._url,
                params={"token": self._current_token()},
                headers={"Accept": "text/event-stream"},
            ) as response:
                response.raise_for_status()
                logger.debug("Opened push stream %s for user %s", self._url, user_id)
                yield iter_sse_data(response.aiter_lines())


__all__ = [
    "DEFAULT_STREAM_PATH",
    "EventStreamTransport",
    "HttpEventStreamTransport",
    "iter_sse_data",
]
