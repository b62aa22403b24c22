"""Tests for the client push subscription handler."""

from __future__ import annotations

import asyncio
import json
from contextlib import asynccontextmanager

import pytest

from kanban.client import ConnectionState, PushSubscriptionClient, ReconnectPolicy

pytestmark = pytest.mark.anyio

FAST = ReconnectPolicy(base_delay=0.0, multiplier=1.0, max_delay=0.0)


class FakeStream:
    """A scripted server connection."""

    def __init__(self) -> None:
        self._items: asyncio.Queue = asyncio.Queue()

    def send(self, kind: str, **payload) -> None:
        self._items.put_nowait(json.dumps({"type": kind, **payload}))

    def send_raw(self, frame: str) -> None:
        self._items.put_nowait(frame)

    def close(self) -> None:
        self._items.put_nowait(None)

    def fail(self, exc: Exception) -> None:
        self._items.put_nowait(exc)

    async def frames(self):
        while True:
            item = await self._items.get()
            if item is None:
                return
            if isinstance(item, Exception):
                raise item
            yield item


class FakeTransport:
    def __init__(self, *, failures: int = 0) -> None:
        self.failures = failures
        self.opened: list[int] = []
        self.streams: list[FakeStream] = []

    @asynccontextmanager
    async def open(self, user_id: int):
        self.opened.append(user_id)
        if self.failures:
            self.failures -= 1
            raise ConnectionError("server unreachable")
        stream = FakeStream()
        self.streams.append(stream)
        yield stream.frames()


async def _wait_until(predicate, timeout: float = 2.0) -> None:
    async def _poll() -> None:
        while not predicate():
            await asyncio.sleep(0.001)

    await asyncio.wait_for(_poll(), timeout)


async def _connected_client(transport: FakeTransport, user_id: int = 7, **kwargs):
    client = PushSubscriptionClient(transport, policy=kwargs.pop("policy", FAST))
    await client.connect(user_id)
    await _wait_until(client.is_connected)
    return client


def test_reconnect_policy_grows_exponentially_up_to_the_cap():
    policy = ReconnectPolicy(base_delay=1.0, multiplier=2.0, max_delay=5.0, max_attempts=4)

    assert [policy.delay(attempt) for attempt in range(1, 6)] == [1.0, 2.0, 4.0, 5.0, 5.0]
    assert policy.allows(4)
    assert not policy.allows(5)
    assert ReconnectPolicy().allows(1000)


def test_reconnect_policy_rejects_invalid_values():
    with pytest.raises(ValueError):
        ReconnectPolicy(base_delay=-1)
    with pytest.raises(ValueError):
        ReconnectPolicy(multiplier=0.5)


async def test_events_are_routed_by_kind_in_registration_order():
    transport = FakeTransport()
    calls: list[tuple[str, object]] = []
    client = PushSubscriptionClient(transport, policy=FAST)
    client.on_notification(lambda event: calls.append(("first", event.notification_id)))
    client.on_notification(lambda event: calls.append(("second", event.notification_id)))
    client.on_activity_update(lambda event: calls.append(("activity", event.project_id)))

    await client.connect(7)
    await _wait_until(client.is_connected)
    stream = transport.streams[0]
    stream.send("connected", user_id=7, unread_count=0)
    stream.send("notification", id=42, title="Task Assigned")
    stream.send("heartbeat", timestamp="now")
    stream.send("activity", project_id=3, activity={"id": 1})
    await _wait_until(lambda: len(calls) == 3)

    assert calls == [("first", 42), ("second", 42), ("activity", 3)]
    await client.disconnect()


async def test_async_listeners_are_awaited_in_order():
    transport = FakeTransport()
    received: list[int] = []

    async def slow_listener(event) -> None:
        await asyncio.sleep(0.01)
        received.append(event.notification_id)

    client = PushSubscriptionClient(transport, policy=FAST)
    client.on_notification(slow_listener)
    await client.connect(1)
    await _wait_until(client.is_connected)
    for notification_id in (1, 2, 3):
        transport.streams[0].send("notification", id=notification_id)
    await _wait_until(lambda: len(received) == 3)

    assert received == [1, 2, 3]
    await client.disconnect()


async def test_async_status_listeners_see_every_transition():
    transport = FakeTransport()
    seen: list[ConnectionState] = []

    async def record_status(state: ConnectionState) -> None:
        await asyncio.sleep(0)
        seen.append(state)

    client = PushSubscriptionClient(transport, policy=FAST)
    client.on_connection_status(record_status)
    await client.connect(7)
    await _wait_until(lambda: ConnectionState.CONNECTED in seen)
    await client.disconnect()

    assert seen == [
        ConnectionState.CONNECTING,
        ConnectionState.CONNECTED,
        ConnectionState.DISCONNECTED,
    ]


async def test_unsubscribe_stops_delivery_to_that_listener_only():
    transport = FakeTransport()
    kept: list[int] = []
    removed: list[int] = []
    client = await _connected_client(transport)
    unsubscribe = client.on_notification(lambda event: removed.append(event.notification_id))
    client.on_notification(lambda event: kept.append(event.notification_id))

    unsubscribe()
    unsubscribe()
    transport.streams[0].send("notification", id=5)
    await _wait_until(lambda: kept == [5])

    assert removed == []
    await client.disconnect()


async def test_malformed_frames_and_failing_listeners_do_not_stop_dispatch():
    transport = FakeTransport()
    received: list[int] = []

    def broken_listener(event) -> None:
        raise RuntimeError("listener bug")

    client = await _connected_client(transport)
    client.on_notification(broken_listener)
    client.on_notification(lambda event: received.append(event.notification_id))

    stream = transport.streams[0]
    stream.send_raw("not json")
    stream.send_raw('{"id": 3}')
    stream.send("notification", id=4)
    await _wait_until(lambda: received == [4])

    assert client.is_connected()
    assert len(transport.streams) == 1
    await client.disconnect()


async def test_unexpected_close_reconnects_through_backoff():
    transport = FakeTransport()
    states: list[ConnectionState] = []
    received: list[int] = []
    client = PushSubscriptionClient(transport, policy=FAST)
    client.on_connection_status(states.append)
    client.on_notification(lambda event: received.append(event.notification_id))

    await client.connect(7)
    await _wait_until(client.is_connected)
    transport.streams[0].close()
    await _wait_until(lambda: len(transport.streams) == 2 and client.is_connected())
    transport.streams[1].send("notification", id=8)
    await _wait_until(lambda: received == [8])

    assert states == [
        ConnectionState.CONNECTING,
        ConnectionState.CONNECTED,
        ConnectionState.BACKOFF,
        ConnectionState.CONNECTING,
        ConnectionState.CONNECTED,
    ]
    assert transport.opened == [7, 7]
    await client.disconnect()


async def test_transport_errors_are_retried_and_never_raised():
    transport = FakeTransport(failures=2)
    states: list[ConnectionState] = []
    client = PushSubscriptionClient(transport, policy=FAST)
    client.on_connection_status(states.append)

    await client.connect(7)
    await _wait_until(client.is_connected)
    transport.streams[0].fail(ConnectionResetError("reset by peer"))
    await _wait_until(lambda: len(transport.streams) == 2 and client.is_connected())

    assert len(transport.opened) == 4
    assert states.count(ConnectionState.BACKOFF) == 3
    await client.disconnect()


async def test_gives_up_after_max_attempts():
    transport = FakeTransport(failures=10)
    client = PushSubscriptionClient(
        transport, policy=ReconnectPolicy(base_delay=0.0, max_delay=0.0, max_attempts=2)
    )

    await client.connect(7)
    await _wait_until(
        lambda: len(transport.opened) == 3 and client.state is ConnectionState.DISCONNECTED
    )
    await asyncio.sleep(0.01)

    assert len(transport.opened) == 3
    assert not client.is_connected()


async def test_disconnect_is_idempotent_and_cancels_pending_reconnect():
    transport = FakeTransport(failures=1)
    states: list[ConnectionState] = []
    received: list[int] = []
    client = PushSubscriptionClient(transport, policy=ReconnectPolicy(base_delay=60.0))
    client.on_connection_status(states.append)
    client.on_notification(lambda event: received.append(event.notification_id))

    await client.connect(7)
    await _wait_until(lambda: client.state is ConnectionState.BACKOFF)
    await client.disconnect()
    await client.disconnect()
    await asyncio.sleep(0.01)

    assert client.state is ConnectionState.DISCONNECTED
    assert transport.opened == [7]
    assert states.count(ConnectionState.DISCONNECTED) == 1

    # Listeners survive a disconnect.
    await client.connect(7)
    await _wait_until(client.is_connected)
    transport.streams[0].send("notification", id=9)
    await _wait_until(lambda: received == [9])
    await client.disconnect()


async def test_disconnect_closes_open_stream():
    transport = FakeTransport()
    client = await _connected_client(transport)

    await client.disconnect()

    assert not client.is_connected()
    assert client.state is ConnectionState.DISCONNECTED


async def test_connect_is_single_flight_per_user():
    transport = FakeTransport()
    client = await _connected_client(transport, user_id=7)

    await client.connect(7)
    await asyncio.sleep(0.01)
    assert transport.opened == [7]

    await client.connect(8)
    await _wait_until(lambda: transport.opened == [7, 8] and client.is_connected())
    assert client.user_id == 8
    await client.disconnect()
