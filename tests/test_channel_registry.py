"""Tests for the per-user push connection registry."""

from __future__ import annotations

import asyncio
import json

import pytest

from kanban.domain.entities import NotificationEvent, decode_envelope
from kanban.infrastructure.notifications import (
    ChannelRegistry,
    PushConnection,
    RealtimeEventPublisher,
)

pytestmark = pytest.mark.anyio


def _drain(connection: PushConnection) -> list[dict]:
    messages = []
    while connection.pending:
        messages.append(json.loads(connection._queue.get_nowait()))
    return messages


async def test_register_marks_user_online_and_unregister_is_idempotent():
    registry = ChannelRegistry()
    connection = registry.open_connection(7)

    await registry.register(7, connection)
    assert registry.is_online(7)
    assert registry.connection_count(7) == 1

    await registry.unregister(7, connection)
    await registry.unregister(7, connection)

    assert registry.connection_count(7) == 0
    assert not registry.is_online(7)
    assert registry.online_user_ids() == []
    assert connection.closed


async def test_unregister_unknown_connection_is_ignored():
    registry = ChannelRegistry()
    registered = registry.open_connection(7)
    stranger = registry.open_connection(7)
    await registry.register(7, registered)

    await registry.unregister(7, stranger)
    await registry.unregister(8, registry.open_connection(8))

    assert registry.connection_count(7) == 1
    assert registry.connection_count(8) == 0


async def test_publish_without_connections_is_dropped():
    registry = ChannelRegistry()

    delivered = await registry.publish(99, "notification", {"id": 1})

    assert delivered == 0
    assert registry.online_user_ids() == []
    # A later connection does not receive the dropped event.
    connection = registry.open_connection(99)
    await registry.register(99, connection)
    assert connection.pending == 0


async def test_publish_reaches_every_connection_of_the_user_once():
    registry = ChannelRegistry()
    first = registry.open_connection(7)
    second = registry.open_connection(7)
    other_user = registry.open_connection(8)
    for connection in (first, second, other_user):
        await registry.register(connection.user_id, connection)

    delivered = await registry.publish(7, "notification", {"id": 42, "title": "Task Assigned"})

    assert delivered == 2
    for connection in (first, second):
        assert _drain(connection) == [
            {"type": "notification", "id": 42, "title": "Task Assigned"}
        ]
    assert other_user.pending == 0


async def test_publish_preserves_order_per_connection():
    registry = ChannelRegistry()
    connection = registry.open_connection(3)
    await registry.register(3, connection)

    for notification_id in range(1, 6):
        await registry.publish(3, "notification", {"id": notification_id})

    received = [message["id"] for message in _drain(connection)]
    assert received == [1, 2, 3, 4, 5]


async def test_closed_connection_stops_receiving_after_unregister():
    registry = ChannelRegistry()
    connection = registry.open_connection(5)
    await registry.register(5, connection)
    await registry.unregister(5, connection)

    assert await registry.publish(5, "notification", {"id": 1}) == 0
    assert connection.pending == 0
    assert await connection.next_message() is None


async def test_stalled_connection_is_evicted_without_blocking_others():
    registry = ChannelRegistry(queue_size=2)
    stalled = registry.open_connection(4)
    healthy = registry.open_connection(4)
    await registry.register(4, stalled)
    await registry.register(4, healthy)

    stalled.offer("filler-1")
    stalled.offer("filler-2")
    delivered = await registry.publish(4, "notification", {"id": 10})

    assert delivered == 1
    assert stalled.closed
    assert registry.connection_count(4) == 1
    assert _drain(healthy) == [{"type": "notification", "id": 10}]


async def test_connection_closed_by_its_stream_is_released():
    registry = ChannelRegistry()
    dropped = registry.open_connection(7)
    kept = registry.open_connection(8)
    await registry.register(7, dropped)
    await registry.register(8, kept)

    dropped.close()

    assert registry.connection_count(7) == 0
    assert not registry.is_online(7)
    assert registry.online_user_ids() == [8]

    assert await registry.publish(7, "notification", {"id": 1}) == 0
    assert 7 not in registry._connections
    # Released once the publish saw it closed; a new stream starts clean.
    fresh = registry.open_connection(7)
    await registry.register(7, fresh)
    assert await registry.publish(7, "notification", {"id": 2}) == 1
    assert registry.connection_count(7) == 1


async def test_user_locks_are_dropped_once_idle():
    registry = ChannelRegistry()
    connection = registry.open_connection(3)

    await registry.unregister(12, registry.open_connection(12))
    assert registry._locks == {}

    await registry.register(3, connection)
    await registry.publish(3, "notification", {"id": 1})
    assert registry._locks == {}

    await asyncio.gather(
        registry.unregister(3, connection),
        registry.register(3, registry.open_connection(3)),
        registry.publish(3, "notification", {"id": 2}),
    )
    assert registry._locks == {}
    assert registry._lock_users == {}
    assert registry.connection_count(3) == 1


async def test_registration_context_releases_connection():
    registry = ChannelRegistry()
    connection = registry.open_connection(11)

    registration = await registry.register(11, connection)
    async with registration as opened:
        assert opened is connection
        assert registry.is_online(11)

    assert registration.released
    assert not registry.is_online(11)
    await registration.release()
    assert registry.connection_count(11) == 0


async def test_register_rejects_connection_of_another_user():
    registry = ChannelRegistry()

    with pytest.raises(ValueError):
        await registry.register(1, registry.open_connection(2))


async def test_concurrent_register_and_unregister_keep_counts_consistent():
    registry = ChannelRegistry()
    connections = [registry.open_connection(21) for _ in range(20)]

    await asyncio.gather(*(registry.register(21, c) for c in connections))
    assert registry.connection_count(21) == 20

    await asyncio.gather(
        *(registry.unregister(21, c) for c in connections),
        *(registry.unregister(21, c) for c in connections[:10]),
    )
    assert registry.connection_count(21) == 0
    assert not registry.is_online(21)


async def test_publish_many_deduplicates_recipients():
    registry = ChannelRegistry()
    first = registry.open_connection(1)
    second = registry.open_connection(2)
    await registry.register(1, first)
    await registry.register(2, second)

    delivered = await registry.publish_many([1, 2, 2, None, 3], "activity", {"project_id": 9})

    assert delivered == 2
    assert first.pending == 1
    assert second.pending == 1


async def test_next_message_waits_for_publish_and_times_out():
    registry = ChannelRegistry()
    connection = registry.open_connection(6)
    await registry.register(6, connection)

    with pytest.raises(TimeoutError):
        await connection.next_message(timeout=0.01)

    waiter = asyncio.ensure_future(connection.next_message(timeout=1))
    await asyncio.sleep(0)
    await registry.publish(6, "notification", {"id": 77})
    event = decode_envelope(await waiter)

    assert isinstance(event, NotificationEvent)
    assert event.notification_id == 77


async def test_close_releases_every_connection_and_refuses_new_ones():
    registry = ChannelRegistry()
    connections = [registry.open_connection(user_id) for user_id in (1, 1, 2)]
    for connection in connections:
        await registry.register(connection.user_id, connection)

    await registry.close()

    assert registry.online_user_ids() == []
    assert all(connection.closed for connection in connections)
    with pytest.raises(RuntimeError):
        await registry.register(3, registry.open_connection(3))


async def test_realtime_publisher_schedules_delivery_on_the_running_loop():
    registry = ChannelRegistry()
    realtime = RealtimeEventPublisher(registry)
    connection = registry.open_connection(1)
    await registry.register(1, connection)
    payload = {"id": 3, "metadata": {"column_name": "Done"}}

    realtime.dispatch(1, event_type="notification", payload=payload)
    realtime.dispatch(None, event_type="notification", payload=payload)
    realtime.dispatch_many([2, 1, 1], event_type="activity", payload={"project_id": 4})
    payload["metadata"]["column_name"] = "changed"
    await realtime.drain()

    assert _drain(connection) == [
        {"type": "notification", "id": 3, "metadata": {"column_name": "Done"}},
        {"type": "activity", "project_id": 4},
    ]
