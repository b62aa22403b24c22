"""Tests for the ``text/event-stream`` line parser."""

from __future__ import annotations

import pytest

from kanban.client import iter_sse_data

pytestmark = pytest.mark.anyio


async def _lines(*lines: str):
    for line in lines:
        yield line


async def _collect(*lines: str) -> list[str]:
    return [data async for data in iter_sse_data(_lines(*lines))]


async def test_emits_one_payload_per_blank_line():
    payloads = await _collect(
        'data: {"type":"connected","user_id":1}',
        "",
        'data: {"type":"notification","id":2}',
        "",
    )

    assert payloads == ['{"type":"connected","user_id":1}', '{"type":"notification","id":2}']


async def test_joins_multiline_data_and_ignores_other_fields():
    payloads = await _collect(
        ": keep-alive",
        "event: message",
        "id: 17",
        "data: first",
        "data:second",
        "retry: 1000",
        "",
    )

    assert payloads == ["first\nsecond"]


async def test_skips_empty_events_and_strips_carriage_returns():
    payloads = await _collect("", "\r\n", "data: x\r\n", "\r\n")

    assert payloads == ["x"]


async def test_discards_unterminated_event():
    assert await _collect("data: complete", "", "data: partial") == ["complete"]
