"""Envelopes exchanged over the push channel.

Every frame on the wire is a JSON object whose ``type`` key names the event
kind; the remaining keys are the payload::

    {"type": "notification", "id": 42, "title": "..."}
    {"type": "activity", "project_id": 3, "activity": {...}}

:func:`decode_envelope` turns a raw frame into one of the event classes below
so consumers branch on the class instead of probing dictionaries.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Union

NOTIFICATION_EVENT = "notification"
ACTIVITY_EVENT = "activity"
CONNECTED_EVENT = "connected"
HEARTBEAT_EVENT = "heartbeat"


class MalformedEnvelopeError(ValueError):
    """Raised when a frame is not a JSON object carrying a string ``type``."""


@dataclass(frozen=True)
class NotificationEvent:
    """A notification pushed to its recipient."""

    payload: dict[str, Any] = field(default_factory=dict)

    kind = NOTIFICATION_EVENT

    @property
    def notification_id(self) -> int | None:
        value = self.payload.get("id")
        return value if isinstance(value, int) else None


@dataclass(frozen=True)
class ActivityEvent:
    """A project activity record pushed to the project's members."""

    payload: dict[str, Any] = field(default_factory=dict)

    kind = ACTIVITY_EVENT

    @property
    def project_id(self) -> int | None:
        value = self.payload.get("project_id")
        return value if isinstance(value, int) else None

    @property
    def activity(self) -> dict[str, Any]:
        value = self.payload.get("activity")
        return value if isinstance(value, dict) else {}


@dataclass(frozen=True)
class OtherEvent:
    """Any other kind, e.g. ``connected`` or ``heartbeat`` control frames."""

    kind: str
    payload: dict[str, Any] = field(default_factory=dict)


PushEvent = Union[NotificationEvent, ActivityEvent, OtherEvent]


def build_envelope(kind: str, payload: dict[str, Any]) -> dict[str, Any]:
    """Return the wire dictionary for ``kind`` with ``payload`` flattened in."""

    if not kind:
        raise ValueError("Event kind must be a non-empty string")
    envelope = {key: value for key, value in payload.items() if key != "type"}
    return {"type": kind, **envelope}


def encode_envelope(kind: str, payload: dict[str, Any]) -> str:
    """Serialize ``payload`` as a ``kind`` envelope in compact JSON."""

    return json.dumps(
        build_envelope(kind, payload), default=_json_default, separators=(",", ":")
    )


def decode_envelope(raw: str | bytes) -> PushEvent:
    """Parse ``raw`` into the matching :data:`PushEvent` variant."""

    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise MalformedEnvelopeError("Envelope is not valid JSON") from exc

    if not isinstance(data, dict):
        raise MalformedEnvelopeError("Envelope must be a JSON object")

    kind = data.get("type")
    if not isinstance(kind, str) or not kind:
        raise MalformedEnvelopeError("Envelope is missing its 'type'")

    payload = {key: value for key, value in data.items() if key != "type"}
    if kind == NOTIFICATION_EVENT:
        return NotificationEvent(payload)
    if kind == ACTIVITY_EVENT:
        return ActivityEvent(payload)
    return OtherEvent(kind, payload)


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


__all__ = [
    "ACTIVITY_EVENT",
    "CONNECTED_EVENT",
    "HEARTBEAT_EVENT",
    "NOTIFICATION_EVENT",
    "ActivityEvent",
    "MalformedEnvelopeError",
    "NotificationEvent",
    "OtherEvent",
    "PushEvent",
    "build_envelope",
    "decode_envelope",
    "encode_envelope",
]
