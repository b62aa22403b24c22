"""Timestamps in the configured application timezone.

Columns are plain ``DateTime``: values are written naive in the app
timezone and get the zone attached again when they are read back.
"""

from __future__ import annotations

from datetime import datetime, tzinfo
from functools import lru_cache
from zoneinfo import ZoneInfo

from kanban.config import get_settings


@lru_cache(maxsize=1)
def app_timezone() -> tzinfo:
    return ZoneInfo(get_settings().app_timezone)


def local_now() -> datetime:
    return datetime.now(tz=app_timezone())


def local_now_naive() -> datetime:
    """Column default: the current local time without ``tzinfo``."""

    return local_now().replace(tzinfo=None)


def to_local(value: datetime | None) -> datetime | None:
    """Attach or convert ``value`` to the app timezone; naive values are taken as local."""

    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=app_timezone())
    return value.astimezone(app_timezone())


def to_storage(value: datetime | None) -> datetime | None:
    local = to_local(value)
    return local.replace(tzinfo=None) if local is not None else None


def isoformat_or_none(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None
