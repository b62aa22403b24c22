"""Shared helpers used across layers."""

from .timestamps import (
    app_timezone,
    isoformat_or_none,
    local_now,
    local_now_naive,
    to_local,
    to_storage,
)

__all__ = [
    "app_timezone",
    "isoformat_or_none",
    "local_now",
    "local_now_naive",
    "to_local",
    "to_storage",
]
