"""Utilities for timestamps used by session reporting."""
from __future__ import annotations

import time
from datetime import datetime, timezone


def now_utc() -> datetime:
    """Return the current UTC datetime with tzinfo."""

    return datetime.now(timezone.utc)


def monotonic() -> float:
    """Return a monotonic clock reading in seconds for duration measurement."""

    return time.monotonic()


def elapsed_whole_seconds(start: float, end: float) -> int:
    """Return the whole seconds between two monotonic readings (never negative)."""

    return max(0, int(end - start))
