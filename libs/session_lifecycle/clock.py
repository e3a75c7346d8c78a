"""Injectable time sources.

All monitors read wall-clock time through a ``Clock`` so tests can advance
virtual time deterministically instead of patching ``time.time``.

Example:
    >>> clock = ManualClock(start=1_700_000_000.0)
    >>> clock.advance(60)
    >>> clock.now()
    1700000060.0
"""

from __future__ import annotations

import time
from datetime import UTC, datetime
from typing import Protocol


class Clock(Protocol):
    """Source of the current time as Unix epoch seconds."""

    def now(self) -> float: ...


class SystemClock:
    """Clock backed by ``time.time()``."""

    def now(self) -> float:
        return time.time()


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start: float | None = None) -> None:
        self._now = time.time() if start is None else float(start)

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> None:
        """Move the clock forward by ``seconds``.

        Raises:
            ValueError: If seconds is negative
        """
        if seconds < 0:
            raise ValueError(f"Cannot move clock backwards: {seconds}")
        self._now += seconds

    def set(self, timestamp: float) -> None:
        self._now = float(timestamp)


def to_utc_datetime(timestamp: float) -> datetime:
    """Convert epoch seconds to a timezone-aware UTC datetime."""
    return datetime.fromtimestamp(timestamp, tz=UTC)


def to_iso_z(timestamp: float) -> str:
    """Format epoch seconds as ISO 8601 with a 'Z' suffix."""
    return to_utc_datetime(timestamp).isoformat().replace("+00:00", "Z")


__all__ = ["Clock", "SystemClock", "ManualClock", "to_utc_datetime", "to_iso_z"]
