"""Clock and timestamp utilities

Every stateful component takes an optional ``clock`` callable returning the
current time in seconds (same scale as ``time.time()``). Tests pass a fake
clock to drive time deterministically.
"""

import time
from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], float]


def system_clock() -> float:
    """Wall-clock seconds since the epoch."""
    return time.time()


def parse_iso_timestamp(value: str | None) -> float | None:
    """Parse an ISO-8601 timestamp into epoch seconds.

    Accepts a trailing "Z" for UTC. Naive timestamps are taken as local time.

    Args:
        value: ISO-8601 string, e.g. "2024-05-01T12:00:00.250Z"

    Returns:
        Epoch seconds, or None if missing or unparseable
    """
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.strip()).timestamp()
    except (ValueError, OverflowError, OSError):
        return None


def to_iso_timestamp(seconds: float) -> str:
    """Format epoch seconds as an ISO-8601 UTC string ("...Z")."""
    dt = datetime.fromtimestamp(seconds, tz=timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")
