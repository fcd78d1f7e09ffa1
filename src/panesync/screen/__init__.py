"""Incremental screen synchronization."""

from .delta import (
    ApplyResult,
    ScreenDelta,
    apply_screen_deltas,
    build_screen_deltas,
    count_changed_lines,
    should_send_full,
    split_screen_lines,
)
from .models import ApiError, ScreenDeltaModel, ScreenResponse
from .store import ScreenSnapshot, ScreenSnapshotStore

__all__ = [
    "ApplyResult",
    "ScreenDelta",
    "apply_screen_deltas",
    "build_screen_deltas",
    "count_changed_lines",
    "should_send_full",
    "split_screen_lines",
    "ApiError",
    "ScreenDeltaModel",
    "ScreenResponse",
    "ScreenSnapshot",
    "ScreenSnapshotStore",
]
