"""Screen delta engine

Line-range splice operations over a pane's rendered terminal buffer.

A batch of deltas is applied in order. Each ``start`` is expressed in the
coordinates of the buffer the batch was built against; the engine keeps a
running offset (sum of ``len(insert_lines) - delete_count`` of the deltas
already applied) so every delta lands on the buffer as left by the previous
ones. A batch is all-or-nothing: the first invalid delta aborts it and the
original buffer is returned untouched.
"""

import difflib
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, NamedTuple, Sequence

from .. import config


@dataclass(frozen=True)
class ScreenDelta:
    """Replace ``delete_count`` lines at ``start`` with ``insert_lines``."""

    start: int
    delete_count: int
    insert_lines: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ScreenDelta":
        """Build from the wire shape ``{start, deleteCount, insertLines}``.

        Raises:
            KeyError: start or deleteCount missing
            TypeError: a field has the wrong type
        """
        return _validated(cls(
            start=data["start"],
            delete_count=data["deleteCount"],
            insert_lines=data.get("insertLines", []),
        ))

    def to_dict(self) -> dict[str, Any]:
        return {
            "start": self.start,
            "deleteCount": self.delete_count,
            "insertLines": list(self.insert_lines),
        }

    @property
    def line_delta(self) -> int:
        """Net change in buffer length caused by this delta."""
        return len(self.insert_lines) - self.delete_count


class ApplyResult(NamedTuple):
    ok: bool
    lines: list[str]


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _validated(delta: ScreenDelta) -> ScreenDelta:
    if not _is_int(delta.start) or not _is_int(delta.delete_count):
        raise TypeError(f"start and deleteCount must be int: {delta!r}")
    if not isinstance(delta.insert_lines, list) or not all(
        isinstance(line, str) for line in delta.insert_lines
    ):
        raise TypeError(f"insertLines must be a list of str: {delta!r}")
    return delta


def _coerce(delta: "ScreenDelta | Mapping[str, Any]") -> ScreenDelta:
    if isinstance(delta, ScreenDelta):
        return _validated(delta)
    if not isinstance(delta, Mapping):
        raise TypeError(f"delta must be a mapping: {delta!r}")
    return ScreenDelta.from_dict(delta)


def apply_screen_deltas(
    lines: list[str],
    deltas: Iterable["ScreenDelta | Mapping[str, Any]"],
) -> ApplyResult:
    """Apply a batch of deltas to a line buffer.

    Args:
        lines: Current buffer; never mutated
        deltas: Deltas in application order (ScreenDelta or wire dicts)

    Returns:
        ApplyResult(True, new_lines) on success, or ApplyResult(False, lines)
        with the very same input list when any delta is malformed or out
        of range
    """
    buffer = list(lines)
    offset = 0
    for raw in deltas:
        try:
            delta = _coerce(raw)
        except (KeyError, TypeError, ValueError):
            return ApplyResult(False, lines)
        start = delta.start + offset
        if start < 0 or start > len(buffer):
            return ApplyResult(False, lines)
        if delta.delete_count < 0 or start + delta.delete_count > len(buffer):
            return ApplyResult(False, lines)
        buffer[start:start + delta.delete_count] = delta.insert_lines
        offset += delta.line_delta
    return ApplyResult(True, buffer)


def build_screen_deltas(before: Sequence[str], after: Sequence[str]) -> list[ScreenDelta]:
    """Compute the deltas turning ``before`` into ``after``.

    Starts are positions in ``before``; feeding the result to
    apply_screen_deltas(before, ...) reproduces ``after``.
    """
    if not before and not after:
        return []

    matcher = difflib.SequenceMatcher(None, before, after, autojunk=False)
    deltas = []
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            continue
        deltas.append(
            ScreenDelta(start=i1, delete_count=i2 - i1, insert_lines=list(after[j1:j2]))
        )
    return deltas


def count_changed_lines(deltas: Iterable[ScreenDelta]) -> int:
    """Lines touched by the deltas (a replaced line counts once)."""
    return sum(max(d.delete_count, len(d.insert_lines)) for d in deltas)


def should_send_full(before_length: int, after_length: int, deltas: Sequence[ScreenDelta]) -> bool:
    """Decide whether a full screen is cheaper to send than the deltas.

    True when there are too many deltas, too many changed lines, or more than
    FULL_SEND_CHANGED_RATIO of the screen changed.
    """
    if len(deltas) > config.FULL_SEND_MAX_DELTAS:
        return True
    changed_lines = count_changed_lines(deltas)
    if changed_lines > config.FULL_SEND_MAX_CHANGED_LINES:
        return True
    total_lines = max(before_length, after_length)
    if total_lines == 0:
        return False
    return changed_lines > total_lines * config.FULL_SEND_CHANGED_RATIO


def split_screen_lines(screen: str) -> list[str]:
    """Split captured screen text into lines, normalizing CRLF."""
    return screen.replace("\r\n", "\n").split("\n")
