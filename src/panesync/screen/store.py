"""屏幕快照存储

按 (pane, 行数) 分桶保存最近发送过的屏幕快照，每个快照以 cursor 标识。
客户端带着上次的 cursor 请求时，与对应快照比较生成 delta；找不到快照或
变化太大时发送全量屏幕。
"""

import uuid
from dataclasses import dataclass
from typing import Callable

from .. import config
from ..cache.bounded import set_entry_with_limit
from ..core.clock import Clock, system_clock, to_iso_timestamp
from ..telemetry import format_pane_log, get_logger
from .delta import build_screen_deltas, should_send_full, split_screen_lines
from .models import ScreenDeltaModel, ScreenResponse

logger = get_logger(__name__)


@dataclass(frozen=True)
class ScreenSnapshot:
    """已发送给客户端的一次屏幕快照"""

    cursor: str
    lines: list[str]
    alternate_on: bool
    truncated: bool | None


def _new_cursor() -> str:
    return uuid.uuid4().hex


class ScreenSnapshotStore:
    """屏幕快照存储

    每个桶最多保留 limit_per_key 个快照，超出时淘汰最早写入的。
    """

    def __init__(
        self,
        limit_per_key: int | None = None,
        cursor_factory: Callable[[], str] | None = None,
        clock: Clock | None = None,
    ):
        self._limit = limit_per_key or config.SCREEN_CACHE_LIMIT
        self._cursor_factory = cursor_factory or _new_cursor
        self._clock = clock or system_clock
        self._buckets: dict[str, dict[str, ScreenSnapshot]] = {}

    @staticmethod
    def cache_key(pane_id: str, line_count: int) -> str:
        return f"{pane_id}:text:{line_count}"

    def store(self, cache_key: str, snapshot: ScreenSnapshot) -> None:
        """保存快照，桶满时淘汰最早的"""
        bucket = self._buckets.setdefault(cache_key, {})
        set_entry_with_limit(bucket, snapshot.cursor, snapshot, self._limit)

    def get(self, cache_key: str, cursor: str | None) -> ScreenSnapshot | None:
        if not cursor:
            return None
        bucket = self._buckets.get(cache_key)
        return bucket.get(cursor) if bucket else None

    def forget_pane(self, pane_id: str) -> None:
        """移除 pane 的所有快照桶"""
        prefix = f"{pane_id}:text:"
        for key in [k for k in self._buckets if k.startswith(prefix)]:
            del self._buckets[key]

    def bucket_size(self, cache_key: str) -> int:
        return len(self._buckets.get(cache_key, {}))

    def build_text_response(
        self,
        pane_id: str,
        line_count: int,
        screen: str,
        alternate_on: bool = False,
        truncated: bool | None = None,
        cursor: str | None = None,
    ) -> ScreenResponse:
        """构建屏幕响应并保存本次快照

        Args:
            pane_id: pane 标识
            line_count: 请求的行数（同一 pane 不同行数分开缓存）
            screen: 本次捕获的屏幕文本
            alternate_on: 是否处于 alternate screen
            truncated: 捕获是否被截断
            cursor: 客户端持有的快照 cursor

        Returns:
            full=True 带 screen，或 full=False 带 deltas
        """
        cache_key = self.cache_key(pane_id, line_count)
        previous = self.get(cache_key, cursor)

        next_lines = split_screen_lines(screen)
        next_cursor = self._cursor_factory()
        self.store(
            cache_key,
            ScreenSnapshot(
                cursor=next_cursor,
                lines=next_lines,
                alternate_on=alternate_on,
                truncated=truncated,
            ),
        )

        response = ScreenResponse(
            ok=True,
            pane_id=pane_id,
            captured_at=to_iso_timestamp(self._clock()),
            lines=line_count,
            truncated=truncated,
            alternate_on=alternate_on,
            cursor=next_cursor,
        )

        if previous is None:
            return self._full(response, screen)

        if previous.alternate_on != alternate_on or previous.truncated != truncated:
            logger.debug(format_pane_log("ScreenStore", pane_id, "screen mode changed, sending full"))
            return self._full(response, screen)

        deltas = build_screen_deltas(previous.lines, next_lines)
        if should_send_full(len(previous.lines), len(next_lines), deltas):
            return self._full(response, screen)

        response.full = False
        response.deltas = [ScreenDeltaModel.from_delta(d) for d in deltas]
        return response

    @staticmethod
    def _full(response: ScreenResponse, screen: str) -> ScreenResponse:
        response.full = True
        response.screen = screen
        return response
