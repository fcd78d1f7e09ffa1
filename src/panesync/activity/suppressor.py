"""Activity Suppressor - focus 后的 activity 抑制

用户切换到某个 pane 时终端会产生重绘等输出，观察者会把它报告为新的
activity。focus 之后的短窗口内，这类 activity 不应被当作真实活动。

两个窗口：
- 抑制窗口：activity 时间落在 [focus, focus + suppress_window] 内时抑制
- 过期窗口：focus 记录超过 stale_window 后在下次访问时清除（无后台清扫）
"""

from ..config import METRICS_ENABLED, STALE_WINDOW_SECONDS, SUPPRESS_WINDOW_SECONDS
from ..core.clock import Clock, parse_iso_timestamp, system_clock
from ..telemetry import format_pane_log, get_logger, metrics

logger = get_logger(__name__)


class ActivitySuppressor:
    """按 pane 记录最近一次 focus 时间，并判断 activity 是否应被抑制"""

    def __init__(
        self,
        suppress_window: float | None = None,
        stale_window: float | None = None,
        clock: Clock | None = None,
    ):
        """初始化

        Args:
            suppress_window: 抑制窗口（秒），None 使用配置默认值
            stale_window: 过期窗口（秒），None 使用配置默认值
            clock: 时钟函数，None 使用系统时间
        """
        self._suppress_window = (
            SUPPRESS_WINDOW_SECONDS if suppress_window is None else suppress_window
        )
        self._stale_window = STALE_WINDOW_SECONDS if stale_window is None else stale_window
        self._clock = clock or system_clock
        self._last_focus_at: dict[str, float] = {}

    def mark_pane_focus(self, pane_id: str) -> None:
        """记录 pane 的 focus 时间，覆盖旧值"""
        if not pane_id:
            return
        self._last_focus_at[pane_id] = self._clock()
        logger.debug(format_pane_log("Suppressor", pane_id, "focus marked"))

    def should_suppress_activity(self, pane_id: str, activity_iso: str | None) -> bool:
        """判断 activity 是否为 focus 引起的噪声

        focus 之前的 activity 即使在窗口大小之内也不抑制，
        防止乱序到达的 focus 前活动被吞掉。

        Args:
            pane_id: pane 标识
            activity_iso: activity 时间（ISO-8601），可为 None

        Returns:
            是否抑制
        """
        if not pane_id or not activity_iso:
            return False
        last_focus = self._last_focus_at.get(pane_id)
        if last_focus is None:
            return False
        activity_at = parse_iso_timestamp(activity_iso)
        if activity_at is None:
            logger.debug(format_pane_log("Suppressor", pane_id, f"unparseable activity: {activity_iso!r}"))
            return False

        if self._clock() - last_focus > self._stale_window:
            del self._last_focus_at[pane_id]
            logger.debug(format_pane_log("Suppressor", pane_id, "stale focus record dropped"))
            return False

        suppressed = last_focus <= activity_at <= last_focus + self._suppress_window
        if suppressed and METRICS_ENABLED:
            metrics.inc("activity.suppressed")
        return suppressed

    def forget_pane(self, pane_id: str) -> None:
        """移除 pane 的 focus 记录（pane 关闭时调用）"""
        self._last_focus_at.pop(pane_id, None)

    def tracked_panes(self) -> list[str]:
        """当前持有 focus 记录的 pane"""
        return list(self._last_focus_at)

    def last_focus_at(self, pane_id: str) -> float | None:
        return self._last_focus_at.get(pane_id)
