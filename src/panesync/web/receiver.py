"""HTTP 接收器 - focus / activity / 屏幕同步端点"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Awaitable, Callable

from pydantic import BaseModel

from .. import config
from ..screen.models import ApiError, ScreenResponse
from ..telemetry import format_pane_log, get_logger

if TYPE_CHECKING:
    from fastapi import FastAPI

    from ..activity.suppressor import ActivitySuppressor
    from ..screen.store import ScreenSnapshotStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class CapturedScreen:
    """外部捕获的屏幕文本"""

    screen: str
    alternate_on: bool = False
    truncated: bool | None = None


# (pane_id, line_count) -> CapturedScreen，pane 不存在时返回 None
ScreenCapture = Callable[[str, int], Awaitable[CapturedScreen | None]]


class FocusResponse(BaseModel):
    """focus 响应"""

    success: bool


class ActivityRequest(BaseModel):
    """activity 请求体"""

    at: str | None = None  # ISO-8601 activity 时间


class ActivityResponse(BaseModel):
    """activity 响应"""

    suppressed: bool


class ScreenRequest(BaseModel):
    """屏幕请求体"""

    lines: int | None = None
    cursor: str | None = None


class SyncReceiver:
    """HTTP 同步接收器

    提供 `/api/pane/{pane_id}/...` 端点，转发到 suppressor 与快照存储。
    """

    def __init__(
        self,
        suppressor: "ActivitySuppressor",
        store: "ScreenSnapshotStore",
        capture: ScreenCapture,
    ):
        self.suppressor = suppressor
        self.store = store
        self._capture = capture

    @staticmethod
    def clamp_lines(lines: int | None) -> int:
        """请求行数限制在 [1, SCREEN_MAX_LINES]"""
        if lines is None:
            return config.SCREEN_DEFAULT_LINES
        return max(1, min(lines, config.SCREEN_MAX_LINES))

    async def request_screen(self, pane_id: str, request: ScreenRequest) -> ScreenResponse:
        """捕获屏幕并构建全量或增量响应"""
        line_count = self.clamp_lines(request.lines)
        captured = await self._capture(pane_id, line_count)
        if captured is None:
            logger.debug(format_pane_log("SyncReceiver", pane_id, "screen capture unavailable"))
            return ScreenResponse(
                ok=False,
                pane_id=pane_id,
                lines=line_count,
                error=ApiError(code="NOT_FOUND", message=f"pane not found: {pane_id}"),
            )
        return self.store.build_text_response(
            pane_id,
            line_count,
            captured.screen,
            alternate_on=captured.alternate_on,
            truncated=captured.truncated,
            cursor=request.cursor,
        )

    def setup_routes(self, app: "FastAPI") -> None:
        """设置 API 路由"""

        @app.post("/api/pane/{pane_id}/focus", response_model=FocusResponse)
        async def mark_focus(pane_id: str):
            """记录 pane focus"""
            self.suppressor.mark_pane_focus(pane_id)
            return FocusResponse(success=True)

        @app.post("/api/pane/{pane_id}/activity", response_model=ActivityResponse)
        async def check_activity(pane_id: str, request: ActivityRequest):
            """判断 activity 是否应被抑制"""
            suppressed = self.suppressor.should_suppress_activity(pane_id, request.at)
            return ActivityResponse(suppressed=suppressed)

        @app.post(
            "/api/pane/{pane_id}/screen",
            response_model=ScreenResponse,
            response_model_exclude_none=True,
        )
        async def screen(pane_id: str, request: ScreenRequest):
            """获取屏幕（全量或增量）"""
            return await self.request_screen(pane_id, request)

        @app.get("/api/sync/status")
        async def sync_status():
            """获取同步状态"""
            return {"focused_panes": self.suppressor.tracked_panes()}
