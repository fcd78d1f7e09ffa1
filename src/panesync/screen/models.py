"""屏幕同步的线上数据结构

字段在 JSON 中使用 camelCase（deleteCount、insertLines、paneId ...），
Python 侧使用 snake_case。
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .delta import ScreenDelta


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ScreenDeltaModel(_WireModel):
    """单个 delta 的线上格式"""

    start: int
    delete_count: int = Field(alias="deleteCount")
    insert_lines: list[str] = Field(default_factory=list, alias="insertLines")

    @classmethod
    def from_delta(cls, delta: ScreenDelta) -> "ScreenDeltaModel":
        return cls(start=delta.start, delete_count=delta.delete_count, insert_lines=list(delta.insert_lines))

    def to_delta(self) -> ScreenDelta:
        return ScreenDelta(start=self.start, delete_count=self.delete_count, insert_lines=list(self.insert_lines))


class ApiError(_WireModel):
    """错误信息"""

    code: str
    message: str


class ScreenResponse(_WireModel):
    """屏幕请求的响应

    full=True 时携带完整 screen，full=False 时携带 deltas。
    客户端用 cursor 标识自己持有的快照，下次请求时带上以获取增量。
    """

    ok: bool
    pane_id: str = Field(alias="paneId")
    mode: Literal["text"] = "text"
    captured_at: str | None = Field(default=None, alias="capturedAt")
    lines: int | None = None
    truncated: bool | None = None
    alternate_on: bool | None = Field(default=None, alias="alternateOn")
    cursor: str | None = None
    full: bool | None = None
    screen: str | None = None
    deltas: list[ScreenDeltaModel] | None = None
    error: ApiError | None = None

    def to_wire(self) -> dict:
        """序列化为 camelCase JSON 字典，省略空字段"""
        return self.model_dump(by_alias=True, exclude_none=True)
