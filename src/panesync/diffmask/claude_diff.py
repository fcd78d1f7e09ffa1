"""Diff 高亮遮罩

coding agent 在终端里展示的代码 diff 形如：

      12 -    old_line()
      12 +    new_line()
             continuation of a wrapped line
    ...

两遍处理：
1. build_mask: 找出连续的 diff 块，每行一个 bool
2. apply_mask: 按遮罩渲染 HTML，带 +/- 对应的样式 class

块由以下行组成，遇到其他行即结束：
- marker 行：行号 + "+"/"-"
- 行号上下文行：行号但无 marker（块内至少有一个 marker 行才算 diff）
- 分隔行：``...``
- 续行：缩进且非空，接在块内其他行之后
"""

import html
import re
from enum import Enum

from .. import config

_MARKER_RE = re.compile(r"^(\s*\d+\s+)([+-])(.*)$")
_NUMBERED_RE = re.compile(r"^(\s*\d+)(\s.*)?$")
_CONTINUATION_RE = re.compile(r"^\s+\S")
_SEPARATORS = {"...", "…"}


class LineKind(Enum):
    """diff 块内的行类型"""

    MARKER = "marker"
    NUMBERED = "numbered"
    SEPARATOR = "separator"
    CONTINUATION = "continuation"


def classify_line(line: str) -> LineKind | None:
    """判断行类型，不属于 diff 块的行返回 None"""
    if _MARKER_RE.match(line):
        return LineKind.MARKER
    if _NUMBERED_RE.match(line):
        return LineKind.NUMBERED
    if line.strip() in _SEPARATORS:
        return LineKind.SEPARATOR
    if _CONTINUATION_RE.match(line):
        return LineKind.CONTINUATION
    return None


_BLOCK_STARTS = {LineKind.MARKER, LineKind.NUMBERED}


def build_mask(lines: list[str]) -> list[bool]:
    """标记属于 diff 块的行

    Args:
        lines: 终端行（纯文本）

    Returns:
        与 lines 等长的 bool 列表
    """
    mask = [False] * len(lines)
    kinds = [classify_line(line) for line in lines]
    i = 0
    while i < len(lines):
        if kinds[i] not in _BLOCK_STARTS:
            i += 1
            continue
        start = i
        has_marker = False
        while i < len(lines) and kinds[i] is not None:
            has_marker = has_marker or kinds[i] is LineKind.MARKER
            i += 1
        if has_marker:
            mask[start:i] = [True] * (i - start)
    return mask


def _span(css_class: str, text: str) -> str:
    return f'<span class="{css_class}">{html.escape(text, quote=False)}</span>'


def render_masked_line(
    line: str,
    masked: bool,
    marker_class: str | None,
) -> tuple[str | None, str | None]:
    """渲染单行

    Args:
        line: 原始行
        masked: 是否属于 diff 块
        marker_class: 当前块内最近一次 marker 的样式，None 表示尚无

    Returns:
        (新的 marker_class, 渲染结果)；不在块内时渲染结果为 None 且样式重置
    """
    if not masked:
        return None, None

    neutral = config.DIFF_NEUTRAL_CLASS
    marker = _MARKER_RE.match(line)
    if marker:
        prefix, sign, body = marker.groups()
        css_class = config.DIFF_ADDITION_CLASS if sign == "+" else config.DIFF_REMOVAL_CLASS
        return css_class, _span(neutral, prefix) + _span(css_class, sign + body)

    numbered = _NUMBERED_RE.match(line)
    if numbered:
        prefix, rest = numbered.group(1), numbered.group(2) or ""
        return marker_class, _span(neutral, prefix) + _span(marker_class or neutral, rest)

    return marker_class, _span(marker_class or neutral, line)


def apply_mask(lines: list[str], mask: list[bool]) -> list[str | None]:
    """按遮罩渲染

    样式只在连续的块内继承，遮罩为 False 的行会重置样式。
    mask 比 lines 短时，多出的行视为不在块内。

    Returns:
        与 lines 等长，块内为 HTML 字符串，块外为 None
    """
    rendered: list[str | None] = []
    marker_class: str | None = None
    for index, line in enumerate(lines):
        masked = index < len(mask) and mask[index]
        marker_class, output = render_masked_line(line, masked, marker_class)
        rendered.append(output)
    return rendered


def render_claude_diff_line(line: str) -> str | None:
    """单行渲染：先建遮罩再渲染，不是 diff 行时返回 None"""
    return apply_mask([line], build_mask([line]))[0]
