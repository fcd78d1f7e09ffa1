"""Diff-highlight mask engine."""

from .claude_diff import LineKind, apply_mask, build_mask, classify_line, render_claude_diff_line

__all__ = [
    "LineKind",
    "classify_line",
    "build_mask",
    "apply_mask",
    "render_claude_diff_line",
]
