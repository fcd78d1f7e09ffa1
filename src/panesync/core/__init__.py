"""Core module - clock and path utilities"""

from .clock import Clock, parse_iso_timestamp, system_clock
from .paths import strip_trailing_separators

__all__ = [
    "Clock",
    "system_clock",
    "parse_iso_timestamp",
    "strip_trailing_separators",
]
