"""Concurrency-limited batch executor."""

from .executor import (
    Fulfilled,
    Rejected,
    SettledResult,
    map_with_concurrency_limit,
    map_with_concurrency_limit_settled,
)

__all__ = [
    "Fulfilled",
    "Rejected",
    "SettledResult",
    "map_with_concurrency_limit",
    "map_with_concurrency_limit_settled",
]
