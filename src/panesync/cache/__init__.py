"""Bounded TTL cache module."""

from .bounded import BoundedTTLCache, CacheEntry, set_entry_with_limit

__all__ = [
    "BoundedTTLCache",
    "CacheEntry",
    "set_entry_with_limit",
]
