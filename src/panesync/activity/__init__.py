"""Activity suppression module."""

from .suppressor import ActivitySuppressor

__all__ = ["ActivitySuppressor"]
