"""HTTP endpoints"""

from .receiver import CapturedScreen, SyncReceiver

__all__ = ["CapturedScreen", "SyncReceiver"]
