"""Per-pane monitoring steps."""

from .repo_status import PaneRepoStatus, PaneTarget, RepoStatusCollector

__all__ = [
    "PaneRepoStatus",
    "PaneTarget",
    "RepoStatusCollector",
]
