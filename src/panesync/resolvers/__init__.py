"""Cached per-pane lookups (branch name, PR existence)."""

from .command import CommandResult, CommandRunner, run_command
from .pr_created import PrCreatedResolver, parse_pr_branches
from .repo_branch import RepoBranchResolver

__all__ = [
    "CommandResult",
    "CommandRunner",
    "run_command",
    "RepoBranchResolver",
    "PrCreatedResolver",
    "parse_pr_branches",
]
