"""Repo 状态收集

轮询器每轮对所有 pane 查询分支名与 PR 状态：
- 通过批量执行器限制并发
- 单个 pane 失败降级为未知状态，不影响其他 pane
"""

from dataclasses import dataclass
from typing import Sequence

from .. import config
from ..concurrency.executor import Rejected, map_with_concurrency_limit_settled
from ..resolvers.pr_created import PrCreatedResolver
from ..resolvers.repo_branch import RepoBranchResolver
from ..telemetry import format_pane_log, get_logger, metrics

logger = get_logger(__name__)


@dataclass(frozen=True)
class PaneTarget:
    """待查询的 pane"""

    pane_id: str
    cwd: str | None
    repo_root: str | None = None


@dataclass(frozen=True)
class PaneRepoStatus:
    """pane 的 repo 状态，None 表示未知"""

    branch: str | None = None
    pr_created: bool | None = None

    def to_dict(self) -> dict:
        return {"branch": self.branch, "prCreated": self.pr_created}


UNKNOWN_STATUS = PaneRepoStatus()


class RepoStatusCollector:
    """批量收集 pane 的分支与 PR 状态"""

    def __init__(
        self,
        branch_resolver: RepoBranchResolver,
        pr_resolver: PrCreatedResolver,
        concurrency: int | None = None,
    ):
        self._branch_resolver = branch_resolver
        self._pr_resolver = pr_resolver
        self._concurrency = concurrency or config.REPO_STATUS_CONCURRENCY

    async def collect_one(self, target: PaneTarget) -> PaneRepoStatus:
        """查询单个 pane"""
        branch = await self._branch_resolver.resolve(target.cwd)
        pr_created = await self._pr_resolver.resolve(target.repo_root or target.cwd, branch)
        return PaneRepoStatus(branch=branch, pr_created=pr_created)

    async def collect(self, targets: Sequence[PaneTarget]) -> dict[str, PaneRepoStatus]:
        """查询所有 pane

        Args:
            targets: pane 列表

        Returns:
            {pane_id: PaneRepoStatus}，顺序与输入一致
        """
        results = await map_with_concurrency_limit_settled(
            targets,
            self._concurrency,
            lambda target, _index: self.collect_one(target),
        )

        statuses: dict[str, PaneRepoStatus] = {}
        for target, result in zip(targets, results):
            if isinstance(result, Rejected):
                logger.warning(
                    format_pane_log("RepoStatus", target.pane_id, f"lookup failed: {result.reason!r}")
                )
                if config.METRICS_ENABLED:
                    metrics.inc("repo_status.errors")
                statuses[target.pane_id] = UNKNOWN_STATUS
            else:
                statuses[target.pane_id] = result.value
        return statuses
