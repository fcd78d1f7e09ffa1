"""PR 是否已创建（带缓存）

每个仓库根目录只拉取一次全部 PR 的 head 分支快照
（``gh pr list --state all --json headRefName``），TTL 内的分支查询都从快照回答。

同一仓库的并发 miss 共享同一个进行中的拉取（in-flight 表）。这只作用于
PR 快照；通用的 BoundedTTLCache 本身不做合并。
"""

import asyncio
import json

from .. import config
from ..cache.bounded import BoundedTTLCache
from ..core.clock import Clock
from ..core.paths import strip_trailing_separators
from ..telemetry import get_logger
from .command import CommandRunner, run_command

logger = get_logger(__name__)

# None 表示拉取失败，查询结果为"未知"
BranchSnapshot = frozenset[str] | None


def parse_pr_branches(stdout: str) -> BranchSnapshot:
    """解析 gh 输出的 JSON 数组，提取 headRefName 集合

    Returns:
        分支集合；输出为空或格式不对时返回 None
    """
    if not stdout.strip():
        return None
    try:
        parsed = json.loads(stdout)
    except json.JSONDecodeError:
        return None
    if not isinstance(parsed, list):
        return None
    branches = set()
    for entry in parsed:
        if not isinstance(entry, dict):
            continue
        head = entry.get("headRefName")
        if isinstance(head, str) and head:
            branches.add(head)
    return frozenset(branches)


class PrCreatedResolver:
    """按仓库快照回答 "该分支是否有 PR" """

    def __init__(
        self,
        ttl: float | None = None,
        max_entries: int | None = None,
        runner: CommandRunner | None = None,
        clock: Clock | None = None,
        batch_limit: int | None = None,
    ):
        self._runner = runner or run_command
        self._batch_limit = batch_limit or config.PR_CREATED_BATCH_LIMIT
        self._cache: BoundedTTLCache[str, BranchSnapshot] = BoundedTTLCache(
            ttl=config.PR_CREATED_CACHE_TTL_SECONDS if ttl is None else ttl,
            max_entries=max_entries or config.PR_CREATED_CACHE_MAX_ENTRIES,
            clock=clock,
            name="pr_created",
        )
        self._inflight: dict[str, asyncio.Task[BranchSnapshot]] = {}

    @property
    def cache(self) -> BoundedTTLCache[str, BranchSnapshot]:
        return self._cache

    @property
    def inflight_count(self) -> int:
        return len(self._inflight)

    async def resolve(self, repo_root: str | None, branch: str | None) -> bool | None:
        """查询分支是否已有 PR

        Args:
            repo_root: 仓库根目录
            branch: 分支名

        Returns:
            True/False，快照不可用或参数缺失时返回 None
        """
        repo_root = strip_trailing_separators(repo_root)
        if not repo_root or not branch:
            return None

        entry = self._cache.get_fresh(repo_root)
        if entry is not None:
            return self._lookup(entry.value, branch)

        task = self._inflight.get(repo_root)
        if task is None:
            task = asyncio.ensure_future(self._refresh(repo_root))
            self._inflight[repo_root] = task
        snapshot = await asyncio.shield(task)
        return self._lookup(snapshot, branch)

    @staticmethod
    def _lookup(snapshot: BranchSnapshot, branch: str) -> bool | None:
        if snapshot is None:
            return None
        return branch in snapshot

    async def _refresh(self, repo_root: str) -> BranchSnapshot:
        try:
            snapshot = await self._fetch(repo_root)
            self._cache.set(repo_root, snapshot)
            return snapshot
        finally:
            self._inflight.pop(repo_root, None)

    async def _fetch(self, repo_root: str) -> BranchSnapshot:
        args = [
            "gh", "pr", "list",
            "--state", "all",
            "--limit", str(self._batch_limit),
            "--json", "headRefName",
        ]
        try:
            result = await self._runner(args, cwd=repo_root, timeout=config.PR_CREATED_TIMEOUT_SECONDS)
        except Exception as e:
            logger.warning(f"[PrCreated] gh failed in {repo_root}: {e}")
            return None
        if result is None or not result.ok:
            return None
        snapshot = parse_pr_branches(result.stdout)
        if snapshot is None:
            logger.debug(f"[PrCreated] Unparseable gh output in {repo_root}")
        return snapshot
