"""分支名查询（带缓存）

对 pane 的工作目录执行 ``git branch --show-current``，结果按规范化路径缓存。
失败、超时、detached HEAD 都返回 None，并且 None 同样会被缓存到 TTL 结束。
"""

from .. import config
from ..cache.bounded import BoundedTTLCache
from ..core.clock import Clock
from ..core.paths import strip_trailing_separators
from ..telemetry import get_logger
from .command import CommandRunner, run_command

logger = get_logger(__name__)


class RepoBranchResolver:
    """带 TTL 缓存的分支名查询"""

    def __init__(
        self,
        ttl: float | None = None,
        max_entries: int | None = None,
        runner: CommandRunner | None = None,
        clock: Clock | None = None,
    ):
        self._runner = runner or run_command
        self._cache: BoundedTTLCache[str, str | None] = BoundedTTLCache(
            ttl=config.REPO_BRANCH_CACHE_TTL_SECONDS if ttl is None else ttl,
            max_entries=max_entries or config.REPO_BRANCH_CACHE_MAX_ENTRIES,
            clock=clock,
            name="repo_branch",
        )

    @property
    def cache(self) -> BoundedTTLCache[str, str | None]:
        return self._cache

    async def resolve(self, cwd: str | None) -> str | None:
        """查询工作目录当前分支

        Args:
            cwd: pane 工作目录，"/repo/" 与 "/repo" 共用缓存

        Returns:
            分支名，无法获取时返回 None
        """
        normalized = strip_trailing_separators(cwd)
        if normalized is None:
            return None
        return await self._cache.get_or_compute(normalized, lambda: self._fetch(normalized))

    async def _fetch(self, cwd: str) -> str | None:
        try:
            result = await self._runner(
                ["git", "branch", "--show-current"],
                cwd=cwd,
                timeout=config.REPO_BRANCH_TIMEOUT_SECONDS,
            )
        except Exception as e:
            logger.warning(f"[RepoBranch] git failed in {cwd}: {e}")
            return None
        if result is None or not result.ok:
            return None
        branch = result.stdout.strip()
        return branch or None
