"""有界 TTL 缓存

按 key 缓存昂贵查询（分支名、PR 是否存在）的结果。

- 容量上限：插入新 key 时若已满，先淘汰最早插入/更新的一条（FIFO）
- TTL：由调用方在读取时判断 ``now - entry.at < ttl``
- 无 single-flight：并发 miss 会各自触发一次计算
"""

from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Hashable, MutableMapping, TypeVar

from ..config import METRICS_ENABLED
from ..core.clock import Clock, system_clock
from ..telemetry import get_logger, metrics

logger = get_logger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    """缓存条目，写入后不可变"""

    value: V
    at: float  # 写入时间（clock 秒）


def set_entry_with_limit(
    mapping: MutableMapping[K, V],
    key: K,
    entry: V,
    max_entries: int,
) -> list[K]:
    """写入条目并保证 mapping 大小不超过 max_entries

    已存在的 key 先删除再插入，因此重写会刷新其淘汰顺序。

    Args:
        mapping: 按插入顺序迭代的 mapping（dict）
        key: 缓存 key
        entry: 新条目
        max_entries: 容量上限，小于 1 时按 1 处理

    Returns:
        被淘汰的 key 列表
    """
    limit = max(1, int(max_entries))
    mapping.pop(key, None)
    evicted: list[K] = []
    while len(mapping) >= limit:
        oldest = next(iter(mapping))
        del mapping[oldest]
        evicted.append(oldest)
    mapping[key] = entry
    return evicted


class BoundedTTLCache(Generic[K, V]):
    """有界 TTL 缓存

    每个实例独立持有自己的条目，时钟可注入以便测试。
    """

    def __init__(
        self,
        ttl: float,
        max_entries: int,
        clock: Clock | None = None,
        name: str = "cache",
    ):
        """初始化缓存

        Args:
            ttl: 条目有效期（秒）
            max_entries: 容量上限
            clock: 时钟函数，None 使用系统时间
            name: 缓存名（用于日志和指标标签）
        """
        self._ttl = ttl
        self._max_entries = max_entries
        self._clock = clock or system_clock
        self._name = name
        self._entries: dict[K, CacheEntry[V]] = {}

    @property
    def ttl(self) -> float:
        return self._ttl

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def get(self, key: K) -> CacheEntry[V] | None:
        """读取条目（不检查 TTL）"""
        return self._entries.get(key)

    def is_fresh(self, entry: CacheEntry[V]) -> bool:
        """条目是否仍在 TTL 内"""
        return self._clock() - entry.at < self._ttl

    def get_fresh(self, key: K) -> CacheEntry[V] | None:
        """读取未过期的条目"""
        entry = self._entries.get(key)
        if entry is not None and self.is_fresh(entry):
            return entry
        return None

    def set(self, key: K, value: V, at: float | None = None) -> CacheEntry[V]:
        """写入条目，必要时淘汰最早的一条

        Args:
            key: 缓存 key
            value: 缓存值（None 也会被缓存）
            at: 写入时间，None 使用当前时钟

        Returns:
            新写入的条目
        """
        entry = CacheEntry(value=value, at=self._clock() if at is None else at)
        evicted = set_entry_with_limit(self._entries, key, entry, self._max_entries)
        if evicted:
            logger.debug(f"[{self._name}] Evicted {len(evicted)} entries (limit={self._max_entries})")
            if METRICS_ENABLED:
                metrics.inc("cache.evicted", {"cache": self._name}, value=len(evicted))
        return entry

    async def get_or_compute(self, key: K, compute: Callable[[], Awaitable[V]]) -> V:
        """命中时返回缓存值，否则计算并写入

        计算开始前记录时间戳，与读取时的 TTL 判断使用同一时钟。
        并发 miss 不做合并，每个调用者各自计算一次。

        Args:
            key: 缓存 key
            compute: 无参异步计算函数

        Returns:
            缓存值或新计算的值
        """
        started_at = self._clock()
        entry = self._entries.get(key)
        if entry is not None and started_at - entry.at < self._ttl:
            if METRICS_ENABLED:
                metrics.inc("cache.hit", {"cache": self._name})
            return entry.value

        if METRICS_ENABLED:
            metrics.inc("cache.miss", {"cache": self._name})
        value = await compute()
        self.set(key, value, at=started_at)
        return value

    def remove(self, key: K) -> bool:
        """移除条目，返回是否存在"""
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def keys(self) -> list[K]:
        """按淘汰顺序（最早在前）返回所有 key"""
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
