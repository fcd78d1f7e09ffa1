"""并发受限的批量执行器

固定数量的 worker 从共享游标领取下一个未处理的下标，对每个元素调用
``mapper(item, index)``，结果写回预分配列表的对应位置，保证输出顺序与
输入顺序一致，与完成顺序无关。

两个变体：
- map_with_concurrency_limit: fail-fast，首个异常向调用方传播
- map_with_concurrency_limit_settled: 每个元素得到 Fulfilled / Rejected，整体不抛出

fail-fast 时已在执行中的兄弟任务不会被取消，它们在后台跑完，结果被丢弃。
需要提前停止时传入 ``cancel``（asyncio.Event）：首个失败会 set 它，worker
不再领取新下标，mapper 也可以自行检查它来协作式退出。
"""

import asyncio
import itertools
import math
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Sequence, TypeVar, Union

from ..config import METRICS_ENABLED
from ..telemetry import get_logger, metrics

logger = get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")

Mapper = Callable[[T, int], Awaitable[R]]

# fail-fast 后仍在运行的 worker，保持引用直到完成
_background_tasks: set[asyncio.Task] = set()


@dataclass(frozen=True)
class Fulfilled(Generic[R]):
    """成功结果"""

    value: R

    @property
    def status(self) -> str:
        return "fulfilled"


@dataclass(frozen=True)
class Rejected:
    """失败结果"""

    reason: BaseException

    @property
    def status(self) -> str:
        return "rejected"


SettledResult = Union[Fulfilled[R], Rejected]


def worker_count(item_count: int, limit: float) -> int:
    """实际启动的 worker 数：min(元素数, max(1, floor(limit)))"""
    if item_count <= 0:
        return 0
    return min(item_count, max(1, math.floor(limit)))


async def map_with_concurrency_limit(
    items: Sequence[T],
    limit: float,
    mapper: Mapper[T, R],
    cancel: asyncio.Event | None = None,
) -> list[R]:
    """以受限并发对 items 逐个调用 mapper，结果按输入顺序返回

    Args:
        items: 有序输入
        limit: 并发上限（向下取整，至少为 1）
        mapper: 异步函数 (item, index) -> result
        cancel: 可选取消信号，首个失败时被 set，worker 随后不再领取新元素

    Returns:
        与 items 等长、顺序一致的结果列表

    Raises:
        Exception: 首个失败的 mapper 抛出的异常
        asyncio.CancelledError: cancel 被外部 set，仍有元素未处理
    """
    if not items:
        return []

    total = len(items)
    results: list[Any] = [None] * total
    # next() 读取并递增是一个不可分割的操作
    cursor = itertools.count()
    completed = 0

    async def worker() -> None:
        nonlocal completed
        while cancel is None or not cancel.is_set():
            index = next(cursor)
            if index >= total:
                return
            try:
                results[index] = await mapper(items[index], index)
                completed += 1
            except Exception as e:
                logger.debug(f"[Executor] Item {index} failed: {e!r}")
                if METRICS_ENABLED:
                    metrics.inc("executor.errors")
                if cancel is not None:
                    cancel.set()
                raise

    tasks = [asyncio.ensure_future(worker()) for _ in range(worker_count(total, limit))]
    try:
        await asyncio.gather(*tasks)
    except Exception:
        for task in tasks:
            if not task.done():
                _background_tasks.add(task)
                task.add_done_callback(_background_tasks.discard)
        raise

    if completed < total:
        logger.debug(f"[Executor] Cancelled with {completed}/{total} items done")
        raise asyncio.CancelledError(f"cancelled after {completed} of {total} items")
    return results


async def map_with_concurrency_limit_settled(
    items: Sequence[T],
    limit: float,
    mapper: Mapper[T, R],
) -> list[SettledResult[R]]:
    """与 map_with_concurrency_limit 调度相同，但每个元素的异常被捕获为 Rejected

    Returns:
        与 items 等长、顺序一致的 Fulfilled / Rejected 列表
    """

    async def settle(item: T, index: int) -> SettledResult[R]:
        try:
            return Fulfilled(await mapper(item, index))
        except Exception as e:
            return Rejected(e)

    return await map_with_concurrency_limit(items, limit, settle)


def pending_background_tasks() -> int:
    """fail-fast 之后仍在后台运行的 worker 数（用于测试与调试）"""
    return len(_background_tasks)
