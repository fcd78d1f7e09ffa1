"""批量执行器测试"""

import asyncio

import pytest

from panesync.concurrency.executor import (
    Fulfilled,
    Rejected,
    map_with_concurrency_limit,
    map_with_concurrency_limit_settled,
    pending_background_tasks,
    worker_count,
)
from panesync.telemetry import metrics


class TestWorkerCount:
    """worker 数量计算"""

    @pytest.mark.parametrize(
        "items,limit,expected",
        [
            (5, 2, 2),
            (2, 8, 2),
            (5, 0, 1),
            (5, -3, 1),
            (5, 2.9, 2),
            (0, 4, 0),
        ],
    )
    def test_worker_count(self, items, limit, expected):
        assert worker_count(items, limit) == expected


class TestMapWithConcurrencyLimit:
    """fail-fast 变体"""

    @pytest.mark.asyncio
    async def test_preserves_order(self):
        """测试结果顺序与输入一致，与完成顺序无关"""

        async def double(n, _index):
            # 越靠前的元素越晚完成
            await asyncio.sleep(0.01 * (6 - n))
            return n * 2

        result = await map_with_concurrency_limit([1, 2, 3, 4, 5], 2, double)
        assert result == [2, 4, 6, 8, 10]

    @pytest.mark.asyncio
    async def test_passes_index(self):
        """测试 mapper 收到正确的下标"""

        async def pair(item, index):
            return (index, item)

        result = await map_with_concurrency_limit(["a", "b", "c"], 3, pair)
        assert result == [(0, "a"), (1, "b"), (2, "c")]

    @pytest.mark.asyncio
    async def test_empty_input(self):
        """测试空输入直接返回空列表，不调用 mapper"""
        calls = []

        async def mapper(item, index):
            calls.append(item)

        assert await map_with_concurrency_limit([], 4, mapper) == []
        assert calls == []

    @pytest.mark.asyncio
    async def test_concurrency_bounded(self):
        """测试同时运行的 mapper 不超过 limit"""
        running = 0
        peak = 0

        async def mapper(item, index):
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1
            return item

        result = await map_with_concurrency_limit(list(range(10)), 3, mapper)
        assert result == list(range(10))
        assert peak == 3

    @pytest.mark.asyncio
    async def test_each_index_processed_once(self):
        """测试每个下标恰好处理一次"""
        seen = []

        async def mapper(item, index):
            seen.append(index)
            await asyncio.sleep(0)
            return item

        await map_with_concurrency_limit(list(range(20)), 4, mapper)
        assert sorted(seen) == list(range(20))

    @pytest.mark.asyncio
    async def test_invalid_limit_runs_one_worker(self):
        """测试 limit < 1 时按 1 个 worker 执行"""
        running = 0
        peak = 0

        async def mapper(item, index):
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0)
            running -= 1
            return item

        assert await map_with_concurrency_limit([1, 2, 3], 0, mapper) == [1, 2, 3]
        assert peak == 1

    @pytest.mark.asyncio
    async def test_failure_propagates(self):
        """测试首个异常传播给调用方"""

        async def mapper(item, index):
            if item == 3:
                raise ValueError("boom")
            return item

        with pytest.raises(ValueError, match="boom"):
            await map_with_concurrency_limit([1, 2, 3, 4], 2, mapper)
        assert metrics.get_counter("executor.errors") == 1

    @pytest.mark.asyncio
    async def test_siblings_keep_running_after_failure(self):
        """测试失败后已在执行中的兄弟任务不会被取消"""
        finished = []
        release = asyncio.Event()

        async def mapper(item, index):
            if item == "fail":
                raise RuntimeError("fail")
            await release.wait()
            finished.append(item)
            return item

        with pytest.raises(RuntimeError):
            await map_with_concurrency_limit(["slow", "fail"], 2, mapper)

        assert finished == []
        assert pending_background_tasks() >= 1

        release.set()
        for _ in range(5):
            await asyncio.sleep(0)
        assert finished == ["slow"]

    @pytest.mark.asyncio
    async def test_without_cancel_remaining_items_still_run(self):
        """测试不传 cancel 时，其他 worker 会继续领取剩余元素"""
        processed = []

        async def mapper(item, index):
            if item == 0:
                raise RuntimeError("first item fails")
            await asyncio.sleep(0)
            processed.append(item)
            return item

        with pytest.raises(RuntimeError):
            await map_with_concurrency_limit(list(range(6)), 2, mapper)

        for _ in range(20):
            await asyncio.sleep(0)
        assert sorted(processed) == [1, 2, 3, 4, 5]

    @pytest.mark.asyncio
    async def test_cancel_signal_stops_claiming(self):
        """测试传入 cancel 时，首个失败后不再领取新元素"""
        cancel = asyncio.Event()
        started = []

        async def mapper(item, index):
            started.append(item)
            if item == 1:
                await asyncio.sleep(0)
                raise RuntimeError("second item fails")
            await asyncio.sleep(0.01)
            return item

        with pytest.raises(RuntimeError):
            await map_with_concurrency_limit(list(range(6)), 2, mapper, cancel=cancel)

        assert cancel.is_set()
        await asyncio.sleep(0.05)
        # 只有失败的元素和当时已在执行的元素被领取
        assert sorted(started) == [0, 1]

    @pytest.mark.asyncio
    async def test_cancel_signal_observed_by_mapper(self):
        """测试 mapper 可以观察 cancel 协作式退出"""
        cancel = asyncio.Event()
        observed = []

        async def mapper(item, index):
            if item == "fail":
                await asyncio.sleep(0)
                raise RuntimeError("fail")
            await cancel.wait()
            observed.append(item)
            return item

        with pytest.raises(RuntimeError):
            await map_with_concurrency_limit(["long", "fail"], 2, mapper, cancel=cancel)

        await asyncio.sleep(0)
        assert observed == ["long"]

    @pytest.mark.asyncio
    async def test_preset_cancel_raises_without_calling_mapper(self):
        """测试 cancel 已被 set 时不返回占位结果，而是抛出 CancelledError"""
        cancel = asyncio.Event()
        cancel.set()
        calls = []

        async def double(n, index):
            calls.append(n)
            return n * 2

        with pytest.raises(asyncio.CancelledError):
            await map_with_concurrency_limit([1, 2, 3], 2, double, cancel=cancel)
        assert calls == []

    @pytest.mark.asyncio
    async def test_external_cancel_leaves_items_unclaimed(self):
        """测试外部 set cancel 导致部分元素未处理时抛出 CancelledError"""
        cancel = asyncio.Event()
        calls = []

        async def mapper(item, index):
            calls.append(item)
            if item == "stop":
                cancel.set()
            return item

        with pytest.raises(asyncio.CancelledError):
            await map_with_concurrency_limit(["stop", "b", "c"], 1, mapper, cancel=cancel)
        assert calls == ["stop"]
        assert metrics.get_counter("executor.errors") == 0

    @pytest.mark.asyncio
    async def test_cancel_set_after_all_items_done(self):
        """测试所有元素完成后才 set cancel 时正常返回结果"""
        cancel = asyncio.Event()

        async def mapper(item, index):
            if index == 1:
                cancel.set()
            return item

        assert await map_with_concurrency_limit([1, 2], 1, mapper, cancel=cancel) == [1, 2]


class TestMapWithConcurrencyLimitSettled:
    """settled 变体"""

    @pytest.mark.asyncio
    async def test_mixed_results(self):
        """测试 [ok, raises, ok] 得到 F, R, F 且整体不抛出"""
        error = ValueError("bad item")

        async def mapper(item, index):
            if item == "bad":
                raise error
            return item.upper()

        results = await map_with_concurrency_limit_settled(["a", "bad", "c"], 2, mapper)

        assert len(results) == 3
        assert results[0] == Fulfilled("A")
        assert results[1] == Rejected(error)
        assert results[2] == Fulfilled("C")
        assert [r.status for r in results] == ["fulfilled", "rejected", "fulfilled"]

    @pytest.mark.asyncio
    async def test_all_failures(self):
        """测试全部失败时每个元素都是 Rejected"""

        async def mapper(item, index):
            raise RuntimeError(str(index))

        results = await map_with_concurrency_limit_settled([1, 2, 3], 1, mapper)
        assert [str(r.reason) for r in results] == ["0", "1", "2"]
        assert all(isinstance(r, Rejected) for r in results)

    @pytest.mark.asyncio
    async def test_order_preserved(self):
        """测试 settled 结果顺序与输入一致"""

        async def mapper(n, index):
            await asyncio.sleep(0.005 * (4 - n))
            return n

        results = await map_with_concurrency_limit_settled([1, 2, 3], 3, mapper)
        assert [r.value for r in results] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_empty_input(self):
        """测试空输入"""

        async def mapper(item, index):
            return item

        assert await map_with_concurrency_limit_settled([], 2, mapper) == []
