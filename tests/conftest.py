"""Pytest 配置"""

import pytest

from panesync.telemetry import metrics


class FakeClock:
    """可手动推进的时钟（秒）"""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def anyio_backend():
    """指定 anyio 只使用 asyncio backend"""
    return "asyncio"


@pytest.fixture
def clock():
    """从 1000 秒开始的假时钟"""
    return FakeClock(1000.0)


@pytest.fixture(autouse=True)
def reset_metrics():
    """每次测试前重置指标"""
    metrics.reset()
    yield
    metrics.reset()
