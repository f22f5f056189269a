# tests/conftest.py
"""pytest 全局配置"""

import random
from typing import List

import pytest

from quantstream.data import Bar


def pytest_addoption(parser):
    """添加自定义命令行选项"""
    parser.addoption(
        "--run-benchmark",
        action="store_true",
        default=False,
        help="运行性能基准测试 (耗时较长)"
    )


def pytest_configure(config):
    """添加自定义标记"""
    config.addinivalue_line(
        "markers", "benchmark: 性能基准测试"
    )


def pytest_collection_modifyitems(config, items):
    """根据命令行选项跳过测试"""
    if not config.getoption("--run-benchmark"):
        skip_benchmark = pytest.mark.skip(reason="需要 --run-benchmark 参数")
        for item in items:
            if "benchmark" in item.keywords:
                item.add_marker(skip_benchmark)


def generate_bars(count: int, seed: int = 42, start: float = 100.0) -> List[Bar]:
    """生成随机游走 K 线 (独立的 Random 实例，不影响全局种子)"""
    rng = random.Random(seed)
    bars = []
    close = start
    for i in range(count):
        open_ = close
        close = max(1.0, open_ * (1 + rng.gauss(0, 0.01)))
        high = max(open_, close) * (1 + abs(rng.gauss(0, 0.005)))
        low = min(open_, close) * (1 - abs(rng.gauss(0, 0.005)))
        bars.append(Bar(
            timestamp=1699000000000 + i * 60_000,
            open=open_,
            high=high,
            low=low,
            close=close,
            volume=rng.uniform(10, 1000),
        ))
    return bars


@pytest.fixture
def bars() -> List[Bar]:
    """300 根随机游走 K 线"""
    return generate_bars(300)


@pytest.fixture
def make_bars():
    """按需生成 K 线的工厂"""
    return generate_bars
