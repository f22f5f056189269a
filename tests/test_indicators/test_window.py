# tests/test_indicators/test_window.py
"""滚动窗口原语测试"""

import random
import statistics

import pytest

from quantstream.core.exceptions import ConfigurationError
from quantstream.indicators.window import EMAState, MonotonicWindow, RingBuffer, WindowedAggregate


class TestRingBuffer:
    """RingBuffer 测试"""

    def test_push_returns_evicted(self):
        """测试满容量后返回被挤出的元素"""
        ring = RingBuffer(3)
        evicted = [ring.push(x) for x in [1, 2, 3, 4, 5]]

        assert evicted == [None, None, None, 1, 2]
        assert list(ring) == [3, 4, 5]

    def test_indexing(self):
        """测试下标 (0 为最旧, -1 为最新)"""
        ring = RingBuffer(3)
        for x in [1, 2, 3, 4]:
            ring.push(x)

        assert ring[0] == 2
        assert ring[-1] == 4
        assert ring.oldest == 2
        assert ring.newest == 4
        assert ring.ago(0) == 4
        assert ring.ago(2) == 2

    def test_index_out_of_range(self):
        """测试下标越界"""
        ring = RingBuffer(3)
        ring.push(1)
        with pytest.raises(IndexError):
            ring[1]

    def test_full_and_len(self):
        """测试 full 与长度"""
        ring = RingBuffer(2)
        ring.push(1)
        assert not ring.full
        ring.push(2)
        assert ring.full
        assert len(ring) == 2

    def test_clear(self):
        """测试清空"""
        ring = RingBuffer(2)
        ring.push(1)
        ring.clear()

        assert len(ring) == 0
        assert list(ring) == []

    @pytest.mark.parametrize("capacity", [0, -1, 2.5, True])
    def test_invalid_capacity(self, capacity):
        """测试非法容量"""
        with pytest.raises(ConfigurationError):
            RingBuffer(capacity)


class TestMonotonicWindow:
    """MonotonicWindow 测试"""

    def test_rolling_min(self):
        """测试滚动最小值"""
        window = MonotonicWindow(3, "min")
        results = []
        for x in [5.0, 3.0, 4.0, 6.0, 7.0, 1.0]:
            window.push(x)
            results.append(window.get())

        assert results == [5.0, 3.0, 3.0, 3.0, 4.0, 1.0]

    def test_matches_brute_force(self):
        """测试与暴力计算一致"""
        rng = random.Random(7)
        values = [rng.uniform(-10, 10) for _ in range(200)]
        low, high = MonotonicWindow(7, "min"), MonotonicWindow(7, "max")

        for i, x in enumerate(values):
            low.push(x)
            high.push(x)
            recent = values[max(0, i - 6):i + 1]
            assert low.get() == min(recent)
            assert high.get() == max(recent)

    def test_empty_returns_none(self):
        """测试空窗口返回 None"""
        assert MonotonicWindow(3, "max").get() is None

    def test_invalid_mode(self):
        """测试非法模式"""
        with pytest.raises(ConfigurationError) as exc_info:
            MonotonicWindow(3, "median")
        assert exc_info.value.fields == ("mode",)


class TestWindowedAggregate:
    """WindowedAggregate 测试"""

    def test_sum_and_mean(self):
        """测试滚动和与均值"""
        agg = WindowedAggregate(3)
        for x in [1, 2, 3, 4, 5]:
            agg.update(x)

        assert agg.sum == 12.0
        assert agg.mean == 4.0
        assert agg.values() == [3.0, 4.0, 5.0]

    def test_variance_matches_statistics(self):
        """测试方差与 statistics 模块一致"""
        rng = random.Random(11)
        values = [rng.gauss(100, 5) for _ in range(300)]
        agg = WindowedAggregate(20)

        for i, x in enumerate(values):
            agg.update(x)
            recent = values[max(0, i - 19):i + 1]
            if len(recent) >= 2:
                assert agg.variance() == pytest.approx(statistics.pvariance(recent), rel=1e-9)
                assert agg.std(ddof=1) == pytest.approx(statistics.stdev(recent), rel=1e-9)

    def test_min_max(self):
        """测试启用极值后的 min / max"""
        agg = WindowedAggregate(3, track_extremes=True)
        for x in [1, 2, 3, 4, 5]:
            agg.update(x)

        assert agg.min == 3.0
        assert agg.max == 5.0

    def test_min_without_tracking_raises(self):
        """测试未启用极值时读取 min 报错"""
        agg = WindowedAggregate(3)
        agg.update(1)
        with pytest.raises(RuntimeError):
            agg.min

    def test_empty_window(self):
        """测试空窗口的兜底值"""
        agg = WindowedAggregate(3)

        assert agg.mean == 0.0
        assert agg.variance() == 0.0
        assert agg.count == 0

    def test_insufficient_samples_for_ddof(self):
        """测试样本数不超过 ddof 时方差为 0"""
        agg = WindowedAggregate(3)
        agg.update(5.0)
        assert agg.variance(ddof=1) == 0.0

    def test_constant_series_has_zero_std(self):
        """测试常数序列标准差精确为 0"""
        agg = WindowedAggregate(5)
        for _ in range(20):
            agg.update(3.7)

        assert agg.std() == 0.0
        assert agg.mean == pytest.approx(3.7)

    def test_constant_after_volatile_history(self):
        """测试长段大幅波动之后的常数窗口标准差精确为 0"""
        rng = random.Random(3)
        agg = WindowedAggregate(5)
        for _ in range(10_000):
            agg.update(rng.uniform(-1e6, 1e6))
        for _ in range(5):
            agg.update(3.0)

        assert agg.std() == 0.0
        assert agg.std(ddof=1) == 0.0
        assert agg.mean == 3.0

    def test_variance_after_volatile_history(self):
        """测试长段大幅波动之后小幅窗口的方差仍然准确"""
        rng = random.Random(5)
        agg = WindowedAggregate(5)
        for _ in range(10_000):
            agg.update(rng.uniform(-1e6, 1e6))
        for x in [1.0, 2.0, 3.0, 4.0, 5.0]:
            agg.update(x)

        assert agg.variance() == pytest.approx(2.0, rel=1e-9)
        assert agg.mean == pytest.approx(3.0, rel=1e-12)
        assert agg.sum == pytest.approx(15.0, rel=1e-12)

    def test_partial_run_is_not_flat(self):
        """测试窗口内只有末尾几个值相同时方差不为 0"""
        agg = WindowedAggregate(4)
        for x in [1.0, 2.0, 2.0, 2.0]:
            agg.update(x)

        assert agg.variance() == pytest.approx(statistics.pvariance([1.0, 2.0, 2.0, 2.0]))
        agg.update(2.0)
        assert agg.variance() == 0.0

    def test_memory_bounded(self):
        """测试窗口长度与输入条数无关"""
        agg = WindowedAggregate(20, track_extremes=True)
        for i in range(10_000):
            agg.update(i)

        assert agg.count == 20
        assert agg.full
        assert agg.oldest == 9980.0
        assert agg.newest == 9999.0

    def test_clear(self):
        """测试清空后重新累积"""
        agg = WindowedAggregate(3, track_extremes=True)
        for x in [1, 2, 3]:
            agg.update(x)
        agg.clear()
        agg.update(10)

        assert agg.count == 1
        assert agg.mean == 10.0
        assert agg.max == 10.0


class TestEMAState:
    """EMAState 测试"""

    def test_first_seed(self):
        """测试首值种子"""
        ema = EMAState(3)
        results = [ema.update(x) for x in [1, 2, 3]]

        assert ema.alpha == 0.5
        assert results == [1.0, 1.5, 2.25]
        assert ema.ready

    def test_sma_seed(self):
        """测试均值种子 (Wilder)"""
        ema = EMAState(3, seed="sma")
        results = [ema.update(x) for x in [1, 2, 3, 4]]

        assert results[:3] == [1.0, 1.5, 2.0]
        assert results[3] == pytest.approx(2.0 + (4 - 2.0) / 3)

    def test_ready_after_period(self):
        """测试收到 period 个样本后就绪"""
        ema = EMAState(4)
        for x in [1, 2, 3]:
            ema.update(x)
        assert not ema.ready
        ema.update(4)
        assert ema.ready

    def test_custom_alpha(self):
        """测试自定义平滑系数"""
        ema = EMAState(2, alpha=0.1)
        ema.update(0)
        assert ema.update(10) == pytest.approx(1.0)

    def test_invalid_seed(self):
        """测试非法种子方式"""
        with pytest.raises(ConfigurationError):
            EMAState(3, seed="median")

    def test_clear(self):
        """测试重置"""
        ema = EMAState(2)
        ema.update(5)
        ema.clear()

        assert ema.value is None
        assert ema.count == 0
