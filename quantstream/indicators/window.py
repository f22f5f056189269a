"""
滚动窗口聚合原语

提供固定容量的 O(1) 增量数据结构，作为各指标的状态基础：

- RingBuffer: 固定容量环形缓冲区，满后覆盖最旧元素
- MonotonicWindow: 单调队列，O(1) 均摊的滚动最小/最大值
- WindowedAggregate: 环形缓冲 + 滚动 sum / mean / variance / min / max
- EMAState: 指数平滑状态 (EMA 首值种子 / Wilder 均值种子)

性能约定:
- 所有 update/push 均为 O(1)（MonotonicWindow 为均摊 O(1)）
- 内存只与窗口容量有关，与已处理的数据条数无关
"""

from __future__ import annotations

import math
from collections import deque
from typing import Deque, Generic, Iterator, List, Literal, Optional, Tuple, TypeVar

from quantstream.core.exceptions import ConfigurationError
from quantstream.messages import ErrorMessage


T = TypeVar("T")


def _check_capacity(owner: str, name: str, capacity: int) -> None:
    if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1:
        raise ConfigurationError(
            owner,
            [((name,), ErrorMessage.CAPACITY_NOT_POSITIVE.build(capacity=capacity))],
        )


class RingBuffer(Generic[T]):
    """固定容量环形缓冲区

    下标 0 为最旧元素，-1 为最新元素。

    Example:
        >>> ring = RingBuffer(3)
        >>> for x in [1, 2, 3, 4]:
        ...     evicted = ring.push(x)
        >>> list(ring), evicted
        ([2, 3, 4], 1)
    """

    __slots__ = ("capacity", "_items", "_head", "_count")

    def __init__(self, capacity: int) -> None:
        _check_capacity("RingBuffer", "capacity", capacity)
        self.capacity = capacity
        self._items: List[Optional[T]] = [None] * capacity
        self._head = 0  # 下一个写入位置
        self._count = 0

    def push(self, item: T) -> Optional[T]:
        """写入新元素

        Returns:
            缓冲区已满时返回被挤出的最旧元素，否则返回 None
        """
        evicted = None
        if self._count == self.capacity:
            evicted = self._items[self._head]
        else:
            self._count += 1

        self._items[self._head] = item
        self._head = (self._head + 1) % self.capacity
        return evicted

    @property
    def full(self) -> bool:
        return self._count == self.capacity

    @property
    def oldest(self) -> T:
        return self[0]

    @property
    def newest(self) -> T:
        return self[-1]

    def ago(self, n: int) -> T:
        """n 条之前写入的元素 (0 = 最新)"""
        return self[-1 - n]

    def clear(self) -> None:
        """清空缓冲区并释放元素引用"""
        self._items = [None] * self.capacity
        self._head = 0
        self._count = 0

    def __len__(self) -> int:
        return self._count

    def __getitem__(self, index: int) -> T:
        if index < 0:
            index += self._count
        if not 0 <= index < self._count:
            raise IndexError(f"RingBuffer 下标越界: {index}, 长度 {self._count}")
        start = (self._head - self._count) % self.capacity
        return self._items[(start + index) % self.capacity]

    def __iter__(self) -> Iterator[T]:
        start = (self._head - self._count) % self.capacity
        for offset in range(self._count):
            yield self._items[(start + offset) % self.capacity]

    def __repr__(self) -> str:
        return f"RingBuffer(capacity={self.capacity}, size={self._count})"


class MonotonicWindow:
    """单调队列：O(1) 均摊的滚动最小值或最大值

    队首始终是当前窗口内的极值。每个元素最多入队、出队各一次。

    Example:
        >>> window = MonotonicWindow(3, "min")
        >>> for x in [5.0, 3.0, 4.0, 2.0]:
        ...     window.push(x)
        >>> window.get()
        2.0
    """

    __slots__ = ("period", "mode", "_deque", "_index")

    def __init__(self, period: int, mode: Literal["min", "max"]) -> None:
        _check_capacity("MonotonicWindow", "period", period)
        if mode not in ("min", "max"):
            raise ConfigurationError(
                "MonotonicWindow",
                [(("mode",), ErrorMessage.INVALID_MODE.build(mode=mode, choices="min, max"))],
            )
        self.period = period
        self.mode = mode
        self._deque: Deque[Tuple[int, float]] = deque()
        self._index = 0

    def push(self, value: float) -> None:
        idx = self._index
        self._index += 1

        # 移出窗口外的元素
        while self._deque and self._deque[0][0] <= idx - self.period:
            self._deque.popleft()

        # 维护单调性
        if self.mode == "min":
            while self._deque and self._deque[-1][1] >= value:
                self._deque.pop()
        else:
            while self._deque and self._deque[-1][1] <= value:
                self._deque.pop()

        self._deque.append((idx, value))

    def get(self) -> Optional[float]:
        """当前窗口极值，窗口为空时返回 None"""
        if not self._deque:
            return None
        return self._deque[0][1]

    def clear(self) -> None:
        self._deque.clear()
        self._index = 0

    def __len__(self) -> int:
        return len(self._deque)


class WindowedAggregate:
    """滚动窗口聚合

    在最近 period 个观测值上维护 sum / mean / variance，
    可选维护 min / max。方差使用滑动 Welford 更新，避免大数相减的精度损失。

    增量更新会累积舍入误差，因此每挤出 period 个旧值就从窗口内容
    重新计算一次 sum / mean / M2。窗口内全部为同一个值时，
    mean 精确等于该值，variance 精确为 0.0。

    Example:
        >>> agg = WindowedAggregate(3, track_extremes=True)
        >>> for x in [1, 2, 3, 4, 5]:
        ...     agg.update(x)
        >>> agg.mean, agg.min, agg.max
        (4.0, 3.0, 5.0)
    """

    __slots__ = (
        "period", "track_extremes", "_ring", "_sum",
        "_w_mean", "_m2", "_min", "_max", "_evictions", "_run",
    )

    def __init__(self, period: int, track_extremes: bool = False) -> None:
        _check_capacity("WindowedAggregate", "period", period)
        self.period = period
        self.track_extremes = track_extremes
        self._ring: RingBuffer[float] = RingBuffer(period)
        self._sum = 0.0
        self._w_mean = 0.0
        self._m2 = 0.0
        self._min = MonotonicWindow(period, "min") if track_extremes else None
        self._max = MonotonicWindow(period, "max") if track_extremes else None
        self._evictions = 0
        self._run = 0  # 末尾连续等于最新值的个数

    def update(self, value: float) -> None:
        """加入新观测值，窗口满时挤出最旧值"""
        value = float(value)

        if self._ring and self._ring.newest == value:
            self._run += 1
        else:
            self._run = 1

        if self._ring.full:
            old = self._ring.push(value)
            self._evictions += 1
            if self._evictions % self.period == 0:
                self._resync()
            else:
                self._sum += value - old
                old_mean = self._w_mean
                self._w_mean += (value - old) / self.period
                self._m2 += (value - old) * (value - self._w_mean + old - old_mean)
        else:
            self._ring.push(value)
            self._sum += value
            delta = value - self._w_mean
            self._w_mean += delta / len(self._ring)
            self._m2 += delta * (value - self._w_mean)

        if self.track_extremes:
            self._min.push(value)
            self._max.push(value)

    def _resync(self) -> None:
        """从窗口内容重新计算 sum / mean / M2，丢弃累积误差"""
        values = list(self._ring)
        self._sum = math.fsum(values)
        self._w_mean = self._sum / len(values)
        self._m2 = math.fsum((x - self._w_mean) ** 2 for x in values)

    @property
    def _flat(self) -> bool:
        return self._run >= len(self._ring) > 0

    @property
    def count(self) -> int:
        return len(self._ring)

    @property
    def full(self) -> bool:
        """窗口是否已填满"""
        return self._ring.full

    @property
    def sum(self) -> float:
        return self._sum

    @property
    def mean(self) -> float:
        """窗口均值，空窗口返回 0.0"""
        if self._flat:
            return self._ring.newest
        count = len(self._ring)
        return self._sum / count if count else 0.0

    def variance(self, ddof: int = 0) -> float:
        """窗口方差

        Args:
            ddof: 自由度修正 (0 = 总体方差, 1 = 样本方差)

        Returns:
            方差；样本数不足 (count <= ddof) 时返回 0.0
        """
        denominator = len(self._ring) - ddof
        if denominator <= 0 or self._flat:
            return 0.0
        return max(self._m2, 0.0) / denominator

    def std(self, ddof: int = 0) -> float:
        """窗口标准差，零方差时为 0.0"""
        return math.sqrt(self.variance(ddof))

    @property
    def min(self) -> Optional[float]:
        return self._extreme(self._min)

    @property
    def max(self) -> Optional[float]:
        return self._extreme(self._max)

    def _extreme(self, window: Optional[MonotonicWindow]) -> Optional[float]:
        if window is None:
            raise RuntimeError("WindowedAggregate 未启用 track_extremes，无法读取 min/max")
        return window.get()

    @property
    def newest(self) -> float:
        return self._ring.newest

    @property
    def oldest(self) -> float:
        return self._ring.oldest

    def values(self) -> List[float]:
        """窗口内的值 (最旧在前)"""
        return list(self._ring)

    def clear(self) -> None:
        self._ring.clear()
        self._sum = 0.0
        self._w_mean = 0.0
        self._m2 = 0.0
        self._evictions = 0
        self._run = 0
        if self.track_extremes:
            self._min.clear()
            self._max.clear()

    def __len__(self) -> int:
        return len(self._ring)

    def __repr__(self) -> str:
        return f"WindowedAggregate(period={self.period}, count={len(self._ring)})"


class EMAState:
    """指数平滑状态

    两种种子方式:
        - "first": 首个值作为初值，之后 value += alpha * (x - value)，alpha 默认 2 / (period + 1)
        - "sma": 前 period 个值取累计均值作为初值，之后按 Wilder 平滑，alpha 默认 1 / period

    两种方式都在收到 period 个样本后 ready。
    """

    __slots__ = ("period", "alpha", "seed", "_value", "_count")

    def __init__(
        self,
        period: int,
        alpha: Optional[float] = None,
        seed: Literal["first", "sma"] = "first",
    ) -> None:
        _check_capacity("EMAState", "period", period)
        if seed not in ("first", "sma"):
            raise ConfigurationError(
                "EMAState",
                [(("seed",), ErrorMessage.INVALID_MODE.build(mode=seed, choices="first, sma"))],
            )
        self.period = period
        self.seed = seed
        if alpha is None:
            alpha = 2.0 / (period + 1) if seed == "first" else 1.0 / period
        self.alpha = alpha
        self._value: Optional[float] = None
        self._count = 0

    def update(self, value: float) -> float:
        """加入新样本，返回当前平滑值"""
        self._count += 1

        if self._value is None:
            self._value = float(value)
        elif self.seed == "sma" and self._count <= self.period:
            # 种子阶段：累计均值
            self._value += (value - self._value) / self._count
        else:
            self._value += self.alpha * (value - self._value)

        return self._value

    @property
    def value(self) -> Optional[float]:
        return self._value

    @property
    def count(self) -> int:
        return self._count

    @property
    def ready(self) -> bool:
        return self._count >= self.period

    def clear(self) -> None:
        self._value = None
        self._count = 0

    def __repr__(self) -> str:
        return f"EMAState(period={self.period}, seed={self.seed!r}, value={self._value})"
