# quantstream/indicators/advanced.py
"""高级技术指标

包含趋势型 (ADX) 和动量型 (CCI, Stochastic) 指标，输入均为 (high, low, close)。
"""

from __future__ import annotations
from typing import List, Optional

from .base import BaseIndicator, StochasticResult
from .params import ImplementationHint, PADX, PCCI, PStochastic
from .window import MonotonicWindow, WindowedAggregate


def _directional_movement(
    high: float, low: float, prev_high: float, prev_low: float, prev_close: float
) -> tuple[float, float, float]:
    """计算 (TR, +DM, -DM)"""
    tr = max(high - low, abs(high - prev_close), abs(low - prev_close))

    up_move = high - prev_high
    down_move = prev_low - low

    plus_dm = up_move if up_move > down_move and up_move > 0 else 0.0
    minus_dm = down_move if down_move > up_move and down_move > 0 else 0.0
    return tr, plus_dm, minus_dm


def _dx(tr_sum: float, plus_dm_sum: float, minus_dm_sum: float) -> float:
    # TR 总和或 DI 总和为 0 时 DX 为 0
    if tr_sum <= 0:
        return 0.0
    plus_di = 100 * plus_dm_sum / tr_sum
    minus_di = 100 * minus_dm_sum / tr_sum
    di_sum = plus_di + minus_di
    if di_sum <= 0:
        return 0.0
    return 100 * abs(plus_di - minus_di) / di_sum


def _append_bounded(values: List[float], value: float, size: int) -> None:
    """追加后只保留最近 size 个值"""
    values.append(value)
    if len(values) > size:
        values.pop(0)


def _stochastic_k(close: float, highest: float, lowest: float) -> float:
    # 区间为 0 时 %K 为 0
    if highest == lowest:
        return 0.0
    return 100 * (close - lowest) / (highest - lowest)


class ADX(BaseIndicator[PADX, float]):
    """平均趋向指标 (Average Directional Index)

    用于衡量趋势的强度，不区分方向。
    ADX > 25 表示强趋势，ADX < 20 表示弱趋势或震荡。

    +DI / -DI 取最近 period 个 DM 与 TR 的滚动和之比，ADX 为最近 period 个 DX 的均值。

    Example:
        >>> adx = ADX(PADX(14))
        >>> for bar in bars:
        ...     result = adx.update(bar.high, bar.low, bar.close)
        ...     if result:
        ...         print(f"ADX: {result:.2f}")
    """

    def __init__(self, params: Optional[PADX] = None) -> None:
        super().__init__(params or PADX())
        period = self.params.period
        self._prev: Optional[tuple[float, float, float]] = None
        self._tr = WindowedAggregate(period)
        self._plus_dm = WindowedAggregate(period)
        self._minus_dm = WindowedAggregate(period)
        self._dx = WindowedAggregate(period)

    def _update(self, high: float, low: float, close: float) -> Optional[float]:
        if self._prev is None:
            self._prev = (high, low, close)
            return None

        tr, plus_dm, minus_dm = _directional_movement(high, low, *self._prev)
        self._prev = (high, low, close)

        self._tr.update(tr)
        self._plus_dm.update(plus_dm)
        self._minus_dm.update(minus_dm)

        if not self._tr.full:
            return None

        self._dx.update(_dx(self._tr.sum, self._plus_dm.sum, self._minus_dm.sum))

        if not self._dx.full:
            return None
        return self._dx.mean

    def clear(self) -> None:
        super().clear()
        self._prev = None
        self._tr.clear()
        self._plus_dm.clear()
        self._minus_dm.clear()
        self._dx.clear()


class Stochastic(BaseIndicator[PStochastic, StochasticResult]):
    """随机指标 (Stochastic Oscillator)

    用于判断超买超卖状态。
    %K > overbought 超买，%K < oversold 超卖。

    最高价 / 最低价通过单调队列维护，%D 为最近 d_period 个 %K 的均值。

    Example:
        >>> stoch = Stochastic(PStochastic(14, 3))
        >>> for bar in bars:
        ...     result = stoch.update(bar.high, bar.low, bar.close)
        ...     if result:
        ...         print(f"K: {result.k:.2f}, D: {result.d:.2f}")
    """

    def __init__(self, params: Optional[PStochastic] = None) -> None:
        super().__init__(params or PStochastic())
        self._highest = MonotonicWindow(self.params.k_period, "max")
        self._lowest = MonotonicWindow(self.params.k_period, "min")
        self._k_values = WindowedAggregate(self.params.d_period)
        self._seen = 0

    def _update(self, high: float, low: float, close: float) -> Optional[StochasticResult]:
        self._highest.push(high)
        self._lowest.push(low)
        self._seen += 1

        if self._seen < self.params.k_period:
            return None

        k = _stochastic_k(close, self._highest.get(), self._lowest.get())
        self._k_values.update(k)

        if not self._k_values.full:
            return None
        return StochasticResult(k=k, d=self._k_values.mean)

    def clear(self) -> None:
        super().clear()
        self._highest.clear()
        self._lowest.clear()
        self._k_values.clear()
        self._seen = 0


class CCI(BaseIndicator[PCCI, float]):
    """顺势指标 (Commodity Channel Index)

    用于判断价格偏离均值的程度。
    CCI > 100 超买，CCI < -100 超卖。

    平均绝对偏差需要遍历窗口，单根 K 线成本为 O(period)，与历史长度无关。

    Example:
        >>> cci = CCI(PCCI(20))
        >>> for bar in bars:
        ...     result = cci.update(bar.high, bar.low, bar.close)
    """

    def __init__(self, params: Optional[PCCI] = None) -> None:
        super().__init__(params or PCCI())
        self._tp = WindowedAggregate(self.params.period)

    def _update(self, high: float, low: float, close: float) -> Optional[float]:
        # 典型价格 (Typical Price)
        tp = (high + low + close) / 3
        self._tp.update(tp)

        if not self._tp.full:
            return None

        tp_mean = self._tp.mean
        mad = sum(abs(x - tp_mean) for x in self._tp.values()) / self.params.period

        if mad == 0:
            return 0.0
        return (tp - tp_mean) / (0.015 * mad)

    def clear(self) -> None:
        super().clear()
        self._tp.clear()


# ============ 参考实现 ============

class ReferenceADX(BaseIndicator[PADX, float]):
    """ADX 参考实现：列表保存最近 period 个 TR / DM / DX，每根 K 线重新求和"""

    IMPLEMENTATION = ImplementationHint.REFERENCE

    def __init__(self, params: Optional[PADX] = None) -> None:
        super().__init__(params or PADX())
        self._prev_high: Optional[float] = None
        self._prev_low: Optional[float] = None
        self._prev_close: Optional[float] = None
        self._tr_values: List[float] = []
        self._plus_dm_values: List[float] = []
        self._minus_dm_values: List[float] = []
        self._dx_values: List[float] = []

    def _update(self, high: float, low: float, close: float) -> Optional[float]:
        if self._prev_close is None:
            self._prev_high = high
            self._prev_low = low
            self._prev_close = close
            return None

        tr, plus_dm, minus_dm = _directional_movement(
            high, low, self._prev_high, self._prev_low, self._prev_close
        )
        period = self.params.period
        _append_bounded(self._tr_values, tr, period)
        _append_bounded(self._plus_dm_values, plus_dm, period)
        _append_bounded(self._minus_dm_values, minus_dm, period)

        self._prev_high = high
        self._prev_low = low
        self._prev_close = close

        if len(self._tr_values) < period:
            return None

        dx = _dx(sum(self._tr_values), sum(self._plus_dm_values), sum(self._minus_dm_values))
        _append_bounded(self._dx_values, dx, period)

        if len(self._dx_values) < period:
            return None

        # ADX 是 DX 的平均
        return sum(self._dx_values) / period

    def clear(self) -> None:
        super().clear()
        self._prev_high = None
        self._prev_low = None
        self._prev_close = None
        self._tr_values.clear()
        self._plus_dm_values.clear()
        self._minus_dm_values.clear()
        self._dx_values.clear()


class ReferenceStochastic(BaseIndicator[PStochastic, StochasticResult]):
    """随机指标参考实现：每根 K 线对窗口取 max / min"""

    IMPLEMENTATION = ImplementationHint.REFERENCE

    def __init__(self, params: Optional[PStochastic] = None) -> None:
        super().__init__(params or PStochastic())
        self._highs: List[float] = []
        self._lows: List[float] = []
        self._k_values: List[float] = []

    def _update(self, high: float, low: float, close: float) -> Optional[StochasticResult]:
        k_period = self.params.k_period
        _append_bounded(self._highs, high, k_period)
        _append_bounded(self._lows, low, k_period)

        if len(self._highs) < k_period:
            return None

        k = _stochastic_k(close, max(self._highs), min(self._lows))
        d_period = self.params.d_period
        _append_bounded(self._k_values, k, d_period)

        if len(self._k_values) < d_period:
            return None

        # %D 是 %K 的移动平均
        d = sum(self._k_values) / d_period
        return StochasticResult(k=k, d=d)

    def clear(self) -> None:
        super().clear()
        self._highs.clear()
        self._lows.clear()
        self._k_values.clear()


class ReferenceCCI(BaseIndicator[PCCI, float]):
    """CCI 参考实现"""

    IMPLEMENTATION = ImplementationHint.REFERENCE

    def __init__(self, params: Optional[PCCI] = None) -> None:
        super().__init__(params or PCCI())
        self._tp_values: List[float] = []

    def _update(self, high: float, low: float, close: float) -> Optional[float]:
        tp = (high + low + close) / 3
        period = self.params.period
        _append_bounded(self._tp_values, tp, period)

        if len(self._tp_values) < period:
            return None

        tp_mean = sum(self._tp_values) / period

        # 平均绝对偏差
        mad = sum(abs(x - tp_mean) for x in self._tp_values) / period

        if mad == 0:
            return 0.0
        return (tp - tp_mean) / (0.015 * mad)

    def clear(self) -> None:
        super().clear()
        self._tp_values.clear()
