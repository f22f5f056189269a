# quantstream/indicators/ma.py
"""移动平均指标模块"""

from typing import List, Optional

from .base import BaseIndicator
from .params import ImplementationHint, PEMA, PSMA
from .window import EMAState, WindowedAggregate


class SMA(BaseIndicator[PSMA, float]):
    """简单移动平均 (Simple Moving Average)

    计算公式: SMA = sum(prices) / period

    使用 WindowedAggregate 维护滚动和，每根 K 线 O(1)。

    Example:
        >>> sma = SMA(PSMA(5))
        >>> for p in [10, 11, 12, 13, 14]:
        ...     result = sma.on_bar(p)
        >>> print(result)  # 12.0
    """

    def __init__(self, params: Optional[PSMA] = None) -> None:
        super().__init__(params or PSMA())
        self._window = WindowedAggregate(self.params.period)

    def _update(self, value: float) -> Optional[float]:
        self._window.update(value)
        if not self._window.full:
            return None
        return self._window.mean

    def clear(self) -> None:
        super().clear()
        self._window.clear()


class EMA(BaseIndicator[PEMA, float]):
    """指数移动平均 (Exponential Moving Average)

    计算公式:
        EMA = EMA_prev + alpha * (price - EMA_prev)
        alpha = 2 / (period + 1)

    首个值直接作为 EMA 初值，收到 period 个值后输出。

    Example:
        >>> ema = EMA(PEMA(20))
        >>> for bar in bars:
        ...     result = ema.on_bar(bar)
    """

    def __init__(self, params: Optional[PEMA] = None) -> None:
        super().__init__(params or PEMA())
        self._ema = EMAState(self.params.period)

    def _update(self, value: float) -> Optional[float]:
        return self._ema.update(value)

    def clear(self) -> None:
        super().clear()
        self._ema.clear()


# ============ 参考实现 ============

class ReferenceSMA(BaseIndicator[PSMA, float]):
    """SMA 参考实现：每根 K 线对窗口重新求和"""

    IMPLEMENTATION = ImplementationHint.REFERENCE

    def __init__(self, params: Optional[PSMA] = None) -> None:
        super().__init__(params or PSMA())
        self._values: List[float] = []

    def _update(self, value: float) -> Optional[float]:
        self._values.append(value)

        # 保持窗口大小
        if len(self._values) > self.params.period:
            self._values.pop(0)

        if len(self._values) == self.params.period:
            return sum(self._values) / self.params.period
        return None

    def clear(self) -> None:
        super().clear()
        self._values.clear()


class ReferenceEMA(BaseIndicator[PEMA, float]):
    """EMA 参考实现：price * alpha + EMA_prev * (1 - alpha)"""

    IMPLEMENTATION = ImplementationHint.REFERENCE

    def __init__(self, params: Optional[PEMA] = None) -> None:
        super().__init__(params or PEMA())
        self._alpha = 2.0 / (self.params.period + 1)
        self._ema: Optional[float] = None

    def _update(self, value: float) -> Optional[float]:
        if self._ema is None:
            self._ema = value
        else:
            self._ema = value * self._alpha + self._ema * (1 - self._alpha)
        return self._ema

    def clear(self) -> None:
        super().clear()
        self._ema = None
