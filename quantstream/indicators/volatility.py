# quantstream/indicators/volatility.py
"""波动率指标模块"""

from typing import List, Optional

from .base import BaseIndicator, BollingerResult
from .params import ImplementationHint, PBollingerBands
from .window import WindowedAggregate


class BollingerBands(BaseIndicator[PBollingerBands, BollingerResult]):
    """布林带 (Bollinger Bands)

    计算公式:
        Middle Band = SMA(price, period)
        Upper Band = Middle Band + std_dev * standard_deviation
        Lower Band = Middle Band - std_dev * standard_deviation

    标准差为总体标准差，零方差时上下轨与中轨重合。

    Example:
        >>> bb = BollingerBands(PBollingerBands(20, 2.0))
        >>> for bar in bars:
        ...     result = bb.on_bar(bar)
        ...     if result and bar.close < result.lower:
        ...         print("价格触及下轨")
    """

    def __init__(self, params: Optional[PBollingerBands] = None) -> None:
        super().__init__(params or PBollingerBands())
        self._window = WindowedAggregate(self.params.period)

    def _update(self, value: float) -> Optional[BollingerResult]:
        self._window.update(value)

        if not self._window.full:
            return None

        middle = self._window.mean
        width = self.params.std_dev * self._window.std()
        return BollingerResult(upper=middle + width, middle=middle, lower=middle - width)

    @property
    def bands(self) -> Optional[BollingerResult]:
        """获取完整布林带结果"""
        return self.value

    def clear(self) -> None:
        super().clear()
        self._window.clear()


class ReferenceBollingerBands(BaseIndicator[PBollingerBands, BollingerResult]):
    """布林带参考实现：每根 K 线对窗口重新计算均值与方差"""

    IMPLEMENTATION = ImplementationHint.REFERENCE

    def __init__(self, params: Optional[PBollingerBands] = None) -> None:
        super().__init__(params or PBollingerBands())
        self._values: List[float] = []

    def _update(self, value: float) -> Optional[BollingerResult]:
        self._values.append(value)

        period = self.params.period
        if len(self._values) > period:
            self._values.pop(0)

        if len(self._values) < period:
            return None

        # 计算 SMA（中轨）
        middle = sum(self._values) / period

        # 计算标准差
        variance = sum((x - middle) ** 2 for x in self._values) / period
        std = variance ** 0.5

        return BollingerResult(
            upper=middle + self.params.std_dev * std,
            middle=middle,
            lower=middle - self.params.std_dev * std,
        )

    def clear(self) -> None:
        super().clear()
        self._values.clear()
