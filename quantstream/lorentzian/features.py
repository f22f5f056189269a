"""
特征提取

每根 K 线生成一个固定长度的特征向量:

    rsi         RSI(rsi_period)
    cci         CCI(cci_period)
    adx         ADX(adx_period)
    returns     收盘价变化率 (close - prev_close) / prev_close
    volatility  (high - low) / close
    momentum    momentum_period 根的变化率

每个原始特征在最近 normalization_window 个值上归一化后才进入距离计算。
分母为 0 时对应特征取 0.0。
"""

from typing import Any, List, NamedTuple

from quantstream.data.access import InputSlot, PriceAspect, ValueAccess
from quantstream.indicators.base import BaseIndicator
from quantstream.indicators.factory import create_indicator
from quantstream.indicators.params import PADX, PCCI, PRSI
from quantstream.indicators.window import RingBuffer, WindowedAggregate
from .params import NormalizationMode, PLorentzianClassification


class FeatureVector(NamedTuple):
    """归一化后的特征向量 (顺序固定)"""
    rsi: float = 0.0
    cci: float = 0.0
    adx: float = 0.0
    returns: float = 0.0
    volatility: float = 0.0
    momentum: float = 0.0


FEATURE_NAMES = FeatureVector._fields
FEATURE_COUNT = len(FEATURE_NAMES)
ZERO_VECTOR = FeatureVector()


def _ratio_change(current: float, past: float) -> float:
    if past == 0:
        return 0.0
    return (current - past) / past


class FeatureExtractor:
    """特征提取器

    持有 RSI / CCI / ADX 三个指标状态（通过工厂创建，遵循参数集的实现提示）
    和一个收盘价环形缓冲区。所有子状态就绪前 update() 返回零向量。

    Example:
        >>> extractor = FeatureExtractor(PLorentzianClassification())
        >>> for bar in bars:
        ...     vector = extractor.on_bar(bar)
        >>> extractor.is_ready
        True
    """

    def __init__(self, params: PLorentzianClassification) -> None:
        self.params = params
        hint = params.implementation_hint

        self._rsi: BaseIndicator = create_indicator(PRSI(params.rsi_period, implementation_hint=hint))
        self._cci: BaseIndicator = create_indicator(PCCI(params.cci_period, implementation_hint=hint))
        self._adx: BaseIndicator = create_indicator(PADX(params.adx_period, implementation_hint=hint))
        self._closes: RingBuffer[float] = RingBuffer(params.momentum_period + 1)

        track_extremes = params.normalization is NormalizationMode.MINMAX
        self._windows: List[WindowedAggregate] = [
            WindowedAggregate(params.normalization_window, track_extremes=track_extremes)
            for _ in range(FEATURE_COUNT)
        ]
        self._access = ValueAccess(InputSlot("HLC", PriceAspect.HLC))

        self._raw: FeatureVector = ZERO_VECTOR
        self._vector: FeatureVector = ZERO_VECTOR
        self._ready = False

    def update(self, high: float, low: float, close: float) -> FeatureVector:
        """输入一根 K 线，返回归一化特征向量（未就绪时为零向量）"""
        rsi = self._rsi.update(close)
        cci = self._cci.update(high, low, close)
        adx = self._adx.update(high, low, close)
        self._closes.push(close)

        self._ready = (
            self._rsi.is_ready and self._cci.is_ready and self._adx.is_ready and self._closes.full
        )
        if not self._ready:
            self._raw = ZERO_VECTOR
            self._vector = ZERO_VECTOR
            return self._vector

        self._raw = FeatureVector(
            rsi=rsi,
            cci=cci,
            adx=adx,
            returns=_ratio_change(close, self._closes.ago(1)),
            volatility=(high - low) / close if close != 0 else 0.0,
            momentum=_ratio_change(close, self._closes.oldest),
        )
        self._vector = FeatureVector(*(
            self._normalize(window, value) for window, value in zip(self._windows, self._raw)
        ))
        return self._vector

    def on_bar(self, bar: Any) -> FeatureVector:
        return self.update(*self._access.extract(bar))

    def _normalize(self, window: WindowedAggregate, value: float) -> float:
        window.update(value)

        if self.params.normalization is NormalizationMode.MINMAX:
            lowest, highest = window.min, window.max
            if highest == lowest:
                return 0.0
            midpoint = (highest + lowest) / 2
            return 2 * (value - midpoint) / (highest - lowest)

        if window.count <= 1:
            return 0.0
        std = window.std(ddof=1)
        if std == 0:
            return 0.0
        return (value - window.mean) / std

    @property
    def is_ready(self) -> bool:
        return self._ready

    @property
    def vector(self) -> FeatureVector:
        """最近一根 K 线的归一化特征（重复读取不重新计算）"""
        return self._vector

    @property
    def raw(self) -> FeatureVector:
        """最近一根 K 线的原始特征"""
        return self._raw

    def clear(self) -> None:
        self._rsi.clear()
        self._cci.clear()
        self._adx.clear()
        self._closes.clear()
        for window in self._windows:
            window.clear()
        self._raw = ZERO_VECTOR
        self._vector = ZERO_VECTOR
        self._ready = False

    def __repr__(self) -> str:
        return f"FeatureExtractor(ready={self._ready}, vector={tuple(self._vector)})"
