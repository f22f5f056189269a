# quantstream/indicators/oscillator.py
"""振荡器指标模块"""

from typing import List, Optional

from .base import BaseIndicator, MACDResult
from .params import ImplementationHint, PMACD, PRSI
from .window import EMAState


def _rsi_from_averages(avg_gain: float, avg_loss: float) -> float:
    # 平均跌幅为 0 时 RSI 定义为 100
    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1 + rs)


class RSI(BaseIndicator[PRSI, float]):
    """相对强弱指标 (Relative Strength Index)

    计算公式:
        RSI = 100 - 100 / (1 + RS)
        RS = 平均涨幅 / 平均跌幅

    使用 Wilder 平滑法：前 period 个变化取简单平均，之后 alpha = 1 / period。
    需要 period 个价格变化，即 period + 1 根 K 线。

    Example:
        >>> rsi = RSI(PRSI(14))
        >>> for bar in bars:
        ...     result = rsi.on_bar(bar)
        ...     if result is not None and result < rsi.params.oversold:
        ...         print("超卖区域")
    """

    def __init__(self, params: Optional[PRSI] = None) -> None:
        super().__init__(params or PRSI())
        self._prev_price: Optional[float] = None
        self._avg_gain = EMAState(self.params.period, seed="sma")
        self._avg_loss = EMAState(self.params.period, seed="sma")

    def _update(self, value: float) -> Optional[float]:
        if self._prev_price is None:
            self._prev_price = value
            return None

        change = value - self._prev_price
        self._prev_price = value

        avg_gain = self._avg_gain.update(max(change, 0.0))
        avg_loss = self._avg_loss.update(max(-change, 0.0))
        return _rsi_from_averages(avg_gain, avg_loss)

    def clear(self) -> None:
        super().clear()
        self._prev_price = None
        self._avg_gain.clear()
        self._avg_loss.clear()


class MACD(BaseIndicator[PMACD, MACDResult]):
    """MACD 指标 (Moving Average Convergence Divergence)

    计算公式:
        MACD Line = EMA(fast) - EMA(slow)
        Signal Line = EMA(MACD Line, signal)
        Histogram = MACD Line - Signal Line

    慢线就绪后才把 MACD Line 送入信号线。

    Example:
        >>> macd = MACD(PMACD(12, 26, 9))
        >>> for bar in bars:
        ...     result = macd.on_bar(bar)
        ...     if result:
        ...         print(f"MACD: {result.macd_line:.2f}")
    """

    def __init__(self, params: Optional[PMACD] = None) -> None:
        super().__init__(params or PMACD())
        self._fast_ema = EMAState(self.params.fast_period)
        self._slow_ema = EMAState(self.params.slow_period)
        self._signal_ema = EMAState(self.params.signal_period)

    def _update(self, value: float) -> Optional[MACDResult]:
        fast_val = self._fast_ema.update(value)
        slow_val = self._slow_ema.update(value)

        if not self._slow_ema.ready:
            return None

        macd_line = fast_val - slow_val
        signal_val = self._signal_ema.update(macd_line)

        return MACDResult(
            macd_line=macd_line,
            signal_line=signal_val,
            histogram=macd_line - signal_val,
        )

    def clear(self) -> None:
        super().clear()
        self._fast_ema.clear()
        self._slow_ema.clear()
        self._signal_ema.clear()


# ============ 参考实现 ============

class ReferenceRSI(BaseIndicator[PRSI, float]):
    """RSI 参考实现：前 period 个价格变化取算术平均作种子，之后按教科书 Wilder 公式递推

    avg = (avg * (period - 1) + x) / period
    """

    IMPLEMENTATION = ImplementationHint.REFERENCE

    def __init__(self, params: Optional[PRSI] = None) -> None:
        super().__init__(params or PRSI())
        self._prev: Optional[float] = None
        self._gains: List[float] = []
        self._losses: List[float] = []
        self._avg_gain: Optional[float] = None
        self._avg_loss: Optional[float] = None

    def _update(self, value: float) -> Optional[float]:
        if self._prev is None:
            self._prev = value
            return None

        change = value - self._prev
        self._prev = value
        gain = max(change, 0.0)
        loss = max(-change, 0.0)
        period = self.params.period

        if self._avg_gain is None:
            self._gains.append(gain)
            self._losses.append(loss)
            if len(self._gains) < period:
                return None
            self._avg_gain = sum(self._gains) / period
            self._avg_loss = sum(self._losses) / period
            # 种子完成后不再需要逐条变化
            self._gains.clear()
            self._losses.clear()
        else:
            self._avg_gain = (self._avg_gain * (period - 1) + gain) / period
            self._avg_loss = (self._avg_loss * (period - 1) + loss) / period

        return _rsi_from_averages(self._avg_gain, self._avg_loss)

    def clear(self) -> None:
        super().clear()
        self._prev = None
        self._gains.clear()
        self._losses.clear()
        self._avg_gain = None
        self._avg_loss = None


class ReferenceMACD(BaseIndicator[PMACD, MACDResult]):
    """MACD 参考实现：三条 EMA 直接按 v * alpha + prev * (1 - alpha) 递推

    快慢 EMA 以首个价格为种子；信号线在慢线就绪后以首个 MACD 值为种子。
    """

    IMPLEMENTATION = ImplementationHint.REFERENCE

    def __init__(self, params: Optional[PMACD] = None) -> None:
        super().__init__(params or PMACD())
        self._count = 0
        self._fast: Optional[float] = None
        self._slow: Optional[float] = None
        self._signal: Optional[float] = None

    @staticmethod
    def _ema_step(prev: Optional[float], value: float, period: int) -> float:
        if prev is None:
            return value
        alpha = 2.0 / (period + 1)
        return value * alpha + prev * (1 - alpha)

    def _update(self, value: float) -> Optional[MACDResult]:
        self._count += 1
        self._fast = self._ema_step(self._fast, value, self.params.fast_period)
        self._slow = self._ema_step(self._slow, value, self.params.slow_period)

        if self._count < self.params.slow_period:
            return None

        macd_line = self._fast - self._slow
        self._signal = self._ema_step(self._signal, macd_line, self.params.signal_period)
        signal_line = self._signal
        return MACDResult(macd_line=macd_line, signal_line=signal_line, histogram=macd_line - signal_line)

    def clear(self) -> None:
        super().clear()
        self._count = 0
        self._fast = None
        self._slow = None
        self._signal = None
