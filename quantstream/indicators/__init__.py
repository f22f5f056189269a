# quantstream/indicators/__init__.py
"""技术指标库

提供常用技术指标的流式计算实现。每个指标是一个状态机：
构造时传入不可变参数集，之后逐根 K 线 update() / on_bar()，预热完成前返回 None。

Example:
    >>> from quantstream.indicators import create_indicator, PEMA, PRSI, PADX
    >>>
    >>> ema = create_indicator(PEMA(20))
    >>> rsi = create_indicator(PRSI(14))
    >>> adx = create_indicator(PADX(14))
    >>>
    >>> for bar in bars:
    ...     ema_val = ema.on_bar(bar)
    ...     rsi_val = rsi.on_bar(bar)
    ...     adx_val = adx.on_bar(bar)
"""

from .window import RingBuffer, MonotonicWindow, WindowedAggregate, EMAState
from .params import (
    ImplementationHint,
    ParameterBounds,
    ParameterSet,
    PSMA,
    PEMA,
    PRSI,
    PMACD,
    PCCI,
    PADX,
    PStochastic,
    PBollingerBands,
)
from .base import BaseIndicator, MACDResult, BollingerResult, StochasticResult
from .ma import SMA, EMA, ReferenceSMA, ReferenceEMA
from .oscillator import RSI, MACD, ReferenceRSI, ReferenceMACD
from .volatility import BollingerBands, ReferenceBollingerBands
from .advanced import ADX, Stochastic, CCI, ReferenceADX, ReferenceStochastic, ReferenceCCI
from .factory import (
    create_indicator,
    preference_order,
    register_implementation,
    registered_implementations,
    resolve_implementation,
)


__all__ = [
    # 窗口原语
    "RingBuffer",
    "MonotonicWindow",
    "WindowedAggregate",
    "EMAState",
    # 参数集
    "ImplementationHint",
    "ParameterBounds",
    "ParameterSet",
    "PSMA",
    "PEMA",
    "PRSI",
    "PMACD",
    "PCCI",
    "PADX",
    "PStochastic",
    "PBollingerBands",
    # 基类
    "BaseIndicator",
    "MACDResult",
    "BollingerResult",
    "StochasticResult",
    # 移动平均
    "SMA",
    "EMA",
    "ReferenceSMA",
    "ReferenceEMA",
    # 振荡器
    "RSI",
    "MACD",
    "ReferenceRSI",
    "ReferenceMACD",
    # 波动率
    "BollingerBands",
    "ReferenceBollingerBands",
    # 高级指标
    "ADX",
    "Stochastic",
    "CCI",
    "ReferenceADX",
    "ReferenceStochastic",
    "ReferenceCCI",
    # 工厂
    "create_indicator",
    "preference_order",
    "register_implementation",
    "registered_implementations",
    "resolve_implementation",
]
