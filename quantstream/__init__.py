"""PyQuantStream - 流式技术指标与 Lorentzian k-NN 分类

Example:
    >>> from quantstream import create_indicator, PMACD, PLorentzianClassification
    >>> macd = create_indicator(PMACD(12, 26, 9))
    >>> clf = create_indicator(PLorentzianClassification())
    >>> for bar in bars:
    ...     macd_result = macd.on_bar(bar)
    ...     signal = clf.on_bar(bar)
"""

from .core.exceptions import IndicatorError, ConfigurationError, ShapeError
from .data import Bar, PriceAspect, InputSlot, ValueAccess
from .indicators import (
    BaseIndicator,
    ImplementationHint,
    ParameterSet,
    PSMA,
    PEMA,
    PRSI,
    PMACD,
    PCCI,
    PADX,
    PStochastic,
    PBollingerBands,
    WindowedAggregate,
    create_indicator,
)
from .lorentzian import (
    ClassificationResult,
    ClassifierState,
    LorentzianClassifier,
    PLorentzianClassification,
    Signal,
)

__version__ = "0.1.0"

__all__ = [
    "IndicatorError",
    "ConfigurationError",
    "ShapeError",
    "Bar",
    "PriceAspect",
    "InputSlot",
    "ValueAccess",
    "BaseIndicator",
    "ImplementationHint",
    "ParameterSet",
    "PSMA",
    "PEMA",
    "PRSI",
    "PMACD",
    "PCCI",
    "PADX",
    "PStochastic",
    "PBollingerBands",
    "WindowedAggregate",
    "create_indicator",
    "ClassificationResult",
    "ClassifierState",
    "LorentzianClassifier",
    "PLorentzianClassification",
    "Signal",
]
