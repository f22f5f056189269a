"""Lorentzian k-NN 分类子系统

Example:
    >>> from quantstream.lorentzian import PLorentzianClassification
    >>> from quantstream.indicators import create_indicator
    >>>
    >>> clf = create_indicator(PLorentzianClassification(neighbors_count=8, lookback_period=100))
    >>> for bar in bars:
    ...     result = clf.on_bar(bar)
"""

from .params import NormalizationMode, PLorentzianClassification
from .features import FEATURE_NAMES, FeatureExtractor, FeatureVector
from .patterns import Label, PatternBuffer, PatternEntry, Signal
from .labels import LabelGenerator, classify_change
from .classifier import (
    ClassificationResult,
    ClassifierState,
    LorentzianClassifier,
    ReferenceLorentzianClassifier,
    lorentzian_distance,
    vote,
)


__all__ = [
    "NormalizationMode",
    "PLorentzianClassification",
    "FEATURE_NAMES",
    "FeatureExtractor",
    "FeatureVector",
    "Label",
    "PatternBuffer",
    "PatternEntry",
    "Signal",
    "LabelGenerator",
    "classify_change",
    "ClassificationResult",
    "ClassifierState",
    "LorentzianClassifier",
    "ReferenceLorentzianClassifier",
    "lorentzian_distance",
    "vote",
]
