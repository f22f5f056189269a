"""
Lorentzian k-NN 分类器

每根 K 线:
    1. FeatureExtractor 生成归一化特征向量
    2. 追加到 PatternBuffer，并回溯标注 label_lookahead 根之前的条目
    3. 在已标注条目中找出 Lorentzian 距离最近的 neighbors_count 个，多数投票

距离: d(a, b) = Σ ln(1 + |aᵢ - bᵢ|)
距离相同时 id 较小（更早）的条目优先。

状态:
    UNINITIALIZED -> WARMING (特征未就绪) -> PARTIALLY_POPULATED (已标注 < K)
    -> READY (正常 k-NN)；clear() 回到 UNINITIALIZED。
"""

import heapq
import logging
import math
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

from quantstream.core.exceptions import ShapeError
from quantstream.indicators.base import BaseIndicator
from quantstream.indicators.factory import register_implementation
from quantstream.indicators.params import ImplementationHint
from quantstream.messages import ErrorMessage, Component
from .features import FeatureExtractor, FeatureVector
from .labels import LabelGenerator
from .params import PLorentzianClassification
from .patterns import PatternBuffer, PatternEntry, Signal


logger = logging.getLogger(__name__)


def lorentzian_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """Lorentzian 距离

    Raises:
        ShapeError: 两个向量长度不同
    """
    if len(a) != len(b):
        raise ShapeError(
            ErrorMessage.FEATURE_LENGTH_MISMATCH.component(Component.CLASSIFIER).build(
                left=len(a), right=len(b)
            )
        )
    return sum(math.log1p(abs(x - y)) for x, y in zip(a, b))


@dataclass(frozen=True)
class ClassificationResult:
    """分类结果

    Attributes:
        signal: BUY / SELL / NEUTRAL
        confidence: 与多数方一致的近邻比例 [0, 1]
        neighbor_ids: 参与投票的条目 id（按距离排序）
    """
    signal: Signal
    confidence: float
    neighbor_ids: Tuple[int, ...] = ()


class ClassifierState(Enum):
    """分类器状态"""
    UNINITIALIZED = "uninitialized"
    WARMING = "warming"
    PARTIALLY_POPULATED = "partially_populated"
    READY = "ready"


def vote(neighbors: Sequence[PatternEntry], min_confidence: float) -> Tuple[Signal, float]:
    """近邻多数投票

    最高票数并列时为 NEUTRAL；置信度 = 最高票数 / 近邻数。
    置信度低于 min_confidence 时信号强制为 NEUTRAL，置信度照常返回。
    """
    if not neighbors:
        return Signal.NEUTRAL, 0.0

    counts = Counter(entry.label.signal for entry in neighbors)
    top = max(counts.values())
    winners = [signal for signal, count in counts.items() if count == top]

    signal = winners[0] if len(winners) == 1 else Signal.NEUTRAL
    confidence = top / len(neighbors)

    if confidence < min_confidence:
        signal = Signal.NEUTRAL
    return signal, confidence


class LorentzianClassifier(BaseIndicator[PLorentzianClassification, ClassificationResult]):
    """Lorentzian 分类器

    输入为 OHLC（update(open, high, low, close) 或 on_bar(bar)）。
    READY 之前返回 None，signal 为 NEUTRAL，confidence 为 0。

    Example:
        >>> clf = LorentzianClassifier(PLorentzianClassification(neighbors_count=8))
        >>> for bar in bars:
        ...     result = clf.on_bar(bar)
        ...     if result and result.signal == Signal.BUY:
        ...         print(f"买入, 置信度 {result.confidence:.0%}")
    """

    def __init__(self, params: Optional[PLorentzianClassification] = None) -> None:
        super().__init__(params or PLorentzianClassification())
        p = self.params
        self._extractor = FeatureExtractor(p)
        self._patterns = PatternBuffer(p.lookback_period)
        self._labeler = LabelGenerator(p.label_lookahead, p.label_threshold, p.label_inclusive)
        self._state = ClassifierState.UNINITIALIZED

    def _update(self, open: float, high: float, low: float, close: float) -> Optional[ClassificationResult]:
        features = self._extractor.update(high, low, close)
        if not self._extractor.is_ready:
            self._set_state(ClassifierState.WARMING)
            return None

        self._patterns.append(features, close)
        self._labeler.apply(self._patterns, close)

        if self._patterns.labeled_count < self.params.neighbors_count:
            self._set_state(ClassifierState.PARTIALLY_POPULATED)
            return None

        self._set_state(ClassifierState.READY)
        return self.classify(features)

    def classify(self, features: Sequence[float]) -> ClassificationResult:
        """用当前缓冲区中的已标注条目对特征向量做 k-NN 分类（不修改状态）"""
        candidates = (entry for entry in self._patterns if entry.label.is_set)
        neighbors = self._nearest(features, candidates)
        signal, confidence = vote(neighbors, self.params.min_confidence)
        return ClassificationResult(
            signal=signal,
            confidence=confidence,
            neighbor_ids=tuple(entry.id for entry in neighbors),
        )

    def _nearest(self, features: Sequence[float], candidates: Iterable[PatternEntry]) -> List[PatternEntry]:
        # 部分选择，只保留 K 个最近的条目
        return heapq.nsmallest(
            self.params.neighbors_count,
            candidates,
            key=lambda entry: (lorentzian_distance(features, entry.features), entry.id),
        )

    def _set_state(self, state: ClassifierState) -> None:
        if state is not self._state:
            logger.debug(f"{self.params.key}: {self._state.value} -> {state.value}")
            self._state = state

    # ============ 状态 ============

    @property
    def is_ready(self) -> bool:
        return self._state is ClassifierState.READY

    @property
    def state(self) -> ClassifierState:
        return self._state

    @property
    def signal(self) -> Signal:
        result = self.value
        return result.signal if result is not None else Signal.NEUTRAL

    @property
    def confidence(self) -> float:
        result = self.value
        return result.confidence if result is not None else 0.0

    @property
    def current_features(self) -> FeatureVector:
        return self._extractor.vector

    @property
    def features(self) -> FeatureExtractor:
        return self._extractor

    @property
    def patterns(self) -> PatternBuffer:
        return self._patterns

    @property
    def historical_patterns_count(self) -> int:
        return len(self._patterns)

    @property
    def labeled_count(self) -> int:
        return self._patterns.labeled_count

    def clear(self) -> None:
        super().clear()
        self._extractor.clear()
        self._patterns.clear()
        self._state = ClassifierState.UNINITIALIZED
        logger.debug(f"{self.params.key}: 已重置")

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}({self.params.key}, state={self._state.value}, "
            f"patterns={len(self._patterns)}, labeled={self._patterns.labeled_count})"
        )


class ReferenceLorentzianClassifier(LorentzianClassifier):
    """参考实现：对全部已标注条目按 (距离, id) 完整排序后取前 K 个"""

    IMPLEMENTATION = ImplementationHint.REFERENCE

    def _nearest(self, features: Sequence[float], candidates: Iterable[PatternEntry]) -> List[PatternEntry]:
        scored = [(lorentzian_distance(features, entry.features), entry.id, entry) for entry in candidates]
        scored.sort(key=lambda item: (item[0], item[1]))
        return [entry for _, _, entry in scored[:self.params.neighbors_count]]


for _cls in (LorentzianClassifier, ReferenceLorentzianClassifier):
    register_implementation(PLorentzianClassification, _cls.IMPLEMENTATION, _cls)
