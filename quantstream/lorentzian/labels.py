"""回溯标注：当前 K 线到达时，为 lookahead 根之前的条目打标签"""

from typing import Optional

from quantstream.core.exceptions import ConfigurationError
from quantstream.messages import ErrorMessage
from .patterns import Label, PatternBuffer, PatternEntry


def classify_change(change: float, threshold: float, inclusive: bool = False) -> Label:
    """按阈值把价格变化率映射为标签

    Args:
        change: (close_now - close_then) / close_then
        threshold: 正阈值
        inclusive: True 时等于阈值也算多/空
    """
    if inclusive:
        if change >= threshold:
            return Label.BULLISH
        if change <= -threshold:
            return Label.BEARISH
    else:
        if change > threshold:
            return Label.BULLISH
        if change < -threshold:
            return Label.BEARISH
    return Label.NEUTRAL


class LabelGenerator:
    """回溯标注器

    最新的 lookahead 个条目永远不会被标注，因此不会成为 k-NN 的近邻。

    Example:
        >>> labeler = LabelGenerator(lookahead=2, threshold=0.01)
        >>> buffer = PatternBuffer(10)
        >>> for close in [100.0, 100.0, 102.0]:
        ...     _ = buffer.append(FeatureVector(), close)
        ...     labeled = labeler.apply(buffer, close)
        >>> labeled.label
        <Label.BULLISH: 'bullish'>
    """

    def __init__(self, lookahead: int, threshold: float, inclusive: bool = False) -> None:
        problems = []
        if isinstance(lookahead, bool) or not isinstance(lookahead, int) or lookahead < 1:
            problems.append((("lookahead",), ErrorMessage.PERIOD_NOT_POSITIVE.build(field="lookahead", value=lookahead)))
        if not threshold > 0:
            problems.append((("threshold",), ErrorMessage.NOT_POSITIVE.build(field="threshold", value=threshold)))
        if problems:
            raise ConfigurationError("LabelGenerator", problems)

        self.lookahead = lookahead
        self.threshold = threshold
        self.inclusive = inclusive

    def label_for(self, close_then: float, close_now: float) -> Label:
        # 起点价格为 0 时无法计算变化率，视为中性
        if close_then == 0:
            return Label.NEUTRAL
        change = (close_now - close_then) / close_then
        return classify_change(change, self.threshold, self.inclusive)

    def apply(self, buffer: PatternBuffer, close_now: float) -> Optional[PatternEntry]:
        """新条目追加后调用，标注 lookahead 根之前的条目

        Returns:
            被标注的条目；历史不足时返回 None
        """
        entry = buffer.ago(self.lookahead)
        if entry is None or entry.label.is_set:
            return None

        buffer.set_label(entry, self.label_for(entry.close, close_now))
        return entry
