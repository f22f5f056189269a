"""
历史模式缓冲区

固定容量的 (特征向量, 标签) 环形缓冲区，作为 k-NN 的历史记忆。

- 每个条目带有缓冲区内单调递增的 id（clear() 后从 0 重新开始）
- 满容量后严格 FIFO 淘汰最旧条目，与是否已标注无关
- 已标注条目数 labeled_count 增量维护
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Iterator, List, Optional

from quantstream.indicators.window import RingBuffer
from .features import FeatureVector


class Signal(IntEnum):
    """分类信号"""
    SELL = -1
    NEUTRAL = 0
    BUY = 1


class Label(Enum):
    """模式标签"""
    UNSET = "unset"
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"

    @property
    def signal(self) -> Signal:
        """标签对应的投票信号（UNSET 视为中性）"""
        if self is Label.BULLISH:
            return Signal.BUY
        if self is Label.BEARISH:
            return Signal.SELL
        return Signal.NEUTRAL

    @property
    def is_set(self) -> bool:
        return self is not Label.UNSET


@dataclass
class PatternEntry:
    """历史模式条目"""
    id: int
    features: FeatureVector
    close: float
    label: Label = Label.UNSET


class PatternBuffer:
    """模式缓冲区

    Example:
        >>> buffer = PatternBuffer(2)
        >>> for close in [1.0, 2.0, 3.0]:
        ...     _ = buffer.append(FeatureVector(), close)
        >>> [entry.id for entry in buffer]
        [1, 2]
    """

    def __init__(self, capacity: int) -> None:
        self._ring: RingBuffer[PatternEntry] = RingBuffer(capacity)
        self._next_id = 0
        self._labeled_count = 0

    @property
    def capacity(self) -> int:
        return self._ring.capacity

    def append(self, features: FeatureVector, close: float) -> PatternEntry:
        """追加未标注条目，缓冲区满时淘汰最旧条目

        Returns:
            新条目
        """
        entry = PatternEntry(id=self._next_id, features=features, close=close)
        self._next_id += 1

        evicted = self._ring.push(entry)
        if evicted is not None and evicted.label.is_set:
            self._labeled_count -= 1
        return entry

    def set_label(self, entry: PatternEntry, label: Label) -> None:
        """为条目设置标签（已标注的条目可以改标，计数保持一致）"""
        if label.is_set and not entry.label.is_set:
            self._labeled_count += 1
        elif not label.is_set and entry.label.is_set:
            self._labeled_count -= 1
        entry.label = label

    def ago(self, n: int) -> Optional[PatternEntry]:
        """n 条之前追加的条目 (0 = 最新)，不存在时返回 None"""
        if n < 0 or n >= len(self._ring):
            return None
        return self._ring.ago(n)

    def labeled(self) -> List[PatternEntry]:
        """已标注条目 (最旧在前)"""
        return [entry for entry in self._ring if entry.label.is_set]

    @property
    def labeled_count(self) -> int:
        return self._labeled_count

    @property
    def full(self) -> bool:
        return self._ring.full

    def clear(self) -> None:
        self._ring.clear()
        self._next_id = 0
        self._labeled_count = 0

    def __len__(self) -> int:
        return len(self._ring)

    def __iter__(self) -> Iterator[PatternEntry]:
        return iter(self._ring)

    def __repr__(self) -> str:
        return (
            f"PatternBuffer(capacity={self.capacity}, size={len(self._ring)}, "
            f"labeled={self._labeled_count})"
        )
