"""
数据层数据模型

定义 K 线的内存表示。指标通过 ValueAccess 读取字段，
因此任何带 open/high/low/close/volume 字段的记录都可以直接输入，
Bar 只是默认的不可变载体。
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Bar:
    """K 线数据结构（不可变）

    Attributes:
        timestamp: 开盘时间戳 (毫秒)
        open: 开盘价
        high: 最高价
        low: 最低价
        close: 收盘价
        volume: 成交量

    Example:
        >>> bar = Bar(
        ...     timestamp=1699000000000,
        ...     open=35000.0,
        ...     high=35500.0,
        ...     low=34800.0,
        ...     close=35200.0,
        ...     volume=1234.56
        ... )
        >>> bar.typical_price
        35166.666666666664
    """

    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    @property
    def typical_price(self) -> float:
        """典型价格 (H + L + C) / 3"""
        return (self.high + self.low + self.close) / 3

    @property
    def range(self) -> float:
        """振幅 high - low"""
        return self.high - self.low

    def to_dict(self) -> dict:
        """转换为字典格式"""
        return {
            "timestamp": self.timestamp,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "volume": self.volume,
        }
