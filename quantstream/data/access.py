"""
输入字段访问 (ValueAccess)

指标在构造时声明输入插槽 (InputSlot)：需要哪些价格字段。
ValueAccess 根据插槽从任意记录类型中取出这些字段，支持：

- 带属性的对象 (bar.close 或 bar.Close)
- 映射 ({"close": ...} 或 {"Close": ...})
- OHLC / OHLCV 元组或列表 (按位置)
- 单字段插槽可直接输入数值

Example:
    >>> access = ValueAccess(InputSlot("HLC", PriceAspect.HLC))
    >>> access.extract({"high": 11, "low": 9, "close": 10})
    (11.0, 9.0, 10.0)
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Flag
from numbers import Real
from typing import Any, Tuple

from quantstream.core.exceptions import ShapeError
from quantstream.messages import ErrorMessage, Component


class PriceAspect(Flag):
    """价格字段标志位，可组合"""
    OPEN = 1
    HIGH = 2
    LOW = 4
    CLOSE = 8
    VOLUME = 16

    HL = HIGH | LOW
    HLC = HIGH | LOW | CLOSE
    OHLC = OPEN | HIGH | LOW | CLOSE
    OHLCV = OPEN | HIGH | LOW | CLOSE | VOLUME

    @property
    def members(self) -> Tuple["PriceAspect", ...]:
        """按 O, H, L, C, V 顺序展开的单字段列表"""
        return tuple(aspect for aspect in _CANONICAL_ORDER if aspect in self)

    @property
    def field_name(self) -> str:
        """单字段对应的属性名 (小写)"""
        return self.name.lower()


_CANONICAL_ORDER = (
    PriceAspect.OPEN,
    PriceAspect.HIGH,
    PriceAspect.LOW,
    PriceAspect.CLOSE,
    PriceAspect.VOLUME,
)

# OHLC(V) 元组中各字段的位置
_POSITIONS = {aspect: index for index, aspect in enumerate(_CANONICAL_ORDER)}


@dataclass(frozen=True)
class InputSlot:
    """输入插槽描述

    Attributes:
        name: 插槽名称
        aspects: 需要的价格字段
        default_source: 默认数据源序号 (多数据源时使用)
    """
    name: str
    aspects: PriceAspect
    default_source: int = 0

    @property
    def arity(self) -> int:
        """update() 需要的数值个数"""
        return len(self.aspects.members)


class ValueAccess:
    """按插槽从记录中提取价格字段

    构造后形状固定，extract() 总是按 O, H, L, C, V 顺序返回插槽需要的字段。
    """

    __slots__ = ("slot", "_aspects", "_names", "_title_names")

    def __init__(self, slot: InputSlot) -> None:
        self.slot = slot
        self._aspects = slot.aspects.members
        self._names = tuple(aspect.field_name for aspect in self._aspects)
        self._title_names = tuple(name.title() for name in self._names)

    @property
    def aspects(self) -> Tuple[PriceAspect, ...]:
        return self._aspects

    def extract(self, record: Any) -> Tuple[float, ...]:
        """提取插槽需要的字段

        Args:
            record: 任意记录 (对象 / 映射 / 元组 / 数值)

        Returns:
            字段值元组

        Raises:
            ShapeError: 记录缺少必需字段
        """
        if isinstance(record, Real) and not isinstance(record, bool):
            if len(self._aspects) != 1:
                raise ShapeError(
                    ErrorMessage.SCALAR_MULTI_ASPECT.component(Component.VALUE_ACCESS).build(
                        aspects=self.slot.aspects.name
                    )
                )
            return (float(record),)

        if isinstance(record, Mapping):
            return tuple(
                float(self._from_mapping(record, name, title))
                for name, title in zip(self._names, self._title_names)
            )

        # NamedTuple 按字段名读取，普通元组按 OHLCV 位置读取
        if isinstance(record, Sequence) and not isinstance(record, str) and not hasattr(record, "_fields"):
            return tuple(self._from_sequence(record, aspect) for aspect in self._aspects)

        return tuple(
            float(self._from_object(record, name, title))
            for name, title in zip(self._names, self._title_names)
        )

    def get(self, record: Any, aspect: PriceAspect) -> float:
        """提取单个字段"""
        return self.extract(record)[self._aspects.index(aspect)]

    def _missing(self, name: str, record: Any) -> ShapeError:
        return ShapeError(
            ErrorMessage.MISSING_ASPECT.component(Component.VALUE_ACCESS).build(
                aspect=name, record=record
            )
        )

    def _from_mapping(self, record: Mapping, name: str, title: str) -> Any:
        value = record.get(name)
        if value is None:
            value = record.get(title)
        if value is None:
            raise self._missing(name, record)
        return value

    def _from_object(self, record: Any, name: str, title: str) -> Any:
        value = getattr(record, name, None)
        if value is None:
            value = getattr(record, title, None)
        if value is None:
            raise self._missing(name, record)
        return value

    def _from_sequence(self, record: Sequence, aspect: PriceAspect) -> float:
        position = _POSITIONS[aspect]
        if position >= len(record) or record[position] is None:
            raise self._missing(aspect.field_name, record)
        return float(record[position])

    def __repr__(self) -> str:
        return f"ValueAccess(slot={self.slot.name}, aspects={self._names})"
