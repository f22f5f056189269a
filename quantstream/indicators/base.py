# quantstream/indicators/base.py
"""指标基类模块 - 流式状态机"""

from abc import ABC, abstractmethod
from collections.abc import Sized
from dataclasses import dataclass
from typing import Any, ClassVar, Generic, Iterable, List, MutableSequence, Optional, TypeVar

from quantstream.core.exceptions import ShapeError
from quantstream.data.access import InputSlot, ValueAccess
from quantstream.messages import ErrorMessage, Component
from .params import ImplementationHint, ParameterSet


P = TypeVar("P", bound=ParameterSet)
R = TypeVar("R")


@dataclass(frozen=True)
class MACDResult:
    """MACD 计算结果"""
    macd_line: float
    signal_line: float
    histogram: float


@dataclass(frozen=True)
class BollingerResult:
    """布林带计算结果"""
    upper: float
    middle: float
    lower: float


@dataclass(frozen=True)
class StochasticResult:
    """随机指标计算结果"""
    k: float  # %K
    d: float  # %D


class BaseIndicator(ABC, Generic[P, R]):
    """指标基类 - 流式状态机

    生命周期：构造 (参数校验) -> 预热 (is_ready=False) -> 就绪 -> clear() 回到初始状态。

    - update(*values): 直接输入数值 (如 update(high, low, close))
    - on_bar(bar): 通过 ValueAccess 从任意记录中取字段后调用 update
    - on_bar_batch(bars, outputs): 逐条调用 on_bar，outputs[i] 为第 i 根之后的结果

    预热期间返回 None。is_ready 在 clear() 之前单调不减，
    clear() 后重放同一序列得到完全相同的结果。

    子类实现 _update()：更新内部状态并返回当前候选结果；
    基类只在 is_ready 后才对外发布该结果。

    Example:
        >>> sma = SMA(PSMA(3))
        >>> sma.on_bar_batch([1, 2, 3, 4, 5])
        [None, None, 2.0, 3.0, 4.0]
    """

    IMPLEMENTATION: ClassVar[ImplementationHint] = ImplementationHint.FIRST_PARTY

    def __init__(self, params: P) -> None:
        """初始化指标

        Args:
            params: 已校验的参数集
        """
        params.validate()
        self.params = params
        self._access = ValueAccess(params.input_slot())
        self._arity = params.input_slot().arity
        self._bars_seen = 0
        self._result: Optional[R] = None

    @classmethod
    def supports(cls, params: P) -> bool:
        """运行时能力检查，返回 False 时工厂会回退到其他实现"""
        return True

    # ============ 输入 ============

    def update(self, *values: float) -> Optional[R]:
        """输入一根 K 线的数值

        Args:
            *values: 按输入插槽顺序 (O, H, L, C, V) 排列的数值

        Returns:
            就绪后返回结果，预热期间返回 None
        """
        if len(values) != self._arity:
            raise ShapeError(
                ErrorMessage.UPDATE_ARITY.component(Component.INDICATOR).build(
                    name=self.__class__.__name__, expected=self._arity, received=len(values)
                )
            )

        self._bars_seen += 1
        result = self._update(*values)

        if self.is_ready:
            self._result = result
            return result
        return None

    def on_bar(self, bar: Any) -> Optional[R]:
        """输入一条记录 (Bar / dict / 元组 / 数值)"""
        return self.update(*self._access.extract(bar))

    def on_bar_batch(
        self,
        bars: Iterable[Any],
        outputs: Optional[MutableSequence[Optional[R]]] = None,
    ) -> MutableSequence[Optional[R]]:
        """批量输入

        Args:
            bars: 按时间顺序排列的记录
            outputs: 可选的输出缓冲区，长度必须等于输入长度

        Returns:
            输出序列 (传入 outputs 时返回同一对象)

        Raises:
            ShapeError: outputs 长度与输入不一致 (此时状态不会被修改)
        """
        if not isinstance(bars, Sized):
            bars = list(bars)

        if outputs is not None and len(outputs) != len(bars):
            raise ShapeError(
                ErrorMessage.OUTPUT_LENGTH_MISMATCH.component(Component.INDICATOR).build(
                    inputs=len(bars), outputs=len(outputs)
                )
            )

        if outputs is None:
            results: List[Optional[R]] = [self.on_bar(bar) for bar in bars]
            return results

        for i, bar in enumerate(bars):
            outputs[i] = self.on_bar(bar)
        return outputs

    @abstractmethod
    def _update(self, *values: float) -> Optional[R]:
        """更新内部状态，返回当前候选结果"""
        pass

    # ============ 状态 ============

    @property
    def lookback(self) -> int:
        """就绪前需要的 K 线数量"""
        return self.params.lookback

    @property
    def input_slot(self) -> InputSlot:
        return self._access.slot

    @property
    def bars_seen(self) -> int:
        """clear() 之后已处理的 K 线数量"""
        return self._bars_seen

    @property
    def is_ready(self) -> bool:
        """指标是否已准备好（已处理的 K 线数 >= lookback）"""
        return self._bars_seen >= self.lookback

    @property
    def ready(self) -> bool:
        return self.is_ready

    @property
    def value(self) -> Optional[R]:
        """获取当前指标值"""
        return self._result

    def clear(self) -> None:
        """重置指标状态，等价于用同一参数集重新构造"""
        self._bars_seen = 0
        self._result = None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.params.key}, value={self._result})"
