"""
指标参数集

每个指标实例持有一个不可变的参数集 (ParameterSet)：

- 构造时立即校验逻辑约束（正数周期、快慢周期顺序、超买超卖阈值顺序）
- 违规时抛出 ConfigurationError 并列出全部违规字段，绝不静默修正
- 参数的取值范围 (ParameterBounds) 只作为元数据提供给外部寻优器，核心不强制

Example:
    >>> p = PMACD(12, 26, 9)
    >>> p.lookback
    34
    >>> PMACD(26, 12)
    Traceback (most recent call last):
    ...
    ConfigurationError: PMACD: fast_period (26) 必须小于 slow_period (12)
"""

import dataclasses
import math
from dataclasses import dataclass, field, fields
from enum import Enum
from numbers import Real
from typing import Any, ClassVar, Dict, List, Optional, Tuple

from quantstream.core.exceptions import ConfigurationError
from quantstream.data.access import InputSlot, PriceAspect
from quantstream.messages import ErrorMessage


Problem = Tuple[Tuple[str, ...], str]


class ImplementationHint(Enum):
    """实现选择提示

    - AUTO: 按 settings.IMPLEMENTATION_PREFERENCE 顺序选择
    - REFERENCE: 参考实现（逐窗口重算，用于一致性校验）
    - FIRST_PARTY: 自有增量实现
    - OPTIMIZED: 优化实现（未注册时回退）
    """
    AUTO = "auto"
    REFERENCE = "reference"
    FIRST_PARTY = "first_party"
    OPTIMIZED = "optimized"


@dataclass(frozen=True)
class ParameterBounds:
    """寻优边界元数据（仅供外部超参数搜索使用）"""
    hard_min: Optional[float] = None
    hard_max: Optional[float] = None
    default_min: Optional[float] = None
    default_max: Optional[float] = None
    step: Optional[float] = None
    optimize_priority: int = 0


def period_field(
    default: int,
    *,
    hard_min: int = 1,
    hard_max: Optional[int] = None,
    default_min: Optional[int] = None,
    default_max: Optional[int] = None,
    step: int = 1,
) -> Any:
    """声明整数周期参数（强制正整数）"""
    bounds = ParameterBounds(hard_min, hard_max, default_min, default_max, step)
    return field(default=default, metadata={"kind": "period", "bounds": bounds})


def ratio_field(
    default: float,
    *,
    hard_min: Optional[float] = None,
    hard_max: Optional[float] = None,
    default_min: Optional[float] = None,
    default_max: Optional[float] = None,
    step: Optional[float] = None,
    optimize_priority: int = 0,
) -> Any:
    """声明浮点参数（强制为有限数值）"""
    bounds = ParameterBounds(hard_min, hard_max, default_min, default_max, step, optimize_priority)
    return field(default=default, metadata={"kind": "ratio", "bounds": bounds})


@dataclass(frozen=True)
class ParameterSet:
    """参数集基类

    子类用 @dataclass(frozen=True) 声明字段，并实现 lookback 与 _check()。
    """

    NAME: ClassVar[str] = "Indicator"
    INPUT_SLOT: ClassVar[InputSlot] = InputSlot("Source", PriceAspect.CLOSE)

    implementation_hint: ImplementationHint = field(
        default=ImplementationHint.AUTO, kw_only=True, metadata={"kind": "hint"}
    )

    def __post_init__(self) -> None:
        if not isinstance(self.implementation_hint, ImplementationHint):
            # 允许传入字符串，如 "reference"
            try:
                hint = ImplementationHint(str(self.implementation_hint).lower())
            except ValueError:
                raise ConfigurationError(
                    self.__class__.__name__,
                    [(("implementation_hint",), ErrorMessage.INVALID_MODE.build(
                        mode=self.implementation_hint,
                        choices=", ".join(h.value for h in ImplementationHint),
                    ))],
                ) from None
            object.__setattr__(self, "implementation_hint", hint)
        self.validate()

    # ============ 校验 ============

    def validate(self) -> None:
        """校验参数

        Raises:
            ConfigurationError: 存在违规字段
        """
        problems: List[Problem] = []
        type_errors = False

        for f in fields(self):
            kind = f.metadata.get("kind")
            value = getattr(self, f.name)

            if kind == "period":
                if isinstance(value, bool) or not isinstance(value, int):
                    problems.append(((f.name,), ErrorMessage.PERIOD_NOT_INT.build(field=f.name, value=value)))
                    type_errors = True
                elif value < 1:
                    problems.append(((f.name,), ErrorMessage.PERIOD_NOT_POSITIVE.build(field=f.name, value=value)))
            elif kind == "ratio":
                if isinstance(value, bool) or not isinstance(value, Real) or not math.isfinite(value):
                    problems.append(((f.name,), ErrorMessage.NOT_A_NUMBER.build(field=f.name, value=value)))
                    type_errors = True

        # 类型错误时跳过逻辑校验，避免比较非数值
        if not type_errors:
            problems.extend(self._check())

        if problems:
            raise ConfigurationError(self.__class__.__name__, problems)

    def _check(self) -> List[Problem]:
        """子类的逻辑约束，返回违规列表"""
        return []

    def _require_less(self, fast: str, slow: str) -> List[Problem]:
        fast_value, slow_value = getattr(self, fast), getattr(self, slow)
        if fast_value >= slow_value:
            return [((fast, slow), ErrorMessage.PERIOD_ORDER.build(
                fast=fast, fast_value=fast_value, slow=slow, slow_value=slow_value
            ))]
        return []

    def _require_thresholds(self, upper: str, lower: str, low: float = 0.0, high: float = 100.0) -> List[Problem]:
        problems: List[Problem] = []
        upper_value, lower_value = getattr(self, upper), getattr(self, lower)
        for name, value in ((upper, upper_value), (lower, lower_value)):
            if not low <= value <= high:
                problems.append(((name,), ErrorMessage.OUT_OF_RANGE.build(field=name, value=value, low=low, high=high)))
        if upper_value <= lower_value:
            problems.append(((upper, lower), ErrorMessage.THRESHOLD_ORDER.build(
                upper=upper, upper_value=upper_value, lower=lower, lower_value=lower_value
            )))
        return problems

    def _require_positive(self, name: str) -> List[Problem]:
        value = getattr(self, name)
        if value <= 0:
            return [((name,), ErrorMessage.NOT_POSITIVE.build(field=name, value=value))]
        return []

    # ============ 派生值 ============

    @property
    def lookback(self) -> int:
        """输出有效前需要的最少 K 线数"""
        raise NotImplementedError

    @property
    def key(self) -> str:
        """参数标识，如 MACD(12,26,9)"""
        values = [
            str(getattr(self, f.name))
            for f in fields(self)
            if f.metadata.get("kind") in ("period", "ratio")
        ]
        return f"{self.NAME}({','.join(values)})"

    @classmethod
    def input_slot(cls) -> InputSlot:
        return cls.INPUT_SLOT

    @classmethod
    def bounds(cls) -> Dict[str, ParameterBounds]:
        """各参数的寻优边界"""
        return {f.name: f.metadata["bounds"] for f in fields(cls) if "bounds" in f.metadata}

    def to_dict(self) -> Dict[str, Any]:
        result = {}
        for f in fields(self):
            value = getattr(self, f.name)
            result[f.name] = value.value if isinstance(value, Enum) else value
        return result

    def replace(self, **changes: Any) -> "ParameterSet":
        """返回修改后的新参数集（重新校验）"""
        return dataclasses.replace(self, **changes)


# ============ 具体参数集 ============

@dataclass(frozen=True)
class PSMA(ParameterSet):
    """SMA 参数"""
    NAME: ClassVar[str] = "SMA"

    period: int = period_field(20, hard_max=10_000, default_min=5, default_max=200)

    @property
    def lookback(self) -> int:
        return self.period


@dataclass(frozen=True)
class PEMA(ParameterSet):
    """EMA 参数"""
    NAME: ClassVar[str] = "EMA"

    period: int = period_field(20, hard_max=10_000, default_min=5, default_max=200)

    @property
    def lookback(self) -> int:
        return self.period


@dataclass(frozen=True)
class PRSI(ParameterSet):
    """RSI 参数

    需要 period 个价格变化，因此 lookback = period + 1。
    """
    NAME: ClassVar[str] = "RSI"

    period: int = period_field(14, hard_min=2, hard_max=200, default_min=5, default_max=50)
    overbought: float = ratio_field(70.0, hard_min=50.0, hard_max=100.0, step=1.0, optimize_priority=-1)
    oversold: float = ratio_field(30.0, hard_min=0.0, hard_max=50.0, step=1.0, optimize_priority=-1)

    def _check(self) -> List[Problem]:
        return self._require_thresholds("overbought", "oversold")

    @property
    def lookback(self) -> int:
        return self.period + 1


@dataclass(frozen=True)
class PMACD(ParameterSet):
    """MACD 参数

    两级平滑：慢线需要 slow_period 根，信号线再需要 signal_period - 1 根。
    """
    NAME: ClassVar[str] = "MACD"

    fast_period: int = period_field(12, hard_max=500, default_min=5, default_max=50)
    slow_period: int = period_field(26, hard_min=2, hard_max=1000, default_min=10, default_max=100)
    signal_period: int = period_field(9, hard_max=200, default_min=3, default_max=30)

    def _check(self) -> List[Problem]:
        return self._require_less("fast_period", "slow_period")

    @property
    def lookback(self) -> int:
        return self.slow_period + self.signal_period - 1


@dataclass(frozen=True)
class PCCI(ParameterSet):
    """CCI 参数"""
    NAME: ClassVar[str] = "CCI"
    INPUT_SLOT: ClassVar[InputSlot] = InputSlot("HLC", PriceAspect.HLC)

    period: int = period_field(20, hard_min=2, hard_max=200, default_min=10, default_max=50)

    @property
    def lookback(self) -> int:
        return self.period


@dataclass(frozen=True)
class PADX(ParameterSet):
    """ADX 参数

    period 个 TR/DM 需要 period + 1 根 K 线，再对 period 个 DX 取平均，
    因此 lookback = 2 * period。
    """
    NAME: ClassVar[str] = "ADX"
    INPUT_SLOT: ClassVar[InputSlot] = InputSlot("HLC", PriceAspect.HLC)

    period: int = period_field(14, hard_min=2, hard_max=200, default_min=5, default_max=50)

    @property
    def lookback(self) -> int:
        return 2 * self.period


@dataclass(frozen=True)
class PStochastic(ParameterSet):
    """随机指标参数"""
    NAME: ClassVar[str] = "Stochastic"
    INPUT_SLOT: ClassVar[InputSlot] = InputSlot("HLC", PriceAspect.HLC)

    k_period: int = period_field(14, hard_max=500, default_min=5, default_max=50)
    d_period: int = period_field(3, hard_max=50, default_min=1, default_max=10)
    overbought: float = ratio_field(80.0, hard_min=50.0, hard_max=100.0, step=1.0, optimize_priority=-1)
    oversold: float = ratio_field(20.0, hard_min=0.0, hard_max=50.0, step=1.0, optimize_priority=-1)

    def _check(self) -> List[Problem]:
        return self._require_thresholds("overbought", "oversold")

    @property
    def lookback(self) -> int:
        return self.k_period + self.d_period - 1


@dataclass(frozen=True)
class PBollingerBands(ParameterSet):
    """布林带参数"""
    NAME: ClassVar[str] = "BollingerBands"

    period: int = period_field(20, hard_min=2, hard_max=1000, default_min=10, default_max=50)
    std_dev: float = ratio_field(2.0, hard_min=0.1, hard_max=10.0, default_min=1.0, default_max=3.0, step=0.1)

    def _check(self) -> List[Problem]:
        return self._require_positive("std_dev")

    @property
    def lookback(self) -> int:
        return self.period
