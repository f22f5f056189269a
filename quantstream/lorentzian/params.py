"""
Lorentzian 分类器参数

默认值:
    neighbors_count=8, lookback_period=100, normalization_window=20,
    rsi_period=14, cci_period=20, adx_period=14, momentum_period=5,
    min_confidence=0.6, label_lookahead=5, label_threshold=0.01

逻辑约束（违规时一次性报告全部字段）:
    - neighbors_count < lookback_period
    - normalization_window <= lookback_period
    - 0 <= min_confidence <= 1
    - label_threshold > 0
    - neighbors_count + label_lookahead <= lookback_period
      （缓冲区最新的 label_lookahead 条永远未标注，否则已标注样本永远凑不够 K 个）
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, List

from quantstream.core.exceptions import ConfigurationError
from quantstream.data.access import InputSlot, PriceAspect
from quantstream.indicators.params import ParameterSet, Problem, period_field, ratio_field
from quantstream.messages import ErrorMessage


class NormalizationMode(Enum):
    """特征归一化方式"""
    ZSCORE = "zscore"   # (x - mean) / 样本标准差
    MINMAX = "minmax"   # 按窗口中点缩放到 [-1, 1]


@dataclass(frozen=True)
class PLorentzianClassification(ParameterSet):
    """Lorentzian k-NN 分类器参数

    输入插槽为 OHLC，与分类器数据源的 K 线输入一致，update() 按 (open, high, low, close) 接收四个值。
    特征只用到 high / low / close，open 不影响输出，但记录中仍必须带有 open 字段。
    """

    NAME: ClassVar[str] = "LorentzianClassification"
    INPUT_SLOT: ClassVar[InputSlot] = InputSlot("OHLC", PriceAspect.OHLC)

    neighbors_count: int = period_field(8, hard_max=100, default_min=3, default_max=20)
    lookback_period: int = period_field(100, hard_min=10, hard_max=5000, default_min=50, default_max=500, step=10)
    normalization_window: int = period_field(20, hard_min=2, hard_max=500, default_min=10, default_max=50)
    rsi_period: int = period_field(14, hard_min=2, hard_max=100, default_min=7, default_max=28)
    cci_period: int = period_field(20, hard_min=2, hard_max=100, default_min=10, default_max=40)
    adx_period: int = period_field(14, hard_min=2, hard_max=100, default_min=7, default_max=28)
    momentum_period: int = period_field(5, hard_max=100, default_min=3, default_max=20)
    min_confidence: float = ratio_field(0.6, hard_min=0.0, hard_max=1.0, default_min=0.5, default_max=0.9, step=0.05)
    label_lookahead: int = period_field(5, hard_max=100, default_min=1, default_max=20)
    label_threshold: float = ratio_field(0.01, hard_min=0.0001, hard_max=0.5, default_min=0.001, default_max=0.05, step=0.001)
    label_inclusive: bool = field(default=False, metadata={"kind": "flag"})
    normalization: NormalizationMode = field(default=NormalizationMode.ZSCORE, metadata={"kind": "mode"})

    def __post_init__(self) -> None:
        if not isinstance(self.normalization, NormalizationMode):
            try:
                mode = NormalizationMode(str(self.normalization).lower())
            except ValueError:
                raise ConfigurationError(
                    self.__class__.__name__,
                    [(("normalization",), ErrorMessage.INVALID_MODE.build(
                        mode=self.normalization,
                        choices=", ".join(m.value for m in NormalizationMode),
                    ))],
                ) from None
            object.__setattr__(self, "normalization", mode)
        super().__post_init__()

    def _check(self) -> List[Problem]:
        problems = self._require_less("neighbors_count", "lookback_period")

        if self.normalization_window > self.lookback_period:
            problems.append((("normalization_window", "lookback_period"), ErrorMessage.PERIOD_NOT_GREATER.build(
                small="normalization_window", small_value=self.normalization_window,
                large="lookback_period", large_value=self.lookback_period,
            )))

        if not 0.0 <= self.min_confidence <= 1.0:
            problems.append((("min_confidence",), ErrorMessage.OUT_OF_RANGE.build(
                field="min_confidence", value=self.min_confidence, low=0.0, high=1.0
            )))

        problems.extend(self._require_positive("label_threshold"))

        total = self.neighbors_count + self.label_lookahead
        if total > self.lookback_period:
            problems.append((("neighbors_count", "label_lookahead", "lookback_period"), ErrorMessage.NEIGHBORS_UNREACHABLE.build(
                neighbors="neighbors_count", lookahead="label_lookahead", total=total,
                lookback="lookback_period", lookback_value=self.lookback_period,
            )))
        return problems

    @property
    def lookback(self) -> int:
        """预热提示：max(lookback_period, 最长子指标周期 + label_lookahead)"""
        longest = max(self.rsi_period, self.cci_period, self.adx_period)
        return max(self.lookback_period, longest + self.label_lookahead)

    @property
    def key(self) -> str:
        return f"{self.NAME}(K:{self.neighbors_count},L:{self.lookback_period},N:{self.normalization_window})"
