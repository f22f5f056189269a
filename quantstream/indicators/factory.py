# quantstream/indicators/factory.py
"""指标实现工厂

每个参数集类型可以注册多种实现 (参考 / 自有 / 优化)，
create_indicator() 根据参数集的 implementation_hint 选择：

- AUTO: 按 settings.IMPLEMENTATION_PREFERENCE 顺序取第一个可用实现
- 显式提示: 优先使用该实现；未注册或 supports() 返回 False 时按同一顺序回退，并记录 warning

选择只依据注册表的键 (参数集类型, 提示)，不检查指标实例的类型。
"""

import logging
from typing import Dict, List, Optional, Sequence, Type

from quantstream.config.settings import settings
from quantstream.core.exceptions import ConfigurationError
from quantstream.messages import ErrorMessage
from .base import BaseIndicator
from .params import (
    ImplementationHint,
    ParameterSet,
    PADX,
    PBollingerBands,
    PCCI,
    PEMA,
    PMACD,
    PRSI,
    PSMA,
    PStochastic,
)
from .ma import EMA, SMA, ReferenceEMA, ReferenceSMA
from .oscillator import MACD, RSI, ReferenceMACD, ReferenceRSI
from .advanced import ADX, CCI, Stochastic, ReferenceADX, ReferenceCCI, ReferenceStochastic
from .volatility import BollingerBands, ReferenceBollingerBands


logger = logging.getLogger(__name__)

_REGISTRY: Dict[Type[ParameterSet], Dict[ImplementationHint, Type[BaseIndicator]]] = {}


def register_implementation(
    params_cls: Type[ParameterSet],
    hint: ImplementationHint,
    indicator_cls: Type[BaseIndicator],
) -> None:
    """注册指标实现

    Args:
        params_cls: 参数集类型
        hint: 实现类型 (不能是 AUTO)
        indicator_cls: 指标类，构造函数接受一个参数集
    """
    if hint is ImplementationHint.AUTO:
        raise ConfigurationError(
            indicator_cls.__name__,
            [(("hint",), ErrorMessage.INVALID_MODE.build(
                mode=hint.value,
                choices=", ".join(h.value for h in ImplementationHint if h is not ImplementationHint.AUTO),
            ))],
        )
    _REGISTRY.setdefault(params_cls, {})[hint] = indicator_cls


def registered_implementations(params_cls: Type[ParameterSet]) -> Dict[ImplementationHint, Type[BaseIndicator]]:
    """返回某参数集类型已注册的实现 (副本)"""
    return dict(_REGISTRY.get(params_cls, {}))


def preference_order(preference: Optional[Sequence[str]] = None) -> List[ImplementationHint]:
    """AUTO 模式下的实现尝试顺序"""
    names = preference if preference is not None else settings.IMPLEMENTATION_PREFERENCE
    return [ImplementationHint(name) for name in names]


def resolve_implementation(
    params: ParameterSet,
    preference: Optional[Sequence[str]] = None,
) -> Type[BaseIndicator]:
    """为参数集选择实现类

    Args:
        params: 参数集
        preference: 覆盖 settings.IMPLEMENTATION_PREFERENCE 的尝试顺序

    Returns:
        指标类

    Raises:
        ConfigurationError: 没有任何可用实现
    """
    hint = params.implementation_hint
    order = preference_order(preference)
    implementations = _REGISTRY.get(type(params), {})

    if hint is ImplementationHint.AUTO:
        candidates = order
    else:
        candidates = [hint] + [h for h in order if h is not hint]

    for candidate in candidates:
        indicator_cls = implementations.get(candidate)
        if indicator_cls is None or not indicator_cls.supports(params):
            continue

        if hint is not ImplementationHint.AUTO and candidate is not hint:
            logger.warning(ErrorMessage.IMPLEMENTATION_FALLBACK.format(
                params=params.key, hint=hint.value, fallback=candidate.value
            ))
        logger.debug(f"{params.key} 使用实现 {indicator_cls.__name__} ({candidate.value})")
        return indicator_cls

    raise ConfigurationError(
        type(params).__name__,
        [(("implementation_hint",), ErrorMessage.IMPLEMENTATION_NOT_REGISTERED.format(
            params=params.key, hint=hint.value
        ))],
    )


def create_indicator(params: ParameterSet, preference: Optional[Sequence[str]] = None) -> BaseIndicator:
    """根据参数集创建指标实例

    Example:
        >>> rsi = create_indicator(PRSI(14))
        >>> type(rsi).__name__
        'RSI'
        >>> ref = create_indicator(PRSI(14, implementation_hint="reference"))
        >>> type(ref).__name__
        'ReferenceRSI'
    """
    return resolve_implementation(params, preference)(params)


def _register_builtin() -> None:
    builtin = [
        (PSMA, SMA, ReferenceSMA),
        (PEMA, EMA, ReferenceEMA),
        (PRSI, RSI, ReferenceRSI),
        (PMACD, MACD, ReferenceMACD),
        (PCCI, CCI, ReferenceCCI),
        (PADX, ADX, ReferenceADX),
        (PStochastic, Stochastic, ReferenceStochastic),
        (PBollingerBands, BollingerBands, ReferenceBollingerBands),
    ]
    for params_cls, first_party, reference in builtin:
        for indicator_cls in (first_party, reference):
            register_implementation(params_cls, indicator_cls.IMPLEMENTATION, indicator_cls)


_register_builtin()
