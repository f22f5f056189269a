# quantstream/messages/errorMessage.py
"""错误消息与组件类型枚举 - 支持链式语法"""

from __future__ import annotations
from enum import Enum
from typing import Final


class Component(Enum):
    """组件类型枚举 - 用于错误消息前缀"""
    INDICATOR = "Indicator"
    PARAMETERS = "ParameterSet"
    VALUE_ACCESS = "ValueAccess"
    CLASSIFIER = "LorentzianClassifier"


class MessageBuilder:
    """消息构建器 - 支持链式调用 (不可变模式)

    Example:
        >>> msg = MessageBuilder("周期必须 >= 1。{field}={value}").component(Component.PARAMETERS).build(field="period", value=0)
        >>> print(msg)
        ParameterSet: 周期必须 >= 1。period=0
    """

    def __init__(self, template: str, component: Component | None = None, context: dict | None = None) -> None:
        self._template = template
        self._component = component
        self._context = context or {}

    def component(self, comp: Component) -> MessageBuilder:
        """设置组件前缀 (返回新实例)"""
        return MessageBuilder(self._template, component=comp, context=self._context)

    def ctx(self, **kwargs) -> MessageBuilder:
        """添加通用上下文变量 (返回新实例)"""
        new_context = self._context.copy()
        new_context.update(kwargs)
        return MessageBuilder(self._template, component=self._component, context=new_context)

    def field(self, name: str) -> MessageBuilder:
        """设置字段名 (ctx Shortcut)"""
        return self.ctx(field=name)

    def build(self, **kwargs) -> str:
        """构建最终消息

        Args:
            **kwargs: 额外的模板变量 (优先级高于 context)

        Returns:
            格式化后的完整错误消息
        """
        final_kwargs = self._context.copy()
        final_kwargs.update(kwargs)

        msg = self._template.format(**final_kwargs)

        if self._component:
            return f"{self._component.value}: {msg}"
        return msg

    def __str__(self) -> str:
        """直接转字符串（用于无参数模板）"""
        if self._component is None:
            return self._template
        return f"{self._component.value}: {self._template}"


class ErrorMessage:
    """指标层错误消息模板

    Example:
        >>> ErrorMessage.OUTPUT_LENGTH_MISMATCH.component(Component.INDICATOR).build(inputs=3, outputs=2)
        'Indicator: 输出缓冲区长度必须等于输入长度。inputs=3, outputs=2'
    """

    # ============ 参数校验相关 ============
    PERIOD_NOT_INT: Final[MessageBuilder] = MessageBuilder("周期必须是整数。{field}={value!r}")
    PERIOD_NOT_POSITIVE: Final[MessageBuilder] = MessageBuilder("周期必须 >= 1。{field}={value}")
    NOT_A_NUMBER: Final[MessageBuilder] = MessageBuilder("参数必须是数值。{field}={value!r}")
    PERIOD_ORDER: Final[MessageBuilder] = MessageBuilder("{fast} ({fast_value}) 必须小于 {slow} ({slow_value})")
    PERIOD_NOT_GREATER: Final[MessageBuilder] = MessageBuilder("{small} ({small_value}) 不能超过 {large} ({large_value})")
    THRESHOLD_ORDER: Final[MessageBuilder] = MessageBuilder("{upper} ({upper_value}) 必须大于 {lower} ({lower_value})")
    OUT_OF_RANGE: Final[MessageBuilder] = MessageBuilder("{field} ({value}) 必须在 [{low}, {high}] 区间内")
    NOT_POSITIVE: Final[MessageBuilder] = MessageBuilder("{field} ({value}) 必须为正数")
    NEIGHBORS_UNREACHABLE: Final[MessageBuilder] = MessageBuilder(
        "{neighbors} + {lookahead} ({total}) 不能超过 {lookback} ({lookback_value})，否则已标注样本永远不足"
    )

    # ============ 形状相关 ============
    OUTPUT_LENGTH_MISMATCH: Final[MessageBuilder] = MessageBuilder("输出缓冲区长度必须等于输入长度。inputs={inputs}, outputs={outputs}")
    MISSING_ASPECT: Final[MessageBuilder] = MessageBuilder("输入记录缺少必需字段 {aspect}。record={record!r}")
    SCALAR_MULTI_ASPECT: Final[MessageBuilder] = MessageBuilder("标量输入只适用于单字段插槽，当前插槽需要 {aspects}")
    FEATURE_LENGTH_MISMATCH: Final[MessageBuilder] = MessageBuilder("特征向量长度不一致: {left} != {right}")
    UPDATE_ARITY: Final[MessageBuilder] = MessageBuilder("{name}.update() 需要 {expected} 个数值，收到 {received}")

    # ============ 实现选择相关 ============
    IMPLEMENTATION_NOT_REGISTERED: Final[str] = "{params} 没有可用的实现 (hint={hint})"
    IMPLEMENTATION_FALLBACK: Final[str] = "{params} 不支持 {hint} 实现，回退到 {fallback}"

    # ============ 容量相关 ============
    CAPACITY_NOT_POSITIVE: Final[MessageBuilder] = MessageBuilder("容量必须 >= 1。capacity={capacity}")
    INVALID_MODE: Final[MessageBuilder] = MessageBuilder("无效的模式: {mode}，可选: {choices}")

    @staticmethod
    def format(template: MessageBuilder | str, component: Component | None = None, **kwargs) -> str:
        """格式化错误消息

        Args:
            template: 错误模板 (MessageBuilder 或 str)
            component: 组件前缀 (可选)
            **kwargs: 模板变量

        Returns:
            格式化后的完整错误消息
        """
        tpl = template._template if isinstance(template, MessageBuilder) else template
        msg = tpl.format(**kwargs)

        if component:
            return f"{component.value}: {msg}"
        return msg
