"""指标层异常定义

异常分类：
- ConfigurationError: 参数组合非法，构造或 validate() 时立即抛出
- ShapeError: 输出缓冲区长度不匹配、输入缺少必需字段等形状错误

数值边界情况（零方差、零区间）不抛异常，由各指标返回文档化的兜底值。
"""

from __future__ import annotations

from typing import Iterable, Tuple


class IndicatorError(ValueError):
    """指标层异常基类"""


class ConfigurationError(IndicatorError):
    """参数配置错误

    Attributes:
        fields: 违规字段名（可能有多个）
        problems: (字段名, 描述) 列表

    Example:
        >>> try:
        ...     PMACD(fast_period=26, slow_period=12)
        ... except ConfigurationError as e:
        ...     print(e.fields)
        ('fast_period', 'slow_period')
    """

    def __init__(self, owner: str, problems: Iterable[Tuple[Tuple[str, ...], str]]) -> None:
        self.owner = owner
        self.problems = list(problems)

        fields: list[str] = []
        for names, _ in self.problems:
            for name in names:
                if name not in fields:
                    fields.append(name)
        self.fields: Tuple[str, ...] = tuple(fields)

        details = "; ".join(message for _, message in self.problems)
        super().__init__(f"{owner}: {details}")


class ShapeError(IndicatorError):
    """输入/输出形状错误"""
