"""核心基础设施：日志与异常"""

from .exceptions import IndicatorError, ConfigurationError, ShapeError

__all__ = [
    "IndicatorError",
    "ConfigurationError",
    "ShapeError",
]
