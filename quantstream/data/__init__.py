"""数据层模块"""

from .models import Bar
from .access import PriceAspect, InputSlot, ValueAccess

__all__ = [
    "Bar",
    "PriceAspect",
    "InputSlot",
    "ValueAccess",
]
