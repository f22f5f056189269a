# quantstream/messages/__init__.py
"""消息模块 - 统一管理错误消息"""

from .errorMessage import ErrorMessage, Component, MessageBuilder

__all__ = ["ErrorMessage", "Component", "MessageBuilder"]
