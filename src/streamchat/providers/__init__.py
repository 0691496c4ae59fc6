"""Provider definitions for streamchat."""

from .aliyun import AliYunProvider
from .base import BaseProvider
from .deepseek import DeepSeekProvider

__all__ = [
    "BaseProvider",
    "DeepSeekProvider",
    "AliYunProvider",
]
