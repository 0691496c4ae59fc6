"""DeepSeek provider implementation."""

from __future__ import annotations

from streamchat.providers.base import BaseProvider
from streamchat.types import Language, ModelInfo

_MODELS = (
    ModelInfo(
        id="deepseek-chat",
        names={Language.ENGLISH: "DeepSeek", Language.CHINESE: "DeepSeek"},
        descriptions={
            Language.ENGLISH: "AI assistant from DeepSeek, supports 128K context",
            Language.CHINESE: "深度求索公司的AI助手，支持128K上下文",
        },
    ),
    ModelInfo(
        id="deepseek-reasoner",
        names={Language.ENGLISH: "DeepSeek Reasoner", Language.CHINESE: "DeepSeek 推理"},
        descriptions={
            Language.ENGLISH: "Reasoning model that thinks before answering",
            Language.CHINESE: "先思考后回答的推理模型",
        },
    ),
)


class DeepSeekProvider(BaseProvider):
    """Async client for the DeepSeek chat-completions API."""

    name = "deepseek"
    default_base_url = "https://api.deepseek.com"
    default_model = "deepseek-chat"
    completions_path = "/v1/chat/completions"

    @classmethod
    def models(cls) -> tuple[ModelInfo, ...]:
        return _MODELS
