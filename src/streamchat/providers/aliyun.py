"""AliYun DashScope provider implementation (OpenAI-compatible mode)."""

from __future__ import annotations

from collections.abc import Sequence

import httpx

from streamchat import i18n
from streamchat.providers.base import BaseProvider
from streamchat.types import ChatRequest, Language, Message, ModelInfo, ProviderConfig

_MODELS = (
    ModelInfo(
        id="qwen-turbo",
        names={Language.ENGLISH: "Qwen-Turbo", Language.CHINESE: "通义千问-Turbo"},
        descriptions={
            Language.ENGLISH: "Lightweight version, fast response, suitable for general conversation",
            Language.CHINESE: "轻量版，响应速度快，适合通用对话场景",
        },
        max_tokens=2000,
    ),
    ModelInfo(
        id="qwen-plus",
        names={Language.ENGLISH: "Qwen-Plus", Language.CHINESE: "通义千问-Plus"},
        descriptions={
            Language.ENGLISH: "Enhanced version, suitable for complex tasks and long text",
            Language.CHINESE: "增强版，适合复杂任务和长文本处理",
        },
        max_tokens=6000,
    ),
    ModelInfo(
        id="qwen-max",
        names={Language.ENGLISH: "Qwen-Max", Language.CHINESE: "通义千问-Max"},
        descriptions={
            Language.ENGLISH: "Maximum version, strongest capabilities for professional tasks",
            Language.CHINESE: "最强版本，适用于高需求专业任务",
        },
        max_tokens=8000,
    ),
    ModelInfo(
        id="qwen-max-longcontext",
        names={Language.ENGLISH: "Qwen-Max-LongContext", Language.CHINESE: "通义千问-长文本"},
        descriptions={
            Language.ENGLISH: "Supports 128K long context, suitable for long documents",
            Language.CHINESE: "支持128K长文本，适合长文档处理",
        },
        max_tokens=8000,
    ),
)


class AliYunProvider(BaseProvider):
    """Async client for Qwen models through DashScope's compatible mode.

    When ``language`` is set, every request gets a system instruction asking
    the model to answer in that language, placed just before the latest turn.
    """

    name = "aliyun"
    default_base_url = "https://dashscope.aliyuncs.com"
    default_model = "qwen-turbo"
    completions_path = "/compatible-mode/v1/chat/completions"

    def __init__(
        self,
        config: ProviderConfig,
        *,
        language: Language | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(config, transport=transport)
        self._language = language

    @classmethod
    def models(cls) -> tuple[ModelInfo, ...]:
        return _MODELS

    def _build_request(
        self,
        messages: Sequence[Message],
        temperature: float | None,
        max_tokens: int | None,
        stream: bool,
    ) -> ChatRequest:
        if self._language is not None and messages:
            instruction = Message.system(i18n.t("respond_in_language", self._language))
            messages = [*messages[:-1], instruction, messages[-1]]
        return super()._build_request(messages, temperature, max_tokens, stream)
