"""Provider-agnostic client contract and the shared chat-completions flow."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

import httpx
from pydantic import ValidationError

from streamchat.errors import ConfigError, ParseError, StreamChatError
from streamchat.transport import ChatTransport, DeltaSink
from streamchat.types import ChatCompletion, ChatRequest, Language, Message, ModelInfo, ProviderConfig

DEFAULT_TEMPERATURE = 0.7
PROBE_PROMPT = "Hello, respond with 'OK' if you can hear me."


class BaseProvider(ABC):
    """Base class for OpenAI-compatible chat-completions backends.

    Subclasses pin the family's endpoint path, defaults and model catalog.
    """

    name: str
    default_base_url: str
    default_model: str
    completions_path: str

    _logger = logging.getLogger(__name__)

    def __init__(
        self,
        config: ProviderConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not config.api_key.strip():
            raise ConfigError("API key cannot be empty")

        self._config = config
        self._model = config.model_id or self.default_model
        self._headers = {
            "Authorization": f"Bearer {config.api_key}",
            "Content-Type": "application/json",
        }
        self._transport = ChatTransport(
            base_url=config.base_url or self.default_base_url,
            timeout_s=config.timeout_s,
            transport=transport,
        )

    @property
    def config(self) -> ProviderConfig:
        return self._config

    @property
    def model(self) -> str:
        """Model id sent with every request."""
        return self._model

    @classmethod
    @abstractmethod
    def models(cls) -> tuple[ModelInfo, ...]:
        """Return the family's model catalog."""
        raise NotImplementedError

    @classmethod
    def model_info(cls, model_id: str) -> ModelInfo:
        """Return the catalog entry for ``model_id``, or a generic one."""
        for info in cls.models():
            if info.id == model_id:
                return info
        return ModelInfo(id=model_id, names={Language.ENGLISH: model_id})

    async def chat(self, messages: Sequence[Message]) -> str:
        """Non-streaming completion with default sampling options."""
        return await self.chat_with_options(messages)

    async def chat_with_options(
        self,
        messages: Sequence[Message],
        temperature: float | None = None,
        max_tokens: int | None = None,
        stream: bool = False,
        on_delta: DeltaSink | None = None,
    ) -> str:
        """Send ``messages`` and return the assistant text."""
        request = self._build_request(messages, temperature, max_tokens, stream)
        payload = request.to_payload()

        if stream:
            text = await self._transport.post_stream(self.completions_path, payload, self._headers, on_delta)
            self._logger.debug("%s streamed %d characters", self.name, len(text))
            return text

        data = await self._transport.post_json(self.completions_path, payload, self._headers)
        return self._extract_text(data)

    async def chat_stream(
        self,
        messages: Sequence[Message],
        on_delta: DeltaSink,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        """Stream a completion, passing each text delta to ``on_delta``."""
        return await self.chat_with_options(
            messages, temperature=temperature, max_tokens=max_tokens, stream=True, on_delta=on_delta
        )

    async def simple_chat(self, user_text: str, system_prompt: str | None = None) -> str:
        """Single-turn convenience around :meth:`chat`."""
        return await self.chat(self._simple_messages(user_text, system_prompt))

    async def test_connection(self) -> bool:
        """Return whether the backend answers a probe with any text."""
        try:
            reply = await self.chat([Message.user(PROBE_PROMPT)])
        except StreamChatError as exc:
            self._logger.warning("%s connection test failed: %s", self.name, exc)
            return False
        return bool(reply)

    async def aclose(self) -> None:
        """Close the underlying transport."""
        await self._transport.aclose()

    async def __aenter__(self) -> BaseProvider:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    def _simple_messages(self, user_text: str, system_prompt: str | None) -> list[Message]:
        messages: list[Message] = []
        if system_prompt:
            messages.append(Message.system(system_prompt))
        messages.append(Message.user(user_text))
        return messages

    def _build_request(
        self,
        messages: Sequence[Message],
        temperature: float | None,
        max_tokens: int | None,
        stream: bool,
    ) -> ChatRequest:
        return ChatRequest(
            model=self._model,
            messages=[m.to_wire() for m in messages],
            temperature=DEFAULT_TEMPERATURE if temperature is None else temperature,
            max_tokens=max_tokens,
            stream=stream,
        )

    def _extract_text(self, data: dict[str, Any]) -> str:
        try:
            completion = ChatCompletion.model_validate(data)
        except ValidationError as exc:
            raise ParseError(f"Failed to parse response: {exc}") from exc

        if not completion.choices:
            raise ParseError("No choices in response")

        if completion.usage is not None:
            self._logger.debug(
                "%s usage: prompt=%d completion=%d total=%d",
                self.name,
                completion.usage.prompt_tokens,
                completion.usage.completion_tokens,
                completion.usage.total_tokens,
            )
        return completion.choices[0].message.content or ""
