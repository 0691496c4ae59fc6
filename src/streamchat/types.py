"""Conversation envelopes, provider settings and chat-completions wire models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class Language(str, Enum):
    """Languages the core produces text in."""

    ENGLISH = "en"
    CHINESE = "zh"


class Role(str, Enum):
    """Author of a conversation entry.

    ``PENDING`` marks a placeholder shown while a provider call is in flight;
    it is never sent to a provider.
    """

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    PENDING = "pending"


def _now() -> datetime:
    return datetime.now().astimezone()


class Message(BaseModel):
    """Single conversation turn."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str
    created_at: datetime = Field(default_factory=_now)
    # display label of the provider that produced the entry
    source: str | None = None
    error: bool = False

    @classmethod
    def system(cls, content: str) -> Message:
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str, *, source: str | None = None, error: bool = False) -> Message:
        return cls(role=Role.ASSISTANT, content=content, source=source, error=error)

    @classmethod
    def pending(cls, content: str, *, source: str | None = None) -> Message:
        return cls(role=Role.PENDING, content=content, source=source)

    def to_wire(self) -> WireMessage:
        """Return the role/content pair sent to providers."""
        if self.role is Role.PENDING:
            raise ValueError("pending placeholders cannot be sent to a provider")
        return WireMessage(role=self.role.value, content=self.content)


class ProviderConfig(BaseModel):
    """Settings for one provider client; unset fields take the family defaults."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    api_key: str
    base_url: str | None = None
    model_id: str | None = None
    timeout_s: float = Field(default=30.0, gt=0)


class ModelInfo(BaseModel):
    """Catalog entry for a model offered by a provider family."""

    model_config = ConfigDict(frozen=True)

    id: str
    names: dict[Language, str]
    descriptions: dict[Language, str] = Field(default_factory=dict)
    max_tokens: int | None = None

    def display_name(self, language: Language = Language.ENGLISH) -> str:
        return self.names.get(language) or self.names.get(Language.ENGLISH) or self.id

    def description(self, language: Language = Language.ENGLISH) -> str:
        return self.descriptions.get(language) or self.descriptions.get(Language.ENGLISH, "")


class WireMessage(BaseModel):
    """Role/content pair in a chat-completions request."""

    role: Literal["system", "user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    """Body of a chat-completions request."""

    model: str
    messages: list[WireMessage]
    temperature: float = 0.7
    max_tokens: int | None = None
    stream: bool = False

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class Usage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ChoiceMessage(BaseModel):
    role: str = "assistant"
    content: str | None = None


class Choice(BaseModel):
    index: int = 0
    message: ChoiceMessage
    finish_reason: str | None = None


class ChatCompletion(BaseModel):
    """Non-streaming chat-completions response."""

    id: str | None = None
    object: str | None = None
    created: int | None = None
    model: str | None = None
    choices: list[Choice] = Field(default_factory=list)
    usage: Usage | None = None


class StreamDelta(BaseModel):
    role: str | None = None
    content: str | None = None


class StreamChoice(BaseModel):
    index: int = 0
    delta: StreamDelta
    finish_reason: str | None = None


class StreamChunk(BaseModel):
    """One ``data:`` event of a streaming chat-completions response."""

    id: str | None = None
    object: str | None = None
    created: int | None = None
    model: str | None = None
    choices: list[StreamChoice] = Field(default_factory=list)

    def delta_text(self) -> str:
        if not self.choices:
            return ""
        return self.choices[0].delta.content or ""
