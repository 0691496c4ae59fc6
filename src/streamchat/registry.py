"""Catalog of selectable providers and their simulated replies."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

from streamchat import i18n
from streamchat.errors import UnsupportedProviderError
from streamchat.providers import AliYunProvider, DeepSeekProvider
from streamchat.types import Language

DEEPSEEK_API_KEY_ENV = "DEEPSEEK_API_KEY"
ALIYUN_API_KEY_ENV = "ALIYUN_API_KEY"

CUSTOM_PREFIX = "custom:"


class ProviderFamily(str, Enum):
    DEEPSEEK = "deepseek"
    ALIYUN = "aliyun"
    OPENAI = "openai"
    CLAUDE = "claude"
    GEMINI = "gemini"
    LOCAL = "local"
    CUSTOM = "custom"


# Families with a real backend; the rest answer with canned text.
NETWORK_FAMILIES = frozenset({ProviderFamily.DEEPSEEK, ProviderFamily.ALIYUN})

_SIMULATION_KEYS = {
    ProviderFamily.OPENAI: "simulated_openai",
    ProviderFamily.CLAUDE: "simulated_claude",
    ProviderFamily.GEMINI: "simulated_gemini",
    ProviderFamily.LOCAL: "simulated_local",
    ProviderFamily.CUSTOM: "simulated_custom",
}


class ProviderDescriptor(BaseModel):
    """One entry of the provider picker."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    id: str
    family: ProviderFamily
    names: dict[Language, str]
    model_id: str | None = None
    api_key_env: str | None = None

    @property
    def requires_key(self) -> bool:
        return self.api_key_env is not None

    @property
    def network_backed(self) -> bool:
        return self.family in NETWORK_FAMILIES

    def display_name(self, language: Language = Language.ENGLISH) -> str:
        return self.names.get(language) or self.names[Language.ENGLISH]

    def simulate_response(self, text: str, language: Language = Language.ENGLISH) -> str:
        """Deterministic canned reply for providers without a backend."""
        if self.network_backed:
            raise ValueError(f"{self.id} is served by a real API and has no simulated reply")
        key = _SIMULATION_KEYS[self.family]
        return i18n.t(key, language, name=self.display_name(language), text=text)


def _same(name: str) -> dict[Language, str]:
    return {Language.ENGLISH: name, Language.CHINESE: name}


def _aliyun(model_id: str) -> ProviderDescriptor:
    return ProviderDescriptor(
        id=model_id,
        family=ProviderFamily.ALIYUN,
        names=AliYunProvider.model_info(model_id).names,
        model_id=model_id,
        api_key_env=ALIYUN_API_KEY_ENV,
    )


def custom_provider(name: str) -> ProviderDescriptor:
    return ProviderDescriptor(id=f"{CUSTOM_PREFIX}{name}", family=ProviderFamily.CUSTOM, names=_same(name))


_PROVIDERS: tuple[ProviderDescriptor, ...] = (
    ProviderDescriptor(
        id="deepseek",
        family=ProviderFamily.DEEPSEEK,
        names=DeepSeekProvider.model_info(DeepSeekProvider.default_model).names,
        model_id=DeepSeekProvider.default_model,
        api_key_env=DEEPSEEK_API_KEY_ENV,
    ),
    *(_aliyun(info.id) for info in AliYunProvider.models()),
    ProviderDescriptor(
        id="openai",
        family=ProviderFamily.OPENAI,
        names=_same("OpenAI GPT"),
        api_key_env="OPENAI_API_KEY",
    ),
    ProviderDescriptor(
        id="claude",
        family=ProviderFamily.CLAUDE,
        names=_same("Claude"),
        api_key_env="CLAUDE_API_KEY",
    ),
    ProviderDescriptor(
        id="gemini",
        family=ProviderFamily.GEMINI,
        names=_same("Google Gemini"),
        api_key_env="GEMINI_API_KEY",
    ),
    ProviderDescriptor(
        id="local",
        family=ProviderFamily.LOCAL,
        names={Language.ENGLISH: "Local LLM", Language.CHINESE: "本地大模型"},
    ),
    custom_provider("Custom Model"),
)

_ALIASES = {
    "openaigpt": "openai",
    "localllm": "local",
    "qwenturbo": "qwen-turbo",
    "qwenplus": "qwen-plus",
    "qwenmax": "qwen-max",
}


def list_providers() -> tuple[ProviderDescriptor, ...]:
    """Return every selectable provider in display order."""
    return _PROVIDERS


def get_provider(provider_id: str) -> ProviderDescriptor:
    """Resolve a provider id (case-insensitive, with a few aliases)."""
    if provider_id.lower().startswith(CUSTOM_PREFIX):
        name = provider_id[len(CUSTOM_PREFIX) :].strip()
        if name:
            return custom_provider(name)
        raise UnsupportedProviderError(provider_id)

    wanted = provider_id.strip().lower()
    wanted = _ALIASES.get(wanted, wanted)
    for descriptor in _PROVIDERS:
        if descriptor.id == wanted:
            return descriptor
    raise UnsupportedProviderError(provider_id)
