"""Startup configuration loaded once from the environment."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from streamchat.errors import ConfigError, MissingApiKeyError
from streamchat.registry import (
    ALIYUN_API_KEY_ENV,
    DEEPSEEK_API_KEY_ENV,
    ProviderDescriptor,
    ProviderFamily,
)
from streamchat.types import Language, ProviderConfig

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 30.0


class Settings(BaseModel):
    """Immutable snapshot of everything the core reads from the environment.

    ``api_keys`` maps an environment variable name to its raw value, or
    ``None`` when the variable was not set at all. Both mappings are
    read-only views over a private copy of what was passed in.
    """

    model_config = ConfigDict(frozen=True)

    api_keys: Mapping[str, str | None] = Field(default_factory=dict, validate_default=True)
    base_urls: Mapping[ProviderFamily, str] = Field(default_factory=dict, validate_default=True)
    deepseek_model: str | None = None
    timeout_s: float = Field(default=DEFAULT_TIMEOUT_S, gt=0)
    language: Language = Language.ENGLISH
    log_level: str = "WARNING"

    @field_validator("api_keys", "base_urls", mode="after")
    @classmethod
    def freeze_mapping(cls, v: Mapping) -> Mapping:
        return MappingProxyType(dict(v))

    @field_serializer("api_keys", "base_urls")
    def serialize_mapping(self, value: Mapping) -> dict:
        return dict(value)

    def provider_config(self, descriptor: ProviderDescriptor) -> ProviderConfig:
        """Build the client config for a network-backed provider.

        Raises:
            MissingApiKeyError: the provider's key variable is unset or blank.
        """
        env_var = descriptor.api_key_env
        if env_var is None:
            raise ConfigError(f"Provider '{descriptor.id}' does not take an API key")

        raw = self.api_keys.get(env_var)
        if raw is None:
            raise MissingApiKeyError(env_var, empty=False)
        if not raw.strip():
            raise MissingApiKeyError(env_var, empty=True)

        model_id = descriptor.model_id
        if descriptor.family is ProviderFamily.DEEPSEEK and self.deepseek_model:
            model_id = self.deepseek_model

        return ProviderConfig(
            api_key=raw.strip(),
            base_url=self.base_urls.get(descriptor.family),
            model_id=model_id,
            timeout_s=self.timeout_s,
        )


def load_settings(
    environ: Mapping[str, str] | None = None,
    *,
    dotenv_path: str | Path | None = None,
) -> Settings:
    """Read settings from ``environ`` (default: the process environment).

    When reading the process environment, a ``.env`` file is loaded first;
    variables already set are not overridden.
    """
    if environ is None:
        load_dotenv(dotenv_path=dotenv_path)
        environ = os.environ

    base_urls: dict[ProviderFamily, str] = {}
    for family, var in ((ProviderFamily.DEEPSEEK, "DEEPSEEK_BASE_URL"), (ProviderFamily.ALIYUN, "ALIYUN_BASE_URL")):
        value = environ.get(var, "").strip()
        if value:
            base_urls[family] = value.rstrip("/")

    return Settings(
        api_keys={var: environ.get(var) for var in (DEEPSEEK_API_KEY_ENV, ALIYUN_API_KEY_ENV)},
        base_urls=base_urls,
        deepseek_model=environ.get("DEEPSEEK_MODEL", "").strip() or None,
        timeout_s=_parse_timeout(environ.get("STREAMCHAT_TIMEOUT")),
        language=_parse_language(environ.get("STREAMCHAT_LANGUAGE")),
        log_level=environ.get("STREAMCHAT_LOG_LEVEL", "WARNING").strip().upper() or "WARNING",
    )


def _parse_timeout(raw: str | None) -> float:
    if raw is None or not raw.strip():
        return DEFAULT_TIMEOUT_S
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigError(f"STREAMCHAT_TIMEOUT must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ConfigError(f"STREAMCHAT_TIMEOUT must be positive, got {raw!r}")
    return value


def _parse_language(raw: str | None) -> Language:
    if raw is None or not raw.strip():
        return Language.ENGLISH
    try:
        return Language(raw.strip().lower())
    except ValueError:
        logger.warning("Unknown STREAMCHAT_LANGUAGE %r, falling back to English", raw)
        return Language.ENGLISH
