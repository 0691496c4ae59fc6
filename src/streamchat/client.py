"""Lazily built, reused provider clients."""

from __future__ import annotations

import logging

import httpx

from streamchat.config import Settings
from streamchat.errors import UnsupportedProviderError
from streamchat.providers.aliyun import AliYunProvider
from streamchat.providers.base import BaseProvider
from streamchat.providers.deepseek import DeepSeekProvider
from streamchat.registry import ProviderDescriptor, ProviderFamily


class ProviderClients:
    """Builds one client per network-backed provider on first use.

    Not thread-safe: all calls must come from the dispatch loop's thread,
    which is also where the clients' HTTP connections live.
    """

    _logger = logging.getLogger(__name__)

    def __init__(
        self,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._clients: dict[str, BaseProvider] = {}

    def get_client(self, descriptor: ProviderDescriptor) -> BaseProvider:
        """Return the client for ``descriptor``, building it if needed.

        Raises:
            MissingApiKeyError: the provider's key is unset or blank.
            UnsupportedProviderError: the provider has no network backend.
        """
        try:
            return self._clients[descriptor.id]
        except KeyError:
            pass

        config = self._settings.provider_config(descriptor)
        if descriptor.family is ProviderFamily.DEEPSEEK:
            client: BaseProvider = DeepSeekProvider(config, transport=self._transport)
        elif descriptor.family is ProviderFamily.ALIYUN:
            client = AliYunProvider(config, language=self._settings.language, transport=self._transport)
        else:
            raise UnsupportedProviderError(descriptor.id)

        self._logger.debug("Created %s client for model %s", client.name, client.model)
        self._clients[descriptor.id] = client
        return client

    async def aclose(self) -> None:
        """Close every client built so far."""
        clients, self._clients = list(self._clients.values()), {}
        for client in clients:
            await client.aclose()
