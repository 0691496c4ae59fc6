"""Turn dispatch: user input in, provider reply (or error summary) out."""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Coroutine, Sequence
from concurrent.futures import CancelledError, Future
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar

import httpx

from streamchat import i18n
from streamchat.client import ProviderClients
from streamchat.config import Settings
from streamchat.errors import (
    ApiError,
    ConfigError,
    MissingApiKeyError,
    ParseError,
    RequestError,
    RequestTimeout,
    StreamChatError,
)
from streamchat.registry import ProviderDescriptor, get_provider, list_providers
from streamchat.store import ConversationStore, EntryId
from streamchat.types import Language, Message, Role

T = TypeVar("T")

SIMULATED_DELAY_S = 0.5


class TurnState(str, Enum):
    IDLE = "idle"
    USER_SUBMITTED = "user_submitted"
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class Turn:
    """Handle for one submitted user message."""

    provider: ProviderDescriptor
    user_entry: EntryId
    placeholder: EntryId
    future: Future[TurnState]

    @property
    def state(self) -> TurnState:
        if not self.future.done():
            return TurnState.PENDING
        if self.future.cancelled():
            return TurnState.FAILED
        return self.future.result()

    def wait(self, timeout: float | None = None) -> TurnState:
        """Block until the turn is finished; for scripts and tests, not the UI thread.

        A turn cancelled by :meth:`Dispatcher.close` counts as failed.
        """
        try:
            return self.future.result(timeout)
        except CancelledError:
            return TurnState.FAILED


class BackgroundLoop:
    """An asyncio event loop running on its own daemon thread."""

    def __init__(self, name: str = "streamchat-dispatch") -> None:
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    def _run(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    def spawn(self, coro: Coroutine[Any, Any, T]) -> Future[T]:
        """Schedule ``coro`` on the loop without waiting for it."""
        return asyncio.run_coroutine_threadsafe(coro, self._loop)

    def cancel_pending(self, timeout: float | None = 5.0) -> None:
        """Cancel every task still running on the loop and wait for them to unwind."""
        if self._loop.is_closed():
            return
        self.spawn(self._cancel_all()).result(timeout)

    @staticmethod
    async def _cancel_all() -> None:
        current = asyncio.current_task()
        tasks = [task for task in asyncio.all_tasks() if task is not current]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    def stop(self, timeout: float | None = 5.0) -> None:
        if self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout)
        if not self._thread.is_alive():
            self._loop.close()


def describe_error(exc: Exception, name: str, language: Language = Language.ENGLISH) -> str:
    """Human-readable, localized summary of a failed provider call."""
    if isinstance(exc, MissingApiKeyError):
        key = "key_empty" if exc.empty else "key_missing"
        return i18n.t(key, language, name=name, env_var=exc.env_var)
    if isinstance(exc, ConfigError):
        return i18n.t("client_creation_failed", language, name=name, detail=exc)
    if isinstance(exc, RequestTimeout):
        return i18n.t("timeout", language, name=name, seconds=exc.timeout_s)
    if isinstance(exc, ApiError):
        return i18n.t("api_error", language, name=name, status=exc.status_code, body=exc.body)
    if isinstance(exc, ParseError):
        return i18n.t("parse_error", language, name=name, detail=exc)
    if isinstance(exc, RequestError):
        return i18n.t("request_failed", language, name=name, detail=exc)
    return i18n.t("unexpected_error", language, name=name)


class Dispatcher:
    """Runs the per-turn state machine on top of a :class:`ConversationStore`.

    ``submit`` is called from the UI thread and never blocks on I/O; provider
    calls run on a :class:`BackgroundLoop` and finish with a single
    ``replace`` of their placeholder.
    """

    _logger = logging.getLogger(__name__)

    def __init__(
        self,
        settings: Settings,
        *,
        store: ConversationStore | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        simulated_delay_s: float = SIMULATED_DELAY_S,
        stream: bool = False,
    ) -> None:
        self._settings = settings
        self._store = store if store is not None else ConversationStore()
        self._clients = ProviderClients(settings, transport=transport)
        self._loop = BackgroundLoop()
        self._simulated_delay_s = simulated_delay_s
        self._stream = stream
        self._closed = False
        self.language = settings.language

    @property
    def store(self) -> ConversationStore:
        return self._store

    def list_providers(self) -> tuple[ProviderDescriptor, ...]:
        return list_providers()

    def submit(self, text: str, provider: str | ProviderDescriptor) -> Turn | None:
        """Record ``text`` and start the provider call in the background.

        Returns ``None`` for blank input.
        """
        if not text.strip():
            return None

        descriptor = provider if isinstance(provider, ProviderDescriptor) else get_provider(provider)
        language = self.language
        name = descriptor.display_name(language)
        history = self._history()

        user_message = Message.user(text)
        user_entry = self._store.append(user_message)
        self._logger.debug("Turn for %s: %s", descriptor.id, TurnState.USER_SUBMITTED.value)

        placeholder = self._store.append(Message.pending(i18n.t("thinking", language, name=name), source=name))
        future = self._loop.spawn(self._complete(descriptor, [*history, user_message], placeholder, language))
        self._logger.debug("Turn for %s: %s (entry %d)", descriptor.id, TurnState.PENDING.value, placeholder)
        return Turn(provider=descriptor, user_entry=user_entry, placeholder=placeholder, future=future)

    def close(self, timeout: float | None = 5.0) -> None:
        """Cancel turns still in flight, close provider clients and stop the background loop.

        Every cancelled turn's placeholder is replaced with a localized
        "cancelled" error entry, so no pending entry outlives the dispatcher.
        """
        if self._closed:
            return
        self._closed = True
        self._loop.cancel_pending(timeout)
        # cancelled tasks leave their placeholders behind
        for entry_id in self._store.pending_ids():
            placeholder = self._store.get(entry_id)
            if placeholder is None:
                continue
            name = placeholder.source or ""
            self._logger.info("Dropping unfinished turn for %s (entry %d)", name, entry_id)
            self._finish(entry_id, i18n.t("cancelled", self.language, name=name), name, failed=True)
        self._loop.spawn(self._clients.aclose()).result(timeout)
        self._loop.stop(timeout)

    def __enter__(self) -> Dispatcher:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def _history(self) -> list[Message]:
        return [
            m
            for m in self._store.snapshot()
            if m.role in (Role.SYSTEM, Role.USER, Role.ASSISTANT) and not m.error
        ]

    async def _complete(
        self,
        descriptor: ProviderDescriptor,
        messages: Sequence[Message],
        placeholder: EntryId,
        language: Language,
    ) -> TurnState:
        name = descriptor.display_name(language)
        try:
            if descriptor.network_backed:
                reply = await self._call_provider(descriptor, messages)
            else:
                await asyncio.sleep(self._simulated_delay_s)
                reply = descriptor.simulate_response(messages[-1].content, language)
        except StreamChatError as exc:
            self._logger.warning("%s call failed: %s", descriptor.id, exc)
            return self._finish(placeholder, describe_error(exc, name, language), name, failed=True)
        except Exception as exc:
            self._logger.exception("Unexpected failure while calling %s", descriptor.id)
            return self._finish(placeholder, describe_error(exc, name, language), name, failed=True)

        self._logger.info("%s replied with %d characters", descriptor.id, len(reply))
        return self._finish(placeholder, reply, name, failed=False)

    async def _call_provider(self, descriptor: ProviderDescriptor, messages: Sequence[Message]) -> str:
        client = self._clients.get_client(descriptor)
        if not self._stream:
            return await client.chat(messages)

        def _on_delta(delta: str) -> None:
            self._logger.debug("%s delta: %r", descriptor.id, delta)

        return await client.chat_stream(messages, _on_delta)

    def _finish(self, placeholder: EntryId, content: str, name: str, *, failed: bool) -> TurnState:
        reply = Message.assistant(content, source=name, error=failed)
        if not self._store.replace(placeholder, reply):
            self._logger.debug("Placeholder %d is gone; dropping reply", placeholder)
        return TurnState.FAILED if failed else TurnState.COMPLETED
