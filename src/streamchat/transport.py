"""HTTP transport for chat-completions endpoints, including SSE stream decoding."""

from __future__ import annotations

import asyncio
import codecs
import logging
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from typing import Any, TypeVar

import httpx
from pydantic import ValidationError

from streamchat.errors import ApiError, ParseError, RequestError, RequestTimeout
from streamchat.types import StreamChunk

T = TypeVar("T")

DeltaSink = Callable[[str], None]

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


class EventStreamDecoder:
    """Turns arbitrarily split byte chunks into ``data:`` payloads.

    The trailing partial line of every chunk is carried over to the next one,
    so an event survives being split across network reads. Incomplete UTF-8
    sequences are carried over the same way.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    def feed(self, chunk: bytes) -> list[str]:
        """Consume a chunk and return the payloads of the lines it completed."""
        self._buffer += self._decoder.decode(chunk)
        *lines, self._buffer = self._buffer.split("\n")
        return [p for p in map(self._payload, lines) if p is not None]

    def flush(self) -> list[str]:
        """Return the payload of a final line that had no terminating newline."""
        tail = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        payload = self._payload(tail)
        return [payload] if payload is not None else []

    @staticmethod
    def _payload(line: str) -> str | None:
        line = line.rstrip("\r")
        if not line.startswith(DATA_PREFIX):
            return None
        return line[len(DATA_PREFIX) :]


class ChatTransport:
    """Sends chat-completions requests over one pooled ``httpx.AsyncClient``."""

    _logger = logging.getLogger(__name__)

    def __init__(
        self,
        *,
        base_url: str,
        timeout_s: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout_s = timeout_s
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout_s, transport=transport)

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def post_json(self, path: str, body: dict[str, Any], headers: dict[str, str]) -> dict[str, Any]:
        """POST ``body`` and return the decoded JSON response object.

        The whole exchange, body included, must finish within ``timeout_s``.
        """
        return await self._within_deadline(self._post_json(path, body, headers))

    async def post_stream(
        self,
        path: str,
        body: dict[str, Any],
        headers: dict[str, str],
        on_delta: DeltaSink | None = None,
    ) -> str:
        """POST ``body`` and consume the event-stream response.

        Every non-empty text delta is passed to ``on_delta`` as soon as it is
        decoded. Returns the concatenation of all deltas. The stream must
        reach its end within ``timeout_s``; deltas already delivered stay
        delivered when it does not.
        """
        return await self._within_deadline(self._post_stream(path, body, headers, on_delta))

    async def _within_deadline(self, call: Awaitable[T]) -> T:
        # httpx timeouts bound each connect/read/write step, not the request as a whole
        try:
            return await asyncio.wait_for(call, self._timeout_s)
        except asyncio.TimeoutError as exc:
            raise RequestTimeout(self._timeout_s) from exc

    async def _post_json(self, path: str, body: dict[str, Any], headers: dict[str, str]) -> dict[str, Any]:
        with self._translate_errors():
            response = await self._client.post(path, headers=headers, json=body)

        if not response.is_success:
            raise ApiError(response.status_code, response.text or response.reason_phrase)

        try:
            data = response.json()
        except ValueError as exc:
            raise ParseError(f"Failed to parse response: {exc}") from exc
        if not isinstance(data, dict):
            raise ParseError(f"Expected a JSON object, got {type(data).__name__}")
        return data

    async def _post_stream(
        self,
        path: str,
        body: dict[str, Any],
        headers: dict[str, str],
        on_delta: DeltaSink | None,
    ) -> str:
        stream_headers = {**headers, "Accept": "text/event-stream"}
        parts: list[str] = []

        with self._translate_errors():
            async with self._client.stream("POST", path, headers=stream_headers, json=body) as response:
                if not response.is_success:
                    raw = await response.aread()
                    raise ApiError(
                        response.status_code,
                        raw.decode(errors="replace") or response.reason_phrase,
                    )

                decoder = EventStreamDecoder()
                async for chunk in response.aiter_bytes():
                    for payload in decoder.feed(chunk):
                        if payload == DONE_SENTINEL:
                            return "".join(parts)
                        self._consume(payload, parts, on_delta)

                for payload in decoder.flush():
                    if payload != DONE_SENTINEL:
                        self._consume(payload, parts, on_delta)

        self._logger.debug("Stream ended without %s sentinel", DONE_SENTINEL)
        return "".join(parts)

    def _consume(self, payload: str, parts: list[str], on_delta: DeltaSink | None) -> None:
        if not payload.strip():
            return

        try:
            event = StreamChunk.model_validate_json(payload)
        except ValidationError:
            if ":" not in payload:
                self._logger.debug("Skipping non-event payload: %s", payload)
            else:
                self._logger.debug("Skipping undecodable streaming chunk: %s", payload)
            return

        text = event.delta_text()
        if text:
            parts.append(text)
            if on_delta is not None:
                on_delta(text)

    @contextmanager
    def _translate_errors(self) -> Iterator[None]:
        try:
            yield
        except httpx.TimeoutException as exc:
            raise RequestTimeout(self._timeout_s) from exc
        except httpx.RequestError as exc:
            raise RequestError(f"Failed to send request: {exc}") from exc
