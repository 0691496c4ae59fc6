import asyncio
import json
import unittest
from collections.abc import AsyncIterator

import httpx

from streamchat.errors import ApiError, ParseError, RequestError, RequestTimeout
from streamchat.transport import ChatTransport, EventStreamDecoder

_BASE_URL = "https://llm.test"
_PATH = "/chat/completions"
_HEADERS = {"Authorization": "Bearer sk-test", "Content-Type": "application/json"}


def _event(text: str) -> str:
    return "data: " + json.dumps({"choices": [{"index": 0, "delta": {"content": text}}]}) + "\n\n"


async def _chunks(parts: list[bytes], pulled: list[int] | None = None) -> AsyncIterator[bytes]:
    for index, part in enumerate(parts):
        if pulled is not None:
            pulled.append(index)
        yield part


class EventStreamDecoderTests(unittest.TestCase):
    def test_extracts_data_payloads_and_ignores_other_lines(self) -> None:
        decoder = EventStreamDecoder()
        payloads = decoder.feed(b"event: message\ndata: one\n\n: comment\ndata: two\n")
        self.assertEqual(payloads, ["one", "two"])

    def test_line_split_across_chunks_is_reassembled(self) -> None:
        # Splitting each chunk on its own would lose this event entirely.
        decoder = EventStreamDecoder()
        self.assertEqual(decoder.feed(b'data: {"choi'), [])
        self.assertEqual(decoder.feed(b'ces": []}\n'), ['{"choices": []}'])

    def test_crlf_line_endings(self) -> None:
        decoder = EventStreamDecoder()
        self.assertEqual(decoder.feed(b"data: a\r\ndata: [DONE]\r\n"), ["a", "[DONE]"])

    def test_multibyte_character_split_across_chunks(self) -> None:
        encoded = "data: 你好\n".encode()
        decoder = EventStreamDecoder()
        self.assertEqual(decoder.feed(encoded[:8]), [])
        self.assertEqual(decoder.feed(encoded[8:]), ["你好"])

    def test_flush_returns_unterminated_last_line(self) -> None:
        decoder = EventStreamDecoder()
        self.assertEqual(decoder.feed(b"data: tail"), [])
        self.assertEqual(decoder.flush(), ["tail"])
        self.assertEqual(decoder.flush(), [])

    def test_prefix_requires_space(self) -> None:
        decoder = EventStreamDecoder()
        self.assertEqual(decoder.feed(b"data:nospace\n"), [])


class StreamingTransportTests(unittest.TestCase):
    def _run_stream(self, handler, on_delta=None) -> str:
        async def _go() -> str:
            transport = ChatTransport(base_url=_BASE_URL, transport=httpx.MockTransport(handler))
            try:
                return await transport.post_stream(_PATH, {"stream": True}, _HEADERS, on_delta)
            finally:
                await transport.aclose()

        return asyncio.run(_go())

    def test_concatenates_deltas_in_order(self) -> None:
        body = (
            'data: {"choices":[{"index":0,"delta":{"content":"Hel"}}]}\n\n'
            'data: {"choices":[{"index":0,"delta":{"content":"lo"}}]}\n\n'
            "data: [DONE]\n\n"
        )
        deltas: list[str] = []
        text = self._run_stream(lambda request: httpx.Response(200, content=body.encode()), deltas.append)
        self.assertEqual(text, "Hello")
        self.assertEqual(deltas, ["Hel", "lo"])

    def test_sends_event_stream_accept_header(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, content=b"data: [DONE]\n\n")

        self.assertEqual(self._run_stream(handler), "")
        self.assertEqual(seen[0].headers["accept"], "text/event-stream")
        self.assertEqual(seen[0].headers["authorization"], "Bearer sk-test")
        self.assertEqual(seen[0].url.path, _PATH)

    def test_malformed_event_is_skipped(self) -> None:
        body = _event("a") + "data: {not json\n\n" + "data: plain-words\n\n" + _event("b") + "data: [DONE]\n\n"
        text = self._run_stream(lambda request: httpx.Response(200, content=body.encode()))
        self.assertEqual(text, "ab")

    def test_events_without_content_are_ignored(self) -> None:
        role_only = 'data: {"choices":[{"index":0,"delta":{"role":"assistant"}}]}\n\n'
        finish = 'data: {"choices":[{"index":0,"delta":{},"finish_reason":"stop"}]}\n\n'
        body = role_only + _event("x") + finish + "data: \n\n" + "data: [DONE]\n\n"
        text = self._run_stream(lambda request: httpx.Response(200, content=body.encode()))
        self.assertEqual(text, "x")

    def test_event_split_across_reads(self) -> None:
        raw = (_event("Hel") + _event("lo") + "data: [DONE]\n\n").encode()
        parts = [raw[:17], raw[17:40], raw[40:41], raw[41:]]
        text = self._run_stream(lambda request: httpx.Response(200, content=_chunks(parts)))
        self.assertEqual(text, "Hello")

    def test_done_stops_reading(self) -> None:
        pulled: list[int] = []
        parts = [(_event("A") + "data: [DONE]\n\n").encode(), _event("B").encode()]
        text = self._run_stream(lambda request: httpx.Response(200, content=_chunks(parts, pulled)))
        self.assertEqual(text, "A")
        self.assertEqual(pulled, [0])

    def test_stream_without_sentinel_returns_accumulated_text(self) -> None:
        body = _event("a") + _event("b").rstrip("\n")
        text = self._run_stream(lambda request: httpx.Response(200, content=body.encode()))
        self.assertEqual(text, "ab")

    def test_error_status_raises_api_error(self) -> None:
        with self.assertRaises(ApiError) as ctx:
            self._run_stream(lambda request: httpx.Response(503, content=b"overloaded"))
        self.assertEqual(ctx.exception.status_code, 503)
        self.assertEqual(ctx.exception.body, "overloaded")

    def test_timeout_raises_request_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with self.assertRaises(RequestTimeout):
            self._run_stream(handler)


class JsonTransportTests(unittest.TestCase):
    def _run_post(self, handler) -> dict:
        async def _go() -> dict:
            transport = ChatTransport(base_url=_BASE_URL, timeout_s=12, transport=httpx.MockTransport(handler))
            try:
                return await transport.post_json(_PATH, {"model": "m"}, _HEADERS)
            finally:
                await transport.aclose()

        return asyncio.run(_go())

    def test_returns_decoded_body(self) -> None:
        data = self._run_post(lambda request: httpx.Response(200, json={"ok": True}))
        self.assertEqual(data, {"ok": True})

    def test_non_success_status_raises_api_error(self) -> None:
        with self.assertRaises(ApiError) as ctx:
            self._run_post(lambda request: httpx.Response(401, content=b'{"error":"invalid key"}'))
        self.assertIn("401", str(ctx.exception))
        self.assertIn('{"error":"invalid key"}', str(ctx.exception))

    def test_timeout_is_distinct_from_request_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("slow", request=request)

        with self.assertRaises(RequestTimeout) as ctx:
            self._run_post(handler)
        self.assertEqual(ctx.exception.timeout_s, 12)
        self.assertIn("12 seconds", str(ctx.exception))

    def test_connection_failure_raises_request_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with self.assertRaises(RequestError):
            self._run_post(handler)

    def test_non_json_body_raises_parse_error(self) -> None:
        with self.assertRaises(ParseError):
            self._run_post(lambda request: httpx.Response(200, content=b"<html>"))

    def test_non_object_body_raises_parse_error(self) -> None:
        with self.assertRaises(ParseError):
            self._run_post(lambda request: httpx.Response(200, json=[1, 2]))


class _TricklingServer:
    """Local HTTP server that answers 200 and then sends one body chunk at a time, slowly."""

    def __init__(self, chunk: bytes, interval_s: float = 0.2, count: int = 25) -> None:
        self._chunk = chunk
        self._interval_s = interval_s
        self._count = count
        self._server: asyncio.AbstractServer | None = None

    async def __aenter__(self) -> str:
        self._server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        port = self._server.sockets[0].getsockname()[1]
        return f"http://127.0.0.1:{port}"

    async def __aexit__(self, *exc_info) -> None:
        self._server.close()

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        try:
            await reader.readuntil(b"\r\n\r\n")
            writer.write(b"HTTP/1.1 200 OK\r\nTransfer-Encoding: chunked\r\n\r\n")
            for _ in range(self._count):
                writer.write(b"%x\r\n%s\r\n" % (len(self._chunk), self._chunk))
                await writer.drain()
                await asyncio.sleep(self._interval_s)
            writer.write(b"0\r\n\r\n")
            await writer.drain()
        except (ConnectionError, asyncio.IncompleteReadError):
            pass
        finally:
            writer.close()


class DeadlineTests(unittest.TestCase):
    """Each byte arrives well within ``timeout_s``, but the whole body does not."""

    def _elapsed_until_timeout(self, call, chunk: bytes) -> float:
        async def _go() -> float:
            async with _TricklingServer(chunk) as base_url:
                # an explicit transport keeps environment proxies out of the way
                transport = ChatTransport(base_url=base_url, timeout_s=1.0, transport=httpx.AsyncHTTPTransport())
                loop = asyncio.get_running_loop()
                started = loop.time()
                try:
                    with self.assertRaises(RequestTimeout) as ctx:
                        await call(transport)
                finally:
                    await transport.aclose()
                self.assertEqual(ctx.exception.timeout_s, 1.0)
                return loop.time() - started

        return asyncio.run(_go())

    def test_slow_json_body_hits_the_deadline(self) -> None:
        elapsed = self._elapsed_until_timeout(lambda t: t.post_json(_PATH, {"model": "m"}, _HEADERS), b" ")
        self.assertLess(elapsed, 2.0)

    def test_slow_stream_hits_the_deadline(self) -> None:
        deltas: list[str] = []
        elapsed = self._elapsed_until_timeout(
            lambda t: t.post_stream(_PATH, {"stream": True}, _HEADERS, deltas.append),
            _event("x").encode(),
        )
        self.assertLess(elapsed, 2.0)
        # deltas that arrived before the deadline were still delivered
        self.assertTrue(deltas)
        self.assertEqual(set(deltas), {"x"})


if __name__ == "__main__":
    unittest.main()
