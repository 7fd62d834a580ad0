"""Tests for the chat stream HTTP client."""

import json

import httpx
import pytest

from vibetune.streaming.client import open_chat_stream, stream_chat
from vibetune.streaming.decoder import StreamUnavailable

URL = "http://vibetune.test/api/chat-stream"


async def _body(*chunks: str):
    for chunk in chunks:
        yield chunk.encode("utf-8")


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_stream_chat_yields_deltas():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            content=_body(
                'data: {"delta":"Hi"}\n\n',
                'data: {"delta":" there"}\n\n',
                "data: [DONE]\n\n",
            ),
        )

    async with _client(handler) as client:
        result = [d async for d in stream_chat(URL, {"text": "hello"}, client=client)]

    assert result == ["Hi", " there"]


@pytest.mark.asyncio
async def test_stream_chat_posts_json_body():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["method"] = request.method
        captured["body"] = json.loads(request.content)
        captured["content_type"] = request.headers["content-type"]
        return httpx.Response(200, content=b"data: [DONE]\n\n")

    async with _client(handler) as client:
        result = [d async for d in stream_chat(URL, {"text": "hi", "topic": "travel"}, client=client)]

    assert result == []
    assert captured["method"] == "POST"
    assert captured["body"] == {"text": "hi", "topic": "travel"}
    assert captured["content_type"] == "application/json"


@pytest.mark.asyncio
async def test_non_success_status_raises_stream_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": "Chat stream failed"})

    async with _client(handler) as client:
        with pytest.raises(StreamUnavailable, match="500") as exc_info:
            async with open_chat_stream(URL, {"text": "hi"}, client=client):
                pytest.fail("stream should not open")

    assert exc_info.value.status_code == 500


@pytest.mark.asyncio
async def test_transport_error_raises_stream_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as client:
        with pytest.raises(StreamUnavailable) as exc_info:
            async for _ in stream_chat(URL, {"text": "hi"}, client=client):
                pass

    assert exc_info.value.status_code is None


@pytest.mark.asyncio
async def test_open_chat_stream_allows_early_exit():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            content=_body(
                'data: {"delta":"first"}\n\n',
                'data: {"delta":"second"}\n\n',
            ),
        )

    async with _client(handler) as client:
        async with open_chat_stream(URL, {"text": "hi"}, client=client) as decoder:
            first = await decoder.__anext__()

        assert first == "first"
        assert not client.is_closed


@pytest.mark.asyncio
async def test_bad_frames_do_not_interrupt_stream():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            content=_body(
                'data: {"delta":"a"}\n\n',
                "data: not-json\n\n",
                'event: error\ndata: {"error":"oops"}\n\n',
                'data: {"delta":"b"}\n\n',
            ),
        )

    async with _client(handler) as client:
        result = [d async for d in stream_chat(URL, {"text": "hi"}, client=client)]

    assert result == ["a", "b"]
