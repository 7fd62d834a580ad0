"""HTTP client side of the chat delta stream."""

from __future__ import annotations

from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog

from vibetune.streaming.decoder import StreamingDeltaDecoder, StreamUnavailable

logger = structlog.get_logger()


@asynccontextmanager
async def open_chat_stream(
    url: str,
    body: dict[str, Any],
    client: httpx.AsyncClient | None = None,
    timeout: float = 60.0,
) -> AsyncIterator[StreamingDeltaDecoder]:
    """POST ``body`` to ``url`` and decode the streamed reply.

    Raises StreamUnavailable when the request fails or the response status
    is not a success. The response is closed when the context exits, even if
    the caller stopped pulling fragments early.

    Args:
        url: Endpoint serving the delta stream (e.g. ``/api/chat-stream``).
        body: JSON request body.
        client: Optional shared client. When omitted a client is created and
            closed here.
        timeout: Request timeout in seconds for an owned client.
    """
    owns_client = client is None
    http_client = client or httpx.AsyncClient(timeout=timeout)

    try:
        request = http_client.build_request("POST", url, json=body)
        try:
            response = await http_client.send(request, stream=True)
        except httpx.HTTPError as e:
            logger.warning("chat_stream_open_failed", url=url, error=str(e))
            raise StreamUnavailable(f"Stream failed: {e}") from e

        try:
            if not response.is_success:
                logger.warning(
                    "chat_stream_open_failed",
                    url=url,
                    status_code=response.status_code,
                )
                raise StreamUnavailable(
                    f"Stream failed: {response.status_code}",
                    status_code=response.status_code,
                )

            logger.debug("chat_stream_opened", url=url)
            decoder = StreamingDeltaDecoder(response.aiter_bytes())
            yield decoder
        finally:
            await response.aclose()
    finally:
        if owns_client:
            await http_client.aclose()


async def stream_chat(
    url: str,
    body: dict[str, Any],
    client: httpx.AsyncClient | None = None,
) -> AsyncGenerator[str, None]:
    """Yield reply fragments from the chat stream at ``url``.

    The caller accumulates text. Breaking out of the loop releases the
    underlying response.
    """
    async with open_chat_stream(url, body, client=client) as decoder:
        async for delta in decoder:
            yield delta
