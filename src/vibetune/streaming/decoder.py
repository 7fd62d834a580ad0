"""Incremental decoder for the chat delta event stream.

The chat stream is framed as blank-line separated blocks::

    data: {"delta": "Hi"}

    event: done
    data: [DONE]

Only the first ``data:`` line of a frame matters. Its payload is either the
``[DONE]`` sentinel or a JSON object whose ``delta`` field carries the next
text fragment.
"""

from __future__ import annotations

import codecs
import json
from collections import deque
from collections.abc import AsyncIterator

import structlog

logger = structlog.get_logger()

FRAME_SEPARATOR = "\n\n"
DATA_PREFIX = "data:"
SENTINEL = "[DONE]"


class StreamUnavailable(Exception):
    """Opening the delta stream failed before any fragment was decoded."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class StreamingDeltaDecoder:
    """Pull-based decoder turning a byte stream into ``delta`` strings.

    Each ``__anext__`` call either hands out a fragment that was already
    decoded, or reads more bytes from the source until a fragment is
    available, the sentinel is seen, or the source runs dry.

    Malformed frames (no ``data:`` line, invalid JSON, missing or empty
    ``delta``) are dropped without raising. A trailing frame that never got
    its blank-line terminator is discarded when the source ends.

    The decoder is single-use: once exhausted it keeps raising
    ``StopAsyncIteration``.
    """

    def __init__(self, source: AsyncIterator[bytes]) -> None:
        self._source = source
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._pending: deque[str] = deque()
        self._finished = False
        self._frames_seen = 0
        self._frames_skipped = 0

    @property
    def finished(self) -> bool:
        """True once the sentinel was seen or the source ended."""
        return self._finished

    def __aiter__(self) -> StreamingDeltaDecoder:
        return self

    async def __anext__(self) -> str:
        while True:
            if self._pending:
                return self._pending.popleft()
            if self._finished:
                raise StopAsyncIteration

            try:
                chunk = await self._source.__anext__()
            except StopAsyncIteration:
                self._finish("eof")
                continue

            self.feed(chunk)

    def feed(self, chunk: bytes) -> None:
        """Decode a chunk and queue fragments from every complete frame."""
        if self._finished:
            return

        self._buffer += self._decoder.decode(chunk)
        *frames, self._buffer = self._buffer.split(FRAME_SEPARATOR)

        for frame in frames:
            self._frames_seen += 1
            payload = self._extract_payload(frame)
            if payload is None:
                self._skip("no_data_line")
                continue

            if payload == SENTINEL:
                self._finish("sentinel")
                return

            delta = self._parse_delta(payload)
            if delta:
                self._pending.append(delta)

    async def aclose(self) -> None:
        """Stop decoding and close the byte source if it supports closing."""
        self._finished = True
        self._buffer = ""
        self._pending.clear()
        aclose = getattr(self._source, "aclose", None)
        if aclose is not None:
            await aclose()

    @staticmethod
    def _extract_payload(frame: str) -> str | None:
        for line in frame.split("\n"):
            if line.startswith(DATA_PREFIX):
                return line[len(DATA_PREFIX):].strip()
        return None

    def _parse_delta(self, payload: str) -> str | None:
        try:
            data = json.loads(payload)
        except ValueError:
            self._skip("invalid_json")
            return None

        if not isinstance(data, dict):
            self._skip("not_an_object")
            return None

        delta = data.get("delta")
        if not isinstance(delta, str) or not delta:
            self._skip("no_delta")
            return None
        return delta

    def _skip(self, reason: str) -> None:
        self._frames_skipped += 1
        logger.debug("stream_frame_skipped", reason=reason)

    def _finish(self, reason: str) -> None:
        self._finished = True
        self._buffer = ""
        logger.debug(
            "stream_decode_complete",
            reason=reason,
            frames_seen=self._frames_seen,
            frames_skipped=self._frames_skipped,
        )
