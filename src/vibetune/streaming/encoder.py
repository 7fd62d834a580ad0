"""Server-side framing for the chat delta event stream."""

import json

from vibetune.streaming.decoder import SENTINEL


def encode_delta(text: str) -> bytes:
    """Frame one text fragment."""
    return f"data: {json.dumps({'delta': text})}\n\n".encode("utf-8")


def encode_done() -> bytes:
    """Frame the end-of-stream sentinel."""
    return f"event: done\ndata: {SENTINEL}\n\n".encode("utf-8")


def encode_error(message: str) -> bytes:
    """Frame an error raised after the stream was already open.

    The payload carries no ``delta``, so decoders drop it and the stream
    simply ends.
    """
    return f"event: error\ndata: {json.dumps({'error': message})}\n\n".encode("utf-8")
