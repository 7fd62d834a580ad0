"""Chat delta stream encoding and decoding."""

from vibetune.streaming.client import open_chat_stream, stream_chat
from vibetune.streaming.decoder import SENTINEL, StreamingDeltaDecoder, StreamUnavailable
from vibetune.streaming.encoder import encode_delta, encode_done, encode_error

__all__ = [
    "SENTINEL",
    "StreamingDeltaDecoder",
    "StreamUnavailable",
    "encode_delta",
    "encode_done",
    "encode_error",
    "open_chat_stream",
    "stream_chat",
]
