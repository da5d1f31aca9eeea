"""
MessagePack wire codec.

Every WebSocket frame carries one MessagePack map with a "type" key.
"""

from typing import Any

import msgpack


class DecodeError(Exception):
    """Raised when an inbound frame is not a valid message map."""


# Limits for inbound frames; trivia messages are short text.
MAX_FRAME_BYTES = 256 * 1024
MAX_STR_LEN = 64 * 1024
MAX_BIN_LEN = 1024
MAX_ARRAY_LEN = 1024
MAX_MAP_LEN = 256
MAX_EXT_LEN = 1024


def encode(data: dict[str, Any]) -> bytes:
    """Encode an outbound message map to MessagePack bytes."""
    return msgpack.packb(data, use_bin_type=True)


def decode(data: bytes) -> dict[str, Any]:
    """
    Decode an inbound frame to a dict.

    Raises DecodeError if the frame is oversized, malformed, or not a map.
    """
    if len(data) > MAX_FRAME_BYTES:
        raise DecodeError(f"payload too large: {len(data)} bytes (max {MAX_FRAME_BYTES})")
    try:
        result = msgpack.unpackb(
            data,
            raw=False,
            strict_map_key=True,
            max_str_len=MAX_STR_LEN,
            max_bin_len=MAX_BIN_LEN,
            max_array_len=MAX_ARRAY_LEN,
            max_map_len=MAX_MAP_LEN,
            max_ext_len=MAX_EXT_LEN,
        )
    except (msgpack.UnpackException, ValueError) as e:
        raise DecodeError(f"failed to decode MessagePack data: {e}") from e

    if not isinstance(result, dict):
        raise DecodeError(f"expected map, got {type(result).__name__}")

    return result
