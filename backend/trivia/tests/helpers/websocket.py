"""Shared WebSocket test helpers for integration tests."""

import time
from collections.abc import Callable

from trivia.messaging.encoder import decode, encode


def send_ws(ws, data: dict) -> None:
    """Send a MessagePack-encoded message over a test WebSocket."""
    ws.send_bytes(encode(data))


def recv_ws(ws) -> dict:
    """Receive and decode a MessagePack message from a test WebSocket."""
    return decode(ws.receive_bytes())


def recv_until(ws, message_type: str) -> list[dict]:
    """Receive messages until one of the given type arrives. Return all of them."""
    messages = []
    while True:
        msg = recv_ws(ws)
        messages.append(msg)
        if msg["type"] == message_type:
            return messages


def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll until predicate() holds. Disconnect cleanup finishes on the server loop."""
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met before timeout")
        time.sleep(0.01)
