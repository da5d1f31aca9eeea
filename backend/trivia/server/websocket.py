from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog
from starlette.websockets import WebSocket, WebSocketDisconnect

from trivia.logic.enums import SessionErrorCode
from trivia.messaging.encoder import DecodeError, decode
from trivia.messaging.protocol import ConnectionProtocol
from trivia.messaging.types import ErrorMessage

logger = structlog.get_logger()

if TYPE_CHECKING:
    from trivia.messaging.router import MessageRouter

# Disconnect after this many consecutive undecodable frames
_MAX_DECODE_ERRORS = 5
_CLOSE_TOO_MANY_DECODE_ERRORS = 4004

# In-flight disconnect cleanups, held until they finish
_cleanup_tasks: set[asyncio.Task[None]] = set()


class WebSocketConnection(ConnectionProtocol):
    def __init__(self, websocket: WebSocket, connection_id: str | None = None) -> None:
        self._websocket = websocket
        self._connection_id = connection_id or uuid4().hex

    @property
    def connection_id(self) -> str:
        return self._connection_id

    async def send_bytes(self, data: bytes) -> None:
        try:
            await self._websocket.send_bytes(data)
        except WebSocketDisconnect:
            raise ConnectionError("WebSocket already disconnected") from None

    async def receive_bytes(self) -> bytes:
        message = await self._websocket.receive()
        if message["type"] == "websocket.disconnect":
            raise ConnectionError("WebSocket disconnected")
        data = message.get("bytes")
        if data is None:
            # text frames are not part of the protocol; the decoder rejects them
            return (message.get("text") or "").encode()
        return data

    async def close(self, code: int = 1000, reason: str = "") -> None:
        with contextlib.suppress(WebSocketDisconnect, RuntimeError):
            await self._websocket.close(code=code, reason=reason)


async def websocket_endpoint(websocket: WebSocket, router: MessageRouter) -> None:
    await websocket.accept()

    connection = WebSocketConnection(websocket)
    structlog.contextvars.bind_contextvars(connection_id=connection.connection_id)
    logger.info("websocket connected")
    await router.handle_connect(connection)

    decode_errors = 0

    try:
        while True:
            raw = await connection.receive_bytes()
            try:
                data = decode(raw)
            except DecodeError as e:
                decode_errors += 1
                logger.warning("decode error", error=str(e), strikes=decode_errors)
                await connection.send_message(
                    ErrorMessage(code=SessionErrorCode.INVALID_MESSAGE, text=str(e)).model_dump(mode="json"),
                )
                if decode_errors >= _MAX_DECODE_ERRORS:
                    logger.info("too many decode errors, disconnecting")
                    await connection.close(code=_CLOSE_TOO_MANY_DECODE_ERRORS, reason="too_many_decode_errors")
                    return
                continue

            decode_errors = 0
            await router.handle_message(connection, data)
    except (WebSocketDisconnect, RuntimeError, ConnectionError):  # fmt: skip
        pass
    finally:
        logger.info("websocket disconnected")
        # runs to completion even when this task is being cancelled
        cleanup = asyncio.ensure_future(router.handle_disconnect(connection))
        _cleanup_tasks.add(cleanup)
        cleanup.add_done_callback(_cleanup_tasks.discard)
        try:
            await asyncio.shield(cleanup)
        finally:
            structlog.contextvars.clear_contextvars()
