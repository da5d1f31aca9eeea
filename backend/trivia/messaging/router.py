from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from trivia.logic.enums import SessionErrorCode
from trivia.messaging.types import (
    CreateSessionMessage,
    ErrorMessage,
    GetSessionStateMessage,
    GuessMessage,
    JoinSessionMessage,
    LeaveSessionMessage,
    PingMessage,
    SetQuestionMessage,
    StartGameMessage,
    parse_client_message,
)

if TYPE_CHECKING:
    from trivia.messaging.protocol import ConnectionProtocol
    from trivia.session.manager import SessionManager

logger = logging.getLogger(__name__)


class MessageRouter:
    """
    Routes incoming client messages to the session manager.

    This class contains no transport code and can be tested
    without real WebSocket connections.
    """

    def __init__(self, session_manager: SessionManager) -> None:
        self._session_manager = session_manager

    async def handle_message(
        self,
        connection: ConnectionProtocol,
        raw_message: dict[str, Any],
    ) -> None:
        try:
            message = parse_client_message(raw_message)
        except (ValidationError, KeyError, TypeError, ValueError) as e:
            logger.warning("invalid message from %s: %s", connection.connection_id, e)
            await self._send_error(connection, SessionErrorCode.INVALID_MESSAGE, "Invalid message.")
            return

        try:
            await self._dispatch(connection, message)
        except Exception:
            logger.exception("unexpected error handling %s from %s", message.type, connection.connection_id)
            await self._send_error(connection, SessionErrorCode.ACTION_FAILED, "Action failed.")

    async def _dispatch(self, connection: ConnectionProtocol, message: Any) -> None:  # noqa: ANN401
        manager = self._session_manager
        if isinstance(message, CreateSessionMessage):
            await manager.create_session(connection, message.name, message.session_id)
        elif isinstance(message, JoinSessionMessage):
            await manager.join_session(connection, message.session_id, message.name)
        elif isinstance(message, LeaveSessionMessage):
            await manager.leave_session(connection)
        elif isinstance(message, SetQuestionMessage):
            await manager.set_question(connection, message.question, message.answer)
        elif isinstance(message, StartGameMessage):
            await manager.start_round(connection)
        elif isinstance(message, GuessMessage):
            await manager.guess(connection, message.guess_text)
        elif isinstance(message, GetSessionStateMessage):
            await manager.publish_state(connection)
        elif isinstance(message, PingMessage):
            await manager.handle_ping(connection)

    async def _send_error(self, connection: ConnectionProtocol, code: SessionErrorCode, text: str) -> None:
        await connection.send_message(ErrorMessage(code=code, text=text).model_dump(mode="json"))

    async def handle_connect(self, connection: ConnectionProtocol) -> None:
        self._session_manager.register_connection(connection)

    async def handle_disconnect(self, connection: ConnectionProtocol) -> None:
        await self._session_manager.leave_session(connection, notify_player=False)
        self._session_manager.unregister_connection(connection)
