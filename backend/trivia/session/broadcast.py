"""Event channel: deliver messages to one client or to every member of a session."""

from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pydantic import BaseModel

    from trivia.messaging.protocol import ConnectionProtocol
    from trivia.session.models import Session


class EventChannel:
    """Map connection ids to live connections and fan messages out.

    Send failures on a closing socket are suppressed so that one dead client
    cannot interrupt a broadcast to the rest of the session.
    """

    def __init__(self) -> None:
        self._connections: dict[str, ConnectionProtocol] = {}

    def register(self, connection: ConnectionProtocol) -> None:
        self._connections[connection.connection_id] = connection

    def unregister(self, connection_id: str) -> None:
        self._connections.pop(connection_id, None)

    def get(self, connection_id: str) -> ConnectionProtocol | None:
        return self._connections.get(connection_id)

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def send(self, connection_id: str, message: BaseModel) -> None:
        """Deliver a message to a single connected client."""
        connection = self._connections.get(connection_id)
        if connection is None:
            return
        with contextlib.suppress(RuntimeError, OSError):
            await connection.send_message(message.model_dump(mode="json"))

    async def broadcast(
        self,
        session: Session,
        message: BaseModel,
        exclude_connection_id: str | None = None,
    ) -> None:
        """Deliver a message to every current member of a session.

        The roster is snapshotted in join order before the first await.
        """
        payload = message.model_dump(mode="json")
        for player_id in list(session.join_order):
            if player_id == exclude_connection_id:
                continue
            connection = self._connections.get(player_id)
            if connection is None:
                continue
            with contextlib.suppress(RuntimeError, OSError):
                await connection.send_message(payload)
