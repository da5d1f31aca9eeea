"""Abstract client connection speaking the MessagePack protocol."""

from abc import ABC, abstractmethod
from typing import Any

from trivia.messaging.encoder import decode, encode


class ConnectionProtocol(ABC):
    """
    Abstract interface for a connected client.

    The session layer only sees this interface, so it can be driven by
    in-memory connections in tests instead of real WebSockets.
    """

    @property
    @abstractmethod
    def connection_id(self) -> str:
        """Opaque identifier, unique per connection and stable for its lifetime."""
        ...

    @abstractmethod
    async def send_bytes(self, data: bytes) -> None: ...

    @abstractmethod
    async def receive_bytes(self) -> bytes: ...

    @abstractmethod
    async def close(self, code: int = 1000, reason: str = "") -> None: ...

    async def send_message(self, data: dict[str, Any]) -> None:
        """
        Send a message map to the client.
        """
        await self.send_bytes(encode(data))

    async def receive_message(self) -> dict[str, Any]:
        """
        Receive and decode the next message map from the client.
        """
        raw = await self.receive_bytes()
        return decode(raw)
