from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import TYPE_CHECKING

import structlog

from trivia.logic.exceptions import (
    AlreadyInSessionError,
    NotInSessionError,
    ServerAtCapacityError,
    SessionError,
    SessionNotFoundError,
)
from trivia.logic.normalizer import clean_text
from trivia.logic.settings import RoundSettings
from trivia.messaging.types import (
    ErrorMessage,
    LeftSessionMessage,
    PongMessage,
    SessionCreatedMessage,
    SystemMessage,
)
from trivia.session.broadcast import EventChannel
from trivia.session.membership import MembershipManager
from trivia.session.projector import BroadcastProjector
from trivia.session.registry import SessionRegistry
from trivia.session.round_controller import RoundController
from trivia.session.timer_manager import TimerManager

if TYPE_CHECKING:
    from trivia.messaging.protocol import ConnectionProtocol
    from trivia.session.models import Session

logger = structlog.get_logger()


class SessionManager:
    """Serialize client intents against the session registry.

    Every intent that touches a session runs under that session's
    asyncio.Lock, and so does the round expiry callback. Within one session,
    intents are therefore applied one at a time in arrival order; different
    sessions never block each other.

    Rejections raised by the components (SessionError) are converted here,
    once, into an error_message for the originating connection only.
    """

    def __init__(self, settings: RoundSettings | None = None, *, max_sessions: int = 100) -> None:
        self._settings = settings or RoundSettings()
        self._max_sessions = max_sessions
        self._registry = SessionRegistry()
        self._channel = EventChannel()
        self._projector = BroadcastProjector(self._channel)
        self._timer_manager = TimerManager(on_expire=self._handle_expiry)
        self._rounds = RoundController(
            settings=self._settings,
            channel=self._channel,
            projector=self._projector,
            timer_manager=self._timer_manager,
        )
        self._membership = MembershipManager(
            registry=self._registry,
            channel=self._channel,
            projector=self._projector,
            timer_manager=self._timer_manager,
            rounds=self._rounds,
            min_players=self._settings.min_players,
        )
        self._memberships: dict[str, str] = {}  # connection_id -> session_id
        self._session_locks: dict[str, asyncio.Lock] = {}  # session_id -> Lock

    # --- Connections ---

    def register_connection(self, connection: ConnectionProtocol) -> None:
        self._channel.register(connection)

    def unregister_connection(self, connection: ConnectionProtocol) -> None:
        self._channel.unregister(connection.connection_id)
        self._memberships.pop(connection.connection_id, None)

    def get_session(self, session_id: str) -> Session | None:
        return self._registry.get(session_id)

    def session_id_for(self, connection_id: str) -> str | None:
        return self._memberships.get(connection_id)

    def is_in_session(self, connection_id: str) -> bool:
        return connection_id in self._memberships

    @property
    def session_count(self) -> int:
        return self._registry.session_count

    @property
    def settings(self) -> RoundSettings:
        return self._settings

    # --- Intents ---

    async def create_session(
        self,
        connection: ConnectionProtocol,
        name: str | None,
        session_id: str | None = None,
    ) -> None:
        connection_id = connection.connection_id
        try:
            if connection_id in self._memberships:
                raise AlreadyInSessionError
            if self._registry.session_count >= self._max_sessions:
                raise ServerAtCapacityError
            player_name = self._player_name(name)
            session = self._registry.create(session_id, connection_id, player_name)
        except SessionError as e:
            await self._reject(connection, e)
            return

        lock = asyncio.Lock()
        self._session_locks[session.session_id] = lock
        self._memberships[connection_id] = session.session_id

        async with lock:
            await self._channel.send(
                connection_id,
                SessionCreatedMessage(session_id=session.session_id, gm=connection_id),
            )
            await self._channel.broadcast(
                session,
                SystemMessage(text=f"{player_name} created the session and is the Game Master."),
            )
            await self._projector.publish(session)

    async def join_session(self, connection: ConnectionProtocol, session_id: str, name: str | None) -> None:
        connection_id = connection.connection_id
        try:
            if connection_id in self._memberships:
                raise AlreadyInSessionError
            async with self._lock_session(session_id) as session:
                if session is None:
                    raise SessionNotFoundError
                await self._membership.join(session, connection_id, self._player_name(name))
                self._memberships[connection_id] = session_id
        except SessionError as e:
            await self._reject(connection, e)

    async def leave_session(self, connection: ConnectionProtocol, *, notify_player: bool = True) -> None:
        """Remove the connection from its session. Safe to call any number of times.

        Used for the explicit leave intent (notify_player=True) and for transport
        disconnects (notify_player=False); both share one removal path. The
        connection stays mapped to its session until the removal runs under the
        lock, so a leave cancelled while waiting for the lock is retried by the
        disconnect that follows.
        """
        connection_id = connection.connection_id
        session_id = self._memberships.get(connection_id)
        if session_id is None:
            return

        async with self._lock_session(session_id) as session:
            if self._memberships.get(connection_id) != session_id:
                # a concurrent leave for this connection already ran
                return
            del self._memberships[connection_id]
            if session is not None:
                await self._membership.leave(session, connection_id)
                if session.is_empty:
                    self._session_locks.pop(session_id, None)

        if notify_player:
            await self._channel.send(connection_id, LeftSessionMessage(session_id=session_id))

    async def set_question(self, connection: ConnectionProtocol, question: str, answer: str) -> None:
        await self._run_in_session(
            connection,
            lambda session: self._rounds.set_question(session, connection.connection_id, question, answer),
        )

    async def start_round(self, connection: ConnectionProtocol) -> None:
        await self._run_in_session(
            connection,
            lambda session: self._rounds.start(session, connection.connection_id),
        )

    async def guess(self, connection: ConnectionProtocol, text: str) -> None:
        await self._run_in_session(
            connection,
            lambda session: self._rounds.guess(session, connection.connection_id, text),
        )

    async def publish_state(self, connection: ConnectionProtocol) -> None:
        """Re-publish the current session view to every member."""
        session_id = self._memberships.get(connection.connection_id)
        if session_id is None:
            return
        async with self._lock_session(session_id) as session:
            if session is not None:
                await self._projector.publish(session)

    async def handle_ping(self, connection: ConnectionProtocol) -> None:
        await connection.send_message(PongMessage().model_dump(mode="json"))

    def cancel_all_timers(self) -> None:
        """Cancel every pending round expiry (server shutdown)."""
        self._timer_manager.cancel_all()

    # --- Internals ---

    @contextlib.asynccontextmanager
    async def _lock_session(self, session_id: str) -> AsyncIterator[Session | None]:
        """Hold the session's lock and yield the live session, or None if it is gone.

        A waiter that acquires a lock after its session was deleted (and maybe
        recreated under the same id with a fresh lock) gets None.
        """
        lock = self._session_locks.get(session_id)
        if lock is None:
            yield None
            return
        async with lock:
            if self._session_locks.get(session_id) is not lock:
                yield None
            else:
                yield self._registry.get(session_id)

    async def _run_in_session(
        self,
        connection: ConnectionProtocol,
        action: Callable[[Session], Awaitable[None]],
    ) -> None:
        """Run an intent that requires membership, under the session lock."""
        connection_id = connection.connection_id
        try:
            session_id = self._memberships.get(connection_id)
            if session_id is None:
                raise NotInSessionError
            async with self._lock_session(session_id) as session:
                if session is None or connection_id not in session.players:
                    raise NotInSessionError
                await action(session)
        except SessionError as e:
            await self._reject(connection, e)

    async def _handle_expiry(self, session_id: str, round_number: int) -> None:
        async with self._lock_session(session_id) as session:
            if session is None:
                return
            await self._rounds.expire(session, round_number)

    async def _reject(self, connection: ConnectionProtocol, error: SessionError) -> None:
        logger.info(
            "intent rejected",
            connection_id=connection.connection_id,
            code=error.code,
            reason=error.message,
        )
        await self._channel.send(connection.connection_id, ErrorMessage(code=error.code, text=error.message))

    def _player_name(self, name: str | None) -> str:
        return clean_text(name, self._settings.max_name_length) or self._settings.default_player_name
