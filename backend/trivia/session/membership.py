"""Session membership: joining, leaving and GM reassignment on departure."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from trivia.logic.exceptions import SessionInProgressError
from trivia.messaging.types import SystemMessage
from trivia.session.models import Player

if TYPE_CHECKING:
    from trivia.session.broadcast import EventChannel
    from trivia.session.models import Session
    from trivia.session.projector import BroadcastProjector
    from trivia.session.registry import SessionRegistry
    from trivia.session.round_controller import RoundController
    from trivia.session.timer_manager import TimerManager

logger = structlog.get_logger()


class MembershipManager:
    """Add and remove players from sessions.

    Explicit leave and transport disconnect both end up in leave(), so the two
    paths cannot drift apart. A departure that leaves a running round short of
    players force-ends it through the round controller.
    """

    def __init__(
        self,
        *,
        registry: SessionRegistry,
        channel: EventChannel,
        projector: BroadcastProjector,
        timer_manager: TimerManager,
        rounds: RoundController,
        min_players: int = 2,
    ) -> None:
        self._registry = registry
        self._channel = channel
        self._projector = projector
        self._timer_manager = timer_manager
        self._rounds = rounds
        self._min_players = min_players

    async def join(self, session: Session, player_id: str, name: str) -> Player:
        """Append a new player in arrival order. Mid-round joins are rejected."""
        if session.in_progress:
            raise SessionInProgressError("Cannot join: game already in progress.")

        player = Player(player_id=player_id, name=name)
        session.add_player(player)
        logger.info("player joined", session_id=session.session_id, player_id=player_id)

        await self._channel.broadcast(session, SystemMessage(text=f"{name} joined the session."))
        await self._projector.publish(session)
        return player

    async def leave(self, session: Session, player_id: str) -> bool:
        """Remove a player from a session.

        Returns False when the player is not a member, so repeated leave or
        disconnect-after-leave is a silent no-op.

        Removal, session deletion, GM handoff and a forced round end are all
        applied before the first notification goes out. Cancelling the caller
        mid-broadcast can drop messages but never leaves a half-applied departure.
        """
        player = session.remove_player(player_id)
        if player is None:
            return False

        session_id = session.session_id
        logger.info("player left", session_id=session_id, player_id=player_id)

        if session.is_empty:
            self._timer_manager.cancel(session_id)
            self._registry.delete(session_id)
            return True

        new_gm = None
        if session.is_gm(player_id):
            new_gm = session.first_in_join_order()
            session.gm = new_gm
            logger.info("gm reassigned", session_id=session_id, gm=new_gm)

        ended = None
        if session.in_progress and session.player_count < self._min_players:
            ended = self._rounds.abandon(session)

        await self._channel.broadcast(session, SystemMessage(text=f"{player.name} left the session."))
        if new_gm is not None:
            await self._channel.broadcast(
                session,
                SystemMessage(text=f"{session.players[new_gm].name} is now the Game Master."),
            )
        if ended is not None:
            await self._rounds.announce_end(session, ended)
        else:
            await self._projector.publish(session)
        return True
