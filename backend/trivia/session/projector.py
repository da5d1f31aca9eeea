"""Client-visible view of a session."""

from __future__ import annotations

from typing import TYPE_CHECKING

from trivia.messaging.types import PlayerView, SessionStateMessage

if TYPE_CHECKING:
    from trivia.session.broadcast import EventChannel
    from trivia.session.models import Session


class BroadcastProjector:
    """Derive session_state from internal state and push it to every member.

    The projection never includes the answer in any form; the question is only
    visible while a round is running.
    """

    def __init__(self, channel: EventChannel) -> None:
        self._channel = channel

    @staticmethod
    def project(session: Session) -> SessionStateMessage:
        return SessionStateMessage(
            session_id=session.session_id,
            players=[
                PlayerView(
                    id=player.player_id,
                    name=player.name,
                    score=player.score,
                    attempts_left=player.attempts_left,
                    is_gm=session.is_gm(player.player_id),
                )
                for player in session.ordered_players
            ],
            gm=session.gm,
            in_progress=session.in_progress,
            question=session.question if session.in_progress else None,
            winner=session.winner,
        )

    async def publish(self, session: Session) -> None:
        await self._channel.broadcast(session, self.project(session))
