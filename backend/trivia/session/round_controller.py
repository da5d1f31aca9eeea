"""
Round lifecycle for a session: set question, start, guess, end.

State machine: IDLE -> IN_PROGRESS -> IDLE. Every way a round can finish
(correct guess, timer expiry, too few players) goes through finish(), so
scoring, answer reveal and GM rotation are implemented exactly once. State
changes complete before the first notification is sent.

All methods assume the caller holds the session's lock; guesses are therefore
evaluated one at a time and the first correct one wins.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from trivia.logic.enums import RoundEndReason, RoundState
from trivia.logic.exceptions import (
    InvalidInputError,
    NoActiveRoundError,
    NoAttemptsLeftError,
    NotAuthorizedError,
    NotEnoughPlayersError,
    NotInSessionError,
    QuestionNotSetError,
    SessionInProgressError,
)
from trivia.logic.normalizer import clean_text, normalize_answer
from trivia.messaging.types import (
    GameEndedMessage,
    GameStartedMessage,
    SystemMessage,
    WinnerInfo,
)

if TYPE_CHECKING:
    from trivia.logic.settings import RoundSettings
    from trivia.session.broadcast import EventChannel
    from trivia.session.models import Session
    from trivia.session.projector import BroadcastProjector
    from trivia.session.timer_manager import TimerManager

logger = structlog.get_logger()


class RoundController:
    def __init__(
        self,
        *,
        settings: RoundSettings,
        channel: EventChannel,
        projector: BroadcastProjector,
        timer_manager: TimerManager,
    ) -> None:
        self._settings = settings
        self._channel = channel
        self._projector = projector
        self._timer_manager = timer_manager

    async def set_question(self, session: Session, requester_id: str, question: str, answer: str) -> None:
        """Store the question and answer for the next round (GM only, idle only)."""
        if not session.is_gm(requester_id):
            raise NotAuthorizedError("Only the Game Master can set the question.")
        if session.in_progress:
            raise SessionInProgressError("Cannot set question while a game is in progress.")

        question = clean_text(question, self._settings.max_question_length)
        answer = clean_text(answer, self._settings.max_answer_length)
        if not question or not answer:
            raise InvalidInputError("Question and answer must not be empty.")

        session.question = question
        session.answer_original = answer
        session.answer_canonical = normalize_answer(answer)
        logger.info("question set", session_id=session.session_id)

        await self._channel.send(requester_id, SystemMessage(text="Question set."))
        await self._projector.publish(session)

    async def start(self, session: Session, requester_id: str) -> None:
        """Start a round: hand out attempts, arm the expiry timer, announce the question."""
        if not session.is_gm(requester_id):
            raise NotAuthorizedError("Only the Game Master can start the game.")
        if session.in_progress:
            raise SessionInProgressError("Game already in progress.")
        if session.player_count < self._settings.min_players:
            raise NotEnoughPlayersError(
                f"You need at least {self._settings.min_players} players to start the game.",
            )
        if not session.has_question:
            raise QuestionNotSetError

        for player in session.players.values():
            player.attempts_left = self._settings.attempts_per_round
        session.winner = None
        session.round_number += 1
        session.round_state = RoundState.IN_PROGRESS

        duration = self._settings.round_duration_seconds
        session.deadline = self._timer_manager.start(session.session_id, session.round_number, duration)
        logger.info(
            "round started",
            session_id=session.session_id,
            round_number=session.round_number,
            players=session.player_count,
        )

        await self._channel.broadcast(
            session,
            GameStartedMessage(question=session.question, duration=duration),
        )
        await self._projector.publish(session)
        gm_name = session.players[requester_id].name
        await self._channel.broadcast(session, SystemMessage(text=f"Game started by {gm_name}. Good luck!"))

    async def guess(self, session: Session, player_id: str, text: str) -> None:
        """Evaluate one guess. The attempt is consumed whether or not it is correct.

        The outcome (attempt, winner, round end) is settled before anyone is
        notified, so a cancelled sender cannot leave a half-evaluated guess.
        """
        if not session.in_progress:
            raise NoActiveRoundError
        player = session.get_player(player_id)
        if player is None:
            raise NotInSessionError("You are not a player in this session.")
        if player.attempts_left <= 0:
            raise NoAttemptsLeftError
        text = clean_text(text, self._settings.max_guess_length)
        if not text:
            raise InvalidInputError("Guess cannot be empty.")

        player.attempts_left -= 1
        correct = normalize_answer(text) == session.answer_canonical
        view = self._projector.project(session)
        ended = None
        # first decider wins; a later correct guess only costs the attempt
        if correct and session.winner is None:
            session.winner = player_id
            ended = self.finish(session, RoundEndReason.CORRECT_GUESS, winner_id=player_id)

        await self._channel.broadcast(
            session,
            SystemMessage(text=f'{player.name} guessed: "{text}" (attempts left: {player.attempts_left})'),
        )
        await self._channel.broadcast(session, view)

        if ended is not None:
            await self.announce_end(session, ended)
        elif not correct and player.attempts_left <= 0:
            await self._channel.send(
                player_id,
                SystemMessage(text="You have used all your attempts for this round."),
            )

    def finish(
        self,
        session: Session,
        reason: RoundEndReason,
        winner_id: str | None = None,
    ) -> GameEndedMessage | None:
        """Apply the round-end transition and return the notice to announce.

        Awards the winner, rotates the GM in join order and resets round fields
        without awaiting anything. Returns None if no round was running.
        """
        if not session.in_progress:
            return None

        self._timer_manager.cancel(session.session_id)
        session.round_state = RoundState.IDLE
        session.winner = winner_id

        winner = session.get_player(winner_id) if winner_id is not None else None
        if winner is not None:
            winner.score += self._settings.win_points

        ended = GameEndedMessage(
            reason=reason,
            winner=WinnerInfo(id=winner_id, name=winner.name if winner else None) if winner_id else None,
            answer=session.answer_original,
        )
        session.gm = session.next_in_join_order(session.gm)
        session.clear_round()
        logger.info(
            "round ended",
            session_id=session.session_id,
            round_number=session.round_number,
            reason=reason,
            winner=winner_id,
        )
        return ended

    async def announce_end(self, session: Session, ended: GameEndedMessage) -> None:
        """Reveal the answer, then publish the post-round view."""
        await self._channel.broadcast(session, ended)
        await self._projector.publish(session)

    async def end_round(
        self,
        session: Session,
        reason: RoundEndReason,
        winner_id: str | None = None,
    ) -> bool:
        """Finish the running round and announce it. Returns False if no round was running."""
        ended = self.finish(session, reason, winner_id)
        if ended is None:
            return False
        await self.announce_end(session, ended)
        return True

    def abandon(self, session: Session) -> GameEndedMessage | None:
        """Force-end a round that no longer has enough players; the caller announces it."""
        return self.finish(session, RoundEndReason.STOPPED_NOT_ENOUGH_PLAYERS)

    async def expire(self, session: Session, round_number: int) -> None:
        """End a round whose timer ran out, unless that round is already over."""
        if session.round_number != round_number:
            return
        await self.end_round(session, RoundEndReason.TIME_EXPIRED)
