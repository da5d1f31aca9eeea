"""Typed domain exceptions for rejected session intents.

Every rule violation raised by the registry, membership or round logic is a
subclass of SessionError. The session manager catches SessionError once at
the intent boundary and reports it to the originating client only.
"""

from trivia.logic.enums import SessionErrorCode


class SessionError(Exception):
    """Base exception for a rejected client intent.

    Attributes:
        code: Machine-readable error code sent to the client.
        message: Human-readable text sent to the client.

    """

    code: SessionErrorCode = SessionErrorCode.ACTION_FAILED
    default_message: str = "Action failed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class DuplicateSessionIdError(SessionError):
    code = SessionErrorCode.DUPLICATE_ID
    default_message = "Session ID already exists. Try joining it or use another ID."


class SessionNotFoundError(SessionError):
    code = SessionErrorCode.SESSION_NOT_FOUND
    default_message = "Session not found."


class SessionInProgressError(SessionError):
    """Intent is not allowed while a round is running (join, start, set question)."""

    code = SessionErrorCode.SESSION_IN_PROGRESS
    default_message = "Game already in progress."


class NotAuthorizedError(SessionError):
    """A non-GM member attempted a GM-only action."""

    code = SessionErrorCode.NOT_AUTHORIZED
    default_message = "Only the Game Master can do that."


class InvalidInputError(SessionError):
    code = SessionErrorCode.INVALID_INPUT
    default_message = "Input must not be empty."


class NoAttemptsLeftError(SessionError):
    code = SessionErrorCode.NO_ATTEMPTS_LEFT
    default_message = "No attempts left."


class NotInSessionError(SessionError):
    code = SessionErrorCode.NOT_IN_SESSION
    default_message = "You are not in a session."


class NotEnoughPlayersError(SessionError):
    code = SessionErrorCode.NOT_ENOUGH_PLAYERS
    default_message = "You need at least 2 players to start the game."


class NoActiveRoundError(SessionError):
    code = SessionErrorCode.NO_ACTIVE_ROUND
    default_message = "No active game in this session."


class QuestionNotSetError(SessionError):
    code = SessionErrorCode.QUESTION_NOT_SET
    default_message = "Set a question and answer before starting."


class AlreadyInSessionError(SessionError):
    code = SessionErrorCode.ALREADY_IN_SESSION
    default_message = "You must leave your current session first."


class ServerAtCapacityError(SessionError):
    code = SessionErrorCode.SERVER_AT_CAPACITY
    default_message = "Server at capacity."
