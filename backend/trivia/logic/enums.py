"""
String enum definitions for trivia round concepts.
"""

from enum import StrEnum


class RoundState(StrEnum):
    """Whether a session currently has a round running."""

    IDLE = "idle"
    IN_PROGRESS = "in_progress"


class RoundEndReason(StrEnum):
    """Why a round ended, as reported in game_ended."""

    CORRECT_GUESS = "correct_guess"
    TIME_EXPIRED = "time_expired"
    STOPPED_NOT_ENOUGH_PLAYERS = "stopped_not_enough_players"


class SessionErrorCode(StrEnum):
    """Error codes sent to clients in error_message."""

    DUPLICATE_ID = "duplicate_id"
    SESSION_NOT_FOUND = "session_not_found"
    SESSION_IN_PROGRESS = "session_in_progress"
    NOT_AUTHORIZED = "not_authorized"
    INVALID_INPUT = "invalid_input"
    NO_ATTEMPTS_LEFT = "no_attempts_left"
    NOT_IN_SESSION = "not_in_session"
    NOT_ENOUGH_PLAYERS = "not_enough_players"
    NO_ACTIVE_ROUND = "no_active_round"
    QUESTION_NOT_SET = "question_not_set"
    ALREADY_IN_SESSION = "already_in_session"
    SERVER_AT_CAPACITY = "server_at_capacity"
    INVALID_MESSAGE = "invalid_message"
    ACTION_FAILED = "action_failed"
