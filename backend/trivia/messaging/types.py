from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic.alias_generators import to_camel

from trivia.logic.enums import RoundEndReason, SessionErrorCode

_SESSION_ID_PATTERN = r"^[a-zA-Z0-9_-]+$"
_MAX_SESSION_ID_LENGTH = 50


class ClientMessageType(StrEnum):
    CREATE_SESSION = "create_session"
    JOIN_SESSION = "join_session"
    LEAVE_SESSION = "leave_session"
    SET_QUESTION = "set_question"
    START_GAME = "start_game"
    GUESS = "guess"
    GET_SESSION_STATE = "get_session_state"
    PING = "ping"


class SessionMessageType(StrEnum):
    SESSION_CREATED = "session_created"
    LEFT_SESSION = "left_session"
    SESSION_STATE = "session_state"
    SYSTEM_MESSAGE = "system_message"
    ERROR_MESSAGE = "error_message"
    GAME_STARTED = "game_started"
    GAME_ENDED = "game_ended"
    PONG = "pong"


class WireModel(BaseModel):
    """Base for every message on the wire: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        validate_by_name=True,
        validate_by_alias=True,
        serialize_by_alias=True,
    )


def _scalar_to_text(value: Any) -> Any:  # noqa: ANN401
    """Accept numbers where text is expected (4 -> "4"). Length is capped by the round rules."""
    if isinstance(value, int | float):
        return str(value)
    return value


def _blank_to_none(value: Any) -> Any:  # noqa: ANN401
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


# --- Client -> server ---


class CreateSessionMessage(WireModel):
    type: Literal[ClientMessageType.CREATE_SESSION] = ClientMessageType.CREATE_SESSION
    name: str | None = None
    session_id: str | None = Field(
        default=None,
        max_length=_MAX_SESSION_ID_LENGTH,
        pattern=_SESSION_ID_PATTERN,
    )

    @field_validator("session_id", mode="before")
    @classmethod
    def _strip_session_id(cls, v: Any) -> Any:  # noqa: ANN401
        return _blank_to_none(_scalar_to_text(v))

    @field_validator("name", mode="before")
    @classmethod
    def _name_to_text(cls, v: Any) -> Any:  # noqa: ANN401
        return _scalar_to_text(v)


class JoinSessionMessage(WireModel):
    type: Literal[ClientMessageType.JOIN_SESSION] = ClientMessageType.JOIN_SESSION
    session_id: str = ""
    name: str | None = None

    @field_validator("session_id", mode="before")
    @classmethod
    def _strip_session_id(cls, v: Any) -> Any:  # noqa: ANN401
        if v is None:
            return ""
        v = _scalar_to_text(v)
        return v.strip() if isinstance(v, str) else v

    @field_validator("name", mode="before")
    @classmethod
    def _name_to_text(cls, v: Any) -> Any:  # noqa: ANN401
        return _scalar_to_text(v)


class LeaveSessionMessage(WireModel):
    type: Literal[ClientMessageType.LEAVE_SESSION] = ClientMessageType.LEAVE_SESSION


class SetQuestionMessage(WireModel):
    type: Literal[ClientMessageType.SET_QUESTION] = ClientMessageType.SET_QUESTION
    question: str = ""
    answer: str = ""

    @field_validator("question", "answer", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:  # noqa: ANN401
        return "" if v is None else _scalar_to_text(v)


class StartGameMessage(WireModel):
    type: Literal[ClientMessageType.START_GAME] = ClientMessageType.START_GAME


class GuessMessage(WireModel):
    type: Literal[ClientMessageType.GUESS] = ClientMessageType.GUESS
    guess_text: str = ""

    @field_validator("guess_text", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:  # noqa: ANN401
        return "" if v is None else _scalar_to_text(v)


class GetSessionStateMessage(WireModel):
    type: Literal[ClientMessageType.GET_SESSION_STATE] = ClientMessageType.GET_SESSION_STATE


class PingMessage(WireModel):
    type: Literal[ClientMessageType.PING] = ClientMessageType.PING


ClientMessage = (
    CreateSessionMessage
    | JoinSessionMessage
    | LeaveSessionMessage
    | SetQuestionMessage
    | StartGameMessage
    | GuessMessage
    | GetSessionStateMessage
    | PingMessage
)


# --- Server -> client ---


class SessionCreatedMessage(WireModel):
    type: Literal[SessionMessageType.SESSION_CREATED] = SessionMessageType.SESSION_CREATED
    session_id: str
    gm: str


class LeftSessionMessage(WireModel):
    type: Literal[SessionMessageType.LEFT_SESSION] = SessionMessageType.LEFT_SESSION
    session_id: str


class PlayerView(WireModel):
    """One roster entry in session_state. Never carries answers."""

    id: str
    name: str
    score: int
    attempts_left: int
    is_gm: bool = Field(alias="isGM")


class SessionStateMessage(WireModel):
    type: Literal[SessionMessageType.SESSION_STATE] = SessionMessageType.SESSION_STATE
    session_id: str
    players: list[PlayerView]
    gm: str | None
    in_progress: bool
    question: str | None
    winner: str | None


class SystemMessage(WireModel):
    type: Literal[SessionMessageType.SYSTEM_MESSAGE] = SessionMessageType.SYSTEM_MESSAGE
    text: str


class ErrorMessage(WireModel):
    type: Literal[SessionMessageType.ERROR_MESSAGE] = SessionMessageType.ERROR_MESSAGE
    code: SessionErrorCode
    text: str


class GameStartedMessage(WireModel):
    type: Literal[SessionMessageType.GAME_STARTED] = SessionMessageType.GAME_STARTED
    question: str
    duration: float


class WinnerInfo(WireModel):
    id: str
    name: str | None


class GameEndedMessage(WireModel):
    type: Literal[SessionMessageType.GAME_ENDED] = SessionMessageType.GAME_ENDED
    reason: RoundEndReason
    winner: WinnerInfo | None
    answer: str | None


class PongMessage(WireModel):
    type: Literal[SessionMessageType.PONG] = SessionMessageType.PONG


_ClientMessageUnion = Annotated[ClientMessage, Field(discriminator="type")]

_client_message_adapter = TypeAdapter(_ClientMessageUnion)


def parse_client_message(data: dict[str, Any]) -> ClientMessage:
    """Parse a raw dict into a typed ClientMessage, dispatching on its "type" key."""
    return _client_message_adapter.validate_python(data)
