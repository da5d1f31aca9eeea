"""Round rules for trivia sessions - quotas, durations, awards and text limits."""

from pydantic import BaseModel, ConfigDict, Field


class RoundSettings(BaseModel):
    """
    Configuration for every round played on this server.

    Defaults match the classic rules: 3 attempts, 60 seconds, 10 points.
    """

    model_config = ConfigDict(frozen=True)

    # --- Round ---
    attempts_per_round: int = Field(default=3, ge=1)
    round_duration_seconds: float = Field(default=60, gt=0)
    win_points: int = Field(default=10, ge=0)
    min_players: int = Field(default=2, ge=2)

    # --- Text limits ---
    max_name_length: int = 30
    max_question_length: int = 500
    max_answer_length: int = 200
    max_guess_length: int = 200
    default_player_name: str = "Anonymous"
