"""Trivia server configuration via environment variables."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.validators import StringListEnvSettingsSource, parse_string_list
from trivia.logic.settings import RoundSettings

if TYPE_CHECKING:
    from pydantic_settings.sources.base import PydanticBaseSettingsSource


class TriviaServerSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="TRIVIA_", populate_by_name=True)

    host: str = Field(default="0.0.0.0", min_length=1)  # noqa: S104
    # Hosting platforms export a bare PORT; TRIVIA_PORT wins when both are set.
    port: int = Field(default=3000, ge=1, le=65535, validation_alias=AliasChoices("TRIVIA_PORT", "PORT"))
    log_dir: str | None = None
    static_dir: str = "public"
    cors_origins: list[str] = ["*"]
    max_sessions: int = Field(default=100, ge=1)

    round_duration_seconds: float = Field(default=60, gt=0)
    attempts_per_round: int = Field(default=3, ge=1)
    win_points: int = Field(default=10, ge=0)

    @field_validator("cors_origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str]) -> list[str]:
        return parse_string_list(v)

    def round_settings(self) -> RoundSettings:
        return RoundSettings(
            round_duration_seconds=self.round_duration_seconds,
            attempts_per_round=self.attempts_per_round,
            win_points=self.win_points,
        )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return init_settings, StringListEnvSettingsSource(settings_cls), dotenv_settings, file_secret_settings
