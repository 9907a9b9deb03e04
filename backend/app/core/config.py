"""Application settings for backend runtime and tests."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Typed settings loaded from environment variables or explicit kwargs."""

    c4_app_env: str = "dev"
    c4_app_host: str = "127.0.0.1"
    c4_app_port: int = Field(default=8000, ge=1)
    c4_cors_allow_origins: str = "*"

    c4_storage_backend: Literal["memory", "redis"] = "memory"
    c4_redis_url: str = ""
    c4_room_ttl_seconds: int = Field(default=86400, ge=1)
    c4_inactive_room_seconds: int = Field(default=3600, ge=1)
    c4_cleanup_interval_seconds: int = Field(default=300, ge=0)

    c4_default_rows: int = Field(default=6, ge=1)
    c4_default_cols: int = Field(default=7, ge=1)
    c4_default_max_players: int = Field(default=3, ge=2, le=4)
    c4_default_winning_length: int = Field(default=4, ge=2)
    c4_room_key_length: int = Field(default=6, ge=3, le=12)

    c4_game_log_dir: str | None = None

    @model_validator(mode="after")
    def validate_board_defaults(self) -> "Settings":
        """Ensure the default winning length fits on the default grid."""
        if self.c4_default_winning_length > max(self.c4_default_rows, self.c4_default_cols):
            raise ValueError(
                "C4_DEFAULT_WINNING_LENGTH must not exceed both C4_DEFAULT_ROWS and C4_DEFAULT_COLS"
            )
        return self

    @model_validator(mode="after")
    def validate_redis_url(self) -> "Settings":
        """Redis storage needs a connection URL."""
        if self.c4_storage_backend == "redis" and not self.c4_redis_url:
            raise ValueError("C4_REDIS_URL is required when C4_STORAGE_BACKEND=redis")
        return self


def load_settings() -> Settings:
    """Load settings from process environment."""
    return Settings()
