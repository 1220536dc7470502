"""Runtime settings for the Crusade ledger.

Values come from ``CRUSADE_``-prefixed environment variables or a local
``.env`` file, e.g. ``CRUSADE_DATA_DIR=/srv/crusade``.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DEFAULT_CORS_ORIGINS = ("http://localhost:5173", "http://127.0.0.1:5173")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CRUSADE_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    data_dir: Path = Field(
        default=Path("campaigns"), description="Directory holding one JSON snapshot per campaign"
    )
    rules_edition: str = Field(default="10th", description="Registered rules edition to play")
    log_level: str = Field(default="INFO", description="Root logging level for the API server")
    cors_origins: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CORS_ORIGINS),
        description="Origins allowed to call the HTTP API",
    )

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"unknown log level {value!r}")
        return level

    def configure_logging(self, level: str | None = None) -> None:
        """Install the root handler; ``level`` overrides :attr:`log_level`."""

        logging.basicConfig(level=(level or self.log_level).upper(), format=LOG_FORMAT)


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings, creating the data directory."""

    settings = Settings()
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    return settings
