"""Runtime settings loaded from ``GRIDCALC_*`` environment variables."""

from __future__ import annotations

import logging
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine and CLI settings.

    Every field can be overridden with an environment variable of the same
    name prefixed by ``GRIDCALC_`` (``GRIDCALC_LOG_LEVEL=DEBUG``) or from a
    local ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_prefix="GRIDCALC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: str = "WARNING"

    # Dependents deeper than this below an edited cell are marked with an
    # error instead of being re-evaluated.
    max_propagation_depth: int = 256

    # Console table
    column_width: int = 10

    # Shown in place of a formula that does not compile
    compile_error_text: str = "#ERROR"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(level: str | None = None) -> None:
    """Install a root handler for command-line use.  Library code only logs."""
    logging.basicConfig(
        level=(level or get_settings().log_level).upper(),
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )
