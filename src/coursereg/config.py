"""Configuration loading for CourseReg."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

DEFAULT_DB_PATH = "coursereg.db"
DEFAULT_MAX_CREDITS = 24
DEFAULT_CARD_PREFIX = "BU"
DEFAULT_LOG_LEVEL = "INFO"


class ConfigError(Exception):
    """Raised when configuration is invalid."""


@dataclass(frozen=True)
class Settings:
    """Runtime settings.

    Attributes:
        db_path: SQLite database path. ":memory:" for an in-memory database.
        max_credits: Ceiling on non-rejected credits per registration.
        card_prefix: Prefix for issued registration card numbers.
        log_level: Log level name passed to setup_logging.
    """

    db_path: str = DEFAULT_DB_PATH
    max_credits: int = DEFAULT_MAX_CREDITS
    card_prefix: str = DEFAULT_CARD_PREFIX
    log_level: str = DEFAULT_LOG_LEVEL

    def __post_init__(self) -> None:
        if self.max_credits <= 0:
            raise ConfigError(f"max_credits must be positive, got {self.max_credits}")
        if not self.card_prefix:
            raise ConfigError("card_prefix must not be empty")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from COURSEREG_* environment variables.

        Args:
            environ: Mapping to read from. Defaults to os.environ.

        Returns:
            Settings with environment overrides applied.

        Raises:
            ConfigError: If a value cannot be parsed.
        """
        env = os.environ if environ is None else environ

        raw_max = env.get("COURSEREG_MAX_CREDITS", str(DEFAULT_MAX_CREDITS))
        try:
            max_credits = int(raw_max)
        except ValueError as e:
            raise ConfigError(f"COURSEREG_MAX_CREDITS must be an integer, got {raw_max!r}") from e

        return cls(
            db_path=env.get("COURSEREG_DB_PATH", DEFAULT_DB_PATH),
            max_credits=max_credits,
            card_prefix=env.get("COURSEREG_CARD_PREFIX", DEFAULT_CARD_PREFIX),
            log_level=env.get("COURSEREG_LOG_LEVEL", DEFAULT_LOG_LEVEL),
        )
