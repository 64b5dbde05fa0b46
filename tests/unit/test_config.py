"""Unit tests for Settings."""

import pytest

from coursereg.config import ConfigError, Settings


@pytest.mark.unit
class TestSettings:
    """Tests for Settings defaults and environment loading."""

    def test_defaults(self) -> None:
        settings = Settings.from_env({})

        assert settings.db_path == "coursereg.db"
        assert settings.max_credits == 24
        assert settings.card_prefix == "BU"
        assert settings.log_level == "INFO"

    def test_env_overrides(self) -> None:
        settings = Settings.from_env(
            {
                "COURSEREG_DB_PATH": "/tmp/reg.db",
                "COURSEREG_MAX_CREDITS": "18",
                "COURSEREG_CARD_PREFIX": "UNI",
                "COURSEREG_LOG_LEVEL": "DEBUG",
            }
        )

        assert settings.db_path == "/tmp/reg.db"
        assert settings.max_credits == 18
        assert settings.card_prefix == "UNI"
        assert settings.log_level == "DEBUG"

    def test_non_integer_max_credits_raises(self) -> None:
        with pytest.raises(ConfigError, match="COURSEREG_MAX_CREDITS"):
            Settings.from_env({"COURSEREG_MAX_CREDITS": "lots"})

    def test_non_positive_max_credits_raises(self) -> None:
        with pytest.raises(ConfigError):
            Settings(max_credits=0)

    def test_empty_card_prefix_raises(self) -> None:
        with pytest.raises(ConfigError):
            Settings(card_prefix="")
