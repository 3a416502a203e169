"""Tests for application configuration."""
import pytest
from pydantic import ValidationError

from core.config import Settings

SECRET = "x" * 32


def _settings(**overrides: str) -> Settings:
    return Settings(
        _env_file=None,
        database_url="postgresql://test",
        JWT_SECRET_KEY=SECRET,
        **overrides,
    )


class TestCorsOriginsParsing:
    """Tests for CORS origins parsing from environment variables."""

    def test_parse_multiple_origins_comma_separated(self) -> None:
        """Multiple comma-separated origins are parsed with whitespace stripped."""
        settings = _settings(CORS_ORIGINS="  http://localhost:5173 , https://example.com,")
        assert settings.cors_origins == [
            "http://localhost:5173",
            "https://example.com",
        ]

    def test_parse_empty_string(self) -> None:
        """Empty string results in empty list."""
        assert _settings(CORS_ORIGINS="").cors_origins == []


class TestLockTiming:
    """Tests for lock lease settings."""

    def test_defaults(self) -> None:
        """Defaults give a five minute lease refreshed every minute."""
        settings = _settings(
            LOCK_DURATION_SECONDS="300",
            LOCK_REFRESH_INTERVAL_SECONDS="60",
            LOCK_SWEEP_INTERVAL_SECONDS="0",
        )
        assert settings.lock_duration_seconds == 300
        assert settings.lock_refresh_interval_seconds == 60
        assert settings.lock_sweep_interval_seconds == 0

    def test_refresh_must_be_shorter_than_lease(self) -> None:
        """A refresh interval that is not shorter than the lease is rejected."""
        with pytest.raises(ValidationError, match="must be shorter"):
            _settings(LOCK_DURATION_SECONDS="60", LOCK_REFRESH_INTERVAL_SECONDS="60")

    def test_lease_must_be_positive(self) -> None:
        """A zero lease is rejected."""
        with pytest.raises(ValidationError):
            _settings(LOCK_DURATION_SECONDS="0")


class TestSecrets:
    """Tests for JWT settings."""

    def test_short_secret_rejected(self) -> None:
        """Secrets shorter than 16 characters are rejected."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, database_url="postgresql://test", JWT_SECRET_KEY="short")


class TestNoteLimits:
    """Tests for note size settings."""

    def test_title_limit_within_column_width(self) -> None:
        """The title limit may be lowered but not raised past the title column."""
        assert _settings(MAX_TITLE_LENGTH="120").max_title_length == 120
        with pytest.raises(ValidationError):
            _settings(MAX_TITLE_LENGTH="501")
        with pytest.raises(ValidationError):
            _settings(MAX_TITLE_LENGTH="0")
