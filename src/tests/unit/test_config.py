"""Tests for configuration management."""

import pytest
from pydantic import ValidationError

from fragments.config import Settings, get_settings, settings
from tests.fixtures.config import fresh_settings  # noqa: F401


class TestSettings:
    """Test our custom Settings validation logic."""

    def test_defaults(self, monkeypatch):
        """Test the defaults when nothing is set in the environment."""
        for name in ("LOG_LEVEL", "LOG_FORMAT", "MAX_FRAGMENT_SIZE", "IMAGE_QUALITY"):
            monkeypatch.delenv(f"FRAGMENTS_{name}", raising=False)

        config = Settings()
        assert config.max_fragment_size == 5 * 1024 * 1024
        assert config.image_quality == 85
        assert config.log_level == "INFO"
        assert config.log_format == "json"

    def test_environment_prefix(self, monkeypatch):
        """Test that FRAGMENTS_ variables are read."""
        monkeypatch.setenv("FRAGMENTS_MAX_FRAGMENT_SIZE", "1024")
        monkeypatch.setenv("FRAGMENTS_IMAGE_QUALITY", "60")

        config = Settings()
        assert config.max_fragment_size == 1024
        assert config.image_quality == 60

    def test_log_level_is_normalized(self, monkeypatch):
        """Test that log level names are uppercased."""
        monkeypatch.setenv("FRAGMENTS_LOG_LEVEL", "debug")
        assert Settings().log_level == "DEBUG"

    def test_invalid_log_level(self, monkeypatch):
        """Test our custom validation of log level names."""
        monkeypatch.setenv("FRAGMENTS_LOG_LEVEL", "LOUD")

        with pytest.raises(ValidationError) as exc_info:
            Settings()

        assert "Invalid LOG_LEVEL: 'LOUD'" in str(exc_info.value)

    def test_invalid_log_format(self, monkeypatch):
        """Test that only json and console formats are accepted."""
        monkeypatch.setenv("FRAGMENTS_LOG_FORMAT", "xml")

        with pytest.raises(ValidationError) as exc_info:
            Settings()

        assert "Invalid LOG_FORMAT" in str(exc_info.value)

    @pytest.mark.parametrize("quality", ["0", "101"])
    def test_image_quality_bounds(self, monkeypatch, quality):
        """Test that image quality must be between 1 and 100."""
        monkeypatch.setenv("FRAGMENTS_IMAGE_QUALITY", quality)
        with pytest.raises(ValidationError):
            Settings()

    def test_max_fragment_size_must_be_positive(self, monkeypatch):
        """Test that a zero size limit is rejected."""
        monkeypatch.setenv("FRAGMENTS_MAX_FRAGMENT_SIZE", "0")
        with pytest.raises(ValidationError):
            Settings()


class TestLazySettings:
    """Test the lazily created settings singleton."""

    def test_created_once(self, fresh_settings):
        """Test that get_settings returns the same instance."""
        assert get_settings() is get_settings()

    def test_proxy_reads_environment_at_first_use(self, monkeypatch, fresh_settings):
        """Test that the proxy builds settings on first attribute access."""
        monkeypatch.setenv("FRAGMENTS_IMAGE_QUALITY", "42")
        assert settings.image_quality == 42
