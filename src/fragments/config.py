"""Configuration management for Fragments."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="FRAGMENTS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    debug: bool = False

    # Content limits
    max_fragment_size: int = Field(
        default=5 * 1024 * 1024,
        gt=0,
        description="Largest accepted fragment body in bytes",
    )

    # Conversion
    image_quality: int = Field(
        default=85,
        ge=1,
        le=100,
        description="Encoder quality for JPEG and WEBP output",
    )

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a standard logging level name."""
        if v.upper() not in LOG_LEVELS:
            raise ValueError(
                f"Invalid LOG_LEVEL: '{v}'. "
                f"Must be one of: {', '.join(sorted(LOG_LEVELS))}"
            )
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format is one we know how to render."""
        valid_formats = {"json", "console"}
        if v.lower() not in valid_formats:
            raise ValueError(
                f"Invalid LOG_FORMAT: '{v}'. "
                f"Must be one of: {', '.join(sorted(valid_formats))}"
            )
        return v.lower()


# Lazy settings initialization
_settings = None


def get_settings() -> Settings:
    """Get the settings instance, creating it if needed."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


# This will be accessed as a property
class SettingsProxy:
    """Proxy to provide attribute access to settings."""

    def __getattr__(self, name):
        return getattr(get_settings(), name)

    def __setattr__(self, name, value):
        setattr(get_settings(), name, value)


settings = SettingsProxy()
