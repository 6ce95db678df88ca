"""Environment-aware configuration with validation.

This module provides centralized configuration management using Pydantic Settings.
All environment variables are validated at startup to fail fast on misconfigurations.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings are cached to avoid repeated parsing.

    Example:
        >>> settings = get_settings()
        >>> print(settings.subtitle_codecs)
        'stpp'
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["dev", "staging", "prod"] = Field(
        default="dev",
        description="Deployment environment",
    )
    aws_region: str = Field(
        default="us-east-1",
        alias="AWS_REGION",
        description="AWS region for all services",
    )

    # S3 Configuration
    input_bucket: str = Field(
        default="",
        alias="INPUT_BUCKET",
        description="Default S3 bucket holding manifests to edit",
    )
    output_bucket: str = Field(
        default="",
        alias="OUTPUT_BUCKET",
        description="S3 bucket for edited manifests (defaults to the source bucket)",
    )

    # Rendition naming
    display_locale: str = Field(
        default="en",
        alias="DISPLAY_LOCALE",
        description="Locale used to render language display names",
    )
    derive_rendition_names: bool = Field(
        default=True,
        alias="DERIVE_RENDITION_NAMES",
        description="Rename parsed HLS renditions from their LANGUAGE code",
    )

    # Defaults for new tracks
    default_audio_channels: int = Field(
        default=2,
        ge=1,
        le=32,
        alias="DEFAULT_AUDIO_CHANNELS",
        description="CHANNELS value for HLS audio renditions that omit it",
    )
    subtitle_codecs: str = Field(
        default="stpp",
        alias="SUBTITLE_CODECS",
        description="codecs attribute for added DASH subtitle representations",
    )
    subtitle_mime_type: str = Field(
        default="text/vtt",
        alias="SUBTITLE_MIME_TYPE",
        description="mimeType attribute for added DASH subtitle representations",
    )

    # Validation
    validate_round_trip_on_write: bool = Field(
        default=True,
        alias="VALIDATE_ROUND_TRIP_ON_WRITE",
        description="Refuse to write manifests that do not serialize stably",
    )

    # Retry Configuration
    max_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Maximum retry attempts for transient failures",
    )
    retry_delay_seconds: float = Field(
        default=1.0,
        ge=0.1,
        le=30.0,
        description="Initial delay between retries (exponential backoff)",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level",
    )

    @field_validator("subtitle_mime_type", mode="before")
    @classmethod
    def validate_mime_type(cls, v: str) -> str:
        """Ensure the MIME type has a type/subtype shape."""
        if v and "/" not in v:
            raise ValueError("Subtitle MIME type must look like 'type/subtype'")
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "prod"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are loaded once and cached for the lifetime of the process.

    Returns:
        Validated Settings instance

    Raises:
        ValidationError: If environment variables are invalid
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Useful for testing when environment variables change.
    """
    get_settings.cache_clear()
