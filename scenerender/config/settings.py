"""
Application Settings
===================

Application settings and environment configuration using Pydantic Settings.
Supports development, testing, and production environments.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Main application settings with environment variable support."""

    # Application Configuration
    app_name: str = Field(default="scenerender", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(
        default="development", description="Environment: development, testing, production"
    )
    log_level: str = Field(default="WARNING", description="Logging level")

    # Output Configuration
    output_extension: str = Field(default="tga", description="Extension of written image files")
    tga_rle: bool = Field(default=False, description="Run-length encode written TGA files")

    # Validation Configuration
    large_canvas_pixels: int = Field(
        default=16_777_216,
        gt=0,
        description="Canvas area above which parsing emits a warning",
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        allowed = {"development", "testing", "production"}
        if v not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    @field_validator("output_extension")
    @classmethod
    def strip_extension_dot(cls, v: str) -> str:
        """Accept both ``tga`` and ``.tga``."""
        v = v.strip().lstrip(".")
        if not v:
            raise ValueError("Output extension cannot be empty")
        return v

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, env_prefix="SCENERENDER_"
    )


# Global settings instance - will be initialized when needed
settings = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global settings
    if settings is None:
        settings = Settings()
    return settings


def reload_settings() -> Settings:
    """Reload settings from environment."""
    global settings
    settings = Settings()
    return settings
