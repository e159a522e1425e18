"""Application configuration loaded from environment variables.

All configuration is via environment variables (or a local .env file).
The site URL is the origin the URL normalizer resolves relative links
against; the mapping table can be supplied inline or as a JSON file.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="Internal Link Manager")
    app_version: str = Field(default="1.9.2")
    debug: bool = Field(default=False)
    environment: str = Field(default="development")

    # Server
    port: int = Field(default=8000, description="Port to bind to")
    host: str = Field(default="0.0.0.0", description="Host to bind to")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="json", description="Log format: json or text")

    # Site
    site_url: str = Field(
        default="http://localhost",
        description="Site home URL used to resolve relative and protocol-relative links",
    )

    # Content types
    default_post_type: str = Field(
        default="post",
        description="Content type whose lead paragraph is eligible for links",
    )
    apply_post_types: list[str] = Field(
        default_factory=list,
        description="Content types the rewrite applies to (empty = all)",
    )

    # Mapping table
    mappings_json: str | None = Field(
        default=None,
        description="Keyword mapping table as a JSON array of {keywords, url}",
    )
    mappings_file: Path | None = Field(
        default=None,
        description="Path to a JSON file holding the keyword mapping table",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
