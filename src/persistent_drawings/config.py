"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

DEFAULT_ATTACHMENT_MAX_BYTES = 4 * 1024 * 1024


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    drawings_table: str = "drawings"
    attachments_bucket: str = "drawing-files"
    attachment_prefix: str = "files/persistent-drawings"
    attachment_max_bytes: int = DEFAULT_ATTACHMENT_MAX_BYTES
    skip_oversized_attachments: bool = False
    public_base_url: str = "http://localhost:3000"
    drawings_api_url: str | None = None
    allowed_origins: str = "http://localhost:3000,http://localhost:5000"
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_allowed_origins(raw: str | None) -> list[str]:
    """Parse CORS origins from env; ``*`` allows any origin."""
    if raw is None:
        return []
    cleaned = raw.strip()
    if cleaned == "*":
        return ["*"]
    origins: list[str] = []
    for chunk in cleaned.split(","):
        value = chunk.strip().rstrip("/")
        if value and value not in origins:
            origins.append(value)
    return origins
