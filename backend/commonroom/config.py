"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Key-value store (one SQL table)
    database_url: str = (
        "postgresql+asyncpg://commonroom:commonroom@db:5432/commonroom"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted providers hand out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Identity provider + blob storage (hosted backend REST API)
    supabase_url: str = "http://localhost:54321"
    supabase_service_key: str = "service-role-placeholder"
    identity_timeout_seconds: float = 10.0
    storage_timeout_seconds: float = 60.0
    storage_bucket_prefix: str = "commonroom"
    signed_url_ttl_seconds: int = 60 * 60 * 24 * 365

    # Upload gate
    max_image_bytes: int = 10 * 1024 * 1024
    max_video_bytes: int = 50 * 1024 * 1024

    # Rating aggregator
    top_rated_default: int = 10
    top_rated_max: int = 100

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @property
    def submissions_bucket(self) -> str:
        return f"{self.storage_bucket_prefix}-submissions"


@lru_cache
def get_settings() -> Settings:
    return Settings()
