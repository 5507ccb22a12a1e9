"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
    - payment_provider="fake" keeps local development and tests off the real provider
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://marketplace:marketplace@db:5432/marketplace"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted platforms provide postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Auth: tokens issued by the hosted auth platform
    jwt_secret: str = "dev-jwt-secret-change-me"
    jwt_algorithm: str = "HS256"
    jwt_audience: str = "authenticated"

    # Payments
    payment_provider: str = "fake"
    stripe_secret_key: str = "sk_test_placeholder"
    stripe_webhook_secret: str = "whsec_placeholder"

    # Object storage (S3-compatible)
    storage_endpoint_url: str | None = None
    storage_public_base_url: str = "http://localhost:9000"
    storage_region: str = "eu-west-2"
    storage_access_key_id: str | None = None
    storage_secret_access_key: str | None = None
    listing_images_bucket: str = "listing-images"
    dispute_evidence_bucket: str = "dispute-evidence"

    # Pokémon TCG API
    pokemon_tcg_api_url: str = "https://api.pokemontcg.io/v2"
    pokemon_tcg_api_key: str | None = None
    pokemon_tcg_timeout_seconds: int = 15
    pokemon_tcg_max_retries: int = 3
    pokemon_tcg_base_delay_ms: int = 500

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
