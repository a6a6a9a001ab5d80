"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded in production)
    - get_settings() is cached (lru_cache) — single instance per process
    - is_production gates whether internal error causes are logged
    - Production refuses to start with the development session secret

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
"""

from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from switchyard.core.domain_types import Environment

DEV_SESSION_SECRET = "dev-insecure-session-secret-change-me"


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    environment: Environment = Environment.DEVELOPMENT

    # Database
    database_url: str = "postgresql+asyncpg://switchyard:switchyard@db:5432/switchyard"

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted providers hand out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10
    database_auto_create: bool = False

    # Sessions
    session_secret: str = DEV_SESSION_SECRET
    session_algorithm: str = "HS256"
    session_cookie_name: str = "switchyard_session"
    session_ttl_seconds: int = 60 * 60 * 24 * 7

    # Dispatch
    request_timeout_seconds: float = 30.0
    max_input_bytes: int = 1_048_576

    # API
    cors_origins: list[str] = ["http://localhost:3000"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @model_validator(mode="after")
    def require_real_secret_in_production(self) -> "Settings":
        if (
            self.environment is Environment.PRODUCTION
            and self.session_secret == DEV_SESSION_SECRET
        ):
            raise ValueError("SESSION_SECRET must be set in production")
        return self

    @property
    def is_production(self) -> bool:
        return self.environment is Environment.PRODUCTION


@lru_cache
def get_settings() -> Settings:
    return Settings()
