"""Typed settings configuration - single source of truth."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Runtime environment: development, test or production
    environment: str = "development"

    # Database
    database_url: str = "sqlite+aiosqlite:///./qa.db"

    # Cache (in-memory store when unset)
    redis_url: str | None = None

    # Sessions
    secret_key: str = "change-me"
    session_cookie: str = "qa_session"

    # CSRF (double-submit cookie)
    csrf_protection_enabled: bool = True
    csrf_cookie_name: str = "csrf_token"
    csrf_header_name: str = "X-CSRF-Token"
    csrf_form_field: str = "authenticity_token"

    # Abuse blocking of write requests
    abuse_blocking_enabled: bool = True

    # Cache TTLs (seconds)
    community_cache_ttl: int = 3600
    pinned_links_cache_ttl: int = 2 * 3600
    hot_questions_cache_ttl: int = 4 * 3600

    # Hot questions fallbacks when a community has no SiteSetting row
    hot_questions_count_default: int = 20
    hot_posts_score_threshold_default: float = 0.5

    # Parameter name fragments stripped from audit log dumps
    filter_parameters: list[str] = [
        "passw",
        "secret",
        "token",
        "_key",
        "crypt",
        "salt",
        "certificate",
        "otp",
        "ssn",
    ]

    # Uploads
    s3_bucket: str = "qa-uploads"

    @property
    def hot_questions_window_days(self) -> int:
        """Lookback window for hot questions."""
        return 365 if self.environment == "development" else 7


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
