from datetime import timedelta
from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SECRET_KEY = "dev-secret-change-in-production"


class Settings(BaseSettings):
    """
    Application configuration loaded from environment variables.
    Uses pydantic for validation and type safety.
    """
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Reserved for a signed-token scheme. Session tokens are opaque random
    # values, so nothing is signed with it today.
    secret_key: str = DEFAULT_SECRET_KEY

    base_url: str = "http://localhost:8000"
    database_url: str = "sqlite:///./tenant_auth.db"

    session_ttl_days: int = 30

    cookie_name: str = "auth.session_token"
    # None means "secure only in production"
    cookie_secure: Optional[bool] = None
    cookie_domain: Optional[str] = None
    cookie_samesite: str = "lax"

    cors_origins: List[str] = []

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def secure_cookies(self) -> bool:
        if self.cookie_secure is None:
            return self.is_production
        return self.cookie_secure

    @property
    def session_ttl(self) -> timedelta:
        return timedelta(days=self.session_ttl_days)

    @property
    def session_max_age_seconds(self) -> int:
        return int(self.session_ttl.total_seconds())


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings instance. Load once, reuse throughout application lifecycle.
    """
    return Settings()
