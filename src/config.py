"""Configuration management for the application."""

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SECRET_KEY = "change-me-in-production"  # noqa: S105


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = Field(default="sqlite:///./signin.db")

    # Redis (Celery broker for periodic cleanup)
    redis_url: str = Field(default="redis://localhost:6379/0")

    # Signing of client-held cookies
    secret_key: str = Field(default=DEFAULT_SECRET_KEY)
    jwt_algorithm: str = Field(default="HS256")

    # Sessions and remember-me tokens
    session_ttl_minutes: int = Field(default=720)  # 12 hours
    remember_token_ttl_days: int = Field(default=30)
    session_cookie_name: str = Field(default="session")
    remember_cookie_name: str = Field(default="remember_token")
    cookie_secure: bool = Field(default=True)

    # Passwords
    password_min_length: int = Field(default=6)
    password_max_length: int = Field(default=40)
    password_hash_rounds: int = Field(default=600_000)

    # Login throttling
    login_max_attempts: int = Field(default=5)
    login_window_seconds: int = Field(default=900)
    login_lock_seconds: int = Field(default=900)

    # API
    environment: str = Field(default="development")

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Validate that production has secure settings."""
        if self.environment == "production":
            if self.secret_key == DEFAULT_SECRET_KEY:
                raise ValueError("SECRET_KEY must be changed in production")
            if not self.cookie_secure:
                raise ValueError("COOKIE_SECURE must be enabled in production")
        if self.password_min_length > self.password_max_length:
            raise ValueError("PASSWORD_MIN_LENGTH cannot exceed PASSWORD_MAX_LENGTH")
        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
