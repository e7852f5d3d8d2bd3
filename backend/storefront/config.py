"""Application configuration."""

from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Biscotto Bakeria API"
    app_version: str = "0.1.0"
    environment: str = "development"
    debug: bool = False
    api_prefix: str = "/api"

    # PostgreSQL
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "biscotto"
    postgres_password: str = "biscotto_secret"
    postgres_db: str = "biscotto"
    database_url: str = ""  # Full URL override (managed PG, sqlite+aiosqlite in tests)
    auto_create_tables: bool = True

    @property
    def sqlalchemy_url(self) -> str:
        """Get the async SQLAlchemy connection URL.

        If DATABASE_URL is set, use it directly.
        Otherwise, construct from individual POSTGRES_* parts.
        """
        if self.database_url:
            return self.database_url
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    # Security
    secret_key: str = "your-secret-key-change-in-production"
    access_token_expire_minutes: int = 7 * 24 * 60
    verification_code_length: int = 6
    reset_code_ttl_minutes: int = 60

    # CORS: the single production origin; localhost is always allowed
    frontend_url: str = ""

    # Image hosting (Cloudinary). Empty credentials → in-memory host.
    cloudinary_cloud_name: str = ""
    cloudinary_api_key: str = ""
    cloudinary_api_secret: str = ""
    cloudinary_folder: str = "biscotto-bakeria"
    image_upload_timeout: Optional[float] = None
    max_image_bytes: int = 10 * 1024 * 1024

    @property
    def cloudinary_configured(self) -> bool:
        return bool(
            self.cloudinary_cloud_name
            and self.cloudinary_api_key
            and self.cloudinary_api_secret
        )

    # Verification / reset code delivery
    code_delivery: Literal["response", "log", "smtp"] = "response"
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    sender_email: str = ""

    # Seeded at startup if absent
    default_admin_email: str = "admin@biscotto.com"
    default_admin_name: str = "Admin User"
    default_admin_password: str = "admin123"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
