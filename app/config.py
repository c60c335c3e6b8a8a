"""Application configuration via pydantic-settings."""

from __future__ import annotations

from datetime import date
from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

# South African public holidays (2024 calendar)
DEFAULT_PUBLIC_HOLIDAYS: list[date] = [
    date(2024, 1, 1),
    date(2024, 3, 21),
    date(2024, 3, 29),
    date(2024, 4, 1),
    date(2024, 4, 27),
    date(2024, 5, 1),
    date(2024, 6, 16),
    date(2024, 8, 9),
    date(2024, 9, 24),
    date(2024, 12, 16),
    date(2024, 12, 25),
    date(2024, 12, 26),
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "ChefConnect"
    app_version: str = "1.0.0"
    environment: Literal["development", "test", "staging", "production"] = "development"
    debug: bool = False
    log_level: str = "INFO"
    api_prefix: str = "/api/v1"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 4

    # Database
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "chefconnect"
    postgres_password: str = Field(default="chefconnect_secret")
    postgres_db: str = "chefconnect"
    db_pool_size: int = 20
    db_max_overflow: int = 10
    database_url_override: Optional[str] = None  # e.g. sqlite+aiosqlite:// in tests

    @computed_field
    @property
    def database_url(self) -> str:
        """Async database connection URL."""
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @computed_field
    @property
    def sync_database_url(self) -> str:
        """Sync PostgreSQL connection URL for Alembic."""
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # Redis
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: Optional[str] = None
    redis_db: int = 0

    @computed_field
    @property
    def redis_url(self) -> str:
        """Redis connection URL."""
        auth = f":{self.redis_password}@" if self.redis_password else ""
        return f"redis://{auth}{self.redis_host}:{self.redis_port}/{self.redis_db}"

    # JWT Authentication
    jwt_secret_key: str = Field(default="your-super-secret-key-change-in-production")
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7  # 7 days
    refresh_token_expire_days: int = 30

    # AWS S3
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_region: str = "af-south-1"
    s3_bucket_name: str = "chefconnect-media"
    s3_endpoint_url: Optional[str] = None  # For MinIO in dev

    # Payments (Stripe)
    stripe_secret_key: Optional[str] = None
    stripe_webhook_secret: Optional[str] = None
    currency: str = "zar"

    # Email (SendGrid)
    sendgrid_api_key: Optional[str] = None
    email_from_address: str = "noreply@chefconnect.co.za"
    email_from_name: str = "ChefConnect"

    # Rate Limiting (100 requests per 15 minutes)
    rate_limit_enabled: bool = True
    rate_limit_requests: int = 100
    rate_limit_window_seconds: int = 15 * 60

    # CORS
    cors_origins: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Booking & fees
    timezone: str = "Africa/Johannesburg"  # event dates and times are local wall-clock
    service_fee_percent: float = 5.0
    processing_fee_percent: float = 3.0
    holiday_policy: Literal["premium", "block"] = "premium"
    public_holidays: List[date] = Field(default_factory=lambda: list(DEFAULT_PUBLIC_HOLIDAYS))
    slot_start_hour: int = 10
    slot_end_hour: int = 22
    slot_interval_hours: int = 2
    cancellation_hours: int = 24

    # Chef images
    max_images_per_chef: int = 10
    min_image_dimension: int = 300


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
