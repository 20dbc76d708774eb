"""Application configuration via pydantic-settings."""

from __future__ import annotations

from decimal import Decimal
from functools import lru_cache
from typing import List, Literal

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
    app_name: str = "RentalFlow"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    api_prefix: str = "/api/v1"
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8080

    # Upstream marketplace API
    marketplace_api_url: str = "http://localhost:8000"
    http_timeout_seconds: float = 10.0
    booking_store_ttl_seconds: int = Field(default=900, gt=0)

    # Pricing
    service_fee_percent: Decimal = Field(default=Decimal("10"), ge=0, le=100)
    currency: str = "ETB"

    # Payments
    default_payment_method: Literal["chapa", "telebirr", "bank_transfer", "cash"] = "chapa"

    # CORS
    cors_origins: List[str] = ["http://localhost:3000", "http://localhost:5173"]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
