"""Runtime settings for the storefront, read from the environment (and `.env`)."""

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "Storefront"
    ENVIRONMENT: str = Field(default="development", validation_alias=AliasChoices("ENVIRONMENT", "PROTEAN_ENV"))

    # --- Logging ---
    LOG_LEVEL: str | None = None  # None: derived from ENVIRONMENT
    LOG_FORMAT: Literal["auto", "json", "console"] = "auto"
    LOG_DIR: str | None = None

    # --- Admission control ---
    CHECKOUT_RATE_LIMIT_MAX: int = 5
    CHECKOUT_RATE_LIMIT_WINDOW_MS: int = 300_000
    ORDER_VIEW_RATE_LIMIT_MAX: int = 10
    ORDER_VIEW_RATE_LIMIT_WINDOW_MS: int = 60_000

    # --- Orders ---
    ORDER_EXPIRATION_HOURS: int = 48
    ORDER_NUMBER_PREFIX: str = "WEZZA"
    CURRENCY: str = "CAD"

    # --- Outbound messages ---
    STORE_NAME: str = "WEZZA"
    EMAIL_ADAPTER: str = "fake"
    RESEND_API_KEY: str | None = None
    FROM_EMAIL: str = "WEZZA <orders@wezza.com>"
    SITE_URL: str = "http://localhost:3000"
    ETRANSFER_EMAIL: str = "payments@wezza.com"
    ETRANSFER_SECURITY_QUESTION: str | None = None
    ETRANSFER_SECURITY_ANSWER: str | None = None

    # --- Infrastructure ---
    # Absent means process-local rate limiting and order numbering.
    REDIS_URL: str | None = None
    CRON_SECRET: str | None = None

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
