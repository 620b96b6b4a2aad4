# src/coinfolio/config.py
"""
Runtime settings, read from the environment and an optional `.env` file.

Cache TTLs are not settings: they live with the category
policies in `infrastructure/cache/policy.py` and are evaluated at read time.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    ENV: str = Field(default="dev")

    # Cache storage
    CACHE_DIR: str = Field(default="cache")

    # Background eviction, one sweeper per cache subsystem
    MARKET_CACHE_SWEEP_SECONDS: float = Field(default=300.0, gt=0)
    AI_CACHE_SWEEP_SECONDS: float = Field(default=3600.0, gt=0)

    # Bounded wait for the sweepers when the process exits
    SHUTDOWN_TIMEOUT_SECONDS: float = Field(default=5.0, ge=0)

    # Logging
    LOG_DIR: str | None = "log"
    LOG_FILE: str = "message.log"

    # CoinGecko
    COINGECKO_BASE_URL: str = "https://api.coingecko.com/api/v3"
    COINGECKO_REQUEST_INTERVAL: float = 6.0
    COINGECKO_TIMEOUT: float = 10.0

    # Observability
    METRICS_ENABLED: bool = True


settings = Settings()
