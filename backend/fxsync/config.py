"""
fxsync - Configuration Settings
"""
from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    # =========================
    # Application Settings
    # =========================
    APP_NAME: str = "fxsync"
    APP_ENV: str = "development"
    DEBUG: bool = False
    API_V1_PREFIX: str = "/api/v1"

    # =========================
    # Server Configuration
    # =========================
    BACKEND_HOST: str = "0.0.0.0"
    BACKEND_PORT: int = 8000

    # =========================
    # Database - PostgreSQL
    # =========================
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "fxsync"
    POSTGRES_USER: str = "fxsync_user"
    POSTGRES_PASSWORD: str = "dev_password_123"
    # Direct DATABASE_URL from environment (overrides individual settings)
    DATABASE_URL: str = ""

    @property
    def database_url(self) -> str:
        """Get the async database URL."""
        if self.DATABASE_URL:
            url = self.DATABASE_URL
            # Ensure it uses asyncpg driver
            if url.startswith("postgresql://"):
                url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
            return url
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    @property
    def DATABASE_URL_SYNC(self) -> str:
        """Get the sync database URL for Alembic."""
        url = self.database_url
        if "+asyncpg" in url:
            url = url.replace("postgresql+asyncpg://", "postgresql://", 1)
        return url

    # =========================
    # Quote Provider (Yahoo Finance chart API)
    # =========================
    YAHOO_CHART_URL: str = "https://query1.finance.yahoo.com/v8/finance/chart"
    YAHOO_USER_AGENT: str = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
    RATE_SOURCE: str = "yahoo_finance"
    HISTORICAL_RATE_SOURCE: str = "yahoo_finance_history"
    SPOT_TIMEOUT_SECONDS: float = 30.0
    HISTORICAL_TIMEOUT_SECONDS: float = 60.0

    # =========================
    # Exchange Rate Sync
    # =========================
    DEFAULT_CURRENCY: str = "USD"
    BACKFILL_BATCH_SIZE: int = 500
    BACKFILL_PAIR_DELAY_SECONDS: float = 0.5
    BACKFILL_WORKERS: int = 2
    # Only rows tagged HISTORICAL_RATE_SOURCE count as coverage.
    # "exists": any backfilled row means the pair is done
    # "floor": the earliest backfilled date must reach the cutoff
    BACKFILL_COVERAGE_MODE: Literal["exists", "floor"] = "exists"
    RECENT_RATES_WINDOW_DAYS: int = 3

    # =========================
    # Scheduler Settings
    # =========================
    FX_REFRESH_HOUR: int = 17
    FX_REFRESH_MINUTE: int = 0
    FX_REFRESH_DAYS: str = "mon-fri"
    TIMEZONE: str = "America/New_York"

    # =========================
    # Logging
    # =========================
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_TO_FILE: bool = True

    # =========================
    # Feature Flags
    # =========================
    ENABLE_STARTUP_SYNC: bool = True
    ENABLE_SCHEDULER: bool = True


# Create global settings instance
settings = Settings()
