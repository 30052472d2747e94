"""
Marketplace API — Configuration
All settings are read from environment variables (or .env file).
"""
from decimal import Decimal
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ── Service ──────────────────────────────────────────────
    SERVICE_NAME: str = "marketplace-api"
    SERVICE_VERSION: str = "1.0.0"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # ── JWT ──────────────────────────────────────────────────
    JWT_SECRET_KEY: str = "CHANGE_ME_IN_PRODUCTION"
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # ── PostgreSQL ────────────────────────────────────────────
    POSTGRES_HOST: str = "marketplace-db"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "food_marketplace"
    POSTGRES_USER: str = "marketplace_user"
    POSTGRES_PASSWORD: str = "marketplace_pass"
    DATABASE_URL: str = ""

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    # ── Redis ─────────────────────────────────────────────────
    REDIS_HOST: str = "redis"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: str = ""

    @property
    def redis_url(self) -> str:
        if self.REDIS_PASSWORD:
            return f"redis://:{self.REDIS_PASSWORD}@{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    # ── Orders ────────────────────────────────────────────────
    TAX_RATE: Decimal = Decimal("0.05")
    DELIVERY_ESTIMATE_MINUTES: int = 45
    ORDER_NUMBER_PREFIX: str = "ORD"
    ORDERS_MAX_PAGE_SIZE: int = 100

    # ── Notifications ─────────────────────────────────────────
    NOTIFICATIONS_ENABLED: bool = True
    NOTIFICATION_CHANNEL_PREFIX: str = "marketplace:"
    SSE_RETRY_MILLISECONDS: int = 3000
    SSE_KEEPALIVE_INTERVAL_SECONDS: float = 15.0

    # ── Observability ─────────────────────────────────────────
    METRICS_ENABLED: bool = True
    HEALTH_CHECK_TIMEOUT: float = 5.0


@lru_cache()
def get_settings() -> Settings:
    return Settings()
