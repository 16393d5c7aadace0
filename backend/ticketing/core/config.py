"""
Application configuration using pydantic-settings.
All config is loaded from environment variables with sensible defaults.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings
from sqlalchemy.engine import URL, make_url


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Ticket Inventory API"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    HOST: str = "0.0.0.0"
    PORT: int = 8080

    # Database
    # DATABASE_URL wins when set; otherwise the URL is assembled from DB_* parts.
    DATABASE_URL: Optional[str] = None
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "postgres"
    DB_PASSWORD: str = "postgres"
    DB_NAME: str = "tickets"
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800  # 30 minutes
    DB_CREATE_TABLES: bool = True

    # "row" uses SELECT ... FOR UPDATE, "local" adds an in-process per-ticket
    # mutex for engines without row locks (single process only).
    TICKET_LOCK_MODE: Literal["row", "local"] = "row"

    # Redis
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_CACHE_TTL: int = 300  # 5 minutes default TTL
    REDIS_ENABLED: bool = True

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
    }

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        url = URL.create(
            "postgresql+asyncpg",
            username=self.DB_USER,
            password=self.DB_PASSWORD,
            host=self.DB_HOST,
            port=self.DB_PORT,
            database=self.DB_NAME,
        )
        return url.render_as_string(hide_password=False)

    @property
    def database_url_sync(self) -> str:
        """Sync driver URL for Alembic migrations."""
        url = make_url(self.database_url)
        return url.set(drivername=url.get_backend_name()).render_as_string(hide_password=False)


@lru_cache()
def get_settings() -> Settings:
    return Settings()
