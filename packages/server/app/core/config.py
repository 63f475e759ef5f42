"""
Application configuration loaded from environment variables.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL, make_url


class Settings(BaseSettings):
    """Channel API server configuration."""

    model_config = SettingsConfigDict(
        env_prefix="CRUD_", env_file=".env", extra="ignore", populate_by_name=True
    )

    # Database
    db_driver: str = "postgresql+asyncpg"
    db_host: str = "localhost"
    db_port: int = 5432
    db_user: str = "postgres"
    db_password: str = "postgres"
    db_name: str = "anisocial"

    # Full URL override (e.g. sqlite+aiosqlite:///./channels.db for local runs)
    database_url_override: Optional[str] = Field(
        default=None, validation_alias="CRUD_DATABASE_URL"
    )

    # Connection pool
    pool_size: int = Field(default=5, ge=1)
    pool_timeout_seconds: float = Field(default=5.0, gt=0)

    # Server
    host: str = "0.0.0.0"
    port: int = 80
    debug: bool = False

    # Logging
    log_level: str = "info"
    log_format: Literal["json", "text"] = "json"

    @property
    def database_url(self) -> URL:
        if self.database_url_override:
            return make_url(self.database_url_override)
        return URL.create(
            self.db_driver,
            username=self.db_user,
            password=self.db_password,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
