from functools import lru_cache
from typing import Optional, Tuple

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Loading priority (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values below
    """

    # Environment
    environment: str = "development"
    debug: bool = False

    # Application
    app_name: str = "Short Links"
    app_version: str = "1.0.0"

    # Server
    bind_address: str = "127.0.0.1:3000"
    default_redirect_url: str = "https://starpaste.eu"

    # Primary store
    database_url: str = "postgresql+asyncpg://localhost/starpaste"
    db_pool_size: int = 10
    db_max_overflow: int = 10
    db_pool_timeout: float = 5.0  # Seconds to wait for a pooled connection
    create_tables: bool = True

    # Fallback links (token,url CSV loaded once at startup)
    fallback_links_path: str = "links.csv"

    # Cache settings
    cache_backend: str = "memory"  # Options: "memory", "redis", "null"
    cache_ttl: int = 300  # Absolute TTL in seconds, 0 disables the cache
    cache_max_entries: int = 10_000  # 0 disables the cache
    redis_url: str = "redis://localhost:6379/0"

    # Click accounting
    accounting_drain_timeout: float = 5.0  # Grace period for in-flight increments on shutdown

    # Logging
    log_level: str = "INFO"
    log_json: bool = False
    log_file: Optional[str] = None

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("database_url")
    @classmethod
    def use_async_driver(cls, value: str) -> str:
        """Plain postgres URLs are upgraded to the asyncpg driver."""
        for prefix in ("postgresql://", "postgres://"):
            if value.startswith(prefix):
                return "postgresql+asyncpg://" + value[len(prefix):]
        return value

    @property
    def host_and_port(self) -> Tuple[str, int]:
        """Split bind_address into (host, port)."""
        host, _, port = self.bind_address.rpartition(":")
        if not host or not port.isdigit():
            raise ValueError(f"Invalid bind address: {self.bind_address!r}")
        return host.strip("[]"), int(port)


@lru_cache()
def get_settings() -> Settings:
    return Settings()
