"""
Application configuration loaded from environment variables.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        env_file = ".env",
        env_file_encoding = "utf-8",
        extra = "ignore"
    )

    # Database
    database_url: str = Field(default="sqlite+aiosqlite:///./resources.db", alias="DATABASE_URL")
    sqlite_busy_timeout: float = Field(default=30.0, alias="SQLITE_BUSY_TIMEOUT")

    # Ledger
    max_context_bytes: int = Field(default=4096, alias="MAX_CONTEXT_BYTES", gt=0)

    # Application
    app_name: str = Field(default="Resource Access Ledger", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    port: int = Field(default=8000, alias="PORT")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    structured_logging: bool = Field(default=True, alias="STRUCTURED_LOGGING")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
