"""
Configuration for the contact reconciliation service.

All values come from environment variables (or a local .env file) and are
validated by pydantic-settings.
"""

from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ==================== DATABASE ====================
    DATABASE_PATH: str = Field(
        default="contacts.db",
        description="SQLite file holding the Contact table"
    )
    DB_TIMEOUT: float = Field(
        default=30.0,
        description="Seconds a request waits for the database write lock"
    )

    # ==================== LOGGING ====================
    LOG_LEVEL: str = Field(default="INFO")
    LOG_JSON: bool = Field(
        default=False,
        description="Emit JSON log lines instead of plain text"
    )

    # ==================== SERVER ====================
    CORS_ORIGINS: str = Field(
        default="*",
        description="Comma-separated list of allowed origins"
    )
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000)

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    return Settings()
