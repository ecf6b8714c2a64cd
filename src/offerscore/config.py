"""
Configuration management for offerscore
"""
import logging
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings, read from OFFERSCORE_* environment variables or .env"""

    model_config = SettingsConfigDict(
        env_prefix="OFFERSCORE_", env_file=".env", case_sensitive=False, extra="ignore"
    )

    # Application
    log_level: str = "INFO"

    # Run history
    history_path: str = "./data/history.json"
    history_cap: int = 24

    # Analysis
    default_months_back: int = 0  # 0 = all detected months

    # Cover images
    cover_base_url: str = "https://api.metabooks.com/api/v1/cover/"
    cover_access_token: str = ""
    cover_size: str = "m"
    cover_timeout_seconds: float = 10.0


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


def configure_logging(settings: Settings | None = None) -> None:
    """Set up root logging once, at application start."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
