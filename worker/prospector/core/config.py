"""Application configuration helpers."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


class ConfigError(RuntimeError):
    """Raised when mandatory configuration is missing."""


@dataclass(frozen=True)
class Settings:
    google_api_key: str
    database_url: str
    discord_webhook_url: str = ""
    locations_file: Optional[str] = None
    max_locations_per_run: int = 10
    alert_delay_seconds: float = 2.0
    request_timeout: float = 10.0


def _first_env(*names: str) -> str:
    for name in names:
        value = os.getenv(name)
        if value:
            return value.strip()
    return ""


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    google_api_key = _first_env("GOOGLE_API_KEY", "PLACE_API_KEY")
    database_url = _first_env("DATABASE_URL", "DB_URI")
    discord_webhook_url = _first_env("DISCORD_WEBHOOK_URL", "DISCORD_WEBHOOK_URI")
    locations_file = os.getenv("LOCATIONS_FILE") or None
    max_locations_per_run = int(os.getenv("MAX_LOCATIONS_PER_RUN", "10"))
    alert_delay_seconds = float(os.getenv("ALERT_DELAY_SECONDS", "2.0"))
    request_timeout = float(os.getenv("REQUEST_TIMEOUT", "10"))

    if not database_url:
        logger.warning("DATABASE_URL is not set; database operations will fail.")
    if not google_api_key:
        logger.warning("GOOGLE_API_KEY is not configured; Google Places requests will fail.")
    if not discord_webhook_url:
        logger.warning("DISCORD_WEBHOOK_URL is not configured; alerts will be skipped.")

    return Settings(
        google_api_key=google_api_key,
        database_url=database_url,
        discord_webhook_url=discord_webhook_url,
        locations_file=locations_file,
        max_locations_per_run=max_locations_per_run,
        alert_delay_seconds=alert_delay_seconds,
        request_timeout=request_timeout,
    )
