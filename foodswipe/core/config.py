"""Application configuration helpers."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 50
_PLACEHOLDER_PREFIX = "YOUR_"


class ConfigError(RuntimeError):
    """Raised when mandatory configuration is missing."""


@dataclass(frozen=True)
class Settings:
    yelp_api_key: str
    yelp_api_url: str = "https://api.yelp.com/v3"
    yelp_locale: str = "zh_TW"
    page_size: int = MAX_PAGE_SIZE
    store_backend: str = "file"
    data_dir: str = str(Path.home() / ".foodswipe")
    database_url: str = ""
    default_latitude: Optional[float] = None
    default_longitude: Optional[float] = None
    ip_location_url: str = "http://ip-api.com/json"
    worker_port: int = 9000


def require_api_key(settings: Settings) -> str:
    """Return the Yelp key or raise when it is missing or still the sample placeholder."""
    key = (settings.yelp_api_key or "").strip()
    if not key:
        raise ConfigError("YELP_API_KEY must be set in the environment to search for venues.")
    if key.startswith(_PLACEHOLDER_PREFIX):
        raise ConfigError("YELP_API_KEY still holds the sample placeholder; replace it with a real key.")
    return key


def _optional_float(name: str) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    try:
        return float(raw)
    except ValueError:
        logger.warning("%s=%r is not a number; ignoring it.", name, raw)
        return None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    yelp_api_key = os.getenv("YELP_API_KEY", "").strip()
    yelp_api_url = os.getenv("YELP_API_URL", "https://api.yelp.com/v3").rstrip("/")
    yelp_locale = os.getenv("YELP_LOCALE", "zh_TW")
    page_size = int(os.getenv("YELP_PAGE_SIZE", str(MAX_PAGE_SIZE)))
    page_size = max(1, min(page_size, MAX_PAGE_SIZE))
    store_backend = os.getenv("FOODSWIPE_STORE_BACKEND", "file").strip().lower()
    data_dir = os.getenv("FOODSWIPE_DATA_DIR") or str(Path.home() / ".foodswipe")
    database_url = os.getenv("DATABASE_URL", "")
    default_latitude = _optional_float("DEFAULT_LATITUDE")
    default_longitude = _optional_float("DEFAULT_LONGITUDE")
    ip_location_url = os.getenv("IP_LOCATION_URL", "http://ip-api.com/json")
    worker_port = int(os.getenv("WORKER_PORT", "9000"))

    if not yelp_api_key:
        logger.warning("YELP_API_KEY is not configured; venue searches will fail.")
    if store_backend == "postgres" and not database_url:
        logger.warning("DATABASE_URL is not set; liked venues will not be persisted.")

    return Settings(
        yelp_api_key=yelp_api_key,
        yelp_api_url=yelp_api_url,
        yelp_locale=yelp_locale,
        page_size=page_size,
        store_backend=store_backend,
        data_dir=data_dir,
        database_url=database_url,
        default_latitude=default_latitude,
        default_longitude=default_longitude,
        ip_location_url=ip_location_url,
        worker_port=worker_port,
    )
