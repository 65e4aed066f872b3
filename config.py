"""
Application configuration.

Settings are read from the environment once, after loading the `.env` file
that sits next to this module. Nothing here talks to the network.

Environment variables:
- STORE_BACKEND: "supabase" or "memory" (default: memory)
- SUPABASE_URL / SUPABASE_KEY: required when STORE_BACKEND=supabase
  (use a server-side key only on the backend)
- DIP_CALIBRATION_PATH: JSON calibration table (default: data/dip_calibration.json)
- STATION_TIMEZONE: IANA zone used for day boundaries (default: Asia/Karachi)
- LOG_LEVEL: logging level name (default: INFO)
- CORS_ORIGINS: comma-separated allowed origins (default: *)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from domain.errors import ConfigurationError

PROJECT_ROOT = Path(__file__).parent

# Load environment variables from .env file in the project root
load_dotenv(dotenv_path=PROJECT_ROOT / ".env")


@dataclass(frozen=True, slots=True)
class Settings:
    store_backend: str
    supabase_url: Optional[str]
    supabase_key: Optional[str]
    dip_calibration_path: Path
    station_timezone: str
    log_level: str
    cors_origins: Tuple[str, ...]

    @property
    def timezone(self) -> ZoneInfo:
        try:
            return ZoneInfo(self.station_timezone)
        except ZoneInfoNotFoundError as e:
            raise ConfigurationError(f"Unknown STATION_TIMEZONE: {self.station_timezone}") from e


def _read_settings() -> Settings:
    backend = os.getenv("STORE_BACKEND", "memory").strip().lower()
    if backend not in ("supabase", "memory"):
        raise ConfigurationError(
            f"Invalid STORE_BACKEND '{backend}'. Use 'supabase' or 'memory'."
        )

    calibration = Path(os.getenv("DIP_CALIBRATION_PATH", "data/dip_calibration.json"))
    if not calibration.is_absolute():
        calibration = PROJECT_ROOT / calibration

    origins = os.getenv("CORS_ORIGINS", "*")

    return Settings(
        store_backend=backend,
        supabase_url=os.getenv("SUPABASE_URL"),
        supabase_key=os.getenv("SUPABASE_KEY"),
        dip_calibration_path=calibration,
        station_timezone=os.getenv("STATION_TIMEZONE", "Asia/Karachi"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return _read_settings()


__all__ = ["PROJECT_ROOT", "Settings", "get_settings"]
