"""
FastAPI dependencies shared by the routers.

Tests override get_store / get_calibration through app.dependency_overrides.
"""

from __future__ import annotations

from datetime import datetime, timezone, tzinfo
from functools import lru_cache
from typing import Any, Dict, Optional

from config import get_settings
from domain.calibration import DipChartCalibration, load_calibration
from repositories.document_store import DocumentStore
from repositories.store_factory import get_document_store


def get_store() -> DocumentStore:
    return get_document_store()


@lru_cache(maxsize=1)
def get_calibration() -> DipChartCalibration:
    """Calibration table, loaded once per process."""
    return load_calibration(get_settings().dip_calibration_path)


def get_timezone() -> tzinfo:
    return get_settings().timezone


def as_utc(value: Optional[datetime], tz: tzinfo) -> Optional[datetime]:
    """Normalize request datetimes: naive values are station-local time."""

    if value is None:
        return None
    if value.tzinfo is None or value.utcoffset() is None:
        value = value.replace(tzinfo=tz)
    return value.astimezone(timezone.utc)


def utc_fields(changes: Dict[str, Any], tz: tzinfo, *names: str) -> Dict[str, Any]:
    """Return `changes` with the named datetime fields normalized to UTC."""

    return {key: as_utc(value, tz) if key in names else value for key, value in changes.items()}


__all__ = ["as_utc", "get_calibration", "get_store", "get_timezone", "utc_fields"]
