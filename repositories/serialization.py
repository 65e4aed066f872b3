"""
Row serialization helpers shared by the repository modules.

Supabase commonly returns ISO-8601 strings (sometimes with a trailing 'Z')
for timestamps and strings or floats for numeric columns; these helpers turn
them into timezone-aware UTC datetimes and Decimals, and back.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional, TypeVar

from domain.errors import PersistenceError, ValidationError
from domain.time import require_utc_timestamp


def to_iso_utc(dt: datetime, *, name: str) -> str:
    """Serialize a UTC datetime to ISO-8601 (timezone-aware, offset 0)."""

    require_utc_timestamp(name, dt)
    return dt.astimezone(timezone.utc).isoformat()


def parse_utc_datetime(value: Any) -> datetime:
    """Parse a stored timestamp into a timezone-aware UTC datetime."""

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        raise TypeError(f"Unsupported timestamp type: {type(value)!r}")

    if dt.tzinfo is None or dt.utcoffset() is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def optional_datetime(row: Mapping[str, Any], key: str) -> Optional[datetime]:
    value = row.get(key)
    return parse_utc_datetime(value) if value else None


def parse_decimal(value: Any, *, field: str = "value") -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise PersistenceError(f"Stored {field} is not numeric: {value!r}") from e


def optional_decimal(row: Mapping[str, Any], key: str) -> Optional[Decimal]:
    value = row.get(key)
    if value is None or value == "":
        return None
    return parse_decimal(value, field=key)


def decimal_to_str(value: Optional[Decimal]) -> Optional[str]:
    return None if value is None else str(value)


EntityT = TypeVar("EntityT")


def apply_changes(entity: EntityT, changes: Mapping[str, Any]) -> EntityT:
    """
    Merge field changes into a frozen entity, re-running its validation.

    A None for a required field or an unknown field name surfaces as a
    ValidationError instead of the TypeError raised by dataclasses.replace.
    """

    try:
        return replace(entity, **changes)
    except TypeError as e:
        raise ValidationError(f"Invalid update for {type(entity).__name__}: {e}") from e


__all__ = [
    "apply_changes",
    "decimal_to_str",
    "optional_datetime",
    "optional_decimal",
    "parse_decimal",
    "parse_utc_datetime",
    "to_iso_utc",
]
