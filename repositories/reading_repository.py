"""
Reading repository.

Readings are append-only. They are inserted exclusively through
DocumentStore.commit_reading; this module only reads them and builds the
stored row for a new reading.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from domain.reading import Reading
from repositories.document_store import READINGS, DocumentStore
from repositories.serialization import parse_decimal, parse_utc_datetime, to_iso_utc


def row_to_reading(row: Mapping[str, Any]) -> Reading:
    return Reading(
        reading_id=str(row["id"]),
        nozzle_id=str(row["nozzle_id"]),
        dispenser_id=str(row.get("dispenser_id") or ""),
        product_id=str(row.get("product_id") or ""),
        tank_id=str(row.get("tank_id") or ""),
        previous_reading=parse_decimal(row.get("previous_reading"), field="previous_reading"),
        current_reading=parse_decimal(row.get("current_reading"), field="current_reading"),
        unit_price=parse_decimal(row.get("unit_price"), field="unit_price"),
        timestamp=parse_utc_datetime(row["timestamp"]),
    )


def reading_to_row(reading: Reading) -> Dict[str, Any]:
    """
    Stored form of a reading.

    sales_volume and sales_amount are denormalized into the row so that the
    history and report screens can sum them without recomputing.
    """

    return {
        "id": reading.reading_id,
        "nozzle_id": reading.nozzle_id,
        "dispenser_id": reading.dispenser_id,
        "product_id": reading.product_id,
        "tank_id": reading.tank_id,
        "previous_reading": str(reading.previous_reading),
        "current_reading": str(reading.current_reading),
        "sales_volume": str(reading.sales_volume),
        "unit_price": str(reading.unit_price),
        "sales_amount": str(reading.sales_amount),
        "timestamp": to_iso_utc(reading.timestamp, name="timestamp"),
    }


def list_readings(store: DocumentStore, nozzle_id: Optional[str] = None) -> List[Reading]:
    readings = [row_to_reading(row) for row in store.fetch_all(READINGS)]
    if nozzle_id is not None:
        readings = [r for r in readings if r.nozzle_id == nozzle_id]
    return readings


def get_reading(store: DocumentStore, reading_id: str) -> Optional[Reading]:
    row = store.fetch_by_id(READINGS, reading_id)
    return row_to_reading(row) if row is not None else None


__all__ = ["get_reading", "list_readings", "reading_to_row", "row_to_reading"]
