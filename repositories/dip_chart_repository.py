"""
Dip chart entry repository.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from domain.dip_chart import DipChartEntry
from domain.errors import NotFound
from repositories.document_store import DIP_CHARTS, DocumentStore
from repositories.serialization import parse_decimal, parse_utc_datetime, to_iso_utc


def _row_to_entry(row: Mapping[str, Any]) -> DipChartEntry:
    return DipChartEntry(
        entry_id=str(row["id"]),
        tank_id=str(row["tank_id"]),
        dip_mm=parse_decimal(row.get("dip_mm"), field="dip_mm"),
        dip_inches=parse_decimal(row.get("dip_inches"), field="dip_inches"),
        dip_liters=parse_decimal(row.get("dip_liters"), field="dip_liters"),
        recorded_at=parse_utc_datetime(row["recorded_at"]),
        chart_code=row.get("chart_code"),
    )


def _entry_to_row(entry: DipChartEntry) -> Dict[str, Any]:
    return {
        "tank_id": entry.tank_id,
        "dip_mm": str(entry.dip_mm),
        "dip_inches": str(entry.dip_inches),
        "dip_liters": str(entry.dip_liters),
        "recorded_at": to_iso_utc(entry.recorded_at, name="recorded_at"),
        "chart_code": entry.chart_code,
    }


def list_dip_entries(store: DocumentStore, tank_id: Optional[str] = None) -> List[DipChartEntry]:
    entries = [_row_to_entry(row) for row in store.fetch_all(DIP_CHARTS)]
    if tank_id is not None:
        entries = [e for e in entries if e.tank_id == tank_id]
    return entries


def get_dip_entry(store: DocumentStore, entry_id: str) -> Optional[DipChartEntry]:
    row = store.fetch_by_id(DIP_CHARTS, entry_id)
    return _row_to_entry(row) if row is not None else None


def latest_dip_entry(store: DocumentStore, tank_id: str) -> Optional[DipChartEntry]:
    entries = list_dip_entries(store, tank_id)
    return max(entries, key=lambda e: e.recorded_at) if entries else None


def create_dip_entry(store: DocumentStore, entry: DipChartEntry) -> DipChartEntry:
    row = _entry_to_row(entry)
    if entry.entry_id:
        row["id"] = entry.entry_id
    return _row_to_entry(store.insert(DIP_CHARTS, row))


def delete_dip_entry(store: DocumentStore, entry_id: str) -> None:
    if store.fetch_by_id(DIP_CHARTS, entry_id) is None:
        raise NotFound("Dip chart entry", entry_id)
    store.delete(DIP_CHARTS, entry_id)


__all__ = [
    "create_dip_entry",
    "delete_dip_entry",
    "get_dip_entry",
    "latest_dip_entry",
    "list_dip_entries",
]
