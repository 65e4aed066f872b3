"""
Dip recording and book-stock reconciliation.

A dip is a physical dipstick measurement converted to liters through the
shared calibration table. Reconciliation overwrites a tank's book stock with
its latest dip volume.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Callable, List, Optional, Tuple
from uuid import uuid4

from domain.calibration import DipChartCalibration, inches_to_mm, mm_to_inches, to_decimal
from domain.dip_chart import DipChartEntry
from domain.errors import NotFound, ValidationError
from domain.tank import Tank
from domain.time import utc_now
from repositories.dip_chart_repository import create_dip_entry, latest_dip_entry, list_dip_entries
from repositories.document_store import DocumentStore
from repositories.tank_repository import require_tank, set_remaining_stock

logger = logging.getLogger(__name__)


def record_dip(
    store: DocumentStore,
    calibration: DipChartCalibration,
    tank_id: str,
    *,
    dip_mm: Optional[Decimal] = None,
    dip_inches: Optional[Decimal] = None,
    recorded_at: Optional[datetime] = None,
    id_factory: Callable[[], str] = lambda: str(uuid4()),
) -> DipChartEntry:
    """
    Record a dip measurement for a tank.

    Exactly one of dip_mm / dip_inches must be given; the other is derived.
    Liters come from the calibration table.
    """

    if (dip_mm is None) == (dip_inches is None):
        raise ValidationError("Provide exactly one of dip_mm or dip_inches")

    depth = dip_mm if dip_mm is not None else dip_inches
    if depth < 0:
        raise ValidationError("Dip depth cannot be negative")

    tank = require_tank(store, tank_id)

    if dip_mm is not None:
        mm = to_decimal(dip_mm)
        inches = mm_to_inches(mm)
        liters = calibration.volume_for_depth(mm)
    else:
        inches = to_decimal(dip_inches)
        mm = inches_to_mm(inches)
        liters = calibration.volume_for_inches(inches)

    entry = DipChartEntry(
        entry_id=id_factory(),
        tank_id=tank.tank_id,
        dip_mm=mm,
        dip_inches=inches,
        dip_liters=liters,
        recorded_at=recorded_at or utc_now(),
    )
    saved = create_dip_entry(store, entry)

    logger.info(
        "Dip recorded",
        extra={
            "event": "dip_recorded",
            "tank_id": tank.tank_id,
            "dip_mm": str(saved.dip_mm),
            "dip_liters": str(saved.dip_liters),
            "book_stock": str(tank.remaining_stock),
        },
    )
    return saved


def parse_dip_chart_lines(text: str) -> List[Tuple[Decimal, Decimal]]:
    """
    Parse bulk dip chart text: one "inches,liters" pair per line.

    Blank lines are skipped.

    Raises:
        ValidationError: naming the first malformed line (1-based)
    """

    rows: List[Tuple[Decimal, Decimal]] = []
    for line_number, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line:
            continue

        parts = [p.strip() for p in line.split(",")]
        if len(parts) != 2 or not parts[0] or not parts[1]:
            raise ValidationError(f"Line {line_number}: expected 'inches,liters', got {line!r}")
        try:
            inches, liters = Decimal(parts[0]), Decimal(parts[1])
        except InvalidOperation:
            raise ValidationError(f"Line {line_number}: values must be numeric, got {line!r}") from None
        if inches < 0 or liters < 0:
            raise ValidationError(f"Line {line_number}: values cannot be negative")
        rows.append((inches, liters))

    return rows


def import_dip_chart(
    store: DocumentStore,
    tank_id: str,
    text: str,
    *,
    recorded_at: Optional[datetime] = None,
) -> int:
    """
    Bulk-import a tank's dip chart.

    Each row is stored with chart_code "<tank_id>-<inches>". The whole text is
    parsed before anything is written.

    Returns:
        Number of entries created.
    """

    tank = require_tank(store, tank_id)
    rows = parse_dip_chart_lines(text)
    stamp = recorded_at or utc_now()

    for inches, liters in rows:
        create_dip_entry(
            store,
            DipChartEntry(
                entry_id="",
                tank_id=tank.tank_id,
                dip_mm=inches_to_mm(inches),
                dip_inches=inches,
                dip_liters=liters,
                recorded_at=stamp,
                chart_code=f"{tank.tank_id}-{inches}",
            ),
        )

    logger.info(
        f"Imported {len(rows)} dip chart rows",
        extra={"event": "dip_chart_imported", "tank_id": tank.tank_id, "rows": len(rows)},
    )
    return len(rows)


def reconcile_tank_to_latest_dip(store: DocumentStore, tank_id: str) -> Tank:
    """
    Set the tank's book stock to its most recent dip volume.

    Raises:
        NotFound: tank missing, or tank has no dip entries
        ValidationError: dip volume exceeds tank capacity
    """

    tank = require_tank(store, tank_id)
    latest = latest_dip_entry(store, tank.tank_id)
    if latest is None:
        raise NotFound("Dip chart entry for tank", tank.tank_id)

    if latest.dip_liters > tank.capacity:
        raise ValidationError(
            f"Dip volume {latest.dip_liters} exceeds tank {tank.tank_id} capacity {tank.capacity}"
        )

    updated = set_remaining_stock(store, tank.tank_id, latest.dip_liters)
    logger.info(
        "Tank book stock reconciled to dip",
        extra={
            "event": "tank_reconciled",
            "tank_id": tank.tank_id,
            "previous_stock": str(tank.remaining_stock),
            "remaining_stock": str(updated.remaining_stock),
            "gain_loss": str(latest.gain_loss(tank.remaining_stock)),
        },
    )
    return updated


def tank_dip_curve(store: DocumentStore, tank_id: str) -> List[DipChartEntry]:
    """A tank's dip entries ordered by depth (chart view)."""

    require_tank(store, tank_id)
    return sorted(list_dip_entries(store, tank_id), key=lambda e: (e.dip_inches, e.recorded_at))


__all__ = [
    "import_dip_chart",
    "parse_dip_chart_lines",
    "reconcile_tank_to_latest_dip",
    "record_dip",
    "tank_dip_curve",
]
