"""
Reporting aggregator: sales summaries over nozzle readings.

Reports are computed in memory from a full snapshot of the store; nothing is
filtered server-side. Building a report never mutates the snapshot.

Report shape:
- categories -> product rows -> subtotal
- grand total (always equal to the sum of category subtotals)
- day-over-day comparison (daily granularity only)
- dip/loss table: latest dip per tank vs book stock
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, tzinfo
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional, Sequence, Tuple

from domain.dip_chart import DipChartEntry
from domain.dispenser import Nozzle
from domain.errors import ValidationError
from domain.product import DEFAULT_CATEGORY, Product
from domain.reading import Reading
from domain.tank import Tank
from domain.time import end_of_day, require_utc_timestamp, start_of_day
from repositories.dip_chart_repository import list_dip_entries
from repositories.document_store import DocumentStore
from repositories.nozzle_repository import list_nozzles
from repositories.product_repository import list_products
from repositories.reading_repository import list_readings
from repositories.tank_repository import list_tanks

GRANULARITIES = ("daily", "weekly", "monthly", "yearly")

_ZERO = Decimal("0")
_CENTS = Decimal("0.01")


@dataclass(frozen=True, slots=True)
class ReportSnapshot:
    products: Sequence[Product]
    tanks: Sequence[Tank]
    readings: Sequence[Reading]
    nozzles: Sequence[Nozzle] = ()
    dip_entries: Sequence[DipChartEntry] = ()


@dataclass(frozen=True, slots=True)
class ProductSalesRow:
    product_id: str
    product_name: str
    category: str
    unit_price: Decimal
    total_volume: Decimal
    total_amount: Decimal
    previous_reading_sum: Decimal
    current_reading_sum: Decimal
    reading_count: int


@dataclass(frozen=True, slots=True)
class CategorySummary:
    category: str
    products: Tuple[ProductSalesRow, ...]
    subtotal_volume: Decimal
    subtotal_amount: Decimal


@dataclass(frozen=True, slots=True)
class SalesComparison:
    previous_total: Decimal
    current_total: Decimal
    difference: Decimal
    percent_change: Decimal


@dataclass(frozen=True, slots=True)
class TankDipRow:
    """
    discrepancy = book stock - dip volume.
    Positive discrepancy is a loss; negative is an unreported gain.
    """

    tank_id: str
    tank_name: str
    product_name: str
    capacity: Decimal
    remaining_stock: Decimal
    dip_mm: Decimal
    dip_liters: Decimal
    recorded_at: datetime
    discrepancy: Decimal
    loss: Decimal

    @property
    def gain_loss(self) -> Decimal:
        return -self.discrepancy


@dataclass(frozen=True, slots=True)
class SalesReport:
    start: datetime
    end: datetime
    granularity: str
    categories: Tuple[CategorySummary, ...]
    grand_total: Decimal
    total_volume: Decimal
    comparison: Optional[SalesComparison]
    dip_rows: Tuple[TankDipRow, ...] = field(default_factory=tuple)
    total_loss: Decimal = _ZERO

    @property
    def product_rows(self) -> List[ProductSalesRow]:
        return [row for category in self.categories for row in category.products]


def load_report_snapshot(store: DocumentStore) -> ReportSnapshot:
    """Fetch every collection the aggregator needs."""

    return ReportSnapshot(
        products=list_products(store),
        tanks=list_tanks(store),
        readings=list_readings(store),
        nozzles=list_nozzles(store),
        dip_entries=list_dip_entries(store),
    )


def report_window(granularity: str, today: datetime, tz: tzinfo) -> Tuple[datetime, datetime]:
    """
    Date range for a report granularity, as UTC datetimes.

    daily: today; weekly: 7 days back to end of today; monthly: start of the
    month to end of today; yearly: start of the year to end of today.
    """

    require_utc_timestamp("today", today)
    end = end_of_day(today, tz)
    local = today.astimezone(tz)

    if granularity == "daily":
        start = start_of_day(today, tz)
    elif granularity == "weekly":
        start = today - timedelta(days=7)
    elif granularity == "monthly":
        start = start_of_day(local.replace(day=1), tz)
    elif granularity == "yearly":
        start = start_of_day(local.replace(month=1, day=1), tz)
    else:
        raise ValidationError(
            f"Unknown report granularity '{granularity}'. Use one of: {', '.join(GRANULARITIES)}"
        )
    return start, end


def _in_window(readings: Sequence[Reading], start: datetime, end: datetime) -> List[Reading]:
    return [r for r in readings if start <= r.timestamp <= end]


def _product_rows(products: Sequence[Product], readings: Sequence[Reading]) -> List[ProductSalesRow]:
    by_product: Dict[str, List[Reading]] = {}
    for reading in readings:
        by_product.setdefault(reading.product_id, []).append(reading)

    rows = []
    for product in products:
        product_readings = by_product.get(product.product_id, [])
        rows.append(
            ProductSalesRow(
                product_id=product.product_id,
                product_name=product.name,
                category=product.category_name,
                unit_price=product.sales_price,
                total_volume=sum((r.sales_volume for r in product_readings), _ZERO),
                total_amount=sum((r.sales_amount for r in product_readings), _ZERO),
                previous_reading_sum=sum((r.previous_reading for r in product_readings), _ZERO),
                current_reading_sum=sum((r.current_reading for r in product_readings), _ZERO),
                reading_count=len(product_readings),
            )
        )
    return rows


def _group_by_category(rows: Sequence[ProductSalesRow]) -> Tuple[CategorySummary, ...]:
    # dicts keep insertion order, so categories appear in first-seen order
    grouped: Dict[str, List[ProductSalesRow]] = {}
    for row in rows:
        grouped.setdefault(row.category or DEFAULT_CATEGORY, []).append(row)

    return tuple(
        CategorySummary(
            category=name,
            products=tuple(members),
            subtotal_volume=sum((m.total_volume for m in members), _ZERO),
            subtotal_amount=sum((m.total_amount for m in members), _ZERO),
        )
        for name, members in grouped.items()
    )


def compare_totals(previous_total: Decimal, current_total: Decimal) -> SalesComparison:
    """Day-over-day comparison; percent_change is 0 when previous_total is 0."""

    difference = current_total - previous_total
    if previous_total == 0:
        percent_change = _ZERO
    else:
        percent_change = (difference / previous_total * 100).quantize(_CENTS, rounding=ROUND_HALF_UP)
    return SalesComparison(
        previous_total=previous_total,
        current_total=current_total,
        difference=difference,
        percent_change=percent_change,
    )


def _dip_rows(snapshot: ReportSnapshot) -> Tuple[TankDipRow, ...]:
    latest: Dict[str, DipChartEntry] = {}
    for entry in snapshot.dip_entries:
        seen = latest.get(entry.tank_id)
        if seen is None or entry.recorded_at > seen.recorded_at:
            latest[entry.tank_id] = entry

    product_names = {p.product_id: p.name for p in snapshot.products}
    rows = []
    for tank in snapshot.tanks:
        entry = latest.get(tank.tank_id)
        if entry is None:
            continue
        discrepancy = tank.remaining_stock - entry.dip_liters
        rows.append(
            TankDipRow(
                tank_id=tank.tank_id,
                tank_name=tank.name,
                product_name=product_names.get(tank.product_id or "", "N/A"),
                capacity=tank.capacity,
                remaining_stock=tank.remaining_stock,
                dip_mm=entry.dip_mm,
                dip_liters=entry.dip_liters,
                recorded_at=entry.recorded_at,
                discrepancy=discrepancy,
                loss=max(discrepancy, _ZERO),
            )
        )
    return tuple(rows)


def build_sales_report(
    snapshot: ReportSnapshot,
    start: datetime,
    end: datetime,
    *,
    granularity: str = "daily",
) -> SalesReport:
    """
    Aggregate readings in [start, end] (inclusive) by product and category.

    For daily reports the comparison block covers the calendar day before
    `start` (same length window, shifted back one day).
    """

    require_utc_timestamp("start", start)
    require_utc_timestamp("end", end)
    if end < start:
        raise ValidationError("Report end must not be before start")
    if granularity not in GRANULARITIES:
        raise ValidationError(
            f"Unknown report granularity '{granularity}'. Use one of: {', '.join(GRANULARITIES)}"
        )

    rows = _product_rows(snapshot.products, _in_window(snapshot.readings, start, end))
    categories = _group_by_category(rows)
    grand_total = sum((c.subtotal_amount for c in categories), _ZERO)

    comparison = None
    if granularity == "daily":
        previous_readings = _in_window(snapshot.readings, start - timedelta(days=1), end - timedelta(days=1))
        previous_total = sum(
            (row.total_amount for row in _product_rows(snapshot.products, previous_readings)),
            _ZERO,
        )
        comparison = compare_totals(previous_total, grand_total)

    dip_rows = _dip_rows(snapshot)

    return SalesReport(
        start=start,
        end=end,
        granularity=granularity,
        categories=categories,
        grand_total=grand_total,
        total_volume=sum((c.subtotal_volume for c in categories), _ZERO),
        comparison=comparison,
        dip_rows=dip_rows,
        total_loss=sum((row.loss for row in dip_rows), _ZERO),
    )


def list_low_stock_tanks(tanks: Sequence[Tank]) -> List[Tank]:
    """Tanks whose book stock is below their alert threshold."""

    return [tank for tank in tanks if tank.is_below_threshold]


__all__ = [
    "CategorySummary",
    "GRANULARITIES",
    "ProductSalesRow",
    "ReportSnapshot",
    "SalesComparison",
    "SalesReport",
    "TankDipRow",
    "build_sales_report",
    "compare_totals",
    "list_low_stock_tanks",
    "load_report_snapshot",
    "report_window",
]
