"""
Tests for `services/report_service.py` (reporting aggregator).

Covers contract rules:
- grand_total always equals the sum of category subtotals.
- Every product appears, including products with no sales in the window.
- Products without a category are grouped under "Uncategorized".
- percent_change is 0 when the previous period total is 0.
- The loss metric only considers tanks that have at least one dip entry.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from domain.dip_chart import DipChartEntry
from domain.errors import ValidationError
from domain.product import Product
from domain.reading import Reading
from domain.tank import Tank
from services.reading_service import ReadingSubmission, record_reading
from services.report_service import (
    ReportSnapshot,
    build_sales_report,
    compare_totals,
    list_low_stock_tanks,
    load_report_snapshot,
    report_window,
)

UTC = timezone.utc
DAY_START = datetime(2025, 3, 10, 0, 0, tzinfo=UTC)
DAY_END = datetime(2025, 3, 10, 23, 59, 59, tzinfo=UTC)


def _product(pid: str, name: str, category, price: str) -> Product:
    return Product(product_id=pid, name=name, category=category, sales_price=Decimal(price))


def _reading(rid: str, product_id: str, prev: str, cur: str, price: str, at: datetime) -> Reading:
    return Reading(
        reading_id=rid,
        nozzle_id="N-1",
        dispenser_id="D-1",
        product_id=product_id,
        tank_id="T-1",
        previous_reading=Decimal(prev),
        current_reading=Decimal(cur),
        unit_price=Decimal(price),
        timestamp=at,
    )


def _tank(tid: str, product_id, stock: str, capacity: str = "20000", alert: str = "0") -> Tank:
    return Tank(
        tank_id=tid,
        name=f"Tank {tid}",
        product_id=product_id,
        capacity=Decimal(capacity),
        remaining_stock=Decimal(stock),
        alert_threshold=Decimal(alert),
    )


PRODUCTS = (
    _product("P-PETROL", "Petrol", "Fuel", "270"),
    _product("P-DIESEL", "Diesel", "Fuel", "280"),
    _product("P-OIL", "Engine Oil", None, "1500"),
    _product("P-LUBE", "Grease", "Lubricants", "800"),
)


def _snapshot(readings=(), tanks=(), dip_entries=()) -> ReportSnapshot:
    return ReportSnapshot(products=PRODUCTS, tanks=tanks, readings=readings, dip_entries=dip_entries)


def test_grand_total_equals_sum_of_category_subtotals() -> None:
    """Verify grand total and volume totals are consistent with category subtotals."""

    noon = DAY_START + timedelta(hours=12)
    readings = (
        _reading("R1", "P-PETROL", "100", "150", "270", noon),
        _reading("R2", "P-PETROL", "150", "160.5", "275", noon + timedelta(hours=1)),
        _reading("R3", "P-DIESEL", "0", "20", "280", noon),
        _reading("R4", "P-OIL", "0", "2", "1500", noon),
    )

    report = build_sales_report(_snapshot(readings), DAY_START, DAY_END)

    assert report.grand_total == sum(c.subtotal_amount for c in report.categories)
    assert report.grand_total == Decimal("13500") + Decimal("2887.5") + Decimal("5600") + Decimal("3000")
    assert report.total_volume == Decimal("82.5")

    fuel = report.categories[0]
    assert fuel.category == "Fuel"
    assert fuel.subtotal_volume == Decimal("80.5")
    petrol = fuel.products[0]
    assert petrol.reading_count == 2
    assert petrol.previous_reading_sum == Decimal("250")
    assert petrol.current_reading_sum == Decimal("310.5")


def test_products_without_sales_are_listed_with_zero_totals() -> None:
    """Verify products with no readings in the window still get a zero row."""

    report = build_sales_report(_snapshot(), DAY_START, DAY_END)

    assert [row.product_id for row in report.product_rows] == ["P-PETROL", "P-DIESEL", "P-OIL", "P-LUBE"]
    assert all(row.total_amount == 0 and row.total_volume == 0 for row in report.product_rows)
    assert report.grand_total == Decimal("0")


def test_missing_category_is_grouped_as_uncategorized() -> None:
    """Verify category grouping keeps first-seen order and names the empty group."""

    report = build_sales_report(_snapshot(), DAY_START, DAY_END)

    assert [c.category for c in report.categories] == ["Fuel", "Uncategorized", "Lubricants"]
    assert [r.product_name for r in report.categories[1].products] == ["Engine Oil"]


def test_window_bounds_are_inclusive() -> None:
    """Verify readings exactly on start and end are counted and others are not."""

    readings = (
        _reading("R1", "P-PETROL", "0", "1", "270", DAY_START),
        _reading("R2", "P-PETROL", "1", "2", "270", DAY_END),
        _reading("R3", "P-PETROL", "2", "3", "270", DAY_END + timedelta(seconds=1)),
        _reading("R4", "P-PETROL", "3", "4", "270", DAY_START - timedelta(seconds=1)),
    )

    report = build_sales_report(_snapshot(readings), DAY_START, DAY_END, granularity="monthly")

    assert report.product_rows[0].reading_count == 2


def test_daily_comparison_uses_previous_day() -> None:
    """Verify the daily comparison block sums the same window shifted back one day."""

    noon = DAY_START + timedelta(hours=12)
    readings = (
        _reading("R1", "P-PETROL", "0", "10", "270", noon),
        _reading("R2", "P-PETROL", "10", "18", "270", noon - timedelta(days=1)),
        _reading("R3", "P-PETROL", "18", "30", "270", noon - timedelta(days=2)),
    )

    report = build_sales_report(_snapshot(readings), DAY_START, DAY_END)

    assert report.comparison is not None
    assert report.comparison.previous_total == Decimal("2160")
    assert report.comparison.current_total == Decimal("2700")
    assert report.comparison.difference == Decimal("540")
    assert report.comparison.percent_change == Decimal("25.00")


def test_comparison_only_for_daily_reports() -> None:
    """Verify weekly, monthly and yearly reports carry no comparison block."""

    for granularity in ("weekly", "monthly", "yearly"):
        report = build_sales_report(_snapshot(), DAY_START, DAY_END, granularity=granularity)
        assert report.comparison is None


def test_percent_change_is_zero_when_previous_total_is_zero() -> None:
    """Verify no division happens against an empty previous period."""

    comparison = compare_totals(Decimal("0"), Decimal("500"))

    assert comparison.percent_change == Decimal("0")
    assert comparison.difference == Decimal("500")


def test_percent_change_is_rounded_to_two_places() -> None:
    """Verify percentages are quantized half-up to cents."""

    assert compare_totals(Decimal("3"), Decimal("4")).percent_change == Decimal("33.33")
    assert compare_totals(Decimal("300"), Decimal("200")).percent_change == Decimal("-33.33")


def test_loss_only_counts_tanks_with_dip_entries() -> None:
    """Verify the dip table uses the latest dip per tank and skips tanks never dipped."""

    tanks = (
        _tank("T-1", "P-PETROL", "1000"),
        _tank("T-2", "P-DIESEL", "5000"),
        _tank("T-3", None, "300"),
    )
    dips = (
        DipChartEntry("E1", "T-1", Decimal("150"), Decimal("5.91"), Decimal("990"), DAY_START),
        DipChartEntry("E2", "T-1", Decimal("148"), Decimal("5.83"), Decimal("960"), DAY_START + timedelta(hours=3)),
        DipChartEntry("E3", "T-3", Decimal("40"), Decimal("1.57"), Decimal("320"), DAY_START),
    )

    report = build_sales_report(_snapshot(tanks=tanks, dip_entries=dips), DAY_START, DAY_END)

    assert [row.tank_id for row in report.dip_rows] == ["T-1", "T-3"]
    t1, t3 = report.dip_rows
    assert t1.dip_liters == Decimal("960")
    assert t1.discrepancy == Decimal("40")
    assert t1.loss == Decimal("40")
    assert t1.product_name == "Petrol"
    assert t3.discrepancy == Decimal("-20")
    assert t3.gain_loss == Decimal("20")
    assert t3.loss == Decimal("0")
    assert t3.product_name == "N/A"
    assert report.total_loss == Decimal("40")


def test_report_rejects_bad_inputs() -> None:
    """Verify unknown granularity, reversed windows and naive datetimes are rejected."""

    with pytest.raises(ValidationError):
        build_sales_report(_snapshot(), DAY_START, DAY_END, granularity="hourly")
    with pytest.raises(ValidationError):
        build_sales_report(_snapshot(), DAY_END, DAY_START)
    with pytest.raises(ValueError):
        build_sales_report(_snapshot(), datetime(2025, 3, 10), DAY_END)


def test_report_window_per_granularity() -> None:
    """Verify each granularity maps to the expected local-calendar window."""

    tz = ZoneInfo("Asia/Karachi")  # UTC+5
    today = datetime(2025, 3, 10, 9, 30, tzinfo=UTC)
    end = datetime(2025, 3, 10, 18, 59, 59, 999999, tzinfo=UTC)

    assert report_window("daily", today, tz) == (datetime(2025, 3, 9, 19, 0, tzinfo=UTC), end)
    assert report_window("weekly", today, tz) == (datetime(2025, 3, 3, 9, 30, tzinfo=UTC), end)
    assert report_window("monthly", today, tz) == (datetime(2025, 2, 28, 19, 0, tzinfo=UTC), end)
    assert report_window("yearly", today, tz) == (datetime(2024, 12, 31, 19, 0, tzinfo=UTC), end)

    with pytest.raises(ValidationError):
        report_window("quarterly", today, tz)


def test_report_from_store_after_recorded_readings(store) -> None:
    """Verify a snapshot loaded from the store reflects committed readings."""

    at = datetime(2025, 3, 10, 9, 30, tzinfo=UTC)
    record_reading(store, ReadingSubmission(nozzle_id="N-1", current_reading=Decimal("1210")), now=at)
    record_reading(store, ReadingSubmission(nozzle_id="N-2", current_reading=Decimal("505")), now=at)

    report = build_sales_report(load_report_snapshot(store), DAY_START, DAY_END)

    assert report.grand_total == Decimal("2700.00") + Decimal("1400.00")
    assert [c.category for c in report.categories] == ["Fuel", "Uncategorized"]


def test_low_stock_tanks() -> None:
    """Verify only tanks strictly below their alert threshold are listed."""

    tanks = [
        _tank("T-1", "P-PETROL", "400", alert="500"),
        _tank("T-2", "P-DIESEL", "500", alert="500"),
        _tank("T-3", None, "10"),
    ]

    assert [t.tank_id for t in list_low_stock_tanks(tanks)] == ["T-1"]
