"""
Tests for the domain dataclasses and time helpers.

Covers invariants:
- Tank book stock stays within [0, capacity]; stock changes bump the version.
- Product price history grows only on actual price changes.
- Readings never go backwards and derive volume and amount.
- Invoices and vouchers validate their required fields.
- Persisted timestamps must be timezone-aware UTC.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from domain.errors import InvalidReadingOrder, ValidationError
from domain.invoice import Invoice, InvoiceKind
from domain.product import Product
from domain.reading import Reading
from domain.tank import Tank
from domain.time import end_of_day, require_utc_timestamp, start_of_day, time_ago
from domain.voucher import Voucher, VoucherKind

NOW = datetime(2025, 3, 10, 9, 30, tzinfo=timezone.utc)


def _tank(**overrides) -> Tank:
    fields = dict(tank_id="T-1", name="Tank 1", product_id="P-1", capacity=Decimal("1000"),
                  remaining_stock=Decimal("400"), alert_threshold=Decimal("100"))
    fields.update(overrides)
    return Tank(**fields)


def test_tank_stock_bounds() -> None:
    """Verify stock must stay between zero and capacity."""

    with pytest.raises(ValidationError):
        _tank(remaining_stock=Decimal("-1"))
    with pytest.raises(ValidationError):
        _tank(remaining_stock=Decimal("1000.01"))
    with pytest.raises(ValidationError):
        _tank(capacity=Decimal("0"), remaining_stock=Decimal("0"))

    assert _tank(remaining_stock=Decimal("1000")).fill_ratio == Decimal("1")


def test_tank_with_stock_returns_new_version() -> None:
    """Verify stock changes produce a new tank and stay within capacity."""

    tank = _tank()

    after = tank.with_stock(Decimal("50"))

    assert after.remaining_stock == Decimal("50")
    assert after.version == tank.version + 1
    assert after.is_below_threshold is True
    assert tank.remaining_stock == Decimal("400")
    with pytest.raises(ValidationError):
        tank.with_stock(Decimal("-1"))
    with pytest.raises(ValidationError):
        tank.with_stock(Decimal("1000.5"))


def test_product_price_history_only_on_change() -> None:
    """Verify same-price updates keep history and changes append to it."""

    product = Product(product_id="P-1", name="Petrol", sales_price=Decimal("270"))

    assert product.with_sales_price(Decimal("270"), NOW) is product
    changed = product.with_sales_price(Decimal("275"), NOW)
    assert changed.sales_price == Decimal("275")
    assert [c.price for c in changed.price_history] == [Decimal("275")]
    assert product.category_name == "Uncategorized"


def test_reading_derives_volume_and_amount() -> None:
    """Verify a reading's volume and amount follow from the meter delta."""

    reading = Reading("R-1", "N-1", "D-1", "P-1", "T-1", Decimal("100"), Decimal("112.5"), Decimal("270"), NOW)

    assert reading.sales_volume == Decimal("12.5")
    assert reading.sales_amount == Decimal("3375.0")

    with pytest.raises(InvalidReadingOrder):
        Reading("R-2", "N-1", "D-1", "P-1", "T-1", Decimal("100"), Decimal("99"), Decimal("270"), NOW)


def test_invoice_total_and_validation() -> None:
    """Verify invoice totals and the non-negative quantity rule."""

    invoice = Invoice("I-1", InvoiceKind.PURCHASE, "A-1", "P-1", Decimal("100"), Decimal("2.5"), NOW)

    assert invoice.total == Decimal("250.0")
    assert InvoiceKind.PURCHASE_RETURN.is_purchase_side
    assert not InvoiceKind.SALE.is_purchase_side
    assert InvoiceKind.SALE_RETURN.collection == "sale_return_invoices"
    with pytest.raises(ValidationError):
        Invoice("I-2", InvoiceKind.SALE, "A-1", None, Decimal("-1"), Decimal("1"), NOW)


def test_voucher_required_fields_per_kind() -> None:
    """Verify cash vouchers need an amount and journal vouchers a description."""

    with pytest.raises(ValidationError):
        Voucher("V-1", VoucherKind.CASH, "CV-1", NOW)
    with pytest.raises(ValidationError):
        Voucher("V-2", VoucherKind.JOURNAL, "JV-1", NOW, amount=Decimal("5"))

    assert Voucher("V-3", VoucherKind.JOURNAL, "JV-2", NOW, description="Opening entry").kind is VoucherKind.JOURNAL


def test_require_utc_timestamp() -> None:
    """Verify naive and non-UTC timestamps are rejected."""

    require_utc_timestamp("ts", NOW)
    with pytest.raises(ValueError, match="timezone-aware"):
        require_utc_timestamp("ts", datetime(2025, 3, 10))
    with pytest.raises(ValueError, match="offset 0"):
        require_utc_timestamp("ts", NOW.astimezone(ZoneInfo("Asia/Karachi")))


def test_local_day_bounds() -> None:
    """Verify day bounds follow the station's local calendar day."""

    tz = ZoneInfo("Asia/Karachi")
    late = datetime(2025, 3, 10, 20, 0, tzinfo=timezone.utc)  # 01:00 on 11 March local

    assert start_of_day(late, tz) == datetime(2025, 3, 10, 19, 0, tzinfo=timezone.utc)
    assert end_of_day(late, tz) == datetime(2025, 3, 11, 18, 59, 59, 999999, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "delta, expected",
    [
        (timedelta(seconds=30), "just now"),
        (timedelta(minutes=1), "a minute ago"),
        (timedelta(minutes=45), "45 minutes ago"),
        (timedelta(hours=1, minutes=10), "an hour ago"),
        (timedelta(hours=5), "5 hours ago"),
        (timedelta(days=1, hours=2), "yesterday at 07:30 AM"),
        (timedelta(days=3), "07 March at 09:30 AM"),
    ],
)
def test_time_ago(delta, expected) -> None:
    """Verify relative time labels used in reading history."""

    assert time_ago(NOW - delta, NOW) == expected
