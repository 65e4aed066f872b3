"""
Tests for `services/station_service.py` and the thin repository CRUD it uses.

Covers:
- Nozzles take the product's tank unless one is given; positions are unique per dispenser.
- Creating a tank for a product (or a product for a tank) links the other side.
- Nozzle meter fields cannot be edited directly.
- Updates that null a required field or name an unknown field are rejected.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from domain.errors import NotFound, ValidationError
from domain.product import Product
from domain.tank import Tank
from repositories.nozzle_repository import require_nozzle, update_nozzle
from repositories.product_repository import require_product, update_product
from repositories.tank_repository import require_tank, update_tank
from services.station_service import add_nozzle, add_product, add_tank

NOW = datetime(2025, 3, 10, 9, 30, tzinfo=timezone.utc)


def test_add_nozzle_uses_product_tank(store) -> None:
    """Verify a nozzle without an explicit tank is linked to the product's tank."""

    nozzle = add_nozzle(store, "D-1", "P-DIESEL", position="3", nozzle_id="N-3")

    assert nozzle.tank_id == "T-2"
    assert nozzle.last_reading == Decimal("0")
    assert require_nozzle(store, "N-3").position == "3"


def test_add_nozzle_explicit_tank_and_errors(store) -> None:
    """Verify explicit tanks win and missing references are rejected."""

    assert add_nozzle(store, "D-1", "P-OIL", tank_id="T-2").tank_id == "T-2"

    with pytest.raises(ValidationError):
        add_nozzle(store, "D-1", "P-OIL")
    with pytest.raises(ValidationError):
        add_nozzle(store, "D-1", "P-PETROL", position="2")
    with pytest.raises(NotFound):
        add_nozzle(store, "D-9", "P-PETROL")
    with pytest.raises(NotFound):
        add_nozzle(store, "D-1", "P-PETROL", tank_id="T-9")


def test_add_tank_links_product(store) -> None:
    """Verify a tank created for a product becomes that product's tank."""

    tank = add_tank(
        store,
        Tank(tank_id="T-3", name="Oil Tank", product_id="P-OIL", capacity=Decimal("500"), remaining_stock=Decimal("0")),
    )

    assert tank.tank_id == "T-3"
    assert require_product(store, "P-OIL").tank_id == "T-3"
    with pytest.raises(NotFound):
        add_tank(store, Tank(tank_id="T-4", name="x", product_id="P-9", capacity=Decimal("1"), remaining_stock=Decimal("0")))


def test_add_product_links_tank(store) -> None:
    """Verify a product created with a tank is written back onto the tank."""

    store.insert("tanks", {"id": "T-5", "name": "Spare", "capacity": "3000", "remaining_stock": "0"})

    product = add_product(
        store,
        Product(product_id="P-HOBC", name="HOBC", sales_price=Decimal("300"), category="Fuel", tank_id="T-5"),
    )

    assert require_tank(store, "T-5").product_id == product.product_id
    with pytest.raises(NotFound):
        add_product(store, Product(product_id="P-X", name="X", sales_price=Decimal("1"), tank_id="T-404"))


def test_nozzle_meter_fields_are_read_only(store) -> None:
    """Verify direct edits of the meter are refused."""

    with pytest.raises(ValidationError):
        update_nozzle(store, "N-1", {"last_reading": Decimal("0")})

    assert require_nozzle(store, "N-1").last_reading == Decimal("1200")


def test_product_price_edit_records_history(store) -> None:
    """Verify editing the price from the product screen appends to history."""

    product = update_product(store, "P-PETROL", {"sales_price": Decimal("272")}, now=NOW)

    assert product.sales_price == Decimal("272")
    assert [(c.price, c.changed_at) for c in product.price_history] == [(Decimal("272"), NOW)]


def test_update_rejects_null_for_required_field(store) -> None:
    """Verify a None for a required field or an unknown field is a ValidationError and nothing is written."""

    with pytest.raises(ValidationError):
        update_tank(store, "T-1", {"capacity": None})
    with pytest.raises(ValidationError):
        update_tank(store, "T-1", {"colour": "red"})

    assert require_tank(store, "T-1").capacity == Decimal("20000")
