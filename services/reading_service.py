"""
Stock ledger workflow: nozzle meter readings.

A reading submission is validated, priced and then persisted as one atomic
commit covering four writes:

1. nozzle.last_reading / nozzle.total_sales
2. the new immutable Reading
3. product.sales_price (only when a new price is supplied)
4. tank.remaining_stock decrement

The store re-checks the nozzle meter and the tank stock at commit time, so two
concurrent submissions cannot both consume the same stock or the same meter
interval. Either all four writes land or none do.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, List, Optional
from uuid import uuid4

from domain.errors import InsufficientStock, InvalidReadingOrder, StaleReading, StationError, ValidationError
from domain.reading import Reading
from domain.time import time_ago, utc_now
from repositories.document_store import DocumentStore, ReadingCommit
from repositories.nozzle_repository import require_nozzle
from repositories.product_repository import require_product
from repositories.reading_repository import list_readings, reading_to_row
from repositories.tank_repository import require_tank

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReadingSubmission:
    """
    Operator input from the "Add reading" form.

    previous_reading: the meter value the form was loaded with. When omitted
        the nozzle's current last_reading is used.
    new_price: optional sales price override; also saved on the product.
    tank_id: optional override of the nozzle's tank.
    """

    nozzle_id: str
    current_reading: Decimal
    previous_reading: Optional[Decimal] = None
    new_price: Optional[Decimal] = None
    tank_id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ReadingResult:
    """
    Outcome of a committed reading.

    tank_remaining_stock / nozzle_total_sales: values right after the commit
    low_stock: tank ended below its alert threshold
    """

    reading: Reading
    tank_remaining_stock: Decimal
    nozzle_total_sales: Decimal
    price_updated: bool
    low_stock: bool

    @property
    def sales_volume(self) -> Decimal:
        return self.reading.sales_volume

    @property
    def sales_amount(self) -> Decimal:
        return self.reading.sales_amount


@dataclass(frozen=True, slots=True)
class ReadingHistoryEntry:
    reading: Reading
    recorded: str  # relative time, e.g. "5 minutes ago"


def _rejected(event: str, error: StationError, **context: Any) -> StationError:
    logger.warning(
        f"Reading rejected: {error}",
        extra={"event": event, "error_type": type(error).__name__, **context},
    )
    return error


def record_reading(
    store: DocumentStore,
    submission: ReadingSubmission,
    *,
    now: Optional[datetime] = None,
    id_factory: Callable[[], str] = lambda: str(uuid4()),
) -> ReadingResult:
    """
    Record a nozzle meter reading and decrement the source tank.

    Raises:
        NotFound: nozzle, product or tank missing
        InvalidReadingOrder: current_reading < previous_reading
        ValidationError: nozzle has no tank, or new_price is not positive
        StaleReading: the nozzle meter moved since the form was loaded
        InsufficientStock: tank holds less than the sold volume
        PersistenceError: the store call failed (nothing was written)
    """

    context = {"nozzle_id": submission.nozzle_id}

    # Validating
    try:
        nozzle = require_nozzle(store, submission.nozzle_id)
        product = require_product(store, nozzle.product_id)
        tank_id = submission.tank_id or nozzle.tank_id
        if not tank_id:
            raise ValidationError(f"Nozzle {nozzle.nozzle_id} is not linked to a tank")
        tank = require_tank(store, tank_id)
    except StationError as e:
        raise _rejected("reading_reference_invalid", e, **context) from None

    context["tank_id"] = tank.tank_id
    previous = nozzle.last_reading if submission.previous_reading is None else submission.previous_reading
    current = submission.current_reading

    if current < previous:
        raise _rejected(
            "reading_order_invalid",
            InvalidReadingOrder(previous, current),
            previous_reading=str(previous),
            current_reading=str(current),
            **context,
        )

    if previous != nozzle.last_reading:
        raise _rejected(
            "reading_stale",
            StaleReading(nozzle.nozzle_id, previous, nozzle.last_reading),
            expected=str(previous),
            actual=str(nozzle.last_reading),
            **context,
        )

    if submission.new_price is not None and submission.new_price <= 0:
        raise _rejected(
            "reading_price_invalid",
            ValidationError("New price must be greater than 0"),
            new_price=str(submission.new_price),
            **context,
        )

    # Computing
    sales_volume = current - previous
    if tank.remaining_stock < sales_volume:
        raise _rejected(
            "reading_insufficient_stock",
            InsufficientStock(tank.tank_id, tank.remaining_stock, sales_volume),
            available=str(tank.remaining_stock),
            required=str(sales_volume),
            **context,
        )

    effective_price = submission.new_price if submission.new_price is not None else product.sales_price
    committed_at = now or utc_now()
    reading = Reading(
        reading_id=id_factory(),
        nozzle_id=nozzle.nozzle_id,
        dispenser_id=nozzle.dispenser_id,
        product_id=product.product_id,
        tank_id=tank.tank_id,
        previous_reading=previous,
        current_reading=current,
        unit_price=effective_price,
        timestamp=committed_at,
    )

    # Persisting
    try:
        outcome = store.commit_reading(
            ReadingCommit(
                reading=reading_to_row(reading),
                nozzle_id=nozzle.nozzle_id,
                expected_last_reading=previous,
                new_last_reading=current,
                sales_amount=reading.sales_amount,
                tank_id=tank.tank_id,
                sales_volume=sales_volume,
                product_id=product.product_id,
                new_price=submission.new_price,
                committed_at=committed_at,
            )
        )
    except StationError as e:
        # Lost a race with another submission, or the store failed.
        raise _rejected("reading_commit_failed", e, sales_volume=str(sales_volume), **context) from None

    low_stock = outcome.tank_remaining_stock < tank.alert_threshold
    if low_stock:
        logger.warning(
            f"Tank {tank.name or tank.tank_id} is below its alert threshold",
            extra={
                "event": "tank_low_stock",
                "tank_id": tank.tank_id,
                "remaining_stock": str(outcome.tank_remaining_stock),
                "alert_threshold": str(tank.alert_threshold),
            },
        )

    logger.info(
        "Reading recorded",
        extra={
            "event": "reading_recorded",
            "reading_id": reading.reading_id,
            "sales_volume": str(sales_volume),
            "sales_amount": str(reading.sales_amount),
            "price_updated": outcome.price_updated,
            **context,
        },
    )

    return ReadingResult(
        reading=reading,
        tank_remaining_stock=outcome.tank_remaining_stock,
        nozzle_total_sales=outcome.nozzle_total_sales,
        price_updated=outcome.price_updated,
        low_stock=low_stock,
    )


def list_reading_history(
    store: DocumentStore,
    nozzle_id: str,
    *,
    now: Optional[datetime] = None,
) -> List[ReadingHistoryEntry]:
    """Readings of one nozzle, newest first."""

    require_nozzle(store, nozzle_id)
    readings = sorted(list_readings(store, nozzle_id), key=lambda r: r.timestamp, reverse=True)
    current_time = now or utc_now()
    return [ReadingHistoryEntry(reading=r, recorded=time_ago(r.timestamp, current_time)) for r in readings]


__all__ = [
    "ReadingHistoryEntry",
    "ReadingResult",
    "ReadingSubmission",
    "list_reading_history",
    "record_reading",
]
