"""
Domain: nozzle meter readings.

A Reading is an immutable, append-only event produced by the Stock Ledger
Workflow. It captures the meter delta and the price applied to it.

Invariants:
- current_reading >= previous_reading
- sales_volume == current_reading - previous_reading
- sales_amount == sales_volume * unit_price
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from .errors import InvalidReadingOrder
from .time import require_utc_timestamp


@dataclass(frozen=True, slots=True)
class Reading:
    reading_id: str
    nozzle_id: str
    dispenser_id: str
    product_id: str
    tank_id: str
    previous_reading: Decimal
    current_reading: Decimal
    unit_price: Decimal
    timestamp: datetime

    def __post_init__(self) -> None:
        require_utc_timestamp("timestamp", self.timestamp)
        if self.current_reading < self.previous_reading:
            raise InvalidReadingOrder(self.previous_reading, self.current_reading)

    @property
    def sales_volume(self) -> Decimal:
        return self.current_reading - self.previous_reading

    @property
    def sales_amount(self) -> Decimal:
        return self.sales_volume * self.unit_price
