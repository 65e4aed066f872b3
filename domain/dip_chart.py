"""
Domain: recorded dip measurements.

A DipChartEntry is one physical dipstick measurement of a tank, converted to
liters through the calibration table. Comparing the latest entry against the
tank's book stock gives the gain/loss figure on the daily report.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from .time import require_utc_timestamp


@dataclass(frozen=True, slots=True)
class DipChartEntry:
    entry_id: str
    tank_id: str
    dip_mm: Decimal
    dip_inches: Decimal
    dip_liters: Decimal
    recorded_at: datetime
    chart_code: Optional[str] = None

    def __post_init__(self) -> None:
        require_utc_timestamp("recorded_at", self.recorded_at)

    def gain_loss(self, book_stock: Decimal) -> Decimal:
        """Physical minus book volume: positive is a gain, negative a loss."""

        return self.dip_liters - book_stock
