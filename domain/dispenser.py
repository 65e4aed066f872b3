"""
Domain: fuel dispensers and their nozzles.

A nozzle belongs to one dispenser and one product and draws from one tank.
Its meter (`last_reading`) and cumulative sales (`total_sales`) never go
backwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from .time import require_utc_timestamp


class DispenserStatus(str, Enum):
    ACTIVE = "active"
    MAINTENANCE = "maintenance"
    INACTIVE = "inactive"


@dataclass(frozen=True, slots=True)
class Dispenser:
    dispenser_id: str
    name: str
    location: Optional[str] = None
    status: DispenserStatus = DispenserStatus.ACTIVE
    code: Optional[str] = None
    last_maintenance: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.last_maintenance is not None:
            require_utc_timestamp("last_maintenance", self.last_maintenance)

    def is_active(self) -> bool:
        return self.status == DispenserStatus.ACTIVE


@dataclass(frozen=True, slots=True)
class Nozzle:
    nozzle_id: str
    dispenser_id: str
    product_id: str
    tank_id: Optional[str]
    position: Optional[str] = None
    last_reading: Decimal = Decimal("0")
    total_sales: Decimal = Decimal("0")
    last_updated: Optional[datetime] = None
    version: int = 0

    def __post_init__(self) -> None:
        if self.last_updated is not None:
            require_utc_timestamp("last_updated", self.last_updated)

    @property
    def label(self) -> str:
        return f"Nozzle {self.position}" if self.position else self.nozzle_id
