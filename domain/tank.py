"""
Domain: fuel storage tanks.

Book stock (`remaining_stock`) is the system-tracked inventory level, as
opposed to the physically measured dip volume.

Invariant:
- 0 <= remaining_stock <= capacity
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Optional

from .errors import ValidationError


@dataclass(frozen=True, slots=True)
class Tank:
    """
    Storage tank owned by a single product.

    version is an optimistic concurrency token; every stock mutation
    produces a tank with version + 1.
    """

    tank_id: str
    name: str
    product_id: Optional[str]
    capacity: Decimal
    remaining_stock: Decimal
    alert_threshold: Decimal = Decimal("0")
    code: Optional[str] = None
    version: int = 0

    def __post_init__(self) -> None:
        if self.capacity <= 0:
            raise ValidationError(f"Tank {self.tank_id} capacity must be greater than 0")
        if self.remaining_stock < 0:
            raise ValidationError(f"Tank {self.tank_id} remaining stock cannot be negative")
        if self.remaining_stock > self.capacity:
            raise ValidationError(
                f"Tank {self.tank_id} remaining stock {self.remaining_stock} exceeds capacity {self.capacity}"
            )
        if self.alert_threshold < 0:
            raise ValidationError(f"Tank {self.tank_id} alert threshold cannot be negative")

    @property
    def fill_ratio(self) -> Decimal:
        return self.remaining_stock / self.capacity

    @property
    def is_below_threshold(self) -> bool:
        return self.remaining_stock < self.alert_threshold

    def with_stock(self, remaining_stock: Decimal) -> "Tank":
        """Return a new Tank at the given book stock; capacity rules re-checked."""

        return replace(self, remaining_stock=remaining_stock, version=self.version + 1)
