"""
Domain: fuel products and their price history.

A product's sales price is mutable (it can be changed from the product screen
or opportunistically while recording a nozzle reading); every change is
appended to the product's price history.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple

from .time import require_utc_timestamp

DEFAULT_CATEGORY = "Uncategorized"


@dataclass(frozen=True, slots=True)
class PriceChange:
    price: Decimal
    changed_at: datetime

    def __post_init__(self) -> None:
        require_utc_timestamp("changed_at", self.changed_at)


@dataclass(frozen=True, slots=True)
class Product:
    product_id: str
    name: str
    sales_price: Decimal
    purchase_price: Decimal = Decimal("0")
    category: Optional[str] = None
    opening_quantity: Decimal = Decimal("0")
    tank_id: Optional[str] = None  # store tank
    brand: Optional[str] = None
    batch_no: Optional[str] = None
    price_history: Tuple[PriceChange, ...] = field(default_factory=tuple)

    @property
    def category_name(self) -> str:
        return self.category or DEFAULT_CATEGORY

    def with_sales_price(self, price: Decimal, changed_at: datetime) -> "Product":
        """
        Return a new Product at `price`.

        History only grows when the price actually changes.
        """

        if price == self.sales_price:
            return self
        return replace(
            self,
            sales_price=price,
            price_history=self.price_history + (PriceChange(price=price, changed_at=changed_at),),
        )
