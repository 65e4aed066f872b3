"""
Domain: purchase and sale invoices.

Invoices are independent of the nozzle reading ledger: recording a purchase
invoice does not change any tank's book stock. Purchases are reconciled
against physical stock through dip measurements.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from .errors import ValidationError
from .time import require_utc_timestamp


class InvoiceKind(str, Enum):
    PURCHASE = "purchase"
    PURCHASE_RETURN = "purchase_return"
    SALE = "sale"
    SALE_RETURN = "sale_return"

    @property
    def collection(self) -> str:
        return _COLLECTIONS[self]

    @property
    def is_purchase_side(self) -> bool:
        return self in (InvoiceKind.PURCHASE, InvoiceKind.PURCHASE_RETURN)


_COLLECTIONS = {
    InvoiceKind.PURCHASE: "purchase_invoices",
    InvoiceKind.PURCHASE_RETURN: "purchase_return_invoices",
    InvoiceKind.SALE: "sale_invoices",
    InvoiceKind.SALE_RETURN: "sale_return_invoices",
}


@dataclass(frozen=True, slots=True)
class Invoice:
    """
    party_id is the supplier account for purchase-side invoices and the
    customer account for sale-side invoices.
    """

    invoice_id: str
    kind: InvoiceKind
    party_id: str
    product_id: Optional[str]
    quantity: Decimal
    unit_price: Decimal
    date: datetime
    tank_id: Optional[str] = None
    reference: Optional[str] = None

    def __post_init__(self) -> None:
        require_utc_timestamp("date", self.date)
        if self.quantity < 0:
            raise ValidationError("Invoice quantity cannot be negative")
        if self.unit_price < 0:
            raise ValidationError("Invoice unit price cannot be negative")

    @property
    def total(self) -> Decimal:
        return self.quantity * self.unit_price
