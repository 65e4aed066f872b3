"""
Domain: ledger accounts (customers, suppliers, staff, banks, expenses).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from .time import require_utc_timestamp


class AccountType(str, Enum):
    ASSETS = "assets"
    CUSTOMER = "customer"
    SUPPLIER = "supplier"
    STAFF = "staff"
    BANK = "bank"
    EXPENSE = "expense"


@dataclass(frozen=True, slots=True)
class Account:
    account_id: str
    name: str
    account_type: AccountType
    code: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    opening_debit: Decimal = Decimal("0")
    opening_credit: Decimal = Decimal("0")
    status: str = "active"  # active, inactive

    # Timestamps
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)
        if self.updated_at is not None:
            require_utc_timestamp("updated_at", self.updated_at)

    @property
    def opening_balance(self) -> Decimal:
        """Debit-positive opening balance."""
        return self.opening_debit - self.opening_credit

    def is_active(self) -> bool:
        return self.status == "active"
