"""
Domain: cash and journal vouchers.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from .errors import ValidationError
from .time import require_utc_timestamp


class VoucherKind(str, Enum):
    CASH = "cash"
    JOURNAL = "journal"

    @property
    def collection(self) -> str:
        return "cash_vouchers" if self is VoucherKind.CASH else "journal_vouchers"


@dataclass(frozen=True, slots=True)
class Voucher:
    voucher_id: str
    kind: VoucherKind
    reference: str
    date: datetime
    amount: Optional[Decimal] = None
    description: Optional[str] = None

    def __post_init__(self) -> None:
        require_utc_timestamp("date", self.date)
        if self.kind is VoucherKind.CASH and self.amount is None:
            raise ValidationError("Cash vouchers require an amount")
        if self.kind is VoucherKind.JOURNAL and not self.description:
            raise ValidationError("Journal vouchers require a description")
