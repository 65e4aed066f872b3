"""
Document store contract.

Every repository module talks to storage through this interface: collection
style storage keyed by entity type with fetch-all, fetch-by-id, insert,
partial update and delete, plus one atomic operation for the nozzle reading
workflow.

Documents are plain dicts. Each document carries its identifier under "id".
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Protocol

# Collection names. Keep these aligned with database/schema.sql.
TANKS = "tanks"
PRODUCTS = "products"
DISPENSERS = "dispensers"
NOZZLES = "nozzles"
READINGS = "readings"
DIP_CHARTS = "dipcharts"
ACCOUNTS = "accounts"
SETTINGS = "settings"

Document = Dict[str, Any]


@dataclass(frozen=True, slots=True)
class ReadingCommit:
    """
    The four writes of one nozzle reading submission, applied all-or-nothing.

    Preconditions checked by the store at commit time:
    - nozzle.last_reading == expected_last_reading
    - tank.remaining_stock >= sales_volume
    """

    reading: Mapping[str, Any]
    nozzle_id: str
    expected_last_reading: Decimal
    new_last_reading: Decimal
    sales_amount: Decimal
    tank_id: str
    sales_volume: Decimal
    product_id: str
    new_price: Optional[Decimal]
    committed_at: datetime


@dataclass(frozen=True, slots=True)
class CommitOutcome:
    """State of the touched documents right after a successful commit."""

    tank_remaining_stock: Decimal
    nozzle_total_sales: Decimal
    price_updated: bool


class DocumentStore(Protocol):
    def fetch_all(self, collection: str) -> List[Document]: ...

    def fetch_by_id(self, collection: str, doc_id: str) -> Optional[Document]: ...

    def insert(self, collection: str, document: Mapping[str, Any]) -> Document: ...

    def update(self, collection: str, doc_id: str, changes: Mapping[str, Any]) -> Document: ...

    def delete(self, collection: str, doc_id: str) -> None: ...

    def commit_reading(self, commit: ReadingCommit) -> CommitOutcome: ...


__all__ = [
    "ACCOUNTS",
    "CommitOutcome",
    "DIP_CHARTS",
    "DISPENSERS",
    "Document",
    "DocumentStore",
    "NOZZLES",
    "PRODUCTS",
    "READINGS",
    "ReadingCommit",
    "SETTINGS",
    "TANKS",
]
