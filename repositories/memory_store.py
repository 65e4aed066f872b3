"""
In-memory document store.

Used for local development (STORE_BACKEND=memory) and the test suite. It keeps
the same contract as the Supabase store, including the all-or-nothing reading
commit: preconditions are checked and all four writes applied under one lock.
"""

from __future__ import annotations

import copy
import threading
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional
from uuid import uuid4

from domain.errors import Conflict, InsufficientStock, NotFound, StaleReading
from repositories.document_store import (
    NOZZLES,
    PRODUCTS,
    READINGS,
    TANKS,
    CommitOutcome,
    Document,
    ReadingCommit,
)
from repositories.serialization import parse_decimal, to_iso_utc


class InMemoryDocumentStore:
    def __init__(self, id_factory: Optional[Callable[[], str]] = None) -> None:
        self._id_factory = id_factory or (lambda: str(uuid4()))
        self._collections: Dict[str, Dict[str, Document]] = {}
        self._lock = threading.RLock()

    def _collection(self, name: str) -> Dict[str, Document]:
        return self._collections.setdefault(name, {})

    def seed(self, collection: str, documents: Iterable[Mapping[str, Any]]) -> List[Document]:
        """Insert several documents at once (fixtures and demo data)."""

        return [self.insert(collection, doc) for doc in documents]

    def fetch_all(self, collection: str) -> List[Document]:
        with self._lock:
            return [copy.deepcopy(doc) for doc in self._collection(collection).values()]

    def fetch_by_id(self, collection: str, doc_id: str) -> Optional[Document]:
        with self._lock:
            doc = self._collection(collection).get(doc_id)
            return copy.deepcopy(doc) if doc is not None else None

    def insert(self, collection: str, document: Mapping[str, Any]) -> Document:
        with self._lock:
            stored = copy.deepcopy(dict(document))
            stored["id"] = str(stored.get("id") or self._id_factory())
            docs = self._collection(collection)
            if stored["id"] in docs:
                raise Conflict(collection, stored["id"])
            docs[stored["id"]] = stored
            return copy.deepcopy(stored)

    def update(self, collection: str, doc_id: str, changes: Mapping[str, Any]) -> Document:
        with self._lock:
            docs = self._collection(collection)
            if doc_id not in docs:
                raise NotFound(collection, doc_id)
            merged = {**docs[doc_id], **copy.deepcopy(dict(changes)), "id": doc_id}
            docs[doc_id] = merged
            return copy.deepcopy(merged)

    def delete(self, collection: str, doc_id: str) -> None:
        with self._lock:
            docs = self._collection(collection)
            if doc_id not in docs:
                raise NotFound(collection, doc_id)
            del docs[doc_id]

    def commit_reading(self, commit: ReadingCommit) -> CommitOutcome:
        with self._lock:
            nozzles = self._collection(NOZZLES)
            tanks = self._collection(TANKS)
            products = self._collection(PRODUCTS)

            nozzle = nozzles.get(commit.nozzle_id)
            if nozzle is None:
                raise NotFound("Nozzle", commit.nozzle_id)
            tank = tanks.get(commit.tank_id)
            if tank is None:
                raise NotFound("Tank", commit.tank_id)
            product = products.get(commit.product_id)
            if product is None:
                raise NotFound("Product", commit.product_id)

            last_reading = parse_decimal(nozzle.get("last_reading"), field="last_reading")
            if last_reading != commit.expected_last_reading:
                raise StaleReading(commit.nozzle_id, commit.expected_last_reading, last_reading)

            available = parse_decimal(tank.get("remaining_stock"), field="remaining_stock")
            if available < commit.sales_volume:
                raise InsufficientStock(commit.tank_id, available, commit.sales_volume)

            # All checks passed; apply the four writes.
            committed_at = to_iso_utc(commit.committed_at, name="committed_at")
            total_sales = parse_decimal(nozzle.get("total_sales"), field="total_sales") + commit.sales_amount
            nozzle.update(
                last_reading=str(commit.new_last_reading),
                total_sales=str(total_sales),
                last_updated=committed_at,
                version=int(nozzle.get("version") or 0) + 1,
            )

            reading = copy.deepcopy(dict(commit.reading))
            reading["id"] = str(reading.get("id") or self._id_factory())
            self._collection(READINGS)[reading["id"]] = reading

            price_updated = False
            if commit.new_price is not None:
                current_price = parse_decimal(product.get("sales_price"), field="sales_price")
                if commit.new_price != current_price:
                    history = list(product.get("price_history") or [])
                    history.append({"price": str(commit.new_price), "changed_at": committed_at})
                    product.update(sales_price=str(commit.new_price), price_history=history)
                    price_updated = True

            remaining = available - commit.sales_volume
            tank.update(
                remaining_stock=str(remaining),
                version=int(tank.get("version") or 0) + 1,
            )

            return CommitOutcome(
                tank_remaining_stock=remaining,
                nozzle_total_sales=total_sales,
                price_updated=price_updated,
            )


__all__ = ["InMemoryDocumentStore"]
