"""
Tests for the document store implementations.

Covers:
- In-memory store contract: copies in and out, id assignment, NotFound on
  missing documents, duplicate ids rejected.
- Supabase store: paging through fetch_all, error mapping, and mapping of
  record_nozzle_reading() results onto CommitOutcome or domain errors.

The Supabase client is replaced by a small fake that records the query
builder calls and replays canned responses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List

import pytest
from postgrest.exceptions import APIError

from domain.errors import Conflict, InsufficientStock, NotFound, PersistenceError, StaleReading
from repositories.document_store import ReadingCommit
from repositories.memory_store import InMemoryDocumentStore
from repositories.supabase_store import SupabaseDocumentStore

NOW = datetime(2025, 3, 10, 9, 30, tzinfo=timezone.utc)

COMMIT = ReadingCommit(
    reading={"id": "R-1", "nozzle_id": "N-1"},
    nozzle_id="N-1",
    expected_last_reading=Decimal("1200"),
    new_last_reading=Decimal("1210"),
    sales_amount=Decimal("2700"),
    tank_id="T-1",
    sales_volume=Decimal("10"),
    product_id="P-PETROL",
    new_price=None,
    committed_at=NOW,
)


# In-memory store


def test_memory_store_returns_copies() -> None:
    """Verify callers cannot mutate stored documents through returned dicts."""

    store = InMemoryDocumentStore(id_factory=lambda: "generated")
    inserted = store.insert("tanks", {"name": "Tank 1", "tags": ["a"]})

    assert inserted["id"] == "generated"
    inserted["tags"].append("b")
    fetched = store.fetch_by_id("tanks", "generated")
    assert fetched["tags"] == ["a"]
    fetched["name"] = "changed"
    assert store.fetch_all("tanks")[0]["name"] == "Tank 1"


def test_memory_store_missing_and_duplicate_documents() -> None:
    """Verify update/delete of unknown ids raise NotFound and duplicate ids are refused."""

    store = InMemoryDocumentStore()
    store.insert("tanks", {"id": "T-1"})

    assert store.fetch_by_id("tanks", "T-9") is None
    assert store.fetch_all("unknown") == []
    with pytest.raises(NotFound):
        store.update("tanks", "T-9", {"name": "x"})
    with pytest.raises(NotFound):
        store.delete("tanks", "T-9")
    with pytest.raises(Conflict) as excinfo:
        store.insert("tanks", {"id": "T-1"})
    assert excinfo.value.status_code == 409


def test_memory_store_update_keeps_id() -> None:
    """Verify partial updates merge fields and never change the id."""

    store = InMemoryDocumentStore()
    store.insert("tanks", {"id": "T-1", "name": "Tank 1", "capacity": "100"})

    updated = store.update("tanks", "T-1", {"id": "other", "name": "Main"})

    assert updated == {"id": "T-1", "name": "Main", "capacity": "100"}


def test_memory_store_commit_bumps_versions(store) -> None:
    """Verify a successful commit writes the reading and bumps nozzle and tank versions."""

    outcome = store.commit_reading(COMMIT)

    assert outcome.tank_remaining_stock == Decimal("990")
    assert outcome.nozzle_total_sales == Decimal("2700")
    assert outcome.price_updated is False
    assert store.fetch_by_id("nozzles", "N-1")["version"] == 1
    assert store.fetch_by_id("tanks", "T-1")["version"] == 1
    assert store.fetch_by_id("readings", "R-1") is not None


# Supabase store


@dataclass
class FakeResponse:
    data: Any = None
    error: Any = None


@dataclass
class FakeQuery:
    client: "FakeClient"
    table: str
    calls: List[tuple] = field(default_factory=list)

    def __getattr__(self, name: str):
        def record(*args: Any, **kwargs: Any) -> "FakeQuery":
            self.calls.append((name, args))
            return self

        return record

    def execute(self) -> FakeResponse:
        self.client.executed.append((self.table, self.calls))
        outcome = self.client.responses.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeClient:
    def __init__(self, responses: List[Any]) -> None:
        self.responses = list(responses)
        self.executed: List[tuple] = []
        self.rpc_calls: List[tuple] = []

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, function: str, params: Dict[str, Any]) -> FakeQuery:
        self.rpc_calls.append((function, params))
        return FakeQuery(self, f"rpc:{function}")


def _supabase(responses: List[Any], page_size: int = 2) -> tuple[SupabaseDocumentStore, FakeClient]:
    client = FakeClient(responses)
    return SupabaseDocumentStore(client, page_size=page_size), client


def test_supabase_fetch_all_pages_until_short_page() -> None:
    """Verify fetch_all keeps requesting ranges until a page comes back short."""

    store, client = _supabase(
        [
            FakeResponse(data=[{"id": "1"}, {"id": "2"}]),
            FakeResponse(data=[{"id": "3"}, {"id": "4"}]),
            FakeResponse(data=[{"id": "5"}]),
        ]
    )

    rows = store.fetch_all("tanks")

    assert [r["id"] for r in rows] == ["1", "2", "3", "4", "5"]
    ranges = [args for _, calls in client.executed for name, args in calls if name == "range"]
    assert ranges == [(0, 1), (2, 3), (4, 5)]


def test_supabase_fetch_by_id_and_missing_rows() -> None:
    """Verify fetch_by_id returns the first row or None."""

    store, _ = _supabase([FakeResponse(data=[{"id": "T-1"}]), FakeResponse(data=[])])

    assert store.fetch_by_id("tanks", "T-1") == {"id": "T-1"}
    assert store.fetch_by_id("tanks", "T-2") is None


def test_supabase_errors_become_persistence_errors() -> None:
    """Verify response errors and APIError exceptions surface as PersistenceError."""

    store, _ = _supabase(
        [
            FakeResponse(error="boom"),
            APIError({"message": "permission denied", "code": "42501"}),
        ]
    )

    with pytest.raises(PersistenceError):
        store.fetch_by_id("tanks", "T-1")
    with pytest.raises(PersistenceError):
        store.update("tanks", "T-1", {"name": "x"})


def test_supabase_insert_assigns_id_and_maps_unique_violation() -> None:
    """Verify inserts get an id and duplicate keys raise Conflict like the memory store."""

    client = FakeClient(
        [
            FakeResponse(data=[{"id": "new-id", "name": "Tank"}]),
            APIError({"message": "duplicate key", "code": "23505"}),
        ]
    )
    store = SupabaseDocumentStore(client, id_factory=lambda: "new-id")

    assert store.insert("tanks", {"name": "Tank"}) == {"id": "new-id", "name": "Tank"}
    with pytest.raises(Conflict):
        store.insert("tanks", {"id": "new-id"})


def test_supabase_update_and_delete_missing_rows_raise_not_found() -> None:
    """Verify an empty result from update/delete means the row does not exist."""

    store, _ = _supabase([FakeResponse(data=[]), FakeResponse(data=[])])

    with pytest.raises(NotFound):
        store.update("tanks", "T-9", {"name": "x"})
    with pytest.raises(NotFound):
        store.delete("tanks", "T-9")


def test_supabase_commit_success_payload() -> None:
    """Verify a success payload maps onto CommitOutcome and params are serialized."""

    store, client = _supabase(
        [
            FakeResponse(
                data={
                    "success": True,
                    "tank_remaining_stock": "990",
                    "nozzle_total_sales": "2700",
                    "price_updated": False,
                }
            )
        ]
    )

    outcome = store.commit_reading(COMMIT)

    assert outcome.tank_remaining_stock == Decimal("990")
    assert outcome.nozzle_total_sales == Decimal("2700")
    function, params = client.rpc_calls[0]
    assert function == "record_nozzle_reading"
    assert params["p_expected_last_reading"] == "1200"
    assert params["p_new_price"] is None
    assert params["p_committed_at"].startswith("2025-03-10T09:30:00")


def test_supabase_commit_payload_raised_as_api_error() -> None:
    """Verify JSON payloads delivered through APIError are still interpreted."""

    store, _ = _supabase(
        [APIError({"success": True, "tank_remaining_stock": "5", "nozzle_total_sales": "1", "price_updated": True})]
    )

    outcome = store.commit_reading(COMMIT)

    assert outcome.price_updated is True
    assert outcome.tank_remaining_stock == Decimal("5")


@pytest.mark.parametrize(
    "payload, error_type",
    [
        ({"success": False, "error": "STALE_READING", "actual": "1250"}, StaleReading),
        ({"success": False, "error": "INSUFFICIENT_STOCK", "available": "3"}, InsufficientStock),
        ({"success": False, "error": "NOT_FOUND", "entity": "Nozzle", "entity_id": "N-1"}, NotFound),
        ({"success": False, "error": "SOMETHING_ELSE", "message": "bad"}, PersistenceError),
    ],
)
def test_supabase_commit_failures_map_to_domain_errors(payload, error_type) -> None:
    """Verify each function error code raises the matching domain error."""

    store, _ = _supabase([FakeResponse(data=[payload])])

    with pytest.raises(error_type):
        store.commit_reading(COMMIT)


def test_supabase_commit_stale_carries_actual_value() -> None:
    """Verify the stale error reports the meter value found in the database."""

    store, _ = _supabase([FakeResponse(data={"success": False, "error": "STALE_READING", "actual": "1250"})])

    with pytest.raises(StaleReading) as excinfo:
        store.commit_reading(COMMIT)

    assert excinfo.value.actual == Decimal("1250")
    assert excinfo.value.expected == Decimal("1200")


def test_supabase_commit_unreadable_api_error(monkeypatch: pytest.MonkeyPatch) -> None:
    """Verify an APIError without a JSON payload is a persistence failure."""

    error = APIError({"message": "connection reset"})
    monkeypatch.setattr(error, "json", lambda: None)
    store, _ = _supabase([error])

    with pytest.raises(PersistenceError):
        store.commit_reading(COMMIT)
