"""
Supabase-backed document store.

Each collection is a Supabase table with a text primary key column "id".
Reads and writes go through the PostgREST query builder; the nozzle reading
commit goes through the record_nozzle_reading() PostgreSQL function (see
database/schema.sql) so that its four writes happen in one transaction.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional
from uuid import uuid4

from postgrest.exceptions import APIError
from supabase import Client  # type: ignore[import-not-found]

from domain.errors import Conflict, InsufficientStock, NotFound, PersistenceError, StaleReading
from repositories.document_store import CommitOutcome, Document, ReadingCommit
from repositories.serialization import decimal_to_str, parse_decimal, to_iso_utc

logger = logging.getLogger(__name__)

# PostgREST caps a single response; fetch_all pages through with .range().
_PAGE_SIZE: int = 1000

_COMMIT_FUNCTION: str = "record_nozzle_reading"


def _check(response: Any, action: str) -> List[Document]:
    error = getattr(response, "error", None)
    if error:
        raise PersistenceError(f"Failed to {action}: {error}")
    return list(getattr(response, "data", None) or [])


def _api_error_payload(error: APIError) -> Dict[str, Any]:
    try:
        payload = error.json() if callable(getattr(error, "json", None)) else {}
    except (TypeError, ValueError):
        payload = {}
    return payload if isinstance(payload, dict) else {}


class SupabaseDocumentStore:
    def __init__(
        self,
        client: Client,
        *,
        page_size: int = _PAGE_SIZE,
        id_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        self._client = client
        self._page_size = page_size
        self._id_factory = id_factory or (lambda: str(uuid4()))

    def fetch_all(self, collection: str) -> List[Document]:
        rows: List[Document] = []
        start = 0
        while True:
            try:
                response = (
                    self._client.table(collection)
                    .select("*")
                    .order("id")
                    .range(start, start + self._page_size - 1)
                    .execute()
                )
            except APIError as e:
                raise PersistenceError(f"Failed to fetch {collection}: {e}") from e

            page = _check(response, f"fetch {collection}")
            rows.extend(page)
            if len(page) < self._page_size:
                return rows
            start += self._page_size

    def fetch_by_id(self, collection: str, doc_id: str) -> Optional[Document]:
        try:
            response = (
                self._client.table(collection)
                .select("*")
                .eq("id", doc_id)
                .limit(1)
                .execute()
            )
        except APIError as e:
            raise PersistenceError(f"Failed to fetch {collection}/{doc_id}: {e}") from e

        rows = _check(response, f"fetch {collection}/{doc_id}")
        return rows[0] if rows else None

    def insert(self, collection: str, document: Mapping[str, Any]) -> Document:
        payload: Dict[str, Any] = dict(document)
        payload["id"] = str(payload.get("id") or self._id_factory())

        try:
            response = self._client.table(collection).insert(payload).execute()
        except APIError as e:
            # Unique violation on the primary key.
            if str(getattr(e, "code", "")) == "23505":
                raise Conflict(collection, payload["id"]) from None
            raise PersistenceError(f"Failed to insert into {collection}: {e}") from e

        rows = _check(response, f"insert into {collection}")
        return rows[0] if rows else payload

    def update(self, collection: str, doc_id: str, changes: Mapping[str, Any]) -> Document:
        payload = {k: v for k, v in changes.items() if k != "id"}
        try:
            response = (
                self._client.table(collection)
                .update(payload)
                .eq("id", doc_id)
                .execute()
            )
        except APIError as e:
            raise PersistenceError(f"Failed to update {collection}/{doc_id}: {e}") from e

        rows = _check(response, f"update {collection}/{doc_id}")
        if not rows:
            raise NotFound(collection, doc_id)
        return rows[0]

    def delete(self, collection: str, doc_id: str) -> None:
        try:
            response = self._client.table(collection).delete().eq("id", doc_id).execute()
        except APIError as e:
            raise PersistenceError(f"Failed to delete {collection}/{doc_id}: {e}") from e

        if not _check(response, f"delete {collection}/{doc_id}"):
            raise NotFound(collection, doc_id)

    def commit_reading(self, commit: ReadingCommit) -> CommitOutcome:
        """
        Execute the reading commit via PostgreSQL function.

        record_nozzle_reading() locks the nozzle and tank rows (FOR UPDATE),
        re-checks the last reading and the available stock, then updates the
        nozzle, inserts the reading, updates the product price and decrements
        the tank, all in a single transaction.
        """

        params = {
            "p_reading": dict(commit.reading),
            "p_nozzle_id": commit.nozzle_id,
            "p_expected_last_reading": str(commit.expected_last_reading),
            "p_new_last_reading": str(commit.new_last_reading),
            "p_sales_amount": str(commit.sales_amount),
            "p_tank_id": commit.tank_id,
            "p_sales_volume": str(commit.sales_volume),
            "p_product_id": commit.product_id,
            "p_new_price": decimal_to_str(commit.new_price),
            "p_committed_at": to_iso_utc(commit.committed_at, name="committed_at"),
        }

        try:
            response = self._client.rpc(_COMMIT_FUNCTION, params).execute()
            result = response.data
            error = getattr(response, "error", None)
            if error:
                raise PersistenceError(f"Failed to commit reading: {error}")
        except APIError as e:
            # supabase-py raises APIError when the function returns JSON,
            # for success payloads as well as errors.
            result = _api_error_payload(e)
            if not result:
                raise PersistenceError(f"Failed to commit reading: {e}") from e

        if isinstance(result, list):
            result = result[0] if result else {}
        return _outcome_from_result(commit, result or {})


def _outcome_from_result(commit: ReadingCommit, result: Mapping[str, Any]) -> CommitOutcome:
    if result.get("success") is True:
        return CommitOutcome(
            tank_remaining_stock=parse_decimal(result.get("tank_remaining_stock"), field="tank_remaining_stock"),
            nozzle_total_sales=parse_decimal(result.get("nozzle_total_sales"), field="nozzle_total_sales"),
            price_updated=bool(result.get("price_updated")),
        )

    code = result.get("error")
    if code == "STALE_READING":
        raise StaleReading(
            commit.nozzle_id,
            commit.expected_last_reading,
            parse_decimal(result.get("actual"), field="actual"),
        )
    if code == "INSUFFICIENT_STOCK":
        raise InsufficientStock(
            commit.tank_id,
            parse_decimal(result.get("available"), field="available"),
            commit.sales_volume,
        )
    if code == "NOT_FOUND":
        raise NotFound(str(result.get("entity", "Document")), result.get("entity_id"))

    logger.error(
        "Reading commit returned an unexpected result",
        extra={"event": "reading_commit_unexpected", "nozzle_id": commit.nozzle_id, "result": dict(result)},
    )
    raise PersistenceError(f"Failed to commit reading: {result.get('message') or code or 'unknown error'}")


__all__ = ["SupabaseDocumentStore"]
