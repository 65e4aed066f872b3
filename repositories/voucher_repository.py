"""
Voucher repository (cash_vouchers / journal_vouchers collections).
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from domain.errors import NotFound
from domain.voucher import Voucher, VoucherKind
from repositories.document_store import DocumentStore
from repositories.serialization import apply_changes, decimal_to_str, optional_decimal, parse_utc_datetime, to_iso_utc


def _row_to_voucher(kind: VoucherKind, row: Mapping[str, Any]) -> Voucher:
    return Voucher(
        voucher_id=str(row["id"]),
        kind=kind,
        reference=str(row.get("reference") or ""),
        date=parse_utc_datetime(row["date"]),
        amount=optional_decimal(row, "amount"),
        description=row.get("description"),
    )


def _voucher_to_row(voucher: Voucher) -> Dict[str, Any]:
    return {
        "reference": voucher.reference,
        "date": to_iso_utc(voucher.date, name="date"),
        "amount": decimal_to_str(voucher.amount),
        "description": voucher.description,
    }


def list_vouchers(store: DocumentStore, kind: VoucherKind) -> List[Voucher]:
    return [_row_to_voucher(kind, row) for row in store.fetch_all(kind.collection)]


def get_voucher(store: DocumentStore, kind: VoucherKind, voucher_id: str) -> Optional[Voucher]:
    row = store.fetch_by_id(kind.collection, voucher_id)
    return _row_to_voucher(kind, row) if row is not None else None


def require_voucher(store: DocumentStore, kind: VoucherKind, voucher_id: str) -> Voucher:
    voucher = get_voucher(store, kind, voucher_id)
    if voucher is None:
        raise NotFound("Voucher", voucher_id)
    return voucher


def create_voucher(store: DocumentStore, voucher: Voucher) -> Voucher:
    row = _voucher_to_row(voucher)
    if voucher.voucher_id:
        row["id"] = voucher.voucher_id
    return _row_to_voucher(voucher.kind, store.insert(voucher.kind.collection, row))


def update_voucher(
    store: DocumentStore,
    kind: VoucherKind,
    voucher_id: str,
    changes: Mapping[str, Any],
) -> Voucher:
    current = require_voucher(store, kind, voucher_id)
    updated = apply_changes(current, {k: v for k, v in changes.items() if k not in ("voucher_id", "kind")})
    return _row_to_voucher(kind, store.update(kind.collection, voucher_id, _voucher_to_row(updated)))


def delete_voucher(store: DocumentStore, kind: VoucherKind, voucher_id: str) -> None:
    store.delete(kind.collection, voucher_id)


__all__ = [
    "create_voucher",
    "delete_voucher",
    "get_voucher",
    "list_vouchers",
    "require_voucher",
    "update_voucher",
]
