"""
Invoice repository.

Each InvoiceKind lives in its own collection (purchase_invoices,
purchase_return_invoices, sale_invoices, sale_return_invoices). Invoices are
stored independently of tank stock.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from domain.errors import NotFound
from domain.invoice import Invoice, InvoiceKind
from repositories.document_store import DocumentStore
from repositories.serialization import apply_changes, parse_decimal, parse_utc_datetime, to_iso_utc


def _row_to_invoice(kind: InvoiceKind, row: Mapping[str, Any]) -> Invoice:
    return Invoice(
        invoice_id=str(row["id"]),
        kind=kind,
        party_id=str(row.get("party_id") or ""),
        product_id=row.get("product_id"),
        quantity=parse_decimal(row.get("quantity"), field="quantity"),
        unit_price=parse_decimal(row.get("unit_price"), field="unit_price"),
        date=parse_utc_datetime(row["date"]),
        tank_id=row.get("tank_id"),
        reference=row.get("reference"),
    )


def _invoice_to_row(invoice: Invoice) -> Dict[str, Any]:
    return {
        "party_id": invoice.party_id,
        "product_id": invoice.product_id,
        "quantity": str(invoice.quantity),
        "unit_price": str(invoice.unit_price),
        "total": str(invoice.total),
        "date": to_iso_utc(invoice.date, name="date"),
        "tank_id": invoice.tank_id,
        "reference": invoice.reference,
    }


def list_invoices(store: DocumentStore, kind: InvoiceKind) -> List[Invoice]:
    return [_row_to_invoice(kind, row) for row in store.fetch_all(kind.collection)]


def get_invoice(store: DocumentStore, kind: InvoiceKind, invoice_id: str) -> Optional[Invoice]:
    row = store.fetch_by_id(kind.collection, invoice_id)
    return _row_to_invoice(kind, row) if row is not None else None


def require_invoice(store: DocumentStore, kind: InvoiceKind, invoice_id: str) -> Invoice:
    invoice = get_invoice(store, kind, invoice_id)
    if invoice is None:
        raise NotFound("Invoice", invoice_id)
    return invoice


def create_invoice(store: DocumentStore, invoice: Invoice) -> Invoice:
    row = _invoice_to_row(invoice)
    if invoice.invoice_id:
        row["id"] = invoice.invoice_id
    return _row_to_invoice(invoice.kind, store.insert(invoice.kind.collection, row))


def update_invoice(
    store: DocumentStore,
    kind: InvoiceKind,
    invoice_id: str,
    changes: Mapping[str, Any],
) -> Invoice:
    current = require_invoice(store, kind, invoice_id)
    updated = apply_changes(current, {k: v for k, v in changes.items() if k not in ("invoice_id", "kind")})
    return _row_to_invoice(kind, store.update(kind.collection, invoice_id, _invoice_to_row(updated)))


def delete_invoice(store: DocumentStore, kind: InvoiceKind, invoice_id: str) -> None:
    store.delete(kind.collection, invoice_id)


__all__ = [
    "create_invoice",
    "delete_invoice",
    "get_invoice",
    "list_invoices",
    "require_invoice",
    "update_invoice",
]
