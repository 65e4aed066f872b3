"""
Product repository (persistence).

Price changes made through update_product append to the product's price
history, matching the reading workflow's price override.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from domain.errors import NotFound
from domain.product import PriceChange, Product
from domain.time import utc_now
from repositories.document_store import PRODUCTS, DocumentStore
from repositories.serialization import apply_changes, parse_decimal, parse_utc_datetime, to_iso_utc


def _row_to_product(row: Mapping[str, Any]) -> Product:
    """Convert a stored document into a Product."""

    history = tuple(
        PriceChange(
            price=parse_decimal(entry.get("price"), field="price"),
            changed_at=parse_utc_datetime(entry["changed_at"]),
        )
        for entry in (row.get("price_history") or [])
    )
    return Product(
        product_id=str(row["id"]),
        name=str(row.get("name") or ""),
        sales_price=parse_decimal(row.get("sales_price"), field="sales_price"),
        purchase_price=parse_decimal(row.get("purchase_price"), field="purchase_price"),
        category=row.get("category") or None,
        opening_quantity=parse_decimal(row.get("opening_quantity"), field="opening_quantity"),
        tank_id=row.get("tank_id"),
        brand=row.get("brand"),
        batch_no=row.get("batch_no"),
        price_history=history,
    )


def _product_to_row(product: Product) -> Dict[str, Any]:
    return {
        "name": product.name,
        "sales_price": str(product.sales_price),
        "purchase_price": str(product.purchase_price),
        "category": product.category,
        "opening_quantity": str(product.opening_quantity),
        "tank_id": product.tank_id,
        "brand": product.brand,
        "batch_no": product.batch_no,
        "price_history": [
            {"price": str(change.price), "changed_at": to_iso_utc(change.changed_at, name="changed_at")}
            for change in product.price_history
        ],
    }


def list_products(store: DocumentStore) -> List[Product]:
    return [_row_to_product(row) for row in store.fetch_all(PRODUCTS)]


def get_product(store: DocumentStore, product_id: str) -> Optional[Product]:
    row = store.fetch_by_id(PRODUCTS, product_id)
    return _row_to_product(row) if row is not None else None


def require_product(store: DocumentStore, product_id: str) -> Product:
    product = get_product(store, product_id)
    if product is None:
        raise NotFound("Product", product_id)
    return product


def create_product(store: DocumentStore, product: Product) -> Product:
    row = _product_to_row(replace(product, price_history=()))
    if product.product_id:
        row["id"] = product.product_id
    return _row_to_product(store.insert(PRODUCTS, row))


def update_product(
    store: DocumentStore,
    product_id: str,
    changes: Mapping[str, Any],
    *,
    now: Optional[datetime] = None,
) -> Product:
    """
    Apply field changes to a product.

    A changed sales_price is recorded in price_history with timestamp `now`.
    """

    current = require_product(store, product_id)
    fields = {k: v for k, v in changes.items() if k not in ("product_id", "price_history", "sales_price")}
    updated = apply_changes(current, fields)
    if "sales_price" in changes and changes["sales_price"] is not None:
        updated = updated.with_sales_price(changes["sales_price"], now or utc_now())
    return _row_to_product(store.update(PRODUCTS, product_id, _product_to_row(updated)))


def delete_product(store: DocumentStore, product_id: str) -> None:
    store.delete(PRODUCTS, product_id)


__all__ = [
    "create_product",
    "delete_product",
    "get_product",
    "list_products",
    "require_product",
    "update_product",
]
