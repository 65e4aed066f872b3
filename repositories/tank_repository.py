"""
Tank repository (persistence).

This module provides *only* persistence operations for the Tank domain
entity. Stock decrements from nozzle readings do not go through here; they
are part of the atomic reading commit (DocumentStore.commit_reading).
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from domain.errors import NotFound
from domain.tank import Tank
from repositories.document_store import TANKS, DocumentStore
from repositories.serialization import apply_changes, parse_decimal


def _row_to_tank(row: Mapping[str, Any]) -> Tank:
    """Convert a stored document into a Tank."""

    return Tank(
        tank_id=str(row["id"]),
        name=str(row.get("name") or ""),
        product_id=row.get("product_id"),
        capacity=parse_decimal(row.get("capacity"), field="capacity"),
        remaining_stock=parse_decimal(row.get("remaining_stock"), field="remaining_stock"),
        alert_threshold=parse_decimal(row.get("alert_threshold"), field="alert_threshold"),
        code=row.get("code"),
        version=int(row.get("version") or 0),
    )


def _tank_to_row(tank: Tank) -> Dict[str, Any]:
    return {
        "name": tank.name,
        "product_id": tank.product_id,
        "capacity": str(tank.capacity),
        "remaining_stock": str(tank.remaining_stock),
        "alert_threshold": str(tank.alert_threshold),
        "code": tank.code,
        "version": tank.version,
    }


def list_tanks(store: DocumentStore) -> List[Tank]:
    return [_row_to_tank(row) for row in store.fetch_all(TANKS)]


def get_tank(store: DocumentStore, tank_id: str) -> Optional[Tank]:
    row = store.fetch_by_id(TANKS, tank_id)
    return _row_to_tank(row) if row is not None else None


def require_tank(store: DocumentStore, tank_id: str) -> Tank:
    tank = get_tank(store, tank_id)
    if tank is None:
        raise NotFound("Tank", tank_id)
    return tank


def create_tank(store: DocumentStore, tank: Tank) -> Tank:
    """Insert a tank; an empty tank_id lets the store assign one."""

    row = _tank_to_row(tank)
    if tank.tank_id:
        row["id"] = tank.tank_id
    return _row_to_tank(store.insert(TANKS, row))


def update_tank(store: DocumentStore, tank_id: str, changes: Mapping[str, Any]) -> Tank:
    """
    Apply field changes (domain field names) to a tank.

    The merged tank is validated before anything is written, so a change
    that breaks 0 <= remaining_stock <= capacity is rejected.
    """

    current = require_tank(store, tank_id)
    updated = apply_changes(current, {k: v for k, v in changes.items() if k != "tank_id"})
    return _row_to_tank(store.update(TANKS, tank_id, _tank_to_row(updated)))


def set_remaining_stock(store: DocumentStore, tank_id: str, remaining_stock: Decimal) -> Tank:
    """Overwrite book stock (dip reconciliation) and bump the version token."""

    current = require_tank(store, tank_id)
    updated = current.with_stock(remaining_stock)
    return _row_to_tank(store.update(TANKS, tank_id, _tank_to_row(updated)))


def delete_tank(store: DocumentStore, tank_id: str) -> None:
    store.delete(TANKS, tank_id)


__all__ = [
    "create_tank",
    "delete_tank",
    "get_tank",
    "list_tanks",
    "require_tank",
    "set_remaining_stock",
    "update_tank",
]
