"""
Dispenser and nozzle repository.

Nozzle meters (last_reading, total_sales) are advanced only by the atomic
reading commit. update_nozzle refuses to touch them so the reading ledger
stays the single writer.
"""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from domain.dispenser import Dispenser, DispenserStatus, Nozzle
from domain.errors import NotFound, ValidationError
from repositories.document_store import DISPENSERS, NOZZLES, DocumentStore
from repositories.serialization import apply_changes, optional_datetime, parse_decimal, to_iso_utc

# Fields owned by the reading workflow.
_METER_FIELDS = frozenset({"last_reading", "total_sales", "last_updated", "version"})


def _row_to_dispenser(row: Mapping[str, Any]) -> Dispenser:
    try:
        status = DispenserStatus(row.get("status") or DispenserStatus.ACTIVE.value)
    except ValueError:
        status = DispenserStatus.INACTIVE
    return Dispenser(
        dispenser_id=str(row["id"]),
        name=str(row.get("name") or ""),
        location=row.get("location"),
        status=status,
        code=row.get("code"),
        last_maintenance=optional_datetime(row, "last_maintenance"),
    )


def _dispenser_to_row(dispenser: Dispenser) -> Dict[str, Any]:
    return {
        "name": dispenser.name,
        "location": dispenser.location,
        "status": dispenser.status.value,
        "code": dispenser.code,
        "last_maintenance": (
            to_iso_utc(dispenser.last_maintenance, name="last_maintenance")
            if dispenser.last_maintenance
            else None
        ),
    }


def _row_to_nozzle(row: Mapping[str, Any]) -> Nozzle:
    return Nozzle(
        nozzle_id=str(row["id"]),
        dispenser_id=str(row.get("dispenser_id") or ""),
        product_id=str(row.get("product_id") or ""),
        tank_id=row.get("tank_id"),
        position=row.get("position"),
        last_reading=parse_decimal(row.get("last_reading"), field="last_reading"),
        total_sales=parse_decimal(row.get("total_sales"), field="total_sales"),
        last_updated=optional_datetime(row, "last_updated"),
        version=int(row.get("version") or 0),
    )


def _nozzle_to_row(nozzle: Nozzle) -> Dict[str, Any]:
    return {
        "dispenser_id": nozzle.dispenser_id,
        "product_id": nozzle.product_id,
        "tank_id": nozzle.tank_id,
        "position": nozzle.position,
        "last_reading": str(nozzle.last_reading),
        "total_sales": str(nozzle.total_sales),
        "last_updated": to_iso_utc(nozzle.last_updated, name="last_updated") if nozzle.last_updated else None,
        "version": nozzle.version,
    }


# Dispensers


def list_dispensers(store: DocumentStore) -> List[Dispenser]:
    return [_row_to_dispenser(row) for row in store.fetch_all(DISPENSERS)]


def get_dispenser(store: DocumentStore, dispenser_id: str) -> Optional[Dispenser]:
    row = store.fetch_by_id(DISPENSERS, dispenser_id)
    return _row_to_dispenser(row) if row is not None else None


def require_dispenser(store: DocumentStore, dispenser_id: str) -> Dispenser:
    dispenser = get_dispenser(store, dispenser_id)
    if dispenser is None:
        raise NotFound("Dispenser", dispenser_id)
    return dispenser


def create_dispenser(store: DocumentStore, dispenser: Dispenser) -> Dispenser:
    row = _dispenser_to_row(dispenser)
    if dispenser.dispenser_id:
        row["id"] = dispenser.dispenser_id
    return _row_to_dispenser(store.insert(DISPENSERS, row))


def update_dispenser(store: DocumentStore, dispenser_id: str, changes: Mapping[str, Any]) -> Dispenser:
    current = require_dispenser(store, dispenser_id)
    fields = {k: v for k, v in changes.items() if k != "dispenser_id"}
    if "status" in fields and not isinstance(fields["status"], DispenserStatus):
        try:
            fields["status"] = DispenserStatus(fields["status"])
        except ValueError as e:
            raise ValidationError(f"Unknown dispenser status: {fields['status']}") from e
    updated = apply_changes(current, fields)
    return _row_to_dispenser(store.update(DISPENSERS, dispenser_id, _dispenser_to_row(updated)))


def delete_dispenser(store: DocumentStore, dispenser_id: str) -> None:
    store.delete(DISPENSERS, dispenser_id)


# Nozzles


def list_nozzles(store: DocumentStore, dispenser_id: Optional[str] = None) -> List[Nozzle]:
    nozzles = [_row_to_nozzle(row) for row in store.fetch_all(NOZZLES)]
    if dispenser_id is not None:
        nozzles = [n for n in nozzles if n.dispenser_id == dispenser_id]
    return nozzles


def get_nozzle(store: DocumentStore, nozzle_id: str) -> Optional[Nozzle]:
    row = store.fetch_by_id(NOZZLES, nozzle_id)
    return _row_to_nozzle(row) if row is not None else None


def require_nozzle(store: DocumentStore, nozzle_id: str) -> Nozzle:
    nozzle = get_nozzle(store, nozzle_id)
    if nozzle is None:
        raise NotFound("Nozzle", nozzle_id)
    return nozzle


def create_nozzle(store: DocumentStore, nozzle: Nozzle) -> Nozzle:
    """
    Insert a nozzle with a zeroed meter.

    Callers resolve the dispenser, product and tank first (see
    services.station_service.add_nozzle).
    """

    fresh = replace(nozzle, last_reading=Decimal("0"), total_sales=Decimal("0"), version=0)
    row = _nozzle_to_row(fresh)
    if nozzle.nozzle_id:
        row["id"] = nozzle.nozzle_id
    return _row_to_nozzle(store.insert(NOZZLES, row))


def update_nozzle(store: DocumentStore, nozzle_id: str, changes: Mapping[str, Any]) -> Nozzle:
    meter_changes = _METER_FIELDS.intersection(changes)
    if meter_changes:
        raise ValidationError(
            f"Nozzle meter fields cannot be edited directly: {', '.join(sorted(meter_changes))}"
        )

    current = require_nozzle(store, nozzle_id)
    updated = apply_changes(current, {k: v for k, v in changes.items() if k != "nozzle_id"})
    return _row_to_nozzle(store.update(NOZZLES, nozzle_id, _nozzle_to_row(updated)))


def delete_nozzle(store: DocumentStore, nozzle_id: str) -> None:
    store.delete(NOZZLES, nozzle_id)


__all__ = [
    "create_dispenser",
    "create_nozzle",
    "delete_dispenser",
    "delete_nozzle",
    "get_dispenser",
    "get_nozzle",
    "list_dispensers",
    "list_nozzles",
    "require_dispenser",
    "require_nozzle",
    "update_dispenser",
    "update_nozzle",
]
