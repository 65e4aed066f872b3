"""
Station setup operations that span more than one collection.

These back the registration screens where a form touches several entities:
adding a nozzle (dispenser + product + tank) and linking a product to its
storage tank.
"""

from __future__ import annotations

import logging
from typing import Optional

from domain.dispenser import Nozzle
from domain.errors import ValidationError
from domain.product import Product
from domain.tank import Tank
from repositories.document_store import DocumentStore
from repositories.nozzle_repository import create_nozzle, list_nozzles, require_dispenser
from repositories.product_repository import create_product, require_product, update_product
from repositories.tank_repository import create_tank, require_tank, update_tank

logger = logging.getLogger(__name__)


def add_nozzle(
    store: DocumentStore,
    dispenser_id: str,
    product_id: str,
    *,
    position: Optional[str] = None,
    tank_id: Optional[str] = None,
    nozzle_id: str = "",
) -> Nozzle:
    """
    Create a nozzle on a dispenser.

    The tank defaults to the product's tank. The meter starts at 0 with no
    sales.

    Raises:
        NotFound: dispenser, product or tank missing
        ValidationError: no tank could be resolved, or the position is taken
    """

    dispenser = require_dispenser(store, dispenser_id)
    product = require_product(store, product_id)

    resolved_tank_id = tank_id or product.tank_id
    if not resolved_tank_id:
        raise ValidationError(f"Product {product.name or product.product_id} does not have a tank associated")
    tank = require_tank(store, resolved_tank_id)

    if position is not None:
        for existing in list_nozzles(store, dispenser.dispenser_id):
            if existing.position == position:
                raise ValidationError(
                    f"Dispenser {dispenser.name or dispenser.dispenser_id} already has a nozzle at position {position}"
                )

    nozzle = create_nozzle(
        store,
        Nozzle(
            nozzle_id=nozzle_id,
            dispenser_id=dispenser.dispenser_id,
            product_id=product.product_id,
            tank_id=tank.tank_id,
            position=position,
        ),
    )
    logger.info(
        "Nozzle added",
        extra={
            "event": "nozzle_added",
            "nozzle_id": nozzle.nozzle_id,
            "dispenser_id": dispenser.dispenser_id,
            "tank_id": tank.tank_id,
        },
    )
    return nozzle


def add_tank(store: DocumentStore, tank: Tank) -> Tank:
    """
    Create a tank. When it names a product, that product's tank_id is
    pointed at the new tank.
    """

    if tank.product_id:
        require_product(store, tank.product_id)

    created = create_tank(store, tank)
    if created.product_id:
        product = require_product(store, created.product_id)
        if product.tank_id != created.tank_id:
            update_product(store, product.product_id, {"tank_id": created.tank_id})
    return created


def add_product(store: DocumentStore, product: Product) -> Product:
    """Create a product. A referenced tank must exist and is linked back."""

    if product.tank_id:
        require_tank(store, product.tank_id)

    created = create_product(store, product)
    if created.tank_id:
        update_tank(store, created.tank_id, {"product_id": created.product_id})
    return created


__all__ = ["add_nozzle", "add_product", "add_tank"]
