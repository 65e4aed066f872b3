"""
Dispenser and Nozzle API Endpoints.
"""

from datetime import tzinfo
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response

from api.dependencies import as_utc, get_store, get_timezone, utc_fields
from api.models import (
    DispenserCreate,
    DispenserResponse,
    DispenserUpdate,
    NozzleCreate,
    NozzleResponse,
    NozzleUpdate,
)
from api.responses import xlsx_download
from domain.dispenser import Dispenser
from repositories.document_store import DocumentStore
from repositories.nozzle_repository import (
    create_dispenser,
    delete_dispenser,
    delete_nozzle,
    list_dispensers,
    list_nozzles,
    require_dispenser,
    require_nozzle,
    update_dispenser,
    update_nozzle,
)
from services.export_service import export_rows_to_excel
from services.station_service import add_nozzle

router = APIRouter()


# Dispensers


@router.get("/dispensers", response_model=List[DispenserResponse], summary="List Dispensers")
def get_dispensers(store: DocumentStore = Depends(get_store)):
    return [DispenserResponse.model_validate(d) for d in list_dispensers(store)]


@router.get("/dispensers/export", summary="Export Dispensers", response_class=Response)
def export_dispensers(store: DocumentStore = Depends(get_store)):
    rows = [DispenserResponse.model_validate(d).model_dump() for d in list_dispensers(store)]
    return xlsx_download(export_rows_to_excel(rows, "Dispensers"), "dispensers.xlsx")


@router.get("/dispensers/{dispenser_id}", response_model=DispenserResponse, summary="Get Dispenser")
def get_dispenser(dispenser_id: str, store: DocumentStore = Depends(get_store)):
    return DispenserResponse.model_validate(require_dispenser(store, dispenser_id))


@router.post("/dispensers", response_model=DispenserResponse, status_code=201, summary="Create Dispenser")
def post_dispenser(
    request: DispenserCreate,
    store: DocumentStore = Depends(get_store),
    tz: tzinfo = Depends(get_timezone),
):
    fields = request.model_dump()
    fields["last_maintenance"] = as_utc(request.last_maintenance, tz)
    return DispenserResponse.model_validate(create_dispenser(store, Dispenser(**fields)))


@router.patch("/dispensers/{dispenser_id}", response_model=DispenserResponse, summary="Update Dispenser")
def patch_dispenser(
    dispenser_id: str,
    request: DispenserUpdate,
    store: DocumentStore = Depends(get_store),
    tz: tzinfo = Depends(get_timezone),
):
    changes = utc_fields(request.model_dump(exclude_unset=True), tz, "last_maintenance")
    return DispenserResponse.model_validate(update_dispenser(store, dispenser_id, changes))


@router.delete("/dispensers/{dispenser_id}", status_code=204, summary="Delete Dispenser")
def remove_dispenser(dispenser_id: str, store: DocumentStore = Depends(get_store)):
    delete_dispenser(store, dispenser_id)
    return Response(status_code=204)


# Nozzles


@router.get("/nozzles", response_model=List[NozzleResponse], summary="List Nozzles")
def get_nozzles(
    dispenser_id: Optional[str] = Query(None, description="Only nozzles on this dispenser"),
    store: DocumentStore = Depends(get_store),
):
    return [NozzleResponse.model_validate(n) for n in list_nozzles(store, dispenser_id)]


@router.get("/nozzles/export", summary="Export Nozzles", response_class=Response)
def export_nozzles(store: DocumentStore = Depends(get_store)):
    rows = [NozzleResponse.model_validate(n).model_dump() for n in list_nozzles(store)]
    return xlsx_download(export_rows_to_excel(rows, "Nozzles"), "nozzles.xlsx")


@router.get("/nozzles/{nozzle_id}", response_model=NozzleResponse, summary="Get Nozzle")
def get_nozzle(nozzle_id: str, store: DocumentStore = Depends(get_store)):
    return NozzleResponse.model_validate(require_nozzle(store, nozzle_id))


@router.post("/nozzles", response_model=NozzleResponse, status_code=201, summary="Create Nozzle")
def post_nozzle(request: NozzleCreate, store: DocumentStore = Depends(get_store)):
    """Create a nozzle; the tank defaults to the product's tank and the meter starts at 0."""
    nozzle = add_nozzle(
        store,
        request.dispenser_id,
        request.product_id,
        position=request.position,
        tank_id=request.tank_id,
        nozzle_id=request.nozzle_id,
    )
    return NozzleResponse.model_validate(nozzle)


@router.patch("/nozzles/{nozzle_id}", response_model=NozzleResponse, summary="Update Nozzle")
def patch_nozzle(nozzle_id: str, request: NozzleUpdate, store: DocumentStore = Depends(get_store)):
    return NozzleResponse.model_validate(update_nozzle(store, nozzle_id, request.model_dump(exclude_unset=True)))


@router.delete("/nozzles/{nozzle_id}", status_code=204, summary="Delete Nozzle")
def remove_nozzle(nozzle_id: str, store: DocumentStore = Depends(get_store)):
    delete_nozzle(store, nozzle_id)
    return Response(status_code=204)
