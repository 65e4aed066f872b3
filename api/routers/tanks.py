"""
Tank API Endpoints.

CRUD for storage tanks. Book stock is otherwise changed only by readings
and dip reconciliation.
"""

from typing import List

from fastapi import APIRouter, Depends, Response

from api.dependencies import get_store
from api.models import TankCreate, TankResponse, TankUpdate
from api.responses import xlsx_download
from domain.tank import Tank
from repositories.document_store import DocumentStore
from repositories.tank_repository import delete_tank, list_tanks, require_tank, update_tank
from services.export_service import export_rows_to_excel
from services.station_service import add_tank

router = APIRouter()


@router.get("/tanks", response_model=List[TankResponse], summary="List Tanks")
def get_tanks(store: DocumentStore = Depends(get_store)):
    return [TankResponse.model_validate(t) for t in list_tanks(store)]


@router.get("/tanks/export", summary="Export Tanks", response_class=Response)
def export_tanks(store: DocumentStore = Depends(get_store)):
    rows = [TankResponse.model_validate(t).model_dump() for t in list_tanks(store)]
    return xlsx_download(export_rows_to_excel(rows, "Tanks"), "tanks.xlsx")


@router.get("/tanks/{tank_id}", response_model=TankResponse, summary="Get Tank")
def get_tank(tank_id: str, store: DocumentStore = Depends(get_store)):
    return TankResponse.model_validate(require_tank(store, tank_id))


@router.post("/tanks", response_model=TankResponse, status_code=201, summary="Create Tank")
def post_tank(request: TankCreate, store: DocumentStore = Depends(get_store)):
    return TankResponse.model_validate(add_tank(store, Tank(**request.model_dump())))


@router.patch("/tanks/{tank_id}", response_model=TankResponse, summary="Update Tank")
def patch_tank(tank_id: str, request: TankUpdate, store: DocumentStore = Depends(get_store)):
    return TankResponse.model_validate(update_tank(store, tank_id, request.model_dump(exclude_unset=True)))


@router.delete("/tanks/{tank_id}", status_code=204, summary="Delete Tank")
def remove_tank(tank_id: str, store: DocumentStore = Depends(get_store)):
    delete_tank(store, tank_id)
    return Response(status_code=204)
