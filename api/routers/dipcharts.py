"""
Dip Chart API Endpoints.

Record dip measurements, bulk-import a tank's chart, convert depths to
volume and reconcile book stock to the latest dip.
"""

from datetime import tzinfo
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response

from api.dependencies import as_utc, get_calibration, get_store, get_timezone
from api.models import (
    DipEntryResponse,
    DipImportRequest,
    DipImportResponse,
    DipRecordRequest,
    TankResponse,
    VolumeResponse,
)
from api.responses import xlsx_download
from domain.calibration import DipChartCalibration, inches_to_mm
from domain.errors import ValidationError
from repositories.dip_chart_repository import delete_dip_entry, list_dip_entries
from repositories.document_store import DocumentStore
from services.dip_service import import_dip_chart, reconcile_tank_to_latest_dip, record_dip, tank_dip_curve
from services.export_service import export_rows_to_excel

router = APIRouter()


@router.get("/dipcharts", response_model=List[DipEntryResponse], summary="List Dip Entries")
def get_dip_entries(
    tank_id: Optional[str] = Query(None, description="Only entries for this tank"),
    store: DocumentStore = Depends(get_store),
):
    entries = tank_dip_curve(store, tank_id) if tank_id else list_dip_entries(store)
    return [DipEntryResponse.model_validate(e) for e in entries]


@router.post("/dipcharts", response_model=DipEntryResponse, status_code=201, summary="Record Dip")
def post_dip(
    request: DipRecordRequest,
    store: DocumentStore = Depends(get_store),
    calibration: DipChartCalibration = Depends(get_calibration),
    tz: tzinfo = Depends(get_timezone),
):
    """Record a dipstick measurement; liters come from the calibration table."""
    entry = record_dip(
        store,
        calibration,
        request.tank_id,
        dip_mm=request.dip_mm,
        dip_inches=request.dip_inches,
        recorded_at=as_utc(request.recorded_at, tz),
    )
    return DipEntryResponse.model_validate(entry)


@router.post("/dipcharts/import", response_model=DipImportResponse, status_code=201, summary="Import Dip Chart")
def post_dip_import(request: DipImportRequest, store: DocumentStore = Depends(get_store)):
    """
    Bulk-import a tank's dip chart from "inches,liters" lines.

    The whole text is validated first; a malformed line rejects the import.
    """
    imported = import_dip_chart(store, request.tank_id, request.text)
    return DipImportResponse(tank_id=request.tank_id, imported=imported)


@router.get("/dipcharts/volume", response_model=VolumeResponse, summary="Convert Dip To Volume")
def get_volume(
    mm: Optional[Decimal] = Query(None, ge=0),
    inches: Optional[Decimal] = Query(None, ge=0),
    calibration: DipChartCalibration = Depends(get_calibration),
):
    if (mm is None) == (inches is None):
        raise ValidationError("Provide exactly one of mm or inches")
    depth = mm if mm is not None else inches_to_mm(inches)
    return VolumeResponse(dip_mm=depth, dip_liters=calibration.volume_for_depth(depth))


@router.post(
    "/tanks/{tank_id}/reconcile",
    response_model=TankResponse,
    summary="Reconcile Tank To Latest Dip",
    description="Set the tank's book stock to its most recent dip volume.",
)
def post_reconcile(tank_id: str, store: DocumentStore = Depends(get_store)):
    return TankResponse.model_validate(reconcile_tank_to_latest_dip(store, tank_id))


@router.get("/dipcharts/export", summary="Export Dip Entries", response_class=Response)
def export_dip_entries(store: DocumentStore = Depends(get_store)):
    rows = [DipEntryResponse.model_validate(e).model_dump() for e in list_dip_entries(store)]
    return xlsx_download(export_rows_to_excel(rows, "Dip Chart"), "dip_chart.xlsx")


@router.delete("/dipcharts/{entry_id}", status_code=204, summary="Delete Dip Entry")
def remove_dip_entry(entry_id: str, store: DocumentStore = Depends(get_store)):
    delete_dip_entry(store, entry_id)
    return Response(status_code=204)
