"""
Voucher API Endpoints (/vouchers/cash, /vouchers/journal).
"""

from datetime import tzinfo
from typing import List

from fastapi import APIRouter, Depends, Response

from api.dependencies import get_store, get_timezone, utc_fields
from api.models import VoucherCreate, VoucherResponse, VoucherUpdate
from api.responses import xlsx_download
from domain.voucher import Voucher, VoucherKind
from repositories.document_store import DocumentStore
from repositories.voucher_repository import (
    create_voucher,
    delete_voucher,
    list_vouchers,
    require_voucher,
    update_voucher,
)
from services.export_service import export_rows_to_excel

router = APIRouter()


@router.get("/vouchers/{kind}", response_model=List[VoucherResponse], summary="List Vouchers")
def get_vouchers(kind: VoucherKind, store: DocumentStore = Depends(get_store)):
    return [VoucherResponse.model_validate(v) for v in list_vouchers(store, kind)]


@router.get("/vouchers/{kind}/export", summary="Export Vouchers", response_class=Response)
def export_vouchers(kind: VoucherKind, store: DocumentStore = Depends(get_store)):
    rows = [VoucherResponse.model_validate(v).model_dump() for v in list_vouchers(store, kind)]
    return xlsx_download(export_rows_to_excel(rows, f"{kind.value} vouchers"), f"{kind.collection}.xlsx")


@router.get("/vouchers/{kind}/{voucher_id}", response_model=VoucherResponse, summary="Get Voucher")
def get_voucher(kind: VoucherKind, voucher_id: str, store: DocumentStore = Depends(get_store)):
    return VoucherResponse.model_validate(require_voucher(store, kind, voucher_id))


@router.post("/vouchers/{kind}", response_model=VoucherResponse, status_code=201, summary="Create Voucher")
def post_voucher(
    kind: VoucherKind,
    request: VoucherCreate,
    store: DocumentStore = Depends(get_store),
    tz: tzinfo = Depends(get_timezone),
):
    """Cash vouchers need an amount; journal vouchers need a description."""
    fields = utc_fields(request.model_dump(), tz, "date")
    return VoucherResponse.model_validate(create_voucher(store, Voucher(kind=kind, **fields)))


@router.patch("/vouchers/{kind}/{voucher_id}", response_model=VoucherResponse, summary="Update Voucher")
def patch_voucher(
    kind: VoucherKind,
    voucher_id: str,
    request: VoucherUpdate,
    store: DocumentStore = Depends(get_store),
    tz: tzinfo = Depends(get_timezone),
):
    changes = utc_fields(request.model_dump(exclude_unset=True), tz, "date")
    return VoucherResponse.model_validate(update_voucher(store, kind, voucher_id, changes))


@router.delete("/vouchers/{kind}/{voucher_id}", status_code=204, summary="Delete Voucher")
def remove_voucher(kind: VoucherKind, voucher_id: str, store: DocumentStore = Depends(get_store)):
    delete_voucher(store, kind, voucher_id)
    return Response(status_code=204)
