"""
Invoice API Endpoints.

One set of routes serves all four invoice kinds:
/invoices/{kind} where kind is purchase, purchase_return, sale or sale_return.
Invoices do not change tank stock.
"""

from datetime import tzinfo
from typing import List

from fastapi import APIRouter, Depends, Response

from api.dependencies import get_store, get_timezone, utc_fields
from api.models import InvoiceCreate, InvoiceResponse, InvoiceUpdate
from api.responses import xlsx_download
from domain.invoice import Invoice, InvoiceKind
from repositories.account_repository import require_account
from repositories.document_store import DocumentStore
from repositories.invoice_repository import (
    create_invoice,
    delete_invoice,
    list_invoices,
    require_invoice,
    update_invoice,
)
from repositories.product_repository import require_product
from services.export_service import export_rows_to_excel

router = APIRouter()


@router.get("/invoices/{kind}", response_model=List[InvoiceResponse], summary="List Invoices")
def get_invoices(kind: InvoiceKind, store: DocumentStore = Depends(get_store)):
    return [InvoiceResponse.model_validate(i) for i in list_invoices(store, kind)]


@router.get("/invoices/{kind}/export", summary="Export Invoices", response_class=Response)
def export_invoices(kind: InvoiceKind, store: DocumentStore = Depends(get_store)):
    rows = [InvoiceResponse.model_validate(i).model_dump() for i in list_invoices(store, kind)]
    return xlsx_download(export_rows_to_excel(rows, f"{kind.value} invoices"), f"{kind.collection}.xlsx")


@router.get("/invoices/{kind}/{invoice_id}", response_model=InvoiceResponse, summary="Get Invoice")
def get_invoice(kind: InvoiceKind, invoice_id: str, store: DocumentStore = Depends(get_store)):
    return InvoiceResponse.model_validate(require_invoice(store, kind, invoice_id))


@router.post("/invoices/{kind}", response_model=InvoiceResponse, status_code=201, summary="Create Invoice")
def post_invoice(
    kind: InvoiceKind,
    request: InvoiceCreate,
    store: DocumentStore = Depends(get_store),
    tz: tzinfo = Depends(get_timezone),
):
    """Create an invoice. The party account and the product must exist."""
    require_account(store, request.party_id)
    if request.product_id:
        require_product(store, request.product_id)

    fields = utc_fields(request.model_dump(), tz, "date")
    return InvoiceResponse.model_validate(create_invoice(store, Invoice(kind=kind, **fields)))


@router.patch("/invoices/{kind}/{invoice_id}", response_model=InvoiceResponse, summary="Update Invoice")
def patch_invoice(
    kind: InvoiceKind,
    invoice_id: str,
    request: InvoiceUpdate,
    store: DocumentStore = Depends(get_store),
    tz: tzinfo = Depends(get_timezone),
):
    changes = utc_fields(request.model_dump(exclude_unset=True), tz, "date")
    return InvoiceResponse.model_validate(update_invoice(store, kind, invoice_id, changes))


@router.delete("/invoices/{kind}/{invoice_id}", status_code=204, summary="Delete Invoice")
def remove_invoice(kind: InvoiceKind, invoice_id: str, store: DocumentStore = Depends(get_store)):
    delete_invoice(store, kind, invoice_id)
    return Response(status_code=204)
