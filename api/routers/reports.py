"""
Report API Endpoints.

Sales report as JSON, Excel or PDF, plus the low-stock tank list.
"""

from datetime import datetime, timezone, tzinfo
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response

from api.dependencies import as_utc, get_store, get_timezone
from api.models import SalesReportResponse, TankResponse
from api.responses import pdf_download, xlsx_download
from domain.errors import ValidationError
from domain.time import utc_now
from repositories.document_store import DocumentStore
from repositories.settings_repository import get_company_settings
from repositories.tank_repository import list_tanks
from services.export_service import export_report_to_excel, export_report_to_pdf, generate_report_id
from services.report_service import (
    SalesReport,
    build_sales_report,
    list_low_stock_tanks,
    load_report_snapshot,
    report_window,
)

router = APIRouter()


def _build_report(
    store: DocumentStore,
    tz: tzinfo,
    granularity: str,
    start: Optional[datetime],
    end: Optional[datetime],
) -> SalesReport:
    if (start is None) != (end is None):
        raise ValidationError("Provide both start and end, or neither")

    if start is None:
        window_start, window_end = report_window(granularity, utc_now(), tz)
    else:
        window_start, window_end = as_utc(start, tz), as_utc(end, tz)

    return build_sales_report(load_report_snapshot(store), window_start, window_end, granularity=granularity)


@router.get(
    "/reports/sales",
    response_model=SalesReportResponse,
    summary="Sales Report",
    description="Sales grouped by category and product for a date range, with day-over-day comparison and dip losses.",
)
def get_sales_report(
    granularity: str = Query("daily", description="daily, weekly, monthly or yearly"),
    start: Optional[datetime] = Query(None, description="Range start (defaults to the granularity's window)"),
    end: Optional[datetime] = Query(None, description="Range end, inclusive"),
    store: DocumentStore = Depends(get_store),
    tz: tzinfo = Depends(get_timezone),
):
    """
    Build the sales report.

    **Example usage:**
    - Today: `GET /api/v1/reports/sales`
    - This month: `GET /api/v1/reports/sales?granularity=monthly`
    - Custom range: `GET /api/v1/reports/sales?start=2025-03-01T00:00:00&end=2025-03-01T23:59:59`
    """
    return SalesReportResponse.model_validate(_build_report(store, tz, granularity, start, end))


@router.get("/reports/sales/export.xlsx", summary="Export Sales Report (Excel)", response_class=Response)
def export_sales_report_excel(
    granularity: str = Query("daily"),
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    store: DocumentStore = Depends(get_store),
    tz: tzinfo = Depends(get_timezone),
):
    report = _build_report(store, tz, granularity, start, end)
    content = export_report_to_excel(report, get_company_settings(store), tz=tz)
    stamp = datetime.now(timezone.utc).astimezone(tz).strftime("%Y%m%d")
    return xlsx_download(content, f"Sales_Report_{granularity}_{stamp}.xlsx")


@router.get("/reports/sales/export.pdf", summary="Export Sales Report (PDF)", response_class=Response)
def export_sales_report_pdf(
    granularity: str = Query("daily"),
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    store: DocumentStore = Depends(get_store),
    tz: tzinfo = Depends(get_timezone),
):
    report = _build_report(store, tz, granularity, start, end)
    generated_at = utc_now()
    content = export_report_to_pdf(
        report,
        get_company_settings(store),
        report_id=generate_report_id(generated_at.astimezone(tz)),
        generated_at=generated_at,
        tz=tz,
    )
    stamp = generated_at.astimezone(tz).strftime("%Y%m%d")
    return pdf_download(content, f"Sales_Report_{granularity}_{stamp}.pdf")


@router.get("/reports/low-stock", response_model=List[TankResponse], summary="Low Stock Tanks")
def get_low_stock_tanks(store: DocumentStore = Depends(get_store)):
    return [TankResponse.model_validate(t) for t in list_low_stock_tanks(list_tanks(store))]
