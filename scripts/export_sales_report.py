#!/usr/bin/env python3
"""
Sales Report Export Script

Builds the sales report from the configured document store and writes it as
Excel or PDF.

Usage:
    python export_sales_report.py --output daily.pdf
    python export_sales_report.py --granularity monthly --output month.xlsx
    python export_sales_report.py --start 2025-03-01 --end 2025-03-07 --output week.pdf
"""

from __future__ import annotations

import argparse
import sys
from datetime import datetime, time, timezone
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import get_settings
from domain.errors import StationError
from repositories.settings_repository import get_company_settings
from repositories.store_factory import get_document_store
from services.export_service import export_report_to_excel, export_report_to_pdf, generate_report_id
from services.report_service import GRANULARITIES, build_sales_report, load_report_snapshot, report_window


def _parse_day(value: str, tz, *, end: bool) -> datetime:
    day = datetime.strptime(value, "%Y-%m-%d").date()
    local = datetime.combine(day, time.max if end else time.min, tzinfo=tz)
    return local.astimezone(timezone.utc)


def main() -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(description="Export the sales report to Excel or PDF")
    parser.add_argument(
        "--granularity",
        choices=GRANULARITIES,
        default="daily",
        help="Report window when --start/--end are not given (default: daily)"
    )
    parser.add_argument("--start", help="First day, YYYY-MM-DD (station time)")
    parser.add_argument("--end", help="Last day, YYYY-MM-DD (station time)")
    parser.add_argument(
        "--output",
        required=True,
        help="Output file; .xlsx writes Excel, anything else writes PDF"
    )

    args = parser.parse_args()

    if (args.start is None) != (args.end is None):
        parser.error("--start and --end must be given together")

    try:
        tz = get_settings().timezone
        now = datetime.now(timezone.utc)
        if args.start:
            start = _parse_day(args.start, tz, end=False)
            end = _parse_day(args.end, tz, end=True)
        else:
            start, end = report_window(args.granularity, now, tz)

        store = get_document_store()
        report = build_sales_report(load_report_snapshot(store), start, end, granularity=args.granularity)
        company = get_company_settings(store)

        output = Path(args.output)
        if output.suffix.lower() == ".xlsx":
            content = export_report_to_excel(report, company, generated_at=now, tz=tz)
        else:
            content = export_report_to_pdf(
                report,
                company,
                report_id=generate_report_id(now.astimezone(tz)),
                generated_at=now,
                tz=tz,
            )
        output.write_bytes(content)

    except (StationError, ValueError) as e:
        print(f"Export failed: {e}", file=sys.stderr)
        return 1

    print(f"Grand total: {report.grand_total:.2f}")
    print(f"Total loss:  {report.total_loss:.2f} L")
    print(f"Report written to {output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
