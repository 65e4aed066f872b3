#!/usr/bin/env python3
"""
Dip Chart Import Script

Imports a tank's dip chart from a text file with one "inches,liters" pair per
line into the configured document store:
- The whole file is validated before anything is written
- Each row is stored with chart code "<tank_id>-<inches>"

Usage:
    python import_dip_chart.py T-1 path/to/chart.txt
    python import_dip_chart.py T-1 path/to/chart.txt --dry-run
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Add parent directory to path to import modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from domain.errors import StationError
from repositories.store_factory import get_document_store
from services.dip_service import import_dip_chart, parse_dip_chart_lines


def main() -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Import a tank dip chart (inches,liters per line)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Basic import
  python import_dip_chart.py T-1 chart.txt

  # Validate only
  python import_dip_chart.py T-1 chart.txt --dry-run
        """
    )

    parser.add_argument("tank_id", help="Tank the chart belongs to")
    parser.add_argument("chart_path", help="Path to the chart text file")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Parse and validate the file without writing to the store"
    )

    args = parser.parse_args()

    try:
        text = Path(args.chart_path).read_text(encoding="utf-8")
    except OSError as e:
        print(f"Could not read {args.chart_path}: {e}", file=sys.stderr)
        return 1

    try:
        if args.dry_run:
            rows = parse_dip_chart_lines(text)
            print(f"Dry run: {len(rows)} valid rows for tank {args.tank_id}")
            for inches, liters in rows[:5]:
                print(f"  {inches} in -> {liters} L")
            if len(rows) > 5:
                print(f"  ... and {len(rows) - 5} more")
            return 0

        imported = import_dip_chart(get_document_store(), args.tank_id, text)
        print(f"Imported {imported} dip chart rows for tank {args.tank_id}")
        return 0

    except StationError as e:
        print(f"Import failed: {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\n\nImport interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
