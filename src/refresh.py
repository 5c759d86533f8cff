"""
Activity Tracker Refresh
========================
Standalone entry point.  Runs one refresh:
  1. Read the tracking workbook (local .xlsx or Google Sheet export)
  2. Reconcile history + backup sheets into one daily timeline
  3. Compute per-person stats, cross-person patterns and insights
  4. Print a parse summary (or the full result as JSON)

Usage:
    python refresh.py                       # uses WORKBOOK_PATH / GOOGLE_SHEET_ID
    python refresh.py --file tracker.xlsx
    python refresh.py --sheet-id <id> --now 2025-10-19 --json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from datetime import date
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
log = logging.getLogger("refresh")

from engine_config import load_engine_config, load_source_config
from pipeline.insight_builder import format_insight_lines
from pipeline.refresh_pipeline import RefreshPipeline
from result_store import MemoryResultStore
from schemas import AnalyticsResult


def summary_lines(result: AnalyticsResult) -> List[str]:
    """Human-readable parse summary."""
    lines = ["--- Parse summary ---", f"Data points: {len(result.data_points)}"]
    if result.date_range:
        lines.append(f"Date range: {result.date_range.start} -> {result.date_range.end}")
    else:
        lines.append("Date range: (empty)")

    lines.append("")
    lines.append("--- Person stats ---")
    for entity, s in result.stats.items():
        lines.append(
            f"{entity}: total={s.total_count} week={s.current_week} month={s.current_month} "
            f"year={s.year_total} weekly_avg={s.weekly_avg:.2f} monthly_avg={s.monthly_avg:.2f} "
            f"peak={s.peak_day}({s.peak_day_count}) streak={s.longest_streak} "
            f"dry={s.longest_zero_streak} quietest={s.quietest_period_start} "
            f"active_days={s.total_active_days}"
        )

    lines.append("")
    lines.append("--- Top insights ---")
    lines.extend(format_insight_lines(result.insights))
    return lines


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Activity Tracker refresh")
    parser.add_argument("--file", help="Path to a local .xlsx workbook")
    parser.add_argument("--sheet-id", help="Google Sheet id to export as .xlsx")
    parser.add_argument("--now", type=date.fromisoformat,
                        help="Reference date (default: today)")
    parser.add_argument("--json", action="store_true",
                        help="Print the full result as JSON")
    args = parser.parse_args(argv)

    source = load_source_config()
    if args.file:
        source = replace(source, workbook_path=args.file, sheet_id=None)
    elif args.sheet_id:
        source = replace(source, workbook_path=None, sheet_id=args.sheet_id)

    store = MemoryResultStore()
    pipeline = RefreshPipeline(store, load_engine_config(), source)
    status = pipeline.run(now=args.now)

    result = store.get()
    if result is None:
        log.error("Refresh failed: %s", ", ".join(status.get("degraded_reasons", [])) or "unknown")
        return 1

    if args.json:
        print(json.dumps(result.model_dump(mode="json", by_alias=True), indent=2))
    else:
        print("\n".join(summary_lines(result)))
    return 0 if status["overall_status"] != "failed" else 1


if __name__ == "__main__":
    sys.exit(main())
