#!/usr/bin/env python3
"""
View time reports from persisted database data.

Connects to the database (assumes tables and data already exist) and
prints the weekly time report and the budget reconciliation report.

Usage:
    python3 scripts/view_time_reports.py
    python3 scripts/view_time_reports.py --week 2024-01-03
    python3 scripts/view_time_reports.py --report reconciliation --json
"""

import argparse
import json
import logging
import sys
from dataclasses import asdict
from datetime import date
from pathlib import Path

# ---------------------------------------------------------------------------
# Project root on sys.path
# ---------------------------------------------------------------------------
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

W = 72


def _money(value) -> str:
    return f"{value:,.2f}"


def _hours(value) -> str:
    return f"{value:.2f}h"


def render_weekly_report(report) -> str:
    """Plain-text rendering of a ``WeeklyTimeReport``."""
    lines = [
        "=" * W,
        f"  WEEK {report.week_start.date().isoformat()} - {report.week_end.date().isoformat()}".center(W),
        "=" * W,
        f"  Total hours:     {_hours(report.total_hours)}",
        f"  Billable hours:  {_hours(report.billable_hours)}",
        f"  Revenue:         {_money(report.total_revenue)}",
        "",
        "  By project",
        "  " + "-" * (W - 2),
    ]
    if not report.project_breakdown:
        lines.append("  (no time tracked)")
    for line in report.project_breakdown:
        lines.append(
            f"  {line.project_title[:28]:<28} {line.company_name[:18]:<18}"
            f" {_hours(line.hours):>9} {_money(line.revenue):>12}"
        )
    lines += ["", "  By day", "  " + "-" * (W - 2)]
    scale = report.chart_scale_hours
    for day in report.daily_breakdown:
        bar = "#" * int(day.total_hours / scale * 40) if scale else ""
        lines.append(f"  {day.date.strftime('%a %d')}  {_hours(day.total_hours):>8}  {bar}")
    lines.append("")
    return "\n".join(lines)


def render_reconciliation(report) -> str:
    """Plain-text rendering of a list of ``ProjectReconciliation`` lines."""
    lines = [
        "=" * W,
        "  BUDGET RECONCILIATION".center(W),
        "=" * W,
    ]
    if not report:
        lines.append("  (no projects with tracked or budgeted hours)")
    for item in report:
        flag = "OVER" if item.is_over_budget else "OK"
        lines += [
            f"  [{flag}] {item.project_title} ({item.company_name}) {item.currency}",
            f"      hours      {_hours(item.total_hours)} of {_hours(item.budgeted_hours)}"
            f"  ({item.hours_utilization:.1f}% utilized)",
            f"      margin     budgeted {_money(item.budgeted_margin)}"
            f"  actual {_money(item.actual_margin)}"
            f"  variance {_money(item.margin_variance)}",
        ]
    lines.append("")
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Print weekly time and budget reconciliation reports.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "examples:\n"
            "  python3 scripts/view_time_reports.py --week 2024-01-01\n"
            "  python3 scripts/view_time_reports.py --report reconciliation --json\n"
        ),
    )
    parser.add_argument(
        "--db-url", type=str, default=None,
        help="Database URL (default: database.url from the active config)",
    )
    parser.add_argument(
        "--week", type=date.fromisoformat, default=None,
        help="Any date inside the week to report (default: current week)",
    )
    parser.add_argument(
        "--report", choices=("weekly", "reconciliation", "all"), default="all",
        help="Which report to print",
    )
    parser.add_argument(
        "--json", action="store_true",
        help="Output JSON instead of formatted text",
    )
    parser.add_argument(
        "--log", action="store_true",
        help="Write JSON log lines to stderr at the configured level",
    )
    return parser


def _print_reports(service, args) -> None:
    weekly = None
    reconciliation = None
    if args.report in ("weekly", "all"):
        weekly = service.weekly_report(args.week)
    if args.report in ("reconciliation", "all"):
        reconciliation = service.reconciliation_report()

    if args.json:
        payload = {}
        if weekly is not None:
            payload["weekly"] = asdict(weekly)
        if reconciliation is not None:
            payload["reconciliation"] = [asdict(r) for r in reconciliation]
        print(json.dumps(payload, indent=2, default=str))
        return

    if weekly is not None:
        print(render_weekly_report(weekly))
    if reconciliation is not None:
        print(render_reconciliation(reconciliation))


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    from crm_config import get_active_config
    from crm_kernel.db.engine import get_session, init_engine
    from crm_kernel.logging_config import configure_logging
    from crm_modules.time_tracking.service import TimeTrackingService

    # Library logging stays silent unless asked for
    if not args.log:
        logging.disable(logging.CRITICAL)
    try:
        config = get_active_config()
        if args.log:
            configure_logging(level=config.logging.level)

        try:
            init_engine(config.database, url=args.db_url)
        except Exception as exc:
            print(f"  ERROR: Could not connect: {exc}", file=sys.stderr)
            return 1

        session = get_session()
        try:
            _print_reports(TimeTrackingService(session=session), args)
        finally:
            session.close()
        return 0
    finally:
        logging.disable(logging.NOTSET)


if __name__ == "__main__":
    sys.exit(main())
