#!/usr/bin/env python3
"""
Snapshot Coverage Audit Script

Prints row counts per period in groupid_performance_week and how many of
the current products each period covers. Flags the week-over-week pair
that the comparison endpoint would use when it is missing.

Usage:
    python scripts/audit_snapshots.py
    python scripts/audit_snapshots.py --json   # machine-readable output
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import json
from datetime import datetime

from sqlalchemy import func

from perfdash.config import get_settings
from perfdash.models.base import SessionLocal
from perfdash.models.performance import ProductPerformance, WeeklySnapshot
from perfdash.services.period_resolver import previous_week_key


def run_audit(as_json=False):
    settings = get_settings()
    db = SessionLocal()
    now = datetime.utcnow()

    try:
        product_count = (
            db.query(func.count())
            .select_from(ProductPerformance)
            .filter(ProductPerformance.channel == settings.channel)
            .scalar()
        ) or 0

        current_ids = (
            db.query(ProductPerformance.groupid)
            .filter(ProductPerformance.channel == settings.channel)
        )
        period_rows = (
            db.query(
                WeeklySnapshot.year_week,
                func.count().label("rows"),
                func.count(WeeklySnapshot.groupid)
                .filter(WeeklySnapshot.groupid.in_(current_ids))
                .label("covered"),
            )
            .filter(WeeklySnapshot.channel == settings.channel)
            .group_by(WeeklySnapshot.year_week)
            .order_by(WeeklySnapshot.year_week.desc())
            .all()
        )
    finally:
        db.close()

    periods = [
        {
            "year_week": r.year_week,
            "rows": r.rows,
            "covered_products": r.covered,
            "coverage_pct": round(r.covered / product_count * 100, 1) if product_count else None,
        }
        for r in period_rows
    ]

    current = periods[0]["year_week"] if periods else None
    previous = previous_week_key(current) if current else None
    known = {p["year_week"] for p in periods}
    week_ready = previous in known if previous else False

    if as_json:
        print(json.dumps({
            "checked_at": now.isoformat(),
            "channel": settings.channel,
            "current_products": product_count,
            "current_week": current,
            "previous_week": previous,
            "week_comparison_ready": week_ready,
            "periods": periods,
        }, indent=2))
        return

    # Pretty-print
    print(f"\n{'='*64}")
    print(f"  SNAPSHOT COVERAGE AUDIT  |  {now.strftime('%Y-%m-%d %H:%M:%S')} UTC")
    print(f"  Channel {settings.channel}: {product_count} current products")
    print(f"{'='*64}\n")

    header = f"{'Period':<12} {'Rows':>8} {'Covered':>10} {'Coverage':>10}"
    print(header)
    print("-" * len(header))
    for p in periods:
        pct = f"{p['coverage_pct']:.1f}%" if p["coverage_pct"] is not None else "N/A"
        marker = "  << current" if p["year_week"] == current else ""
        print(f"{p['year_week']:<12} {p['rows']:>8} {p['covered_products']:>10} {pct:>10}{marker}")

    print(f"\n{'='*64}")
    if not periods:
        print("  No snapshot data: comparisons will be current-only.")
    elif week_ready:
        print(f"  Week comparison ready: {current} vs {previous}.")
    else:
        print(f"  {previous} has no rows: week comparison will be current-only.")
    print(f"{'='*64}\n")


if __name__ == "__main__":
    as_json = "--json" in sys.argv
    run_audit(as_json=as_json)
