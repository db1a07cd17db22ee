"""
Derived metrics for period-over-period comparison.

Pure functions only: per-field deltas, per-product change blocks and the
aggregate rollup used for ``overall_stats``. Inputs are the serialized
product dicts produced by the services, so the same rollup serves every
endpoint and every filter combination.
"""
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from perfdash.utils.helpers import calculate_percentage_change, safe_divide


@dataclass(frozen=True)
class Delta:
    """Absolute and percentage change between two values"""
    change: float
    change_percent: Optional[float]  # None when previous == 0


# (field, rounding for the absolute change; None keeps integers exact)
PRODUCT_DELTA_FIELDS = (
    ("annual_profit", 2),
    ("sold_qty", None),
    ("avg_profit_per_unit", 2),
)


def compute_delta(current, previous, ndigits: Optional[int] = 2) -> Optional[Delta]:
    """
    delta = current - previous
    percent = delta / previous * 100, undefined (None) when previous is 0

    Returns None when either side is missing.
    """
    if current is None or previous is None:
        return None

    change = current - previous
    if ndigits is not None:
        change = round(change, ndigits)

    percent = calculate_percentage_change(current, previous)
    if percent is not None:
        percent = round(percent, 2)

    return Delta(change=change, change_percent=percent)


def product_changes(current: Mapping[str, Any], previous: Optional[Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
    """Per-product change block, or None when there is no snapshot."""
    if previous is None:
        return None

    changes: Dict[str, Any] = {}
    for field, ndigits in PRODUCT_DELTA_FIELDS:
        delta = compute_delta(current.get(field), previous.get(field), ndigits)
        changes[f"{field}_change"] = delta.change if delta else None
        changes[f"{field}_change_percent"] = delta.change_percent if delta else None
    return changes


def _total(rows: Sequence[Mapping[str, Any]], field: str):
    return sum((r.get(field) or 0) for r in rows)


def aggregate_current(products: Sequence[Mapping[str, Any]]) -> Dict[str, Any]:
    """Totals and means over every product in the set."""
    count = len(products)
    return {
        "total_annual_profit": round(_total(products, "annual_profit"), 2),
        "total_sold_qty": _total(products, "sold_qty"),
        "avg_profit_per_unit": round(safe_divide(_total(products, "avg_profit_per_unit"), count), 2),
        "avg_gross_margin": round(safe_divide(_total(products, "avg_gross_margin"), count), 4),
        "total_products": count,
    }


def aggregate_previous(snapshots: Sequence[Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
    """
    Totals and means over the matched snapshots only.

    Snapshots carry no gross margin, so avg_gross_margin is None. An empty
    match set yields None rather than a zero-filled block.
    """
    count = len(snapshots)
    if count == 0:
        return None
    return {
        "total_annual_profit": round(_total(snapshots, "annual_profit"), 2),
        "total_sold_qty": _total(snapshots, "sold_qty"),
        "avg_profit_per_unit": round(safe_divide(_total(snapshots, "avg_profit_per_unit"), count), 2),
        "avg_gross_margin": None,
        "total_products": count,
    }


_AGGREGATE_DELTA_FIELDS = (
    ("total_annual_profit", 2),
    ("total_sold_qty", None),
    ("avg_profit_per_unit", 2),
    ("avg_gross_margin", 4),
)


def aggregate_changes(current: Mapping[str, Any], previous: Optional[Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
    if previous is None:
        return None

    changes: Dict[str, Any] = {}
    for field, ndigits in _AGGREGATE_DELTA_FIELDS:
        delta = compute_delta(current.get(field), previous.get(field), ndigits)
        changes[f"{field}_change"] = delta.change if delta else None
        changes[f"{field}_change_percent"] = delta.change_percent if delta else None
    changes["total_products_change"] = current["total_products"] - previous["total_products"]
    return changes


def rollup(products: Sequence[Mapping[str, Any]], snapshot_key: Optional[str] = None) -> Dict[str, Any]:
    """
    Build ``overall_stats`` for a product set.

    With ``snapshot_key`` the previous block is computed from the products
    whose ``product[snapshot_key]`` is not None; without it the result is
    current-only.
    """
    current = aggregate_current(products)
    if snapshot_key is None:
        return {"current": current, "previous": None, "changes": None}

    matched: List[Mapping[str, Any]] = [
        p[snapshot_key] for p in products if p.get(snapshot_key) is not None
    ]
    previous = aggregate_previous(matched)
    return {
        "current": current,
        "previous": previous,
        "changes": aggregate_changes(current, previous),
    }


def coverage(products: Iterable[Mapping[str, Any]], snapshot_key: str) -> Dict[str, int]:
    """Products with and without a matched comparison snapshot."""
    total = 0
    matched = 0
    for p in products:
        total += 1
        if p.get(snapshot_key) is not None:
            matched += 1
    return {
        "products_with_comparison": matched,
        "products_without_comparison": total - matched,
        "total_products": total,
    }
