"""
Helper utilities
"""
from datetime import date, datetime
from typing import Any, Optional


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Safely divide two numbers"""
    try:
        return numerator / denominator if denominator != 0 else default
    except (TypeError, ZeroDivisionError):
        return default


def calculate_percentage_change(current: float, previous: float) -> Optional[float]:
    """Calculate percentage change between two values"""
    if previous == 0:
        return None
    return ((current - previous) / previous) * 100


def to_float(value: Any, default: Optional[float] = 0.0) -> Optional[float]:
    """Coerce a DB numeric (Decimal/float/int/None) to float"""
    if value is None:
        return default
    return float(value)


def to_int(value: Any, default: Optional[int] = 0) -> Optional[int]:
    if value is None:
        return default
    return int(value)


def iso_date(value: Optional[Any]) -> Optional[str]:
    """Serialize a date/datetime for JSON, passing None through"""
    if value is None:
        return None
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)
