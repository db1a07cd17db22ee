"""
Period Resolver

Works out the current reporting period and the period to compare against.
The current period is whatever the snapshot table actually contains
(max year_week for the channel), never the wall clock.

Period keys are ISO-week-style labels, "YYYY-W##".
"""
import re
from dataclasses import dataclass
from typing import Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from perfdash.config import get_settings
from perfdash.exceptions import (
    DataSourceError,
    InsufficientHistory,
    NoDataAvailable,
    ValidationError,
)
from perfdash.models.performance import WeeklySnapshot
from perfdash.utils.logger import log

WEEK = "week"
MONTH = "month"
GRANULARITIES = (WEEK, MONTH)

# Rollover approximation: 53-week ISO years are not handled
WEEKS_PER_YEAR = 52

_PERIOD_KEY_RE = re.compile(r"^(\d{4})-W(\d{1,2})$")


def parse_period_key(key: str) -> Tuple[int, int]:
    """'2025-W07' -> (2025, 7)"""
    match = _PERIOD_KEY_RE.match(key or "")
    if not match:
        raise ValueError(f"Invalid period key: {key!r}")
    year, week = int(match.group(1)), int(match.group(2))
    if not 1 <= week <= 53:
        raise ValueError(f"Week out of range in period key: {key!r}")
    return year, week


def format_period_key(year: int, week: int) -> str:
    return f"{year}-W{week:02d}"


def previous_week_key(key: str) -> str:
    """One week back; week 1 rolls over to week 52 of the previous year"""
    year, week = parse_period_key(key)
    week -= 1
    if week < 1:
        year -= 1
        week = WEEKS_PER_YEAR
    return format_period_key(year, week)


def weeks_between(earlier: str, later: str) -> int:
    """Whole weeks from earlier to later, using the 52-week approximation"""
    y1, w1 = parse_period_key(earlier)
    y2, w2 = parse_period_key(later)
    return (y2 - y1) * WEEKS_PER_YEAR + (w2 - w1)


def weeks_back_label(weeks_back: int) -> str:
    return "Last Week" if weeks_back == 1 else f"{weeks_back} weeks ago"


@dataclass(frozen=True)
class ResolvedPeriods:
    current: str
    comparison: str
    granularity: str
    label: str
    weeks_back: int


class PeriodResolver:
    """Resolves (current, comparison) period keys from snapshot data"""

    def __init__(self, db: Session, channel: Optional[str] = None):
        self.db = db
        self.channel = channel or get_settings().channel

    def current_period(self) -> str:
        """Latest period key present for the channel"""
        latest = (
            self.db.query(func.max(WeeklySnapshot.year_week))
            .filter(WeeklySnapshot.channel == self.channel)
            .scalar()
        )
        if not latest:
            raise NoDataAvailable(f"No snapshot rows for channel {self.channel}")
        return latest

    def earliest_before(self, period_key: str) -> Optional[str]:
        return (
            self.db.query(func.min(WeeklySnapshot.year_week))
            .filter(
                WeeklySnapshot.channel == self.channel,
                WeeklySnapshot.year_week < period_key,
            )
            .scalar()
        )

    def has_period(self, period_key: str) -> bool:
        count = (
            self.db.query(func.count())
            .select_from(WeeklySnapshot)
            .filter(
                WeeklySnapshot.channel == self.channel,
                WeeklySnapshot.year_week == period_key,
            )
            .scalar()
        )
        return (count or 0) > 0

    def resolve(self, granularity: Optional[str] = None) -> ResolvedPeriods:
        """
        Resolve the comparison window.

        Raises:
            ValidationError: unknown granularity
            NoDataAvailable: snapshot table empty for the channel
            InsufficientHistory: no usable comparison period
            DataSourceError: query failure
        """
        granularity = granularity or WEEK
        if granularity not in GRANULARITIES:
            raise ValidationError(
                f"comparison_period must be one of {', '.join(GRANULARITIES)}",
                return_code="INVALID_COMPARISON_PERIOD",
            )

        try:
            current = self.current_period()

            if granularity == MONTH:
                # Earliest available period maximises the visible span
                comparison = self.earliest_before(current)
                if not comparison:
                    raise InsufficientHistory(
                        f"Only one period of data ({current})", current_period=current
                    )
                weeks_back = weeks_between(comparison, current)
                label = weeks_back_label(weeks_back)
            else:
                comparison = previous_week_key(current)
                if not self.has_period(comparison):
                    raise InsufficientHistory(
                        f"No snapshot rows for {comparison}", current_period=current
                    )
                weeks_back = 1
                label = "Previous Week"

        except SQLAlchemyError as e:
            raise DataSourceError(
                "resolve_periods",
                "Failed to resolve comparison period",
                error=str(e),
            ) from e

        log.info(f"Resolved {granularity} comparison: {current} vs {comparison} ({label})")
        return ResolvedPeriods(
            current=current,
            comparison=comparison,
            granularity=granularity,
            label=label,
            weeks_back=weeks_back,
        )
