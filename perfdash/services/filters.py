"""
Server-side product filters.

Every listing and comparison request goes through ProductFilters so the
aggregate rollup always matches the rows the client displays.
"""
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Query

from perfdash.models.performance import ProductPerformance, SkuSummary
from perfdash.services.brand_classifier import BrandClassifier


@dataclass
class ProductFilters:
    season_filter: Optional[str] = None
    season_filter_exclude: Optional[str] = None
    brand_filter: Optional[str] = None
    owner_filter: Optional[str] = None
    segment_filter: Optional[str] = None
    tasks_only: bool = False
    search: Optional[str] = None

    @classmethod
    def from_request(cls, body: Any) -> "ProductFilters":
        """Build from a request model, blank strings treated as absent"""
        def clean(value):
            if value is None:
                return None
            value = str(value).strip()
            return value or None

        return cls(
            season_filter=clean(getattr(body, "season_filter", None)),
            season_filter_exclude=clean(getattr(body, "season_filter_exclude", None)),
            brand_filter=clean(getattr(body, "brand_filter", None)),
            owner_filter=clean(getattr(body, "owner_filter", None)),
            segment_filter=clean(getattr(body, "segment_filter", None)),
            tasks_only=bool(getattr(body, "tasks_only", False)),
            search=clean(getattr(body, "search", None)),
        )

    def describe(self) -> Dict[str, Any]:
        """Active filters only, for logging"""
        return {k: v for k, v in self.__dict__.items() if v}

    def clauses(self, classifier: Optional[BrandClassifier] = None, today: Optional[date] = None) -> List:
        """WHERE clauses over ProductPerformance for the active filters"""
        gp = ProductPerformance
        clauses = []

        # Season lives on SKU rows; subqueries keep one row per product
        if self.season_filter:
            in_season = select(SkuSummary.groupid).where(SkuSummary.season == self.season_filter)
            clauses.append(gp.groupid.in_(in_season))
        elif self.season_filter_exclude:
            excluded = select(SkuSummary.groupid).where(SkuSummary.season == self.season_filter_exclude)
            clauses.append(gp.groupid.notin_(excluded))

        classifier = classifier or BrandClassifier()
        brand_clause = classifier.filter_clause(gp.brand, self.brand_filter)
        if brand_clause is not None:
            clauses.append(brand_clause)

        if self.owner_filter:
            clauses.append(gp.owner == self.owner_filter)

        if self.segment_filter:
            clauses.append(gp.segment == self.segment_filter)

        if self.tasks_only:
            # No review scheduled, or review due
            due_by = today or date.today()
            clauses.append(or_(gp.next_review_date.is_(None), gp.next_review_date <= due_by))

        if self.search:
            pattern = f"%{self.search.lower()}%"
            clauses.append(or_(
                func.lower(gp.groupid).like(pattern),
                func.lower(func.coalesce(gp.brand, "")).like(pattern),
                func.lower(func.coalesce(gp.owner, "")).like(pattern),
                func.lower(func.coalesce(gp.segment, "")).like(pattern),
                func.lower(func.coalesce(gp.notes, "")).like(pattern),
            ))

        return clauses

    def apply(self, query: Query, classifier: Optional[BrandClassifier] = None) -> Query:
        clauses = self.clauses(classifier)
        return query.filter(*clauses) if clauses else query
