"""
Comparison Service

Builds the period-over-period comparison payload:

1. Resolve (current, comparison) periods from snapshot data.
2. Outer-join current products with their snapshot at the comparison period.
3. Per-product deltas where a snapshot exists.
4. Aggregate rollup: current over all products, previous over the matched
   subset only, plus aggregate deltas.
5. Coverage counters.

When no comparison period can be formed the response degrades to
current-only data; that is never reported as an error.
"""
from typing import Any, Dict, List, Optional

from sqlalchemy import and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, aliased

from perfdash.exceptions import DataSourceError, PeriodResolutionError
from perfdash.models.performance import ProductPerformance, WeeklySnapshot
from perfdash.services import metrics
from perfdash.services.filters import ProductFilters
from perfdash.services.period_resolver import WEEK, PeriodResolver, ResolvedPeriods
from perfdash.services.product_service import (
    ProductService,
    product_order,
    serialize_product,
    serialize_snapshot,
)
from perfdash.utils.logger import log

SNAPSHOT_KEY = "previous_week"


class ComparisonService:
    def __init__(self, db: Session, channel: Optional[str] = None):
        self.db = db
        self.products = ProductService(db, channel=channel)
        self.channel = self.products.channel
        self.resolver = PeriodResolver(db, channel=self.channel)

    def _fetch_joined(self, filters: ProductFilters, comparison_period: str) -> List[Dict[str, Any]]:
        """Current products with their snapshot at comparison_period (outer join)"""
        snap = aliased(WeeklySnapshot)
        try:
            query = (
                self.db.query(ProductPerformance, snap)
                .outerjoin(
                    snap,
                    and_(
                        snap.groupid == ProductPerformance.groupid,
                        snap.channel == ProductPerformance.channel,
                        snap.year_week == comparison_period,
                    ),
                )
                .filter(ProductPerformance.channel == self.channel)
            )
            query = filters.apply(query, self.products.classifier)
            rows = query.order_by(*product_order()).all()
        except SQLAlchemyError as e:
            raise DataSourceError(
                "get_products_comparison",
                "Failed to retrieve products comparison from database",
                error=str(e),
            ) from e

        products = []
        for current, previous in rows:
            product = serialize_product(current)
            product[SNAPSHOT_KEY] = serialize_snapshot(previous) if previous is not None else None
            product["changes"] = metrics.product_changes(product, product[SNAPSHOT_KEY])
            products.append(product)
        return products

    def _current_only(self, filters: ProductFilters, granularity: str, failure: PeriodResolutionError) -> Dict[str, Any]:
        log.info(f"No comparison available ({failure.reason}), returning current data only")

        products = self.products.fetch_products(filters)
        for product in products:
            product[SNAPSHOT_KEY] = None
            product["changes"] = None

        return {
            "products": products,
            "comparison_info": {
                "current_week": failure.current_period,
                "comparison_week": None,
                "comparison_period": granularity,
                "comparison_label": failure.label,
                **metrics.coverage(products, SNAPSHOT_KEY),
            },
            "overall_stats": metrics.rollup(products),
        }

    def get_comparison(self, filters: ProductFilters, granularity: Optional[str] = None) -> Dict[str, Any]:
        granularity = granularity or WEEK
        log.info(
            f"Products comparison for {self.channel}: period={granularity}, "
            f"filters={filters.describe() or 'none'}"
        )

        try:
            periods: ResolvedPeriods = self.resolver.resolve(granularity)
        except PeriodResolutionError as failure:
            return self._current_only(filters, granularity, failure)

        products = self._fetch_joined(filters, periods.comparison)
        info = metrics.coverage(products, SNAPSHOT_KEY)
        log.info(
            f"Comparison {periods.current} vs {periods.comparison}: "
            f"{info['products_with_comparison']}/{info['total_products']} products matched"
        )

        return {
            "products": products,
            "comparison_info": {
                "current_week": periods.current,
                "comparison_week": periods.comparison,
                "comparison_period": periods.granularity,
                "comparison_label": periods.label,
                **info,
            },
            "overall_stats": metrics.rollup(products, snapshot_key=SNAPSHOT_KEY),
        }
