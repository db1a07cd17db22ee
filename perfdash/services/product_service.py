"""
Product Service

Current-period listings, filter option lists and the single-product
deep-dive (weekly history, paginated price changes, recent sales).
"""
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from perfdash.config import get_settings
from perfdash.exceptions import DataSourceError, NotFoundError, ValidationError
from perfdash.models.performance import (
    PriceChange,
    ProductPerformance,
    Sale,
    SkuSummary,
    WeeklySnapshot,
)
from perfdash.services import metrics
from perfdash.services.brand_classifier import BrandClassifier
from perfdash.services.filters import ProductFilters
from perfdash.utils.helpers import iso_date, to_float, to_int
from perfdash.utils.logger import log


def serialize_product(row: ProductPerformance) -> Dict[str, Any]:
    """Wire shape of a current-period product. Missing numerics read as 0."""
    return {
        "groupid": row.groupid,
        "channel": row.channel,
        "annual_profit": to_float(row.annual_profit),
        "sold_qty": to_int(row.sold_qty),
        "avg_profit_per_unit": to_float(row.avg_profit_per_unit),
        "segment": row.segment or "",
        "notes": row.notes or "",
        "owner": row.owner or "",
        "brand": row.brand or "",
        "next_review_date": iso_date(row.next_review_date),
        "review_date": iso_date(row.review_date),
        "avg_gross_margin": to_float(row.avg_gross_margin),
        "recommended_price": to_float(row.recommended_price, None),
        "stock": to_int(row.stock, None),
    }


def serialize_snapshot(row: WeeklySnapshot) -> Dict[str, Any]:
    return {
        "year_week": row.year_week,
        "annual_profit": to_float(row.annual_profit),
        "sold_qty": to_int(row.sold_qty),
        "avg_profit_per_unit": to_float(row.avg_profit_per_unit),
    }


def product_order():
    """Highest annual profit first, nulls last, groupid as tiebreaker"""
    return (
        ProductPerformance.annual_profit.desc().nulls_last(),
        ProductPerformance.groupid.asc(),
    )


class ProductService:
    def __init__(self, db: Session, channel: Optional[str] = None):
        self.db = db
        self.settings = get_settings()
        self.channel = channel or self.settings.channel
        self.classifier = BrandClassifier()

    def _products(self):
        return self.db.query(ProductPerformance).filter(ProductPerformance.channel == self.channel)

    # ── listings ─────────────────────────────────────

    def fetch_products(self, filters: ProductFilters) -> List[Dict[str, Any]]:
        """Filtered current-period products, serialized and ordered"""
        try:
            query = filters.apply(self._products(), self.classifier)
            rows = query.order_by(*product_order()).all()
        except SQLAlchemyError as e:
            raise DataSourceError(
                "fetch_products", "Failed to retrieve products from database", error=str(e)
            ) from e
        return [serialize_product(r) for r in rows]

    def list_products(self, filters: ProductFilters) -> Dict[str, Any]:
        log.info(f"Listing products for {self.channel} with filters {filters.describe() or 'none'}")
        products = self.fetch_products(filters)
        log.info(f"Retrieved {len(products)} products")
        return {
            "products": products,
            "total_count": len(products),
            "overall_stats": metrics.rollup(products),
        }

    def _distinct_values(self, column, what: str) -> List[str]:
        try:
            rows = (
                self.db.query(column)
                .filter(
                    ProductPerformance.channel == self.channel,
                    column.isnot(None),
                    column != "",
                )
                .distinct()
                .order_by(column.asc())
                .all()
            )
        except SQLAlchemyError as e:
            raise DataSourceError(f"get_{what}", f"Failed to retrieve {what} from database", error=str(e)) from e
        return [r[0] for r in rows]

    def list_owners(self) -> List[str]:
        return self._distinct_values(ProductPerformance.owner, "owners")

    def list_segments(self) -> List[str]:
        return self._distinct_values(ProductPerformance.segment, "segments")

    def list_brand_options(self) -> List[str]:
        try:
            rows = (
                self.db.query(ProductPerformance.brand)
                .filter(ProductPerformance.channel == self.channel)
                .distinct()
                .all()
            )
        except SQLAlchemyError as e:
            raise DataSourceError("get_brands", "Failed to retrieve brands from database", error=str(e)) from e

        options = self.classifier.build_options(r[0] for r in rows)
        log.info(f"Returning {len(options)} brand options: {options}")
        return options

    # ── product details ──────────────────────────────

    def _validate_pagination(self, price_limit: Optional[int], price_offset: Optional[int], sales_limit: Optional[int]):
        price_limit = self.settings.default_price_page_size if price_limit is None else price_limit
        price_offset = 0 if price_offset is None else price_offset
        sales_limit = self.settings.default_sales_limit if sales_limit is None else sales_limit

        if not 1 <= price_limit <= self.settings.max_price_page_size:
            raise ValidationError(
                f"price_limit must be between 1 and {self.settings.max_price_page_size}",
                return_code="INVALID_PAGINATION",
            )
        if price_offset < 0:
            raise ValidationError("price_offset must not be negative", return_code="INVALID_PAGINATION")
        if sales_limit < 0:
            raise ValidationError("sales_limit must not be negative", return_code="INVALID_PAGINATION")
        return price_limit, price_offset, sales_limit

    def get_price_history(self, groupid: str, limit: int, offset: int) -> Dict[str, Any]:
        """One page of price changes, newest first, plus pagination info"""
        base = self.db.query(PriceChange).filter(
            PriceChange.groupid == groupid,
            PriceChange.channel == self.channel,
        )
        total_count = base.with_entities(func.count(PriceChange.id)).scalar() or 0
        rows = (
            base.order_by(PriceChange.change_date.desc(), PriceChange.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

        history = []
        for r in rows:
            old_price = to_float(r.old_price, None)
            new_price = to_float(r.new_price, None)
            delta = metrics.compute_delta(new_price, old_price)
            history.append({
                "date": iso_date(r.change_date),
                "code": r.code,
                "old_price": old_price,
                "new_price": new_price,
                "change_amount": delta.change if delta else None,
                "change_percent": delta.change_percent if delta else None,
                "reason": r.reason,
            })

        return {
            "price_history": history,
            "price_history_pagination": {
                "total_count": total_count,
                "limit": limit,
                "offset": offset,
                "has_more": offset + len(history) < total_count,
            },
        }

    def get_product_details(
        self,
        groupid: Optional[str],
        price_limit: Optional[int] = None,
        price_offset: Optional[int] = None,
        sales_limit: Optional[int] = None,
    ) -> Dict[str, Any]:
        if not groupid:
            raise ValidationError("groupid parameter is required", return_code="MISSING_GROUPID")
        price_limit, price_offset, sales_limit = self._validate_pagination(price_limit, price_offset, sales_limit)

        log.info(f"Fetching details for groupid: {groupid}")
        try:
            row = self._products().filter(ProductPerformance.groupid == groupid).first()
            if row is None:
                raise NotFoundError(
                    f"Product with groupid {groupid} not found",
                    return_code="PRODUCT_NOT_FOUND",
                )

            skus = (
                self.db.query(SkuSummary)
                .filter(SkuSummary.groupid == groupid)
                .order_by(SkuSummary.code.asc())
                .all()
            )

            weekly = (
                self.db.query(WeeklySnapshot)
                .filter(
                    WeeklySnapshot.groupid == groupid,
                    WeeklySnapshot.channel == self.channel,
                )
                .order_by(WeeklySnapshot.year_week.desc())
                .limit(self.settings.weekly_history_limit)
                .all()
            )

            prices = self.get_price_history(groupid, price_limit, price_offset)

            sales = (
                self.db.query(Sale)
                .filter(Sale.groupid == groupid, Sale.channel == self.channel)
                .order_by(Sale.solddate.desc(), Sale.id.desc())
                .limit(sales_limit)
                .all()
            )
        except SQLAlchemyError as e:
            raise DataSourceError(
                "get_product_details", "Failed to retrieve product details", error=str(e)
            ) from e

        product = serialize_product(row)

        sku_prices = [s.current_price for s in skus if s.current_price is not None]
        product["current_price"] = to_float(max(sku_prices), None) if sku_prices else None

        if skus:
            seasons = [s.season for s in skus if s.season]
            product["sku_details"] = {
                "season": seasons[0] if seasons else "",
                "skus": [
                    {
                        "code": s.code,
                        "title": s.title,
                        "colour": s.colour,
                        "size": s.size,
                        "season": s.season,
                        "current_price": to_float(s.current_price, None),
                    }
                    for s in skus
                ],
            }
        else:
            product["sku_details"] = None

        product["weekly_performance"] = [serialize_snapshot(w) for w in weekly]
        product.update(prices)
        product["sales_data"] = [
            {
                "date": iso_date(s.solddate),
                "code": s.code,
                "soldprice": to_float(s.soldprice, None),
                "qty": to_int(s.qty),
            }
            for s in sales
        ]

        log.info(
            f"Details for {groupid}: {len(weekly)} weeks, "
            f"{len(prices['price_history'])} price changes, {len(sales)} sales"
        )
        return product
