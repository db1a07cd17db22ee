"""
Products comparison API

Week-over-week or "month" (earliest available period) comparison of the
current product metrics, with coverage counters and aggregate stats.
"""
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from perfdash.api.products import ProductFilterRequest
from perfdash.models.base import get_db
from perfdash.services.comparison_service import ComparisonService
from perfdash.services.filters import ProductFilters

router = APIRouter(tags=["comparison"])


class ComparisonRequest(ProductFilterRequest):
    comparison_period: Optional[str] = None  # "week" (default) | "month"


@router.post("/get_products_comparison")
def get_products_comparison(
    body: Optional[ComparisonRequest] = None,
    db: Session = Depends(get_db),
):
    """
    Current products joined with their snapshot at the comparison period

    Products without a snapshot keep previous_week/changes as null, and
    overall_stats.previous only covers products that have one. With a
    single period of data the response is current-only.
    """
    body = body or ComparisonRequest()
    filters = ProductFilters.from_request(body)
    data = ComparisonService(db).get_comparison(filters, body.comparison_period)
    return {"return_code": "SUCCESS", **data}
