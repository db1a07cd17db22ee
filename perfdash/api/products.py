"""
Product API Routes

POST-only endpoints backing the products dashboard:
- current-period product listing (with server-side filters and rollup)
- filter option lists (owners, brands, segments)
- single-product details
"""
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from perfdash.models.base import get_db
from perfdash.services.filters import ProductFilters
from perfdash.services.product_service import ProductService
from perfdash.utils.logger import log

router = APIRouter(tags=["products"])


# ── Schemas ──────────────────────────────────────────────

class ProductFilterRequest(BaseModel):
    season_filter: Optional[str] = None
    season_filter_exclude: Optional[str] = None
    brand_filter: Optional[str] = None
    owner_filter: Optional[str] = None
    segment_filter: Optional[str] = None
    tasks_only: bool = False
    search: Optional[str] = None


class ProductDetailsRequest(BaseModel):
    groupid: Optional[str] = None
    price_limit: Optional[int] = None
    price_offset: Optional[int] = None
    sales_limit: Optional[int] = None


# ── Routes ───────────────────────────────────────────────

@router.post("/get_products")
def get_products(
    body: Optional[ProductFilterRequest] = None,
    db: Session = Depends(get_db),
):
    """Current-period products, highest annual profit first."""
    filters = ProductFilters.from_request(body or ProductFilterRequest())
    data = ProductService(db).list_products(filters)
    return {"return_code": "SUCCESS", **data}


@router.post("/get_owners")
def get_owners(db: Session = Depends(get_db)):
    """Distinct product owners for the owner dropdown."""
    owners = ProductService(db).list_owners()
    log.info(f"Retrieved {len(owners)} unique owners")
    return {"return_code": "SUCCESS", "owners": owners, "total_count": len(owners)}


@router.post("/get_brands")
def get_brands(db: Session = Depends(get_db)):
    """Brand dropdown options: All, named brands present, then UKD."""
    brands = ProductService(db).list_brand_options()
    return {"return_code": "SUCCESS", "brands": brands, "total_count": len(brands)}


@router.post("/get_segments")
def get_segments(db: Session = Depends(get_db)):
    """Distinct product segments for the segment dropdown."""
    segments = ProductService(db).list_segments()
    return {"return_code": "SUCCESS", "segments": segments, "total_count": len(segments)}


@router.post("/get_product_details")
def get_product_details(
    body: Optional[ProductDetailsRequest] = None,
    db: Session = Depends(get_db),
):
    """
    Deep dive on one product group

    Includes the weekly history, a page of price changes
    (price_limit / price_offset, with has_more) and recent sales.
    """
    body = body or ProductDetailsRequest()
    product = ProductService(db).get_product_details(
        body.groupid,
        price_limit=body.price_limit,
        price_offset=body.price_offset,
        sales_limit=body.sales_limit,
    )
    return {"return_code": "SUCCESS", "product": product}
