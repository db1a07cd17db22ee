"""
Brand classification for the brand filter.

A fixed allow-list of named brands is shown individually; every other brand,
including null/empty, falls under a catch-all pseudo-brand (UKD).
Matching against the allow-list is case-insensitive everywhere.
"""
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import func, or_

from perfdash.config import get_settings

ALL_BRANDS = "All"


class BrandClassifier:
    def __init__(self, named_brands: Optional[Sequence[str]] = None, catch_all: Optional[str] = None):
        settings = get_settings()
        self.named_brands: List[str] = list(named_brands if named_brands is not None else settings.named_brands)
        self.catch_all = catch_all or settings.catch_all_brand
        self._by_lower = {b.lower(): b for b in self.named_brands}

    def is_named(self, brand: Optional[str]) -> bool:
        return bool(brand) and brand.lower() in self._by_lower

    def classify(self, brand: Optional[str]) -> str:
        """Canonical allow-listed name, or the catch-all label"""
        if not brand:
            return self.catch_all
        return self._by_lower.get(brand.lower(), self.catch_all)

    def filter_clause(self, column, brand_filter: Optional[str]):
        """
        SQLAlchemy predicate for a brand filter value, or None for no filter.

        - None / "" / "All": no predicate
        - catch-all: brand null, empty, or outside the allow-list
        - anything else: case-insensitive equality
        """
        if not brand_filter or brand_filter == ALL_BRANDS:
            return None

        if brand_filter == self.catch_all:
            lowered = [b.lower() for b in self.named_brands]
            return or_(
                column.is_(None),
                column == "",
                func.lower(column).notin_(lowered),
            )

        return func.lower(column) == brand_filter.lower()

    def build_options(self, brands: Iterable[Optional[str]]) -> List[str]:
        """
        Dropdown options: "All", each allow-listed brand present in the data
        (allow-list order), then the catch-all if any brand falls outside,
        null and empty brands included.
        """
        present = set()
        has_other = False
        for brand in brands:
            key = (brand or "").lower()
            if key in self._by_lower:
                present.add(key)
            else:
                # null/empty brands are reachable only through the catch-all
                has_other = True

        options = [ALL_BRANDS]
        options.extend(b for b in self.named_brands if b.lower() in present)
        if has_other:
            options.append(self.catch_all)
        return options
