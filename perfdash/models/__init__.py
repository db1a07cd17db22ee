"""Database models for the product performance dashboard"""

from perfdash.models.performance import (
    ProductPerformance,
    WeeklySnapshot,
    SkuSummary,
    Sale,
    PriceChange
)
