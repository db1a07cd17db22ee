"""
Product performance models
Fixed schema contract for the tables this service reads. The tables are
populated by the upstream business system; nothing here writes to them.
"""
from sqlalchemy import Column, Integer, String, Float, Date, DateTime, Text, Index

from perfdash.models.base import Base


class ProductPerformance(Base):
    """Current-period metrics, one row per product group per channel"""
    __tablename__ = "groupid_performance"

    groupid = Column(String, primary_key=True)
    channel = Column(String, primary_key=True)

    # Performance
    annual_profit = Column(Float)
    sold_qty = Column(Integer)
    avg_profit_per_unit = Column(Float)
    avg_gross_margin = Column(Float)  # 0..1

    # Classification
    segment = Column(String)
    owner = Column(String, index=True)
    brand = Column(String, index=True)
    notes = Column(Text)

    # Review cycle
    review_date = Column(Date, nullable=True)
    next_review_date = Column(Date, nullable=True)

    # Pricing / stock
    recommended_price = Column(Float, nullable=True)
    stock = Column(Integer, nullable=True)


class WeeklySnapshot(Base):
    """
    Historical per-period snapshot of a product's metrics.
    Append-only; one row per product per channel per year_week (YYYY-W##).
    """
    __tablename__ = "groupid_performance_week"

    groupid = Column(String, primary_key=True)
    channel = Column(String, primary_key=True)
    year_week = Column(String, primary_key=True)

    annual_profit = Column(Float)
    sold_qty = Column(Integer)
    avg_profit_per_unit = Column(Float)

    __table_args__ = (
        Index("ix_perf_week_channel_week", "channel", "year_week"),
    )


class SkuSummary(Base):
    """SKU attributes, several SKUs per product group"""
    __tablename__ = "skusummary"

    code = Column(String, primary_key=True)
    groupid = Column(String, index=True, nullable=False)
    season = Column(String, nullable=True, index=True)
    title = Column(String, nullable=True)
    colour = Column(String, nullable=True)
    size = Column(String, nullable=True)
    current_price = Column(Float, nullable=True)


class Sale(Base):
    """Individual sales line items"""
    __tablename__ = "sales"

    id = Column(Integer, primary_key=True, autoincrement=True)
    groupid = Column(String, index=True, nullable=False)
    channel = Column(String, nullable=False)
    code = Column(String, nullable=True)
    solddate = Column(Date, index=True)
    soldprice = Column(Float, nullable=True)
    qty = Column(Integer, default=1)


class PriceChange(Base):
    """Price change events per SKU"""
    __tablename__ = "price_changes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    groupid = Column(String, index=True, nullable=False)
    channel = Column(String, nullable=False)
    code = Column(String, nullable=True)
    change_date = Column(DateTime, index=True)
    old_price = Column(Float, nullable=True)
    new_price = Column(Float, nullable=True)
    reason = Column(String, nullable=True)
