"""
Shared fixtures.

Tests run against a throwaway SQLite file; the environment is set before
perfdash is imported so the cached settings and the engine pick it up.
"""
import os
import tempfile
from datetime import date, datetime

_TMP_DIR = tempfile.mkdtemp(prefix="perfdash-tests-")
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_TMP_DIR, "perfdash.db")
os.environ["LOG_DIR"] = os.path.join(_TMP_DIR, "logs")
os.environ["ENVIRONMENT"] = "test"
os.environ["CHANNEL"] = "SHP"

import pytest
from fastapi.testclient import TestClient

import perfdash.models  # noqa: F401,E402
from perfdash.models.base import Base, SessionLocal, engine  # noqa: E402
from perfdash.models.performance import (  # noqa: E402
    PriceChange,
    ProductPerformance,
    Sale,
    SkuSummary,
    WeeklySnapshot,
)


@pytest.fixture
def db():
    """Fresh schema per test"""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    from perfdash.main import app
    return TestClient(app)


# ────────────────────────────────────────────
# SEED HELPERS
# ────────────────────────────────────────────


@pytest.fixture
def add_product(db):
    def _add(groupid, annual_profit=100.0, sold_qty=10, avg_profit_per_unit=10.0,
             avg_gross_margin=0.25, channel="SHP", **extra):
        row = ProductPerformance(
            groupid=groupid,
            channel=channel,
            annual_profit=annual_profit,
            sold_qty=sold_qty,
            avg_profit_per_unit=avg_profit_per_unit,
            avg_gross_margin=avg_gross_margin,
            segment=extra.pop("segment", "Winner"),
            owner=extra.pop("owner", "Andreas"),
            brand=extra.pop("brand", "Rieker"),
            notes=extra.pop("notes", ""),
            **extra,
        )
        db.add(row)
        db.commit()
        return row
    return _add


@pytest.fixture
def add_snapshot(db):
    def _add(groupid, year_week, annual_profit=90.0, sold_qty=9, avg_profit_per_unit=10.0, channel="SHP"):
        row = WeeklySnapshot(
            groupid=groupid,
            channel=channel,
            year_week=year_week,
            annual_profit=annual_profit,
            sold_qty=sold_qty,
            avg_profit_per_unit=avg_profit_per_unit,
        )
        db.add(row)
        db.commit()
        return row
    return _add


@pytest.fixture
def add_sku(db):
    def _add(code, groupid, season=None, current_price=None, **extra):
        row = SkuSummary(code=code, groupid=groupid, season=season, current_price=current_price, **extra)
        db.add(row)
        db.commit()
        return row
    return _add


@pytest.fixture
def add_price_change(db):
    def _add(groupid, change_date, old_price, new_price, reason=None, code=None, channel="SHP"):
        if isinstance(change_date, date) and not isinstance(change_date, datetime):
            change_date = datetime.combine(change_date, datetime.min.time())
        row = PriceChange(
            groupid=groupid, channel=channel, code=code, change_date=change_date,
            old_price=old_price, new_price=new_price, reason=reason,
        )
        db.add(row)
        db.commit()
        return row
    return _add


@pytest.fixture
def add_sale(db):
    def _add(groupid, solddate, soldprice, code=None, qty=1, channel="SHP"):
        row = Sale(groupid=groupid, channel=channel, code=code, solddate=solddate, soldprice=soldprice, qty=qty)
        db.add(row)
        db.commit()
        return row
    return _add
