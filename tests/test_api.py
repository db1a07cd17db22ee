"""
HTTP surface: envelopes, status codes and request handling.

Every response, success or failure, carries a return_code.
"""
from datetime import date, datetime, timedelta

from perfdash.config import get_settings
from perfdash.models.performance import ProductPerformance
from perfdash.models.base import engine


# ────────────────────────────────────────────
# Listings and options
# ────────────────────────────────────────────


def test_health(client):
    resp = client.post("/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["return_code"] == "SUCCESS"
    assert body["version"]


def test_get_products_without_body(client, add_product):
    add_product("G1", annual_profit=10.0)
    add_product("G2", annual_profit=30.0)

    resp = client.post("/get_products")
    assert resp.status_code == 200
    body = resp.json()
    assert body["return_code"] == "SUCCESS"
    assert body["total_count"] == 2
    assert [p["groupid"] for p in body["products"]] == ["G2", "G1"]
    assert body["overall_stats"]["current"]["total_annual_profit"] == 40.0
    assert body["overall_stats"]["previous"] is None


def test_get_products_with_filters(client, add_product):
    add_product("G1", owner="Andreas")
    add_product("G2", owner="Maria")

    body = client.post("/get_products", json={"owner_filter": "Maria", "brand_filter": "All"}).json()
    assert [p["groupid"] for p in body["products"]] == ["G2"]


def test_product_wire_shape(client, add_product):
    add_product("G1", notes=None, segment=None, recommended_price=None, stock=None,
                review_date=date(2025, 6, 1))

    product = client.post("/get_products").json()["products"][0]
    assert product["notes"] == ""
    assert product["segment"] == ""
    assert product["recommended_price"] is None
    assert product["stock"] is None
    assert product["review_date"] == "2025-06-01"
    assert product["next_review_date"] is None


def test_get_owners_and_segments(client, add_product):
    add_product("G1", owner="Maria", segment="Winner")
    add_product("G2", owner="Andreas", segment="Loser")
    add_product("G3", owner="Maria", segment="")
    add_product("G4", owner=None, segment=None)

    owners = client.post("/get_owners").json()
    assert owners["return_code"] == "SUCCESS"
    assert owners["owners"] == ["Andreas", "Maria"]
    assert owners["total_count"] == 2

    segments = client.post("/get_segments").json()
    assert segments["segments"] == ["Loser", "Winner"]


def test_get_brands(client, add_product):
    add_product("G1", brand="Skechers")
    add_product("G2", brand="Rieker")
    add_product("G3", brand=None)

    body = client.post("/get_brands").json()
    assert body["return_code"] == "SUCCESS"
    assert body["brands"] == ["All", "Rieker", "Skechers", "UKD"]
    assert body["total_count"] == 4


def test_get_products_comparison(client, add_product, add_snapshot):
    add_product("G1", annual_profit=120.0)
    add_snapshot("G1", "2025-W26", annual_profit=100.0)
    add_snapshot("G1", "2025-W27", annual_profit=120.0)

    body = client.post("/get_products_comparison", json={"comparison_period": "week"}).json()
    assert body["return_code"] == "SUCCESS"
    assert body["comparison_info"]["comparison_week"] == "2025-W26"
    product = body["products"][0]
    assert product["previous_week"]["annual_profit"] == 100.0
    assert product["changes"]["annual_profit_change_percent"] == 20.0


def test_get_products_comparison_single_period_is_success(client, add_product, add_snapshot):
    add_product("G1")
    add_snapshot("G1", "2025-W27")

    resp = client.post("/get_products_comparison", json={})
    assert resp.status_code == 200
    assert resp.json()["comparison_info"]["comparison_label"] == "No comparison data available"


def test_invalid_comparison_period(client):
    resp = client.post("/get_products_comparison", json={"comparison_period": "year"})
    assert resp.status_code == 400
    assert resp.json()["return_code"] == "INVALID_COMPARISON_PERIOD"


# ────────────────────────────────────────────
# Product details
# ────────────────────────────────────────────


class TestProductDetails:
    def test_missing_groupid(self, client):
        resp = client.post("/get_product_details", json={})
        assert resp.status_code == 400
        assert resp.json()["return_code"] == "MISSING_GROUPID"

    def test_unknown_groupid(self, client, db):
        resp = client.post("/get_product_details", json={"groupid": "NOPE"})
        assert resp.status_code == 404
        body = resp.json()
        assert body["return_code"] == "PRODUCT_NOT_FOUND"
        assert "NOPE" in body["message"]

    def test_invalid_pagination(self, client, add_product):
        add_product("G1")
        for params in ({"price_limit": 0}, {"price_limit": 1000}, {"price_offset": -1}, {"sales_limit": -5}):
            resp = client.post("/get_product_details", json={"groupid": "G1", **params})
            assert resp.status_code == 400, params
            assert resp.json()["return_code"] == "INVALID_PAGINATION"

    def test_details_payload(self, client, add_product, add_snapshot, add_sku, add_sale):
        add_product("G1", annual_profit=500.0)
        add_sku("G1-38", "G1", season="AW25", current_price=79.95, colour="Black", size="38")
        add_sku("G1-39", "G1", season="AW25", current_price=89.95, colour="Black", size="39")
        for week in range(1, 15):
            add_snapshot("G1", f"2025-W{week:02d}")
        add_sale("G1", date(2025, 6, 1), 79.95, code="G1-38")
        add_sale("G1", date(2025, 6, 3), 89.95, code="G1-39", qty=2)

        product = client.post("/get_product_details", json={"groupid": "G1"}).json()["product"]

        assert product["groupid"] == "G1"
        assert product["current_price"] == 89.95
        assert product["sku_details"]["season"] == "AW25"
        assert [s["code"] for s in product["sku_details"]["skus"]] == ["G1-38", "G1-39"]

        weeks = [w["year_week"] for w in product["weekly_performance"]]
        assert len(weeks) == 12
        assert weeks[0] == "2025-W14"

        assert product["sales_data"][0] == {"date": "2025-06-03", "code": "G1-39", "soldprice": 89.95, "qty": 2}
        assert product["price_history"] == []
        assert product["price_history_pagination"]["has_more"] is False

    def test_no_skus(self, client, add_product):
        add_product("G1")
        product = client.post("/get_product_details", json={"groupid": "G1"}).json()["product"]
        assert product["sku_details"] is None
        assert product["current_price"] is None

    def test_price_history_pages(self, client, add_product, add_price_change):
        add_product("G1")
        start = datetime(2025, 1, 1)
        for i in range(15):
            add_price_change("G1", start + timedelta(days=i), 100.0, 90.0 + i, reason="markdown")

        first = client.post(
            "/get_product_details", json={"groupid": "G1", "price_limit": 10}
        ).json()["product"]
        assert len(first["price_history"]) == 10
        assert first["price_history_pagination"] == {
            "total_count": 15, "limit": 10, "offset": 0, "has_more": True,
        }
        newest = first["price_history"][0]
        assert newest["date"].startswith("2025-01-15")
        assert newest["new_price"] == 104.0
        assert newest["change_amount"] == 4.0
        assert newest["change_percent"] == 4.0

        second = client.post(
            "/get_product_details", json={"groupid": "G1", "price_limit": 10, "price_offset": 10}
        ).json()["product"]
        assert len(second["price_history"]) == 5
        assert second["price_history_pagination"]["has_more"] is False
        assert second["price_history"][-1]["date"].startswith("2025-01-01")


# ────────────────────────────────────────────
# Error envelopes
# ────────────────────────────────────────────


def test_unknown_route(client):
    resp = client.post("/does_not_exist")
    assert resp.status_code == 404
    assert resp.json() == {"return_code": "NOT_FOUND", "message": "Route not found"}


def test_get_method_not_allowed(client):
    resp = client.get("/get_products")
    assert resp.status_code == 405
    assert resp.json()["return_code"] == "METHOD_NOT_ALLOWED"


def test_malformed_body(client):
    resp = client.post("/get_product_details", json={"groupid": "G1", "price_limit": "ten"})
    assert resp.status_code == 400
    assert resp.json()["return_code"] == "VALIDATION_ERROR"


def test_database_error_hides_detail_outside_development(client, db):
    ProductPerformance.__table__.drop(bind=engine)

    resp = client.post("/get_products")
    assert resp.status_code == 500
    body = resp.json()
    assert body["return_code"] == "DATABASE_ERROR"
    assert "error" not in body


def test_database_error_detail_in_development(client, db, monkeypatch):
    monkeypatch.setattr(get_settings(), "environment", "development")
    ProductPerformance.__table__.drop(bind=engine)

    body = client.post("/get_owners").json()
    assert body["return_code"] == "DATABASE_ERROR"
    assert "error" in body
