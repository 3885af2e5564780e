"""Tests for product search and report endpoints."""
from datetime import datetime, timedelta


class TestProductEndpoints:
    """Tests for catalog lookups."""

    def test_search_by_name(self, client, sample_products):
        response = client.get("/api/v1/products/search", params={"q": "molida"})
        assert response.status_code == 200
        assert response.json()[0]["id"] == "p-weight"

    def test_search_hides_inactive(self, client, sample_products):
        ids = [p["id"] for p in client.get("/api/v1/products/search").json()]
        assert "p-old" not in ids
        assert len(ids) == 3

    def test_lookup_by_barcode(self, client, sample_products):
        response = client.get("/api/v1/products/barcode/7771234567890")
        assert response.json()["sku"] == "SKU-STOCK"

    def test_lookup_unknown_barcode(self, client, sample_products):
        assert client.get("/api/v1/products/barcode/000000").status_code == 404


class TestReportEndpoints:
    """Tests for sales reports."""

    def _sell(self, client, product_id, qty):
        cart_id = client.post("/api/v1/carts").json()["id"]
        client.post(f"/api/v1/carts/{cart_id}/lines", json={"product_id": product_id, "qty": qty})
        response = client.post(f"/api/v1/carts/{cart_id}/checkout", json={"payment": {"method": "CARD"}})
        assert response.status_code == 200

    def test_daily_summary(self, client, sample_products):
        self._sell(client, "p-stock", "2")
        self._sell(client, "p-weight", "1.5")

        today = datetime.utcnow().date().isoformat()
        rows = client.get("/api/v1/reports/daily", params={"start": today, "end": today}).json()
        assert rows[0]["date"] == today
        assert len(rows) == 1
        assert rows[0]["total_sales"] == 2
        assert rows[0]["total_amount"] == 105.0
        assert rows[0]["card_amount"] == 105.0

    def test_daily_summary_outside_range(self, client, sample_products):
        self._sell(client, "p-stock", "1")
        tomorrow = (datetime.utcnow() + timedelta(days=1)).date().isoformat()
        assert client.get("/api/v1/reports/daily", params={"start": tomorrow}).json() == []

    def test_product_summary(self, client, sample_products):
        self._sell(client, "p-stock", "2")
        self._sell(client, "p-stock", "1")
        rows = client.get("/api/v1/reports/products").json()
        assert rows == [{
            "product_id": "p-stock",
            "product_name": "Coca Cola 2L",
            "total_qty": 3.0,
            "total_amount": 45.0,
            "sales_count": 2,
        }]
