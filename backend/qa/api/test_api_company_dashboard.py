"""
API tests - company profile and dashboard
"""
from datetime import date
from decimal import Decimal


class TestCompanyAPI:

    def test_unconfigured_is_null(self, client):
        r = client.get("/company")
        assert r.status_code == 200
        assert r.json() is None

    def test_upsert_single_row(self, client):
        r = client.put("/company", json={"name": "Sharma Stores", "gstin": "27abcde1234f1z5", "ifsc_code": "sbin0001234"})
        assert r.status_code == 200
        assert r.json()["id"] == 1
        assert r.json()["gstin"] == "27ABCDE1234F1Z5"
        assert r.json()["ifsc_code"] == "SBIN0001234"

        r = client.put("/company", json={"name": "Sharma & Sons", "slogan": "Since 1982"})
        assert r.json()["id"] == 1
        assert client.get("/company").json()["name"] == "Sharma & Sons"

    def test_name_required(self, client):
        assert client.put("/company", json={"name": " "}).status_code == 400


class TestDashboardAPI:

    def test_summary(self, client, make_product, make_customer):
        this_month = date.today().replace(day=1).isoformat()
        product = make_product(stock_quantity=3)
        make_product(name="Plenty", stock_quantity=100)
        make_customer()
        client.post("/purchases", json={"product_id": product["id"], "purchase_date": this_month, "quantity": 4})
        client.post("/invoices", json={
            "invoice_number": "INV-1", "invoice_date": this_month, "customer_mode": "guest",
            "items": [{"product_id": product["id"], "quantity": 2, "tax_rate": "0.18", "inclusive_rate": "118"}],
        })

        r = client.get("/dashboard")
        assert r.status_code == 200
        body = r.json()
        assert body["product_count"] == 2
        assert body["customer_count"] == 1
        assert body["invoice_count"] == 1
        assert Decimal(str(body["total_sales"])) == Decimal("236")
        assert body["low_stock_count"] == 1
        assert len(body["monthly"]) == 6
        latest = body["monthly"][-1]
        assert latest["month"] == date.today().strftime("%Y-%m")
        assert latest["purchased_quantity"] == 4
        assert Decimal(str(latest["sales_amount"])) == Decimal("236")
