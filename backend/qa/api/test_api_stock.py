"""
API tests - stock movement ledger and transactions report
"""
from datetime import date

import pytest


@pytest.fixture
def scenario(client, make_product):
    """Current stock 50 after +30 on 2024-01-05 and -10 on 2024-01-10: initial stock 30."""
    product = make_product(stock_quantity=30)
    client.post("/purchases", json={"product_id": product["id"], "purchase_date": "2024-01-05", "reference_invoice": "PB-1", "quantity": 30})
    client.post("/invoices", json={
        "invoice_number": "INV-7", "invoice_date": "2024-01-10", "customer_mode": "guest",
        "items": [{"product_id": product["id"], "quantity": 10, "tax_rate": "0.18", "unit_price": "100"}],
    })
    return product


class TestStockLedgerAPI:

    def test_full_history(self, client, scenario):
        r = client.get(f"/stock/{scenario['id']}/ledger", params={"start": "2024-01-01", "end": "2024-01-31"})
        assert r.status_code == 200
        body = r.json()
        assert body["current_stock"] == 50
        assert body["absolute_initial_stock"] == 30
        assert body["opening_stock"] == 30
        assert body["closing_stock"] == 50
        rows = [(row["date"], row["reference"], row["opening_stock"], row["purchase_qty"], row["total"], row["sale_qty"], row["closing_stock"]) for row in body["items"]]
        assert rows == [
            ("2024-01-05", "PB-1", 30, 30, 60, 0, 60),
            ("2024-01-10", "INV-7", 60, 0, 60, 10, 50),
        ]
        assert body["drift"] == {"negative_initial_stock": False, "negative_balance": False}
        assert body["messages"] == []

    def test_window_after_purchase(self, client, scenario):
        body = client.get(f"/stock/{scenario['id']}/ledger", params={"start": "2024-01-06", "end": "2024-01-31"}).json()
        assert body["opening_stock"] == 60
        assert [row["reference"] for row in body["items"]] == ["INV-7"]

    def test_per_event_rows_have_kind(self, client, scenario):
        body = client.get(f"/stock/{scenario['id']}/ledger", params={"start": "2024-01-01", "end": "2024-01-31", "granularity": "PER_EVENT"}).json()
        assert [row["kind"] for row in body["items"]] == ["PURCHASE", "SALE"]
        assert body["granularity"] == "PER_EVENT"

    def test_pagination(self, client, make_product):
        product = make_product()
        for day in range(1, 26):
            client.post("/purchases", json={"product_id": product["id"], "purchase_date": f"2024-03-{day:02d}", "quantity": 1})
        body = client.get(f"/stock/{product['id']}/ledger", params={"start": "2024-03-01", "end": "2024-03-31", "page": 2}).json()
        assert body["page_size"] == 20
        assert body["total_count"] == 25
        assert body["total_pages"] == 2
        assert len(body["items"]) == 5
        assert body["items"][-1]["closing_stock"] == 25

    def test_default_window_is_current_month(self, client, make_product):
        product = make_product(stock_quantity=5)
        body = client.get(f"/stock/{product['id']}/ledger").json()
        today = date.today()
        assert body["start"] == today.replace(day=1).isoformat()
        assert body["end"] == today.isoformat()
        assert body["items"] == []
        assert body["opening_stock"] == body["closing_stock"] == 5

    def test_drift_is_reported(self, client, scenario, db_session):
        from gstdesk.domain.models import Product
        product = db_session.get(Product, scenario["id"])
        product.stock_quantity = 5
        db_session.commit()

        body = client.get(f"/stock/{scenario['id']}/ledger", params={"start": "2024-01-01", "end": "2024-01-31"}).json()
        assert body["absolute_initial_stock"] == -15
        assert body["drift"]["negative_initial_stock"] is True
        assert body["closing_stock"] == 5
        assert body["messages"][0]["level"] == "warning"

    def test_reversed_window(self, client, scenario):
        r = client.get(f"/stock/{scenario['id']}/ledger", params={"start": "2024-02-01", "end": "2024-01-01"})
        assert r.status_code == 400

    def test_unknown_product(self, client):
        assert client.get("/stock/999/ledger").status_code == 404

    def test_pdf(self, client, scenario):
        r = client.get(f"/stock/{scenario['id']}/ledger.pdf", params={"start": "2024-01-01", "end": "2024-01-31"})
        assert r.status_code == 200
        assert r.headers["content-type"] == "application/pdf"
        assert r.content.startswith(b"%PDF")

    def test_xlsx(self, client, scenario):
        from io import BytesIO
        from openpyxl import load_workbook

        r = client.get(f"/stock/{scenario['id']}/ledger.xlsx", params={"start": "2024-01-01", "end": "2024-01-31"})
        assert r.status_code == 200
        assert r.headers["content-type"].startswith("application/vnd.openxmlformats")
        ws = load_workbook(BytesIO(r.content)).active
        rows = [row for row in ws.iter_rows(values_only=True)]
        header = rows.index(("Date", "Invoice", "Opening", "Purchase", "Total", "Sale", "Closing"))
        assert [row[1:] for row in rows[header + 1:header + 3]] == [
            ("PB-1", 30, 30, 60, 0, 60),
            ("INV-7", 60, 0, 60, 10, 50),
        ]
        assert rows[-1][0] == "TOTALS"
        assert rows[-1][3] == 30 and rows[-1][5] == 10 and rows[-1][6] == 50


class TestTransactionsReportAPI:

    def test_signed_quantities_in_order(self, client, scenario):
        r = client.get("/reports/transactions", params={"start": "2024-01-01", "end": "2024-01-31"})
        assert r.status_code == 200
        items = r.json()["items"]
        assert [(i["transaction_type"], i["quantity_change"], i["reference_number"]) for i in items] == [
            ("PURCHASE", 30, "PB-1"),
            ("SALE", -10, "INV-7"),
        ]
        assert items[0]["product_name"] == "Notebook"

    def test_csv(self, client, scenario):
        r = client.get("/reports/transactions", params={"start": "2024-01-01", "end": "2024-01-31", "format": "csv"})
        assert r.headers["content-type"].startswith("text/csv")
        lines = r.text.strip().split("\n")
        assert lines[0] == "transaction_date,transaction_type,product_name,quantity_change,reference_number"
        assert lines[2] == "2024-01-10,SALE,Notebook,-10,INV-7"
