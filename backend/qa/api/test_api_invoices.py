"""
API tests - invoices: GST totals, customer modes, stock effects and documents
"""
from decimal import Decimal

import pytest


def dec(value) -> Decimal:
    return Decimal(str(value))


def stock_of(client, product_id):
    return client.get(f"/products/{product_id}").json()["stock_quantity"]


@pytest.fixture
def product(make_product):
    return make_product(stock_quantity=50, unit_price="100", tax_rate="0.18")


def invoice_body(product_id, number="INV-001", quantity=2, **extra):
    body = {
        "invoice_number": number,
        "invoice_date": "2024-01-10",
        "customer_mode": "guest",
        "items": [{"product_id": product_id, "quantity": quantity, "tax_rate": "0.18", "inclusive_rate": "118"}],
    }
    body.update(extra)
    return body


class TestInvoiceCreateAPI:

    def test_inclusive_rate_line_totals(self, client, product):
        r = client.post("/invoices", json=invoice_body(product["id"]))
        assert r.status_code == 201, r.text
        body = r.json()
        line = body["items"][0]
        assert dec(line["unit_price"]) == Decimal("100")
        assert dec(line["taxable_amount"]) == Decimal("200")
        assert dec(line["cgst"]) == Decimal("18")
        assert dec(line["sgst"]) == Decimal("18")
        assert dec(line["line_total"]) == Decimal("236")
        assert dec(body["grand_total"]) == Decimal("236")
        assert body["grand_total_display"] == "₹236.00"
        assert line["hsn_code"] == "4820"
        assert line["unit"] == "PCS"

    def test_sale_debits_stock(self, client, product):
        client.post("/invoices", json=invoice_body(product["id"], quantity=7))
        assert stock_of(client, product["id"]) == 43

    def test_guest_customer(self, client, product):
        body = client.post("/invoices", json=invoice_body(product["id"])).json()
        assert body["customer_name"] == "Guest"
        listed = client.get("/invoices").json()["items"][0]
        assert listed["customer_id"] is None
        assert dec(listed["total_amount"]) == Decimal("236.00")

    def test_new_customer_created_inline(self, client, product):
        r = client.post("/invoices", json=invoice_body(
            product["id"], customer_mode="new",
            new_customer={"name": "Meera Textiles", "phone": "9123456780"},
        ))
        assert r.status_code == 201, r.text
        assert r.json()["customer_name"] == "Meera Textiles"
        customers = client.get("/customers", params={"q": "meera"}).json()["items"]
        assert len(customers) == 1

    def test_existing_customer_requires_id(self, client, product):
        r = client.post("/invoices", json=invoice_body(product["id"], customer_mode="existing"))
        assert r.status_code == 400
        assert stock_of(client, product["id"]) == 50

    def test_existing_customer(self, client, product, make_customer):
        customer = make_customer()
        r = client.post("/invoices", json=invoice_body(product["id"], customer_mode="existing", customer_id=customer["id"]))
        assert r.json()["customer_name"] == customer["name"]

    def test_duplicate_number(self, client, product):
        client.post("/invoices", json=invoice_body(product["id"]))
        r = client.post("/invoices", json=invoice_body(product["id"]))
        assert r.status_code == 409
        assert stock_of(client, product["id"]) == 48

    def test_duplicate_number_from_concurrent_save(self, client, product, monkeypatch):
        from gstdesk.application.services_invoices import InvoiceService

        client.post("/invoices", json=invoice_body(product["id"]))
        # Both requests passed the number check before either committed
        monkeypatch.setattr(InvoiceService, "_check_number", lambda self, number, exclude_id=None: number.strip())
        r = client.post("/invoices", json=invoice_body(product["id"]))
        assert r.status_code == 409
        assert r.json()["detail"] == "Invoice number INV-001 already exists"
        assert stock_of(client, product["id"]) == 48

    def test_negative_tax_rate_rejected(self, client, product):
        body = invoice_body(product["id"])
        body["items"] = [{"product_id": product["id"], "quantity": 1, "unit_price": "100", "tax_rate": "-0.5"}]
        assert client.post("/invoices", json=body).status_code == 422
        assert client.get("/invoices").json()["total_count"] == 0
        assert stock_of(client, product["id"]) == 50

    def test_negative_price_rejected(self, client, product):
        body = invoice_body(product["id"])
        body["items"] = [{"product_id": product["id"], "quantity": 1, "inclusive_rate": "-118", "tax_rate": "0.18"}]
        assert client.post("/invoices", json=body).status_code == 422

    def test_service_rejects_negative_tax_rate(self, product, db_session):
        from datetime import date
        from gstdesk.application.errors import ValidationError
        from gstdesk.application.services_invoices import InvoiceService
        from gstdesk.infrastructure.unit_of_work import UnitOfWork

        service = InvoiceService(UnitOfWork(db_session))
        with pytest.raises(ValidationError, match="tax_rate cannot be negative"):
            service.create("INV-NEG", date(2024, 1, 10), [{"product_id": product["id"], "quantity": 1, "unit_price": "100", "tax_rate": "-0.5"}], customer_mode="guest")

    def test_needs_a_line(self, client):
        r = client.post("/invoices", json={"invoice_number": "X", "invoice_date": "2024-01-10", "customer_mode": "guest", "items": []})
        assert r.status_code == 400

    def test_product_price_used_when_no_rate_given(self, client, product):
        body = invoice_body(product["id"])
        body["items"] = [{"product_id": product["id"], "quantity": 3}]
        r = client.post("/invoices", json=body)
        assert dec(r.json()["subtotal"]) == Decimal("300")
        assert dec(r.json()["tax"]) == Decimal("54")

    def test_overselling_warns(self, client, make_product):
        scarce = make_product(name="Scarce", stock_quantity=1)
        r = client.post("/invoices", json=invoice_body(scarce["id"], quantity=3))
        assert r.status_code == 201
        warnings = [m for m in r.json()["messages"] if m["level"] == "warning"]
        assert warnings and "negative" in warnings[0]["message"]
        assert stock_of(client, scarce["id"]) == -2


class TestInvoiceChangeAPI:

    def test_update_rebalances_stock(self, client, product):
        invoice = client.post("/invoices", json=invoice_body(product["id"], quantity=5)).json()
        assert stock_of(client, product["id"]) == 45
        r = client.put(f"/invoices/{invoice['id']}", json=invoice_body(product["id"], quantity=2))
        assert r.status_code == 200, r.text
        assert len(r.json()["items"]) == 1
        assert stock_of(client, product["id"]) == 48

    def test_update_to_other_product(self, client, product, make_product):
        other = make_product(name="Other", stock_quantity=10)
        invoice = client.post("/invoices", json=invoice_body(product["id"], quantity=5)).json()
        client.put(f"/invoices/{invoice['id']}", json=invoice_body(other["id"], quantity=4))
        assert stock_of(client, product["id"]) == 50
        assert stock_of(client, other["id"]) == 6

    def test_delete_restores_stock(self, client, product):
        invoice = client.post("/invoices", json=invoice_body(product["id"], quantity=9)).json()
        r = client.delete(f"/invoices/{invoice['id']}")
        assert r.status_code == 200
        assert stock_of(client, product["id"]) == 50
        assert client.get(f"/invoices/{invoice['id']}").status_code == 404

    def test_search(self, client, product, make_customer):
        customer = make_customer("Kiran Agencies")
        client.post("/invoices", json=invoice_body(product["id"], number="INV-100"))
        client.post("/invoices", json=invoice_body(product["id"], number="INV-200", customer_mode="existing", customer_id=customer["id"]))
        assert [i["invoice_number"] for i in client.get("/invoices", params={"q": "kiran"}).json()["items"]] == ["INV-200"]
        assert [i["invoice_number"] for i in client.get("/invoices", params={"q": "100"}).json()["items"]] == ["INV-100"]


class TestInvoiceDocumentsAPI:

    def test_preview_has_no_stock_effect(self, client, product):
        r = client.post("/invoices/preview", json={"items": [
            {"quantity": 2, "tax_rate": "0.18", "inclusive_rate": "118"},
            {"quantity": 1, "tax_rate": "0.05", "unit_price": "200"},
        ]})
        assert r.status_code == 200
        body = r.json()
        assert dec(body["subtotal"]) == Decimal("400")
        assert dec(body["tax"]) == Decimal("46")
        assert dec(body["grand_total"]) == Decimal("446")
        assert stock_of(client, product["id"]) == 50

    def test_preview_rejects_two_prices(self, client):
        r = client.post("/invoices/preview", json={"items": [{"quantity": 1, "tax_rate": "0.18", "unit_price": "1", "inclusive_rate": "1.18"}]})
        assert r.status_code == 400

    def test_preview_rejects_negative_tax_rate(self, client):
        r = client.post("/invoices/preview", json={"items": [{"quantity": 1, "tax_rate": "-0.5", "unit_price": "100"}]})
        assert r.status_code == 422

    def test_pdf(self, client, product):
        client.put("/company", json={"name": "Sharma Stores", "gstin": "27abcde1234f1z5", "bank_name": "SBI", "ifsc_code": "sbin0001234"})
        invoice = client.post("/invoices", json=invoice_body(product["id"])).json()
        r = client.get(f"/invoices/{invoice['id']}/pdf")
        assert r.status_code == 200
        assert r.headers["content-type"] == "application/pdf"
        assert r.content.startswith(b"%PDF")
        assert "invoice_INV-001.pdf" in r.headers["content-disposition"]

    def test_whatsapp_link(self, client, product, make_customer):
        customer = make_customer(phone="98765 43210")
        invoice = client.post("/invoices", json=invoice_body(product["id"], customer_mode="existing", customer_id=customer["id"])).json()
        r = client.get(f"/invoices/{invoice['id']}/whatsapp")
        assert r.status_code == 200
        assert r.json()["url"].startswith("https://wa.me/919876543210?text=")
        assert "INV-001" in r.json()["text"]

    def test_whatsapp_guest_has_no_number(self, client, product):
        invoice = client.post("/invoices", json=invoice_body(product["id"])).json()
        assert client.get(f"/invoices/{invoice['id']}/whatsapp").json()["url"].startswith("https://wa.me/?text=")
