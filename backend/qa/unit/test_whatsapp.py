from datetime import date
from decimal import Decimal
from types import SimpleNamespace

from gstdesk.application.gst import InvoiceTotals
from gstdesk.infrastructure.whatsapp import build_share_link, normalize_phone, invoice_share_text


def test_normalize_phone():
    assert normalize_phone("98765 43210") == "919876543210"
    assert normalize_phone("+91-98765-43210") == "919876543210"
    assert normalize_phone("09876543210") == "919876543210"
    assert normalize_phone(None) == ""


def test_link_with_and_without_phone():
    assert build_share_link("9876543210", "Hi there") == "https://wa.me/919876543210?text=Hi%20there"
    assert build_share_link(None, "a&b") == "https://wa.me/?text=a%26b"


def test_invoice_share_text():
    document = SimpleNamespace(
        company=SimpleNamespace(name="Sharma Stores"),
        invoice_number="INV-001",
        invoice_date=date(2024, 1, 10),
        customer_name="Guest",
        lines=[object(), object()],
        totals=InvoiceTotals(Decimal("200"), Decimal("36"), Decimal("18"), Decimal("18"), Decimal("236")),
    )
    text = invoice_share_text(document)
    assert "*Sharma Stores*" in text
    assert "Invoice: INV-001" in text
    assert "Date: 10/01/2024" in text
    assert "Grand Total: ₹236.00" in text
    assert "Items: 2" in text
