"""
WhatsApp click-to-chat links for sharing invoices.
"""
import re
from typing import Optional
from urllib.parse import quote

from ..application.gst import format_currency

WA_BASE = "https://wa.me/"


def normalize_phone(phone: Optional[str]) -> str:
    """Digits only; a bare 10-digit Indian mobile number gets the 91 country code."""
    digits = re.sub(r"\D", "", phone or "")
    if len(digits) == 11 and digits.startswith("0"):
        digits = digits[1:]
    if len(digits) == 10:
        digits = "91" + digits
    return digits


def build_share_link(phone: Optional[str], text: str) -> str:
    digits = normalize_phone(phone)
    return f"{WA_BASE}{digits}?text={quote(text, safe='')}"


def invoice_share_text(document) -> str:
    lines = []
    company = document.company
    if company and company.name:
        lines.append(f"*{company.name}*")
    lines += [
        f"Invoice: {document.invoice_number}",
        f"Date: {document.invoice_date.strftime('%d/%m/%Y')}",
        f"Customer: {document.customer_name}",
        f"Items: {len(document.lines)}",
        f"Grand Total: {format_currency(document.totals.grand_total)}",
        "",
        "Thank you for your business!",
    ]
    return "\n".join(lines)
