"""
GST line tax calculator.

Converts between tax-inclusive and pre-tax unit prices and splits the tax of
each invoice line evenly into CGST and SGST (intra-state supply).

All arithmetic is Decimal and unrounded; rounding happens only when a value
is formatted for display or stored as an invoice total.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

ZERO = Decimal("0")
ONE = Decimal("1")
TWO = Decimal("2")
CENT = Decimal("0.01")


def _d(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if value is None:
        return ZERO
    return Decimal(str(value))


@dataclass(frozen=True)
class LineTax:
    unit_price: Decimal
    taxable_amount: Decimal
    tax_amount: Decimal
    cgst: Decimal
    sgst: Decimal
    line_total: Decimal


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: Decimal
    tax: Decimal
    cgst: Decimal
    sgst: Decimal
    grand_total: Decimal


def unit_price_from_inclusive(inclusive_rate, tax_rate) -> Decimal:
    """Pre-tax price from a tax-inclusive price. 0 when 1 + tax_rate <= 0."""
    divisor = ONE + _d(tax_rate)
    if divisor <= ZERO:
        return ZERO
    return _d(inclusive_rate) / divisor


def inclusive_rate(unit_price, tax_rate) -> Decimal:
    return _d(unit_price) * (ONE + _d(tax_rate))


def compute_line(quantity, tax_rate, unit_price=None, inclusive_rate=None) -> LineTax:
    """
    Tax breakdown of one invoice line.

    Exactly one of ``unit_price`` (pre-tax) or ``inclusive_rate`` (tax
    included) must be given.
    """
    if (unit_price is None) == (inclusive_rate is None):
        raise ValueError("Provide exactly one of unit_price or inclusive_rate")

    tax = _d(tax_rate)
    if unit_price is None:
        price = unit_price_from_inclusive(inclusive_rate, tax)
    else:
        price = _d(unit_price)

    taxable = _d(quantity) * price
    tax_amount = taxable * tax
    half = tax_amount / TWO
    return LineTax(
        unit_price=price,
        taxable_amount=taxable,
        tax_amount=tax_amount,
        cgst=half,
        sgst=half,
        line_total=taxable + tax_amount,
    )


def compute_totals(lines: Iterable[LineTax]) -> InvoiceTotals:
    subtotal = tax = cgst = sgst = ZERO
    for line in lines:
        subtotal += line.taxable_amount
        tax += line.tax_amount
        cgst += line.cgst
        sgst += line.sgst
    return InvoiceTotals(subtotal=subtotal, tax=tax, cgst=cgst, sgst=sgst, grand_total=subtotal + tax)


def quantize_money(amount) -> Decimal:
    return _d(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def _group_indian(digits: str) -> str:
    # Last three digits, then groups of two: 12,34,567
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_number(amount, places: int = 2) -> str:
    """Indian digit grouping without currency symbol: 1,23,456.79"""
    exp = Decimal(1).scaleb(-places) if places else Decimal(1)
    value = _d(amount).quantize(exp, rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    text = f"{abs(value):.{places}f}"
    whole, _, frac = text.partition(".")
    grouped = _group_indian(whole)
    return f"{sign}{grouped}.{frac}" if frac else f"{sign}{grouped}"


def format_currency(amount: Optional[object]) -> str:
    """INR display string: ₹1,23,456.79"""
    text = format_number(amount)
    if text.startswith("-"):
        return "-₹" + text[1:]
    return "₹" + text
