"""
CSV templates, parsing and writing for the import/export screens.

Parsing goes through the csv module, so quoted fields, embedded commas,
doubled quotes and CRLF line endings are handled.
"""
import csv
import io
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from ..domain.enums import ImportEntity

TEMPLATES: Dict[ImportEntity, List[str]] = {
    ImportEntity.PRODUCTS: ["name", "description", "hsn_code", "stock_quantity", "unit_price", "tax_rate", "unit_id", "category_id"],
    ImportEntity.CUSTOMERS: ["name", "email", "phone", "gstin", "billing_address", "is_guest"],
    ImportEntity.PURCHASES: ["product_id", "purchase_date", "reference_invoice", "quantity"],
}

REQUIRED_COLUMNS: Dict[ImportEntity, List[str]] = {
    ImportEntity.PRODUCTS: ["name", "unit_price", "tax_rate", "stock_quantity"],
    ImportEntity.CUSTOMERS: ["name"],
    ImportEntity.PURCHASES: ["product_id", "purchase_date", "quantity"],
}


def template_csv(entity: ImportEntity) -> str:
    return ",".join(TEMPLATES[ImportEntity(entity)])


def parse_csv(text: str) -> Tuple[List[str], List[Dict[str, str]]]:
    """Returns (headers, rows). Blank lines are skipped; short rows are padded with ''."""
    if text.startswith("\ufeff"):
        text = text[1:]
    reader = csv.reader(io.StringIO(text, newline=""))
    headers: List[str] = []
    rows: List[Dict[str, str]] = []
    for record in reader:
        if not headers:
            headers = [h.strip() for h in record]
            continue
        if not any(cell.strip() for cell in record):
            continue
        rows.append({h: (record[i].strip() if i < len(record) else "") for i, h in enumerate(headers)})
    return headers, rows


def missing_columns(entity: ImportEntity, headers: Sequence[str]) -> List[str]:
    return [h for h in REQUIRED_COLUMNS[ImportEntity(entity)] if h not in headers]


def write_csv(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    out = io.StringIO()
    w = csv.writer(out, lineterminator="\n")
    w.writerow(headers)
    for row in rows:
        w.writerow(["" if v is None else _cell(v) for v in row])
    return out.getvalue()


def _cell(value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


# ===== Cell converters =====

def text_or_none(value: Optional[str]) -> Optional[str]:
    return value if value not in (None, "") else None


# Empty cells fall back to the default; anything else that does not parse raises ValueError

def to_decimal(value: Optional[str], default: Decimal = Decimal("0")) -> Decimal:
    if value in (None, ""):
        return default
    try:
        number = Decimal(value)
    except InvalidOperation:
        raise ValueError(f"not a number: '{value}'")
    if not number.is_finite():
        raise ValueError(f"not a number: '{value}'")
    return number


def to_int(value: Optional[str], default: int = 0) -> int:
    if value in (None, ""):
        return default
    number = to_decimal(value)
    if number != number.to_integral_value():
        raise ValueError(f"not a whole number: '{value}'")
    return int(number)


def to_int_or_none(value: Optional[str]) -> Optional[int]:
    if value in (None, ""):
        return None
    return to_int(value)


def to_bool(value: Optional[str]) -> bool:
    return (value or "").strip().lower() == "true"


def to_date(value: Optional[str]) -> Optional[date]:
    """ISO dates (YYYY-MM-DD), also accepting DD-MM-YYYY and DD/MM/YYYY."""
    if value in (None, ""):
        return None
    for fmt in ("%Y-%m-%d", "%d-%m-%Y", "%d/%m/%Y"):
        try:
            return datetime.strptime(value.strip(), fmt).date()
        except ValueError:
            continue
    return None
