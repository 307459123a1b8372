"""
CSV import/export of products, customers and purchases.

An import is all or nothing: every row is validated and inserted inside one
transaction, and any bad row rolls the whole file back.
"""
import logging
from typing import Callable, Tuple

from ..domain.enums import ImportEntity
from ..domain.models import Product, Customer
from ..domain.models_trade import Purchase
from ..infrastructure import csv_io
from ..infrastructure.unit_of_work import UnitOfWork
from .errors import ImportFormatError, NotFoundError
from .notifications import NotificationSink, LoggingSink

logger = logging.getLogger(__name__)


def export_entity(uow: UnitOfWork, entity: ImportEntity, sink: NotificationSink = None) -> Tuple[str, int]:
    """Returns (csv_text, row_count). An empty export yields just the header."""
    sink = sink or LoggingSink()
    entity = ImportEntity(entity)
    headers = csv_io.TEMPLATES[entity]

    if entity == ImportEntity.PRODUCTS:
        records = uow.products.all()
    elif entity == ImportEntity.CUSTOMERS:
        records = uow.customers.all()
    else:
        records = uow.purchases.all()

    columns = ["id"] + headers + ["created_at"]
    text = csv_io.write_csv(columns, ([getattr(r, c) for c in columns] for r in records))
    if not records:
        sink.notify(f"No {entity.value} to export.", "info")
    else:
        sink.notify(f"{entity.value.capitalize()} exported successfully!", "success")
    return text, len(records)


def _cell(row: dict, column: str, convert: Callable, line_no: int):
    """Converted cell value; a non-empty cell that does not parse fails the whole import."""
    try:
        return convert(row.get(column))
    except ValueError:
        raise ImportFormatError(f"Row {line_no}: invalid {column} '{row.get(column)}'")


def _product(row: dict, line_no: int) -> Product:
    unit_price = _cell(row, "unit_price", csv_io.to_decimal, line_no)
    tax_rate = _cell(row, "tax_rate", csv_io.to_decimal, line_no)
    for column, value in (("unit_price", unit_price), ("tax_rate", tax_rate)):
        if value < 0:
            raise ImportFormatError(f"Row {line_no}: {column} cannot be negative")
    return Product(
        name=row["name"],
        description=csv_io.text_or_none(row.get("description")),
        hsn_code=csv_io.text_or_none(row.get("hsn_code")),
        stock_quantity=_cell(row, "stock_quantity", csv_io.to_int, line_no),
        unit_price=unit_price,
        tax_rate=tax_rate,
        unit_id=_cell(row, "unit_id", csv_io.to_int_or_none, line_no),
        category_id=_cell(row, "category_id", csv_io.to_int_or_none, line_no),
    )


def _customer(row: dict) -> Customer:
    return Customer(
        name=row["name"],
        email=csv_io.text_or_none(row.get("email")),
        phone=csv_io.text_or_none(row.get("phone")),
        gstin=csv_io.text_or_none(row.get("gstin")),
        billing_address=csv_io.text_or_none(row.get("billing_address")),
        is_guest=csv_io.to_bool(row.get("is_guest")),
    )


def import_entity(uow: UnitOfWork, entity: ImportEntity, text: str, sink: NotificationSink = None) -> int:
    """Imports every row of ``text``; returns the number of records created."""
    sink = sink or LoggingSink()
    entity = ImportEntity(entity)
    headers, rows = csv_io.parse_csv(text)

    missing = csv_io.missing_columns(entity, headers)
    if missing:
        raise ImportFormatError(f"Missing required columns: {', '.join(missing)}")
    if not rows:
        raise ImportFormatError("CSV file is empty or invalid.")

    with uow.transaction():
        for line_no, row in enumerate(rows, start=2):
            if entity == ImportEntity.PRODUCTS:
                if not row["name"]:
                    raise ImportFormatError(f"Row {line_no}: name is required")
                uow.products.add(_product(row, line_no))
            elif entity == ImportEntity.CUSTOMERS:
                if not row["name"]:
                    raise ImportFormatError(f"Row {line_no}: name is required")
                uow.customers.add(_customer(row))
            else:
                _import_purchase(uow, row, line_no)

    logger.info(f"Imported {len(rows)} {entity.value}")
    sink.notify(f"Successfully imported {len(rows)} {entity.value}!", "success")
    return len(rows)


def _import_purchase(uow: UnitOfWork, row: dict, line_no: int) -> None:
    product_id = _cell(row, "product_id", csv_io.to_int_or_none, line_no)
    purchase_date = csv_io.to_date(row.get("purchase_date"))
    quantity = _cell(row, "quantity", csv_io.to_int, line_no)
    if purchase_date is None:
        raise ImportFormatError(f"Row {line_no}: invalid purchase_date '{row.get('purchase_date')}'")
    if quantity <= 0:
        raise ImportFormatError(f"Row {line_no}: quantity must be greater than zero")
    product = uow.products.get(product_id) if product_id is not None else None
    if not product:
        raise NotFoundError(f"Row {line_no}: product {row.get('product_id')} not found")
    uow.purchases.add(Purchase(
        product_id=product.id,
        purchase_date=purchase_date,
        reference_invoice=csv_io.text_or_none(row.get("reference_invoice")),
        quantity=quantity,
    ))
    # Imported purchases credit stock like any other purchase
    uow.products.adjust_stock(product, quantity)
