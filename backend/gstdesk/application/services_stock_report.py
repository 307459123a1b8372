"""
Stock movement reports.

Loads a product together with all of its purchases and sale lines from one
session, so the ledger is always built from a single consistent snapshot,
and hands them to the pure ledger reconstructor.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Tuple

from ..config import settings
from ..domain.enums import LedgerGranularity, MovementKind
from ..infrastructure.unit_of_work import UnitOfWork
from .errors import NotFoundError, ValidationError
from .notifications import NotificationSink, LoggingSink
from .stock_ledger import StockEvent, StockLedger, Page, reconstruct_ledger, paginate

logger = logging.getLogger(__name__)


def default_window(today: Optional[date] = None) -> Tuple[date, date]:
    """First day of the current month to today."""
    today = today or date.today()
    return today.replace(day=1), today


@dataclass(frozen=True)
class ProductStockReport:
    product_id: int
    product_name: str
    unit: Optional[str]
    current_stock: int
    window_start: Optional[date]
    window_end: Optional[date]
    granularity: LedgerGranularity
    ledger: StockLedger
    page: Page


@dataclass(frozen=True)
class TransactionRow:
    transaction_date: date
    transaction_type: MovementKind
    product_name: str
    quantity_change: int
    reference_number: Optional[str]


def product_stock_report(
    uow: UnitOfWork,
    product_id: int,
    start: Optional[date] = None,
    end: Optional[date] = None,
    granularity: LedgerGranularity = LedgerGranularity.PER_DAY,
    page: int = 1,
    page_size: Optional[int] = None,
    sink: NotificationSink = None,
) -> ProductStockReport:
    sink = sink or LoggingSink()
    if start is None and end is None:
        start, end = default_window()
    if start and end and start > end:
        raise ValidationError("Start date must not be after end date")

    product = uow.products.get(product_id)
    if not product:
        raise NotFoundError(f"Product {product_id} not found")

    purchases = [StockEvent(p.purchase_date, p.quantity, p.reference_invoice) for p in uow.purchases.for_product(product_id)]
    sales = [StockEvent(d, q, number) for d, number, q in uow.invoices.sale_lines_for_product(product_id)]

    ledger = reconstruct_ledger(
        current_quantity=product.stock_quantity or 0,
        purchases=purchases,
        sales=sales,
        window_start=start,
        window_end=end,
        granularity=granularity,
    )
    if ledger.drift.detected:
        sink.notify(
            f"Stock history of '{product.name}' does not reconcile with its current stock "
            f"(implied initial stock {ledger.absolute_initial_stock})",
            "warning",
        )

    return ProductStockReport(
        product_id=product.id,
        product_name=product.name,
        unit=product.unit_abbreviation,
        current_stock=product.stock_quantity or 0,
        window_start=start,
        window_end=end,
        granularity=LedgerGranularity(granularity),
        ledger=ledger,
        page=paginate(ledger.rows, page, page_size or settings.report_page_size),
    )


def transactions_report(uow: UnitOfWork, start: Optional[date] = None, end: Optional[date] = None) -> List[TransactionRow]:
    """Every purchase and sale across products, oldest first."""
    if start is None and end is None:
        start, end = default_window()

    rows = [
        TransactionRow(p.purchase_date, MovementKind.PURCHASE, p.product.name if p.product else "", p.quantity, p.reference_invoice)
        for p in uow.purchases.between(start, end)
    ]
    rows += [
        TransactionRow(d, MovementKind.SALE, name, -q, number)
        for d, number, q, name in uow.invoices.sale_lines_between(start, end)
    ]
    # Purchases before sales on the same day
    rows.sort(key=lambda r: (r.transaction_date, r.transaction_type != MovementKind.PURCHASE, r.reference_number or "", r.product_name))
    return rows
