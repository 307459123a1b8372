import calendar
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func

from ..config import settings
from ..domain.models_trade import Purchase, Invoice
from ..infrastructure.unit_of_work import UnitOfWork


@dataclass(frozen=True)
class MonthlyActivity:
    month: str  # YYYY-MM
    sales_amount: Decimal
    purchased_quantity: int


@dataclass(frozen=True)
class DashboardSummary:
    product_count: int
    customer_count: int
    invoice_count: int
    total_sales: Decimal
    low_stock_count: int
    monthly: List[MonthlyActivity] = field(default_factory=list)


def _last_months(today: date, count: int) -> List[date]:
    months = []
    year, month = today.year, today.month
    for _ in range(count):
        months.append(date(year, month, 1))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(months))


def _month_end(first: date) -> date:
    return first.replace(day=calendar.monthrange(first.year, first.month)[1])


def dashboard_summary(uow: UnitOfWork, today: Optional[date] = None) -> DashboardSummary:
    """Headline counts plus sales value vs purchased quantity for the last six months."""
    today = today or date.today()
    db = uow.db

    monthly = []
    for first in _last_months(today, 6):
        last = _month_end(first)
        sales = db.query(func.coalesce(func.sum(Invoice.total_amount), 0)).filter(
            Invoice.invoice_date >= first, Invoice.invoice_date <= last
        ).scalar()
        purchased = db.query(func.coalesce(func.sum(Purchase.quantity), 0)).filter(
            Purchase.purchase_date >= first, Purchase.purchase_date <= last
        ).scalar()
        monthly.append(MonthlyActivity(
            month=first.strftime("%Y-%m"),
            sales_amount=Decimal(str(sales or 0)),
            purchased_quantity=int(purchased or 0),
        ))

    return DashboardSummary(
        product_count=uow.products.count(),
        customer_count=uow.customers.count(),
        invoice_count=uow.invoices.count(),
        total_sales=Decimal(str(uow.invoices.total_sales() or 0)),
        low_stock_count=uow.products.low_stock_count(settings.low_stock_threshold),
        monthly=monthly,
    )
