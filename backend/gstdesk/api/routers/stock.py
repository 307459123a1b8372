"""
Stock overview and per-product movement ledger.
"""
from dataclasses import asdict
from datetime import date
from typing import Tuple
from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session
from ...config import settings
from ...dependencies import get_db
from ...security.auth import get_current_user
from ...domain.enums import LedgerGranularity
from ...infrastructure.unit_of_work import UnitOfWork
from ...infrastructure.pdf_utils import create_stock_report_pdf
from ...infrastructure.excel_utils import create_stock_report_xlsx
from ...application.notifications import CollectingSink
from ...application.services_products import ProductService
from ...application.services_stock_report import product_stock_report
from ...application.services_company import get_company
from ..common import page_params, page_response, run

router = APIRouter(prefix="/stock", tags=["stock"], dependencies=[Depends(get_current_user)])


def _row(r) -> dict:
    row = asdict(r)
    row["total"] = r.total
    return row


@router.get("")
def stock_overview(
    q: str | None = Query(None),
    paging: Tuple[int, int] = Depends(page_params),
    db: Session = Depends(get_db),
):
    """Current stock per product with IN_STOCK / LOW_STOCK / OUT_OF_STOCK status."""
    page, page_size = paging
    rows, total = ProductService(UnitOfWork(db)).stock_overview(page, page_size, q)
    return page_response([asdict(r) for r in rows], page, page_size, total)


@router.get("/{product_id}/ledger")
def product_ledger(
    product_id: int,
    start: date | None = Query(None, description="First date, inclusive"),
    end: date | None = Query(None, description="Last date, inclusive"),
    granularity: LedgerGranularity = Query(LedgerGranularity.PER_DAY),
    page: int = Query(1, ge=1),
    page_size: int | None = Query(None, ge=1),
    db: Session = Depends(get_db),
):
    """
    Opening -> purchase -> sale -> closing ledger of one product.

    Without start and end the window is the first day of the current month
    to today.
    """
    sink = CollectingSink()
    size = min(page_size or settings.report_page_size, settings.max_page_size)
    report = run(
        "building stock ledger",
        lambda: product_stock_report(UnitOfWork(db), product_id, start, end, granularity, page, size, sink=sink),
    )
    ledger = report.ledger
    return page_response(
        [_row(r) for r in report.page.items],
        report.page.page,
        report.page.page_size,
        report.page.total_count,
        product_id=report.product_id,
        product_name=report.product_name,
        unit=report.unit,
        current_stock=report.current_stock,
        start=report.window_start,
        end=report.window_end,
        granularity=report.granularity,
        absolute_initial_stock=ledger.absolute_initial_stock,
        opening_stock=ledger.opening_stock,
        closing_stock=ledger.closing_stock,
        drift=asdict(ledger.drift),
        messages=sink.messages,
    )


@router.get("/{product_id}/ledger.pdf")
def product_ledger_pdf(
    product_id: int,
    start: date | None = Query(None),
    end: date | None = Query(None),
    granularity: LedgerGranularity = Query(LedgerGranularity.PER_DAY),
    db: Session = Depends(get_db),
):
    uow = UnitOfWork(db)
    report = run("building stock ledger", lambda: product_stock_report(uow, product_id, start, end, granularity))
    company = get_company(uow)
    pdf = run("rendering stock report PDF", lambda: create_stock_report_pdf(company.name if company else None, report))
    filename = f"stock_report_{product_id}_{report.window_start or 'all'}_{report.window_end or 'all'}.pdf"
    return Response(
        content=pdf.getvalue(),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{product_id}/ledger.xlsx")
def product_ledger_xlsx(
    product_id: int,
    start: date | None = Query(None),
    end: date | None = Query(None),
    granularity: LedgerGranularity = Query(LedgerGranularity.PER_DAY),
    db: Session = Depends(get_db),
):
    uow = UnitOfWork(db)
    report = run("building stock ledger", lambda: product_stock_report(uow, product_id, start, end, granularity))
    company = get_company(uow)
    xlsx = run("rendering stock report workbook", lambda: create_stock_report_xlsx(company.name if company else None, report))
    filename = f"stock_report_{product_id}_{report.window_start or 'all'}_{report.window_end or 'all'}.xlsx"
    return Response(
        content=xlsx.getvalue(),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
