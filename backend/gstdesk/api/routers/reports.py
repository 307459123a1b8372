from dataclasses import asdict
from datetime import date
from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session
from ...dependencies import get_db
from ...security.auth import get_current_user
from ...infrastructure import csv_io
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.services_stock_report import transactions_report

router = APIRouter(prefix="/reports", tags=["reports"], dependencies=[Depends(get_current_user)])

@router.get("/transactions")
def list_transactions(
    start: date | None = Query(None),
    end: date | None = Query(None),
    format: str = Query("json", pattern="^(json|csv)$"),
    db: Session = Depends(get_db),
):
    """
    Every purchase (+) and sale (-) across products, oldest first.
    Defaults to the current month when no dates are given.
    """
    rows = transactions_report(UnitOfWork(db), start, end)
    if format == "csv":
        text = csv_io.write_csv(
            ["transaction_date", "transaction_type", "product_name", "quantity_change", "reference_number"],
            ([r.transaction_date.isoformat(), r.transaction_type.value, r.product_name, r.quantity_change, r.reference_number or ""] for r in rows),
        )
        return Response(
            content=text,
            media_type="text/csv",
            headers={"Content-Disposition": "attachment; filename=transactions_report.csv"},
        )
    return {"items": [asdict(r) for r in rows], "total_count": len(rows)}
