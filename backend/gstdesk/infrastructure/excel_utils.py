"""
Excel (xlsx) exports built with openpyxl.
"""
from io import BytesIO
from typing import Optional

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill

from .logging_config import get_logger

logger = get_logger("excel")

HEADER_FILL = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
TOTAL_FILL = PatternFill(start_color="D9E1F2", end_color="D9E1F2", fill_type="solid")


def _save(wb: Workbook, what: str) -> BytesIO:
    buffer = BytesIO()
    wb.save(buffer)
    buffer.seek(0)
    size = len(buffer.getvalue())
    if size == 0:
        raise ValueError(f"Generated {what} workbook is empty")
    logger.info(f"{what} workbook generated - {size} bytes")
    return buffer


def create_stock_report_xlsx(company_name: Optional[str], report) -> BytesIO:
    """One sheet with the full ledger of a ProductStockReport plus a totals row."""
    ledger = report.ledger
    wb = Workbook()
    ws = wb.active
    ws.title = "Stock Ledger"

    ws.append([company_name or "GSTDesk"])
    ws.merge_cells('A1:G1')
    ws['A1'].font = Font(bold=True, size=14)
    ws['A1'].alignment = Alignment(horizontal="center")

    ws.append(["Product:", report.product_name])
    ws.append(["Period:", f"{report.window_start or 'start'} to {report.window_end or 'today'}"])
    ws.append(["Opening Stock:", ledger.opening_stock, "Closing Stock:", ledger.closing_stock])
    ws.append([])

    ws.append(["Date", "Invoice", "Opening", "Purchase", "Total", "Sale", "Closing"])
    header_row = ws.max_row
    for cell in ws[header_row]:
        cell.fill = HEADER_FILL
        cell.font = Font(bold=True, color="FFFFFF", size=11)
        cell.alignment = Alignment(horizontal="center", vertical="center")

    for row in ledger.rows:
        ws.append([
            row.date,
            row.reference or "",
            row.opening_stock,
            row.purchase_qty,
            row.total,
            row.sale_qty,
            row.closing_stock,
        ])
        ws.cell(row=ws.max_row, column=1).number_format = 'DD/MM/YYYY'

    ws.append([
        "TOTALS", "", "",
        sum(r.purchase_qty for r in ledger.rows), "",
        sum(r.sale_qty for r in ledger.rows),
        ledger.closing_stock,
    ])
    for cell in ws[ws.max_row]:
        cell.font = Font(bold=True, size=11)
        cell.fill = TOTAL_FILL

    for col, width in {'A': 12, 'B': 30, 'C': 10, 'D': 10, 'E': 10, 'F': 10, 'G': 10}.items():
        ws.column_dimensions[col].width = width

    return _save(wb, "Stock ledger")
