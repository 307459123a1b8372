"""
PDF generation for invoices and stock movement reports
======================================================

- Header with company name (first page)
- Footer with generation date and page number (every page)
- Tables in a consistent style

Amounts use Indian digit grouping without the rupee sign; the base
Helvetica font has no glyph for it.
"""
from io import BytesIO
from datetime import datetime
from typing import List, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.lib.enums import TA_CENTER, TA_RIGHT

from ..application.gst import format_number

ACCENT = colors.HexColor('#1a56db')
HEADER_BG = colors.HexColor('#366092')


def _text(value) -> str:
    return escape(str(value)) if value not in (None, "") else ""


def _page_callbacks(title: str, subtitle: Optional[str] = None, footer_text: Optional[str] = None):
    """onFirstPage/onLaterPages pair drawing the header and the numbered footer."""

    def footer(canvas_obj):
        canvas_obj.setFont("Helvetica", 8)
        canvas_obj.setFillColor(colors.grey)
        date_str = datetime.now().strftime('%d/%m/%Y %H:%M')
        canvas_obj.drawString(0.5*inch, 0.5*inch, f"Generated on {date_str}")
        if footer_text:
            canvas_obj.drawCentredString(A4[0] / 2.0, 0.5*inch, footer_text)
        canvas_obj.drawRightString(A4[0] - 0.5*inch, 0.5*inch, f"Page {canvas_obj.getPageNumber()}")

    def on_first_page(canvas_obj, doc):
        canvas_obj.saveState()
        canvas_obj.setFont("Helvetica-Bold", 16)
        canvas_obj.setFillColor(ACCENT)
        canvas_obj.drawCentredString(A4[0] / 2.0, A4[1] - 0.8*inch, title)
        if subtitle:
            canvas_obj.setFont("Helvetica", 10)
            canvas_obj.setFillColor(colors.grey)
            canvas_obj.drawCentredString(A4[0] / 2.0, A4[1] - 1.0*inch, subtitle)
        canvas_obj.setStrokeColor(ACCENT)
        canvas_obj.setLineWidth(2)
        canvas_obj.line(0.5*inch, A4[1] - 1.15*inch, A4[0] - 0.5*inch, A4[1] - 1.15*inch)
        footer(canvas_obj)
        canvas_obj.restoreState()

    def on_later_pages(canvas_obj, doc):
        canvas_obj.saveState()
        footer(canvas_obj)
        canvas_obj.restoreState()

    return on_first_page, on_later_pages


def _table(data: List[list], col_widths: List[float], numeric_from: int) -> Table:
    table = Table(data, colWidths=col_widths, repeatRows=1)
    table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), HEADER_BG),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('BOTTOMPADDING', (0, 0), (-1, 0), 8),
        ('TOPPADDING', (0, 0), (-1, 0), 8),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ('ALIGN', (numeric_from, 0), (-1, -1), 'RIGHT'),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#f9fafb')]),
    ]))
    return table


def _build(elements: list, title: str, subtitle: Optional[str], footer_text: Optional[str]) -> BytesIO:
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=0.5*inch,
        leftMargin=0.5*inch,
        topMargin=1.4*inch,
        bottomMargin=1*inch,
        title=title,
    )
    on_first_page, on_later_pages = _page_callbacks(title, subtitle, footer_text)
    try:
        doc.build(elements, onFirstPage=on_first_page, onLaterPages=on_later_pages)
    except Exception as e:
        raise ValueError(f"Error building PDF: {str(e)}")

    content = buffer.getvalue()
    if not content:
        raise ValueError("Generated PDF is empty")
    return BytesIO(content)


def create_invoice_pdf(document) -> BytesIO:
    """
    Renders an InvoiceDocument (see services_invoices.build_invoice_document).

    Layout: company block, bill-to block with invoice number and date, item
    table, GST totals, bank details when configured, thank-you footer.
    """
    styles = getSampleStyleSheet()
    normal = styles['Normal']
    small = ParagraphStyle('Small', parent=normal, fontSize=9, leading=11)
    right = ParagraphStyle('Right', parent=small, alignment=TA_RIGHT)
    heading = ParagraphStyle('InvoiceHeading', parent=styles['Heading2'], textColor=ACCENT, alignment=TA_CENTER)

    company = document.company
    company_name = company.name if company and company.name else "Tax Invoice"
    subtitle = company.slogan if company and company.slogan else None

    elements = []

    company_lines = []
    if company:
        if company.address:
            company_lines.append(_text(company.address))
        if company.gstin:
            company_lines.append(f"GSTIN: {_text(company.gstin)}")
        if company.phone:
            company_lines.append(f"Phone: {_text(company.phone)}")
        if company.email:
            company_lines.append(_text(company.email))

    bill_to = [f"<b>Bill To:</b> {_text(document.customer_name)}"]
    if document.customer_address:
        bill_to.append(_text(document.customer_address))
    if document.customer_gstin:
        bill_to.append(f"GSTIN: {_text(document.customer_gstin)}")
    if document.customer_phone:
        bill_to.append(f"Phone: {_text(document.customer_phone)}")

    meta = [
        f"<b>Invoice #:</b> {_text(document.invoice_number)}",
        f"<b>Date:</b> {document.invoice_date.strftime('%d/%m/%Y')}",
    ]

    elements.append(Paragraph("TAX INVOICE", heading))
    elements.append(Table(
        [[Paragraph("<br/>".join(company_lines), small), Paragraph("<br/>".join(meta), right)],
         [Paragraph("<br/>".join(bill_to), small), ""]],
        colWidths=[4.5*inch, 2.7*inch],
    ))
    elements.append(Spacer(1, 0.2*inch))

    data = [["#", "Product", "HSN", "Qty", "Rate", "Taxable", "GST %", "Amount"]]
    for i, line in enumerate(document.lines, start=1):
        qty = f"{line.quantity} {line.unit}" if line.unit else str(line.quantity)
        data.append([
            str(i),
            Paragraph(_text(line.product_name), small),
            line.hsn_code or "",
            qty,
            format_number(line.tax.unit_price),
            format_number(line.tax.taxable_amount),
            format_number(line.tax_rate * 100, places=0) + "%",
            format_number(line.tax.line_total),
        ])
    elements.append(_table(data, [0.3*inch, 2.2*inch, 0.7*inch, 0.7*inch, 0.8*inch, 0.9*inch, 0.6*inch, 1.0*inch], numeric_from=3))
    elements.append(Spacer(1, 0.2*inch))

    totals = document.totals
    totals_table = Table([
        ["Subtotal", format_number(totals.subtotal)],
        ["CGST", format_number(totals.cgst)],
        ["SGST", format_number(totals.sgst)],
        ["Grand Total (INR)", format_number(totals.grand_total)],
    ], colWidths=[1.6*inch, 1.2*inch], hAlign='RIGHT')
    totals_table.setStyle(TableStyle([
        ('ALIGN', (1, 0), (1, -1), 'RIGHT'),
        ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
        ('LINEABOVE', (0, -1), (-1, -1), 1, colors.black),
    ]))
    elements.append(totals_table)

    if company and company.bank_name:
        bank = [
            "<b>Bank Details</b>",
            f"Bank: {_text(company.bank_name)}",
            f"Account Name: {_text(company.account_name)}",
            f"Account No.: {_text(company.account_number)}",
            f"Account Type: {_text(company.account_type)}",
            f"IFSC: {_text(company.ifsc_code)}",
        ]
        elements.append(Spacer(1, 0.3*inch))
        elements.append(Paragraph("<br/>".join(bank), small))

    elements.append(Spacer(1, 0.4*inch))
    elements.append(Paragraph("Thank you for your business!", ParagraphStyle('Thanks', parent=normal, alignment=TA_CENTER)))

    return _build(elements, company_name, subtitle, footer_text=f"Invoice {document.invoice_number}")


def create_stock_report_pdf(company_name: Optional[str], report) -> BytesIO:
    """
    Renders a ProductStockReport (all ledger rows, not just the current page).
    """
    styles = getSampleStyleSheet()
    small = ParagraphStyle('Small', parent=styles['Normal'], fontSize=9, leading=12)
    ledger = report.ledger

    if report.window_start and report.window_end:
        period = f"{report.window_start.strftime('%d/%m/%Y')} - {report.window_end.strftime('%d/%m/%Y')}"
    elif report.window_start:
        period = f"From {report.window_start.strftime('%d/%m/%Y')}"
    elif report.window_end:
        period = f"Up to {report.window_end.strftime('%d/%m/%Y')}"
    else:
        period = "All dates"

    elements = [
        Paragraph(
            "<br/>".join([
                f"<b>Product:</b> {_text(report.product_name)}",
                f"<b>Period:</b> {period}",
                f"<b>Current Stock:</b> {report.current_stock} {_text(report.unit)}",
                f"<b>Opening Stock:</b> {ledger.opening_stock} | <b>Closing Stock:</b> {ledger.closing_stock}",
            ]),
            small,
        ),
        Spacer(1, 0.2*inch),
    ]

    data = [["Date", "Invoice", "Opening", "Purchase", "Total", "Sale", "Closing"]]
    for row in ledger.rows:
        data.append([
            row.date.strftime('%d/%m/%Y'),
            Paragraph(_text(row.reference) or "-", small),
            str(row.opening_stock),
            f"+{row.purchase_qty}" if row.purchase_qty else "-",
            str(row.total),
            f"-{row.sale_qty}" if row.sale_qty else "-",
            str(row.closing_stock),
        ])
    if len(data) == 1:
        data.append(["", "No movements in this period", "", "", "", "", ""])
    elements.append(_table(data, [0.9*inch, 2.3*inch, 0.8*inch, 0.8*inch, 0.8*inch, 0.8*inch, 0.8*inch], numeric_from=2))

    return _build(elements, company_name or "Stock Movement Report", "Stock Movement Report", footer_text=report.product_name)
