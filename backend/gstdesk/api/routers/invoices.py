"""
Invoices: CRUD with stock effects, GST preview, PDF and WhatsApp sharing.
"""
from datetime import date
from decimal import Decimal
from typing import List, Tuple
from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session
from ...dependencies import get_db
from ...security.auth import get_current_user
from ...domain.enums import CustomerMode
from ...infrastructure.unit_of_work import UnitOfWork
from ...infrastructure.pdf_utils import create_invoice_pdf
from ...infrastructure.whatsapp import build_share_link, invoice_share_text
from ...application.gst import format_currency
from ...application.notifications import CollectingSink
from ...application.services_invoices import InvoiceService, build_invoice_document, preview_lines
from ..common import page_params, page_response, run

router = APIRouter(prefix="/invoices", tags=["invoices"], dependencies=[Depends(get_current_user)])

class InvoiceLineIn(BaseModel):
    product_id: int
    quantity: int = Field(..., gt=0)
    tax_rate: Decimal | None = Field(None, ge=0)  # Defaults to the product's rate
    unit_price: Decimal | None = Field(None, ge=0)  # Pre-tax
    inclusive_rate: Decimal | None = Field(None, ge=0)  # Tax included; converted to unit_price

class NewCustomerIn(BaseModel):
    name: str
    email: str | None = None
    phone: str | None = None
    gstin: str | None = None
    billing_address: str | None = None

class InvoiceIn(BaseModel):
    invoice_number: str
    invoice_date: date
    customer_mode: CustomerMode = CustomerMode.EXISTING
    customer_id: int | None = None
    new_customer: NewCustomerIn | None = None
    items: List[InvoiceLineIn]

class PreviewLineIn(BaseModel):
    quantity: int = Field(..., gt=0)
    tax_rate: Decimal = Field(Decimal("0"), ge=0)
    unit_price: Decimal | None = Field(None, ge=0)
    inclusive_rate: Decimal | None = Field(None, ge=0)

class PreviewIn(BaseModel):
    items: List[PreviewLineIn]


def _money(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"))


def _document_out(document) -> dict:
    totals = document.totals
    return {
        "id": document.invoice_id,
        "invoice_number": document.invoice_number,
        "invoice_date": document.invoice_date,
        "customer_name": document.customer_name,
        "customer_phone": document.customer_phone,
        "customer_address": document.customer_address,
        "customer_gstin": document.customer_gstin,
        "items": [
            {
                "product_name": line.product_name,
                "hsn_code": line.hsn_code,
                "unit": line.unit,
                "quantity": line.quantity,
                "tax_rate": line.tax_rate,
                "unit_price": _money(line.tax.unit_price),
                "taxable_amount": _money(line.tax.taxable_amount),
                "cgst": _money(line.tax.cgst),
                "sgst": _money(line.tax.sgst),
                "line_total": _money(line.tax.line_total),
            }
            for line in document.lines
        ],
        "subtotal": _money(totals.subtotal),
        "cgst": _money(totals.cgst),
        "sgst": _money(totals.sgst),
        "tax": _money(totals.tax),
        "grand_total": _money(totals.grand_total),
        "grand_total_display": format_currency(totals.grand_total),
    }


def _summary(invoice) -> dict:
    return {
        "id": invoice.id,
        "invoice_number": invoice.invoice_number,
        "invoice_date": invoice.invoice_date,
        "customer_id": invoice.customer_id,
        "customer_name": invoice.customer.name if invoice.customer else "Guest",
        "total_amount": invoice.total_amount,
        "created_at": invoice.created_at,
    }


def _service_args(payload: InvoiceIn) -> dict:
    return dict(
        invoice_number=payload.invoice_number,
        invoice_date=payload.invoice_date,
        items=[i.model_dump() for i in payload.items],
        customer_mode=payload.customer_mode,
        customer_id=payload.customer_id,
        new_customer=payload.new_customer.model_dump() if payload.new_customer else None,
    )


@router.get("")
def list_invoices(
    q: str | None = Query(None, description="Invoice number or customer name contains"),
    paging: Tuple[int, int] = Depends(page_params),
    db: Session = Depends(get_db),
):
    page, page_size = paging
    items, total = InvoiceService(UnitOfWork(db)).list(page, page_size, q)
    return page_response([_summary(i) for i in items], page, page_size, total)


@router.post("/preview")
def preview_invoice(payload: PreviewIn):
    """GST breakdown of unsaved lines. No stock effect."""
    lines, totals = run("previewing invoice", lambda: preview_lines([i.model_dump() for i in payload.items]))
    return {
        "items": [
            {
                "unit_price": _money(line.unit_price),
                "taxable_amount": _money(line.taxable_amount),
                "tax_amount": _money(line.tax_amount),
                "cgst": _money(line.cgst),
                "sgst": _money(line.sgst),
                "line_total": _money(line.line_total),
            }
            for line in lines
        ],
        "subtotal": _money(totals.subtotal),
        "cgst": _money(totals.cgst),
        "sgst": _money(totals.sgst),
        "tax": _money(totals.tax),
        "grand_total": _money(totals.grand_total),
    }


@router.post("", status_code=201)
def create_invoice(payload: InvoiceIn, db: Session = Depends(get_db)):
    """Saves the invoice and debits stock for every line."""
    sink = CollectingSink()
    uow = UnitOfWork(db)
    invoice = run("creating invoice", lambda: InvoiceService(uow, sink).create(**_service_args(payload)))
    body = _document_out(build_invoice_document(invoice, uow.company.get()))
    body["messages"] = sink.messages
    return body


@router.get("/{invoice_id}")
def get_invoice(invoice_id: int, db: Session = Depends(get_db)):
    document = run("loading invoice", lambda: InvoiceService(UnitOfWork(db)).build_document(invoice_id))
    return _document_out(document)


@router.put("/{invoice_id}")
def update_invoice(invoice_id: int, payload: InvoiceIn, db: Session = Depends(get_db)):
    """Restores stock for the previous lines, then debits the new ones."""
    sink = CollectingSink()
    uow = UnitOfWork(db)
    invoice = run("updating invoice", lambda: InvoiceService(uow, sink).update(invoice_id, **_service_args(payload)))
    body = _document_out(build_invoice_document(invoice, uow.company.get()))
    body["messages"] = sink.messages
    return body


@router.delete("/{invoice_id}")
def delete_invoice(invoice_id: int, db: Session = Depends(get_db)):
    """Deletes the invoice and credits its quantities back to stock."""
    sink = CollectingSink()
    run("deleting invoice", lambda: InvoiceService(UnitOfWork(db), sink).delete(invoice_id))
    return {"ok": True, "messages": sink.messages}


@router.get("/{invoice_id}/pdf")
def invoice_pdf(invoice_id: int, db: Session = Depends(get_db)):
    document = run("loading invoice", lambda: InvoiceService(UnitOfWork(db)).build_document(invoice_id))
    pdf = run("rendering invoice PDF", lambda: create_invoice_pdf(document))
    return Response(
        content=pdf.getvalue(),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="invoice_{document.invoice_number}.pdf"'},
    )


@router.get("/{invoice_id}/whatsapp")
def invoice_whatsapp(invoice_id: int, db: Session = Depends(get_db)):
    """wa.me link with the invoice summary, addressed to the customer's phone when known."""
    document = run("loading invoice", lambda: InvoiceService(UnitOfWork(db)).build_document(invoice_id))
    text = invoice_share_text(document)
    return {"url": build_share_link(document.customer_phone, text), "text": text}
