"""
Invoices (stock-out events) with GST totals.

Saving an invoice debits each line's product, deleting credits it back and
editing reverses the old lines before applying the new ones, all inside one
transaction. Totals are computed server-side from the line tax calculator;
only the stored grand total is rounded.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError

from ..domain.enums import CustomerMode
from ..domain.models import Customer, CompanyDetails
from ..domain.models_trade import Invoice, InvoiceItem
from ..infrastructure.unit_of_work import UnitOfWork
from .errors import NotFoundError, ValidationError, ConflictError
from .gst import LineTax, InvoiceTotals, compute_line, compute_totals, quantize_money
from .notifications import NotificationSink, LoggingSink
from .services_masterdata import MasterDataService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InvoiceLineDocument:
    product_name: str
    hsn_code: Optional[str]
    unit: Optional[str]
    quantity: int
    tax_rate: Decimal
    tax: LineTax


@dataclass(frozen=True)
class InvoiceDocument:
    """Everything needed to render or share one invoice."""
    invoice_id: int
    invoice_number: str
    invoice_date: date
    customer_name: str
    customer_phone: Optional[str]
    customer_address: Optional[str]
    customer_gstin: Optional[str]
    lines: List[InvoiceLineDocument] = field(default_factory=list)
    totals: InvoiceTotals = None
    company: Optional[CompanyDetails] = None


def preview_lines(items: List[Dict[str, Any]]) -> Tuple[List[LineTax], InvoiceTotals]:
    """Tax breakdown of unsaved lines (no stock effect)."""
    lines = [
        compute_line(
            quantity=item["quantity"],
            tax_rate=item.get("tax_rate") or 0,
            unit_price=item.get("unit_price"),
            inclusive_rate=item.get("inclusive_rate"),
        )
        for item in items
    ]
    return lines, compute_totals(lines)


class InvoiceService:
    def __init__(self, uow: UnitOfWork, sink: NotificationSink = None):
        self.uow = uow
        self.sink = sink or LoggingSink()

    def list(self, page: int, page_size: int, q: Optional[str] = None) -> Tuple[List[Invoice], int]:
        return self.uow.invoices.page(page, page_size, q)

    def get(self, invoice_id: int) -> Invoice:
        invoice = self.uow.invoices.get(invoice_id)
        if not invoice:
            raise NotFoundError(f"Invoice {invoice_id} not found")
        return invoice

    def _resolve_customer(self, mode: CustomerMode, customer_id: Optional[int], new_customer: Optional[Dict[str, Any]]) -> Optional[Customer]:
        if mode == CustomerMode.GUEST:
            return None
        if mode == CustomerMode.NEW:
            if not new_customer:
                raise ValidationError("Customer details are required for a new customer")
            customer = self.uow.customers.add(MasterDataService(self.uow, self.sink).build_customer(new_customer))
            self.uow.flush()
            self.sink.notify(f"Customer '{customer.name}' created", "info")
            return customer
        if customer_id is None:
            raise ValidationError("customer_id is required for an existing customer")
        customer = self.uow.customers.get(customer_id)
        if not customer:
            raise NotFoundError(f"Customer {customer_id} not found")
        return customer

    def _build_items(self, items: List[Dict[str, Any]]) -> Tuple[List[InvoiceItem], InvoiceTotals]:
        if not items:
            raise ValidationError("An invoice needs at least one line")
        built, taxes = [], []
        for i, item in enumerate(items, start=1):
            product = self.uow.products.get(item.get("product_id"))
            if not product:
                raise NotFoundError(f"Line {i}: product {item.get('product_id')} not found")
            quantity = int(item.get("quantity") or 0)
            if quantity <= 0:
                raise ValidationError(f"Line {i}: quantity must be greater than zero")
            tax_rate = Decimal(str(item["tax_rate"])) if item.get("tax_rate") is not None else product.tax_rate
            if tax_rate < 0:
                raise ValidationError(f"Line {i}: tax_rate cannot be negative")
            unit_price, inclusive = item.get("unit_price"), item.get("inclusive_rate")
            for name, value in (("unit_price", unit_price), ("inclusive_rate", inclusive)):
                if value is not None and Decimal(str(value)) < 0:
                    raise ValidationError(f"Line {i}: {name} cannot be negative")
            if unit_price is None and inclusive is None:
                unit_price = product.unit_price
            line = compute_line(quantity, tax_rate, unit_price=unit_price, inclusive_rate=inclusive)
            taxes.append(line)
            built.append(InvoiceItem(product_id=product.id, quantity=quantity, unit_price=line.unit_price, tax_rate=tax_rate))
        return built, compute_totals(taxes)

    def _apply_stock(self, items: List[InvoiceItem], sign: int) -> None:
        """sign=-1 debits (sale), sign=+1 credits back."""
        for item in items:
            product = self.uow.products.get(item.product_id)
            self.uow.products.adjust_stock(product, sign * item.quantity)
            if sign < 0 and product.stock_quantity < 0:
                self.sink.notify(f"Stock of '{product.name}' is now negative ({product.stock_quantity})", "warning")

    def _number_taken(self, number: str, error: IntegrityError) -> ConflictError:
        # Another request saved the same number after _check_number ran
        logger.warning(f"Invoice number {number} rejected by the database: {error.orig}")
        return ConflictError(f"Invoice number {number} already exists")

    def _check_number(self, number: str, exclude_id: Optional[int] = None) -> str:
        if not number or not number.strip():
            raise ValidationError("Invoice number is required")
        existing = self.uow.invoices.by_number(number.strip())
        if existing and existing.id != exclude_id:
            raise ConflictError(f"Invoice number {number} already exists")
        return number.strip()

    def create(
        self,
        invoice_number: str,
        invoice_date: date,
        items: List[Dict[str, Any]],
        customer_mode: CustomerMode = CustomerMode.EXISTING,
        customer_id: Optional[int] = None,
        new_customer: Optional[Dict[str, Any]] = None,
    ) -> Invoice:
        try:
            number = self._check_number(invoice_number)
            customer = self._resolve_customer(CustomerMode(customer_mode), customer_id, new_customer)
            built, totals = self._build_items(items)
            invoice = Invoice(
                invoice_number=number,
                invoice_date=invoice_date,
                customer_id=customer.id if customer else None,
                total_amount=quantize_money(totals.grand_total),
            )
            invoice.items = built
            self.uow.invoices.add(invoice)
            self._apply_stock(built, -1)
            self.uow.commit()
        except IntegrityError as e:
            self.uow.rollback()
            raise self._number_taken(invoice_number, e) from e
        except Exception:
            self.uow.rollback()
            raise

        logger.info(f"Invoice {invoice.invoice_number} saved: {len(built)} line(s), total {invoice.total_amount}")
        self.sink.notify(f"Invoice {invoice.invoice_number} saved", "success")
        return invoice

    def update(
        self,
        invoice_id: int,
        invoice_number: str,
        invoice_date: date,
        items: List[Dict[str, Any]],
        customer_mode: CustomerMode = CustomerMode.EXISTING,
        customer_id: Optional[int] = None,
        new_customer: Optional[Dict[str, Any]] = None,
    ) -> Invoice:
        invoice = self.get(invoice_id)
        try:
            number = self._check_number(invoice_number, exclude_id=invoice.id)
            customer = self._resolve_customer(CustomerMode(customer_mode), customer_id, new_customer)
            self._apply_stock(list(invoice.items), +1)
            built, totals = self._build_items(items)
            invoice.items.clear()
            self.uow.flush()
            invoice.items.extend(built)
            invoice.invoice_number = number
            invoice.invoice_date = invoice_date
            invoice.customer_id = customer.id if customer else None
            invoice.total_amount = quantize_money(totals.grand_total)
            self._apply_stock(built, -1)
            self.uow.commit()
        except IntegrityError as e:
            self.uow.rollback()
            raise self._number_taken(invoice_number, e) from e
        except Exception:
            self.uow.rollback()
            raise

        self.sink.notify(f"Invoice {invoice.invoice_number} updated", "success")
        return invoice

    def delete(self, invoice_id: int) -> None:
        invoice = self.get(invoice_id)
        number = invoice.invoice_number
        try:
            self._apply_stock(list(invoice.items), +1)
            self.uow.invoices.delete(invoice)
            self.uow.commit()
        except Exception:
            self.uow.rollback()
            raise
        self.sink.notify(f"Invoice {number} deleted", "success")

    def build_document(self, invoice_id: int) -> InvoiceDocument:
        return build_invoice_document(self.get(invoice_id), self.uow.company.get())


def build_invoice_document(invoice: Invoice, company: Optional[CompanyDetails] = None) -> InvoiceDocument:
    lines, taxes = [], []
    for item in invoice.items:
        tax = compute_line(item.quantity, item.tax_rate, unit_price=item.unit_price)
        taxes.append(tax)
        product = item.product
        lines.append(InvoiceLineDocument(
            product_name=product.name if product else f"Product {item.product_id}",
            hsn_code=product.hsn_code if product else None,
            unit=product.unit_abbreviation if product else None,
            quantity=item.quantity,
            tax_rate=item.tax_rate,
            tax=tax,
        ))
    customer = invoice.customer
    return InvoiceDocument(
        invoice_id=invoice.id,
        invoice_number=invoice.invoice_number,
        invoice_date=invoice.invoice_date,
        customer_name=customer.name if customer else "Guest",
        customer_phone=customer.phone if customer else None,
        customer_address=customer.billing_address if customer else None,
        customer_gstin=customer.gstin if customer else None,
        lines=lines,
        totals=compute_totals(taxes),
        company=company,
    )
