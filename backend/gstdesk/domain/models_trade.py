from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, String, Date, Numeric, ForeignKey, DateTime
from datetime import datetime, date
from decimal import Decimal
from .models import Base

class Purchase(Base):
    """
    Stock-increasing event. Saving credits products.stock_quantity, deleting
    debits it back.
    """
    __tablename__ = "purchases"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), index=True)
    purchase_date: Mapped[date] = mapped_column(Date, index=True)
    reference_invoice: Mapped[str | None] = mapped_column(String(60), nullable=True)  # Supplier bill number
    quantity: Mapped[int] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
    product = relationship("Product")

class Invoice(Base):
    __tablename__ = "invoices"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    customer_id: Mapped[int | None] = mapped_column(ForeignKey("customers.id"), nullable=True, index=True)  # None = guest
    invoice_number: Mapped[str] = mapped_column(String(40), unique=True, index=True)
    invoice_date: Mapped[date] = mapped_column(Date, index=True)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"))  # Grand total incl. GST
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
    customer = relationship("Customer")
    items = relationship("InvoiceItem", back_populates="invoice", cascade="all, delete-orphan", order_by="InvoiceItem.id")

class InvoiceItem(Base):
    """
    Invoice line. Each line is a stock-decreasing (sale) event dated by its
    parent invoice.
    """
    __tablename__ = "invoice_items"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    invoice_id: Mapped[int] = mapped_column(ForeignKey("invoices.id", ondelete="CASCADE"), index=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), index=True)
    quantity: Mapped[int] = mapped_column(Integer)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(14, 6))  # Pre-tax, unrounded from the inclusive rate
    tax_rate: Mapped[Decimal] = mapped_column(Numeric(6, 4))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
    invoice = relationship("Invoice", back_populates="items")
    product = relationship("Product")
