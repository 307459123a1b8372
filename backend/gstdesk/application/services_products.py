"""
Product catalogue and stock overview.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from ..config import settings
from ..domain.enums import StockStatus
from ..domain.models import Product
from ..infrastructure.unit_of_work import UnitOfWork
from .errors import NotFoundError, ValidationError, ConflictError
from .notifications import NotificationSink, LoggingSink

logger = logging.getLogger(__name__)


def stock_status(quantity: int, threshold: int = None) -> StockStatus:
    limit = settings.low_stock_threshold if threshold is None else threshold
    if quantity > limit:
        return StockStatus.IN_STOCK
    if quantity > 0:
        return StockStatus.LOW_STOCK
    return StockStatus.OUT_OF_STOCK


@dataclass(frozen=True)
class StockOverviewRow:
    id: int
    name: str
    sku: Optional[str]
    stock_quantity: int
    unit_abbreviation: Optional[str]
    status: StockStatus


class ProductService:
    FIELDS = ("name", "description", "hsn_code", "sku", "stock_quantity", "tax_rate", "unit_price", "unit_id", "category_id")

    def __init__(self, uow: UnitOfWork, sink: NotificationSink = None):
        self.uow = uow
        self.sink = sink or LoggingSink()

    def _validate(self, data: Dict[str, Any]) -> None:
        if "name" in data and (data["name"] is None or not str(data["name"]).strip()):
            raise ValidationError("Product name is required")
        if data.get("tax_rate") is not None and Decimal(str(data["tax_rate"])) < 0:
            raise ValidationError("tax_rate cannot be negative")
        if data.get("unit_price") is not None and Decimal(str(data["unit_price"])) < 0:
            raise ValidationError("unit_price cannot be negative")
        if data.get("unit_id") is not None and not self.uow.units.get(data["unit_id"]):
            raise NotFoundError(f"Unit {data['unit_id']} not found")
        if data.get("category_id") is not None and not self.uow.categories.get(data["category_id"]):
            raise NotFoundError(f"Category {data['category_id']} not found")

    def list(self, page: int, page_size: int, q: Optional[str] = None) -> Tuple[List[Product], int]:
        return self.uow.products.page(page, page_size, q)

    def get(self, product_id: int) -> Product:
        product = self.uow.products.get(product_id)
        if not product:
            raise NotFoundError(f"Product {product_id} not found")
        return product

    def build(self, data: Dict[str, Any]) -> Product:
        """Validated, unsaved product."""
        if not data.get("name"):
            raise ValidationError("Product name is required")
        self._validate(data)
        product = Product(stock_quantity=0, tax_rate=Decimal("0"), unit_price=Decimal("0"))
        for key in self.FIELDS:
            if data.get(key) is not None:
                setattr(product, key, data[key])
        product.name = product.name.strip()
        return product

    def create(self, data: Dict[str, Any]) -> Product:
        product = self.uow.products.add(self.build(data))
        self.uow.commit()
        self.sink.notify(f"Product '{product.name}' created", "success")
        return product

    def update(self, product_id: int, data: Dict[str, Any]) -> Product:
        product = self.get(product_id)
        self._validate(data)
        for key, value in data.items():
            if key in self.FIELDS:
                setattr(product, key, value)
        self.uow.commit()
        return product

    def delete(self, product_id: int) -> None:
        product = self.get(product_id)
        history = self.uow.products.history_count(product_id)
        if history:
            raise ConflictError(f"Cannot delete product '{product.name}': referenced by {history} purchase/invoice line(s)")
        self.uow.products.delete(product)
        self.uow.commit()
        self.sink.notify(f"Product '{product.name}' deleted", "success")

    def stock_overview(self, page: int, page_size: int, q: Optional[str] = None) -> Tuple[List[StockOverviewRow], int]:
        products, total = self.uow.products.page(page, page_size, q)
        rows = [
            StockOverviewRow(
                id=p.id,
                name=p.name,
                sku=p.sku,
                stock_quantity=p.stock_quantity or 0,
                unit_abbreviation=p.unit_abbreviation,
                status=stock_status(p.stock_quantity or 0),
            )
            for p in products
        ]
        return rows, total
