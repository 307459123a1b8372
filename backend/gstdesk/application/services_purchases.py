"""
Purchases (stock-in events).

Every write keeps products.stock_quantity equal to the initial stock plus all
purchases minus all sales:
- create credits the product
- update applies the quantity delta, moving it across products when the
  product changes
- delete debits the product
"""
import logging
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from ..domain.models import Unit, Category
from ..domain.models_trade import Purchase
from ..infrastructure.unit_of_work import UnitOfWork
from .errors import NotFoundError, ValidationError
from .notifications import NotificationSink, LoggingSink
from .services_products import ProductService

logger = logging.getLogger(__name__)


def _positive_quantity(quantity) -> int:
    try:
        value = int(quantity)
    except (TypeError, ValueError):
        raise ValidationError("Quantity must be a whole number")
    if value <= 0:
        raise ValidationError("Quantity must be greater than zero")
    return value


class PurchaseService:
    def __init__(self, uow: UnitOfWork, sink: NotificationSink = None):
        self.uow = uow
        self.sink = sink or LoggingSink()

    def list(self, page: int, page_size: int, product_id: Optional[int] = None) -> Tuple[List[Purchase], int]:
        return self.uow.purchases.page(page, page_size, product_id)

    def get(self, purchase_id: int) -> Purchase:
        purchase = self.uow.purchases.get(purchase_id)
        if not purchase:
            raise NotFoundError(f"Purchase {purchase_id} not found")
        return purchase

    def _unit_by_name(self, name: str) -> Unit:
        unit = self.uow.units.by_name(name)
        if not unit:
            unit = self.uow.units.add(Unit(name=name.strip(), abbreviation=name.strip()[:10].upper()))
            self.uow.flush()
            self.sink.notify(f"Unit '{unit.name}' created", "info")
        return unit

    def _category_by_name(self, name: str) -> Category:
        category = self.uow.categories.by_name(name)
        if not category:
            category = self.uow.categories.add(Category(name=name.strip()))
            self.uow.flush()
            self.sink.notify(f"Category '{category.name}' created", "info")
        return category

    def _inline_product(self, data: Dict[str, Any]):
        """Creates the product described inline in a purchase (new unit/category by name allowed)."""
        data = dict(data)
        if data.get("unit_name") and not data.get("unit_id"):
            data["unit_id"] = self._unit_by_name(data["unit_name"]).id
        if data.get("category_name") and not data.get("category_id"):
            data["category_id"] = self._category_by_name(data["category_name"]).id
        # Opening stock of a product created by a purchase is zero; the purchase credits it
        data["stock_quantity"] = 0
        product = self.uow.products.add(ProductService(self.uow, self.sink).build(data))
        self.uow.flush()
        self.sink.notify(f"Product '{product.name}' created", "info")
        return product

    def create(
        self,
        purchase_date: date,
        quantity,
        product_id: Optional[int] = None,
        reference_invoice: Optional[str] = None,
        new_product: Optional[Dict[str, Any]] = None,
    ) -> Purchase:
        qty = _positive_quantity(quantity)
        try:
            if new_product:
                product = self._inline_product(new_product)
            else:
                if product_id is None:
                    raise ValidationError("product_id or new_product is required")
                product = self.uow.products.get(product_id)
                if not product:
                    raise NotFoundError(f"Product {product_id} not found")

            purchase = Purchase(
                product_id=product.id,
                purchase_date=purchase_date,
                reference_invoice=reference_invoice or None,
                quantity=qty,
            )
            self.uow.purchases.add(purchase)
            self.uow.products.adjust_stock(product, qty)
            self.uow.commit()
        except Exception:
            self.uow.rollback()
            raise

        logger.info(f"Purchase {purchase.id}: +{qty} of product {product.id} (stock now {product.stock_quantity})")
        self.sink.notify(f"Purchase recorded: {qty} x {product.name}", "success")
        return purchase

    def update(self, purchase_id: int, data: Dict[str, Any]) -> Purchase:
        purchase = self.get(purchase_id)
        new_qty = _positive_quantity(data["quantity"]) if data.get("quantity") is not None else purchase.quantity
        new_product_id = data.get("product_id") or purchase.product_id

        try:
            old_product = self.uow.products.get(purchase.product_id)
            if new_product_id != purchase.product_id:
                new_product = self.uow.products.get(new_product_id)
                if not new_product:
                    raise NotFoundError(f"Product {new_product_id} not found")
                self.uow.products.adjust_stock(old_product, -purchase.quantity)
                self.uow.products.adjust_stock(new_product, new_qty)
            else:
                self.uow.products.adjust_stock(old_product, new_qty - purchase.quantity)

            purchase.product_id = new_product_id
            purchase.quantity = new_qty
            if data.get("purchase_date") is not None:
                purchase.purchase_date = data["purchase_date"]
            if "reference_invoice" in data:
                purchase.reference_invoice = data["reference_invoice"] or None
            self.uow.commit()
        except Exception:
            self.uow.rollback()
            raise

        self.sink.notify(f"Purchase {purchase.id} updated", "success")
        return purchase

    def delete(self, purchase_id: int) -> None:
        purchase = self.get(purchase_id)
        product = self.uow.products.get(purchase.product_id)
        try:
            self.uow.products.adjust_stock(product, -purchase.quantity)
            self.uow.purchases.delete(purchase)
            self.uow.commit()
        except Exception:
            self.uow.rollback()
            raise
        if product.stock_quantity < 0:
            self.sink.notify(f"Stock of '{product.name}' is now negative ({product.stock_quantity})", "warning")
        self.sink.notify(f"Purchase {purchase_id} deleted", "success")
