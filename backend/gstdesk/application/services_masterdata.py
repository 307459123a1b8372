"""
Master data services: units, categories and customers.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from ..infrastructure.unit_of_work import UnitOfWork
from ..domain.models import Unit, Category, Customer
from .errors import NotFoundError, ValidationError, ConflictError
from .notifications import NotificationSink, LoggingSink

logger = logging.getLogger(__name__)


def _apply(entity, data: Dict[str, Any], fields) -> None:
    for key, value in data.items():
        if key in fields:
            setattr(entity, key, value)


def _require_text(value: Optional[str], label: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{label} is required")
    return str(value).strip()


class MasterDataService:
    UNIT_FIELDS = ("name", "abbreviation")
    CATEGORY_FIELDS = ("name", "description")
    CUSTOMER_FIELDS = ("name", "email", "phone", "gstin", "billing_address", "is_guest")

    def __init__(self, uow: UnitOfWork, sink: NotificationSink = None):
        self.uow = uow
        self.sink = sink or LoggingSink()

    # ===== UNITS =====

    def list_units(self, page: int, page_size: int) -> Tuple[List[Unit], int]:
        return self.uow.units.page(page, page_size)

    def get_unit(self, unit_id: int) -> Unit:
        unit = self.uow.units.get(unit_id)
        if not unit:
            raise NotFoundError(f"Unit {unit_id} not found")
        return unit

    def create_unit(self, name: str, abbreviation: str) -> Unit:
        unit = Unit(name=_require_text(name, "Unit name"), abbreviation=_require_text(abbreviation, "Abbreviation").upper())
        self.uow.units.add(unit)
        self.uow.commit()
        self.sink.notify(f"Unit '{unit.name}' created", "success")
        return unit

    def update_unit(self, unit_id: int, data: Dict[str, Any]) -> Unit:
        unit = self.get_unit(unit_id)
        if "name" in data:
            data["name"] = _require_text(data["name"], "Unit name")
        if "abbreviation" in data:
            data["abbreviation"] = _require_text(data["abbreviation"], "Abbreviation").upper()
        _apply(unit, data, self.UNIT_FIELDS)
        self.uow.commit()
        return unit

    def delete_unit(self, unit_id: int) -> None:
        unit = self.get_unit(unit_id)
        used = self.uow.units.usage_count(unit_id)
        if used:
            raise ConflictError(f"Cannot delete unit '{unit.name}': used by {used} product(s)")
        self.uow.units.delete(unit)
        self.uow.commit()
        self.sink.notify(f"Unit '{unit.name}' deleted", "success")

    # ===== CATEGORIES =====

    def list_categories(self, page: int, page_size: int) -> Tuple[List[Category], int]:
        return self.uow.categories.page(page, page_size)

    def get_category(self, category_id: int) -> Category:
        category = self.uow.categories.get(category_id)
        if not category:
            raise NotFoundError(f"Category {category_id} not found")
        return category

    def create_category(self, name: str, description: Optional[str] = None) -> Category:
        category = Category(name=_require_text(name, "Category name"), description=description or None)
        self.uow.categories.add(category)
        self.uow.commit()
        self.sink.notify(f"Category '{category.name}' created", "success")
        return category

    def update_category(self, category_id: int, data: Dict[str, Any]) -> Category:
        category = self.get_category(category_id)
        if "name" in data:
            data["name"] = _require_text(data["name"], "Category name")
        _apply(category, data, self.CATEGORY_FIELDS)
        self.uow.commit()
        return category

    def delete_category(self, category_id: int) -> None:
        category = self.get_category(category_id)
        used = self.uow.categories.usage_count(category_id)
        if used:
            raise ConflictError(f"Cannot delete category '{category.name}': used by {used} product(s)")
        self.uow.categories.delete(category)
        self.uow.commit()
        self.sink.notify(f"Category '{category.name}' deleted", "success")

    # ===== CUSTOMERS =====

    def list_customers(self, page: int, page_size: int, q: Optional[str] = None) -> Tuple[List[Customer], int]:
        return self.uow.customers.page(page, page_size, q)

    def get_customer(self, customer_id: int) -> Customer:
        customer = self.uow.customers.get(customer_id)
        if not customer:
            raise NotFoundError(f"Customer {customer_id} not found")
        return customer

    def build_customer(self, data: Dict[str, Any]) -> Customer:
        """Validated, unsaved customer. Invoices reuse this for inline customers."""
        customer = Customer(name=_require_text(data.get("name"), "Customer name"), is_guest=bool(data.get("is_guest", False)))
        _apply(customer, {k: v for k, v in data.items() if k not in ("name", "is_guest")}, self.CUSTOMER_FIELDS)
        return customer

    def create_customer(self, data: Dict[str, Any]) -> Customer:
        customer = self.uow.customers.add(self.build_customer(data))
        self.uow.commit()
        self.sink.notify(f"Customer '{customer.name}' created", "success")
        return customer

    def update_customer(self, customer_id: int, data: Dict[str, Any]) -> Customer:
        customer = self.get_customer(customer_id)
        if "name" in data:
            data["name"] = _require_text(data["name"], "Customer name")
        _apply(customer, data, self.CUSTOMER_FIELDS)
        self.uow.commit()
        return customer

    def delete_customer(self, customer_id: int) -> None:
        customer = self.get_customer(customer_id)
        invoices = self.uow.customers.invoice_count(customer_id)
        if invoices:
            raise ConflictError(f"Cannot delete customer '{customer.name}': has {invoices} invoice(s)")
        self.uow.customers.delete(customer)
        self.uow.commit()
        self.sink.notify(f"Customer '{customer.name}' deleted", "success")
