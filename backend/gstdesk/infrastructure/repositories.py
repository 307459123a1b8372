from datetime import date
from typing import List, Optional, Tuple
from sqlalchemy import func, or_, update
from sqlalchemy.orm import Session, joinedload
from ..domain.models import Unit, Category, Customer, Product, CompanyDetails, User
from ..domain.models_trade import Purchase, Invoice, InvoiceItem


def _page(query, page: int, page_size: int) -> Tuple[list, int]:
    total = query.order_by(None).count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()
    return items, total


class UnitRepository:
    def __init__(self, db: Session): self.db = db
    def add(self, u: Unit): self.db.add(u); return u
    def get(self, id: int): return self.db.get(Unit, id)
    def delete(self, u: Unit): self.db.delete(u)
    def by_name(self, name: str):
        return self.db.query(Unit).filter(func.lower(Unit.name) == name.strip().lower()).first()
    def page(self, page: int, page_size: int):
        return _page(self.db.query(Unit).order_by(Unit.name), page, page_size)
    def usage_count(self, id: int) -> int:
        return self.db.query(func.count(Product.id)).filter(Product.unit_id == id).scalar() or 0


class CategoryRepository:
    def __init__(self, db: Session): self.db = db
    def add(self, c: Category): self.db.add(c); return c
    def get(self, id: int): return self.db.get(Category, id)
    def delete(self, c: Category): self.db.delete(c)
    def by_name(self, name: str):
        return self.db.query(Category).filter(func.lower(Category.name) == name.strip().lower()).first()
    def page(self, page: int, page_size: int):
        return _page(self.db.query(Category).order_by(Category.name), page, page_size)
    def usage_count(self, id: int) -> int:
        return self.db.query(func.count(Product.id)).filter(Product.category_id == id).scalar() or 0


class CustomerRepository:
    def __init__(self, db: Session): self.db = db
    def add(self, c: Customer): self.db.add(c); return c
    def get(self, id: int): return self.db.get(Customer, id)
    def delete(self, c: Customer): self.db.delete(c)
    def count(self) -> int:
        return self.db.query(func.count(Customer.id)).scalar() or 0
    def all(self) -> List[Customer]:
        return self.db.query(Customer).order_by(Customer.name).all()
    def page(self, page: int, page_size: int, q: Optional[str] = None):
        query = self.db.query(Customer)
        if q:
            query = query.filter(Customer.name.ilike(f"%{q.strip()}%"))
        return _page(query.order_by(Customer.name), page, page_size)
    def invoice_count(self, id: int) -> int:
        return self.db.query(func.count(Invoice.id)).filter(Invoice.customer_id == id).scalar() or 0


class ProductRepository:
    def __init__(self, db: Session): self.db = db
    def add(self, p: Product): self.db.add(p); return p
    def get(self, id: int): return self.db.get(Product, id)
    def delete(self, p: Product): self.db.delete(p)
    def all(self) -> List[Product]:
        return self.db.query(Product).order_by(Product.name).all()
    def page(self, page: int, page_size: int, q: Optional[str] = None):
        query = self.db.query(Product).options(joinedload(Product.unit), joinedload(Product.category))
        if q:
            like = f"%{q.strip()}%"
            query = query.filter(or_(Product.name.ilike(like), Product.sku.ilike(like)))
        return _page(query.order_by(Product.name), page, page_size)
    def low_stock_count(self, threshold: int) -> int:
        return self.db.query(func.count(Product.id)).filter(Product.stock_quantity > 0, Product.stock_quantity <= threshold).scalar() or 0
    def count(self) -> int:
        return self.db.query(func.count(Product.id)).scalar() or 0
    def history_count(self, id: int) -> int:
        purchases = self.db.query(func.count(Purchase.id)).filter(Purchase.product_id == id).scalar() or 0
        sales = self.db.query(func.count(InvoiceItem.id)).filter(InvoiceItem.product_id == id).scalar() or 0
        return purchases + sales
    def adjust_stock(self, product: Product, delta: int) -> Product:
        """stock_quantity = stock_quantity + delta, evaluated by the database."""
        self.db.execute(
            update(Product)
            .where(Product.id == product.id)
            .values(stock_quantity=Product.stock_quantity + delta)
            .execution_options(synchronize_session=False)
        )
        self.db.refresh(product, attribute_names=["stock_quantity"])
        return product


class PurchaseRepository:
    def __init__(self, db: Session): self.db = db
    def add(self, p: Purchase): self.db.add(p); return p
    def get(self, id: int): return self.db.get(Purchase, id)
    def delete(self, p: Purchase): self.db.delete(p)
    def all(self) -> List[Purchase]:
        return self.db.query(Purchase).order_by(Purchase.created_at, Purchase.id).all()
    def page(self, page: int, page_size: int, product_id: Optional[int] = None):
        query = self.db.query(Purchase).options(joinedload(Purchase.product))
        if product_id is not None:
            query = query.filter(Purchase.product_id == product_id)
        return _page(query.order_by(Purchase.purchase_date.desc(), Purchase.id.desc()), page, page_size)
    def for_product(self, product_id: int) -> List[Purchase]:
        return self.db.query(Purchase).filter(Purchase.product_id == product_id).all()
    def between(self, start: Optional[date], end: Optional[date]) -> List[Purchase]:
        query = self.db.query(Purchase).options(joinedload(Purchase.product))
        if start:
            query = query.filter(Purchase.purchase_date >= start)
        if end:
            query = query.filter(Purchase.purchase_date <= end)
        return query.all()


class InvoiceRepository:
    def __init__(self, db: Session): self.db = db
    def add(self, i: Invoice): self.db.add(i); return i
    def get(self, id: int): return self.db.get(Invoice, id)
    def delete(self, i: Invoice): self.db.delete(i)
    def by_number(self, number: str):
        return self.db.query(Invoice).filter(Invoice.invoice_number == number).first()
    def count(self) -> int:
        return self.db.query(func.count(Invoice.id)).scalar() or 0
    def total_sales(self):
        return self.db.query(func.coalesce(func.sum(Invoice.total_amount), 0)).scalar()
    def page(self, page: int, page_size: int, q: Optional[str] = None):
        query = self.db.query(Invoice).outerjoin(Customer, Invoice.customer_id == Customer.id).options(joinedload(Invoice.customer))
        if q:
            like = f"%{q.strip()}%"
            query = query.filter(or_(Invoice.invoice_number.ilike(like), Customer.name.ilike(like)))
        return _page(query.order_by(Invoice.invoice_date.desc(), Invoice.id.desc()), page, page_size)
    def sale_lines_for_product(self, product_id: int) -> List[Tuple[date, str, int]]:
        """(invoice_date, invoice_number, quantity) of every line selling the product"""
        return (
            self.db.query(Invoice.invoice_date, Invoice.invoice_number, InvoiceItem.quantity)
            .join(InvoiceItem, InvoiceItem.invoice_id == Invoice.id)
            .filter(InvoiceItem.product_id == product_id)
            .all()
        )
    def sale_lines_between(self, start: Optional[date], end: Optional[date]):
        query = (
            self.db.query(Invoice.invoice_date, Invoice.invoice_number, InvoiceItem.quantity, Product.name)
            .join(InvoiceItem, InvoiceItem.invoice_id == Invoice.id)
            .join(Product, Product.id == InvoiceItem.product_id)
        )
        if start:
            query = query.filter(Invoice.invoice_date >= start)
        if end:
            query = query.filter(Invoice.invoice_date <= end)
        return query.all()


class CompanyRepository:
    def __init__(self, db: Session): self.db = db
    def get(self) -> Optional[CompanyDetails]:
        return self.db.get(CompanyDetails, 1)
    def get_or_create(self) -> CompanyDetails:
        c = self.get()
        if not c:
            c = CompanyDetails(id=1, name="")
            self.db.add(c); self.db.flush()
        return c


class UserRepository:
    def __init__(self, db: Session): self.db = db
    def add(self, u: User): self.db.add(u); return u
    def by_username(self, username: str):
        return self.db.query(User).filter(User.username == username).first()
