from contextlib import contextmanager
from sqlalchemy.orm import Session
from ..db import SessionLocal
from .repositories import (
    UnitRepository, CategoryRepository, CustomerRepository, ProductRepository,
    PurchaseRepository, InvoiceRepository, CompanyRepository, UserRepository,
)

class UnitOfWork:
    def __init__(self, db: Session = None):
        # A session handed in by the request scope is closed by its owner
        self._owns_session = db is None
        self.db: Session = db if db is not None else SessionLocal()
        self.units = UnitRepository(self.db)
        self.categories = CategoryRepository(self.db)
        self.customers = CustomerRepository(self.db)
        self.products = ProductRepository(self.db)
        self.purchases = PurchaseRepository(self.db)
        self.invoices = InvoiceRepository(self.db)
        self.company = CompanyRepository(self.db)
        self.users = UserRepository(self.db)

    def commit(self): self.db.commit()
    def rollback(self): self.db.rollback()
    def flush(self): self.db.flush()
    def close(self):
        if self._owns_session:
            self.db.close()

    @contextmanager
    def transaction(self):
        try:
            yield self
            self.commit()
        except Exception:
            self.rollback()
            raise
        finally:
            self.close()
