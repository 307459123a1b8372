import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from .config import settings


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        # FastAPI runs sync handlers in a threadpool
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True, "pool_recycle": 300}


if settings.database_url.startswith("sqlite:///./"):
    os.makedirs("./data", exist_ok=True)

engine = create_engine(settings.database_url, echo=False, future=True, **_engine_kwargs(settings.database_url))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
Base = declarative_base()


def _import_all_models():
    """Imports every model module so Base.metadata knows all tables."""
    from .domain import models  # noqa: F401 - User, CompanyDetails, Unit, Category, Customer, Product
    from .domain import models_trade  # noqa: F401 - Purchase, Invoice, InvoiceItem


def init_db(bind=None):
    """Create missing tables (normal startup)."""
    _import_all_models()
    Base.metadata.create_all(bind=bind or engine)
