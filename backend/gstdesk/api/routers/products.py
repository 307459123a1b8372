from datetime import datetime
from decimal import Decimal
from typing import Tuple
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session
from ...dependencies import get_db
from ...security.auth import get_current_user
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.services_products import ProductService
from ...application.gst import inclusive_rate
from ..common import page_params, page_response, run

router = APIRouter(prefix="/products", tags=["products"], dependencies=[Depends(get_current_user)])

class ProductIn(BaseModel):
    name: str
    description: str | None = None
    hsn_code: str | None = None
    sku: str | None = None
    stock_quantity: int = 0  # Opening stock
    unit_price: Decimal = Decimal("0")  # Pre-tax
    tax_rate: Decimal = Field(Decimal("0"), description="Fraction, 0.18 for 18% GST")
    unit_id: int | None = None
    category_id: int | None = None

class ProductUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    hsn_code: str | None = None
    sku: str | None = None
    stock_quantity: int | None = None
    unit_price: Decimal | None = None
    tax_rate: Decimal | None = None
    unit_id: int | None = None
    category_id: int | None = None

class ProductOut(BaseModel):
    id: int
    name: str
    description: str | None = None
    hsn_code: str | None = None
    sku: str | None = None
    stock_quantity: int
    unit_price: Decimal
    tax_rate: Decimal
    inclusive_rate: Decimal | None = None
    unit_id: int | None = None
    unit_abbreviation: str | None = None
    category_id: int | None = None
    category_name: str | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True

def _out(product) -> ProductOut:
    out = ProductOut.model_validate(product)
    out.inclusive_rate = inclusive_rate(product.unit_price, product.tax_rate).quantize(Decimal("0.01"))
    return out

@router.get("")
def list_products(
    q: str | None = Query(None, description="Name or SKU contains"),
    paging: Tuple[int, int] = Depends(page_params),
    db: Session = Depends(get_db),
):
    page, page_size = paging
    items, total = ProductService(UnitOfWork(db)).list(page, page_size, q)
    return page_response([_out(p) for p in items], page, page_size, total)

@router.post("", response_model=ProductOut, status_code=201)
def create_product(payload: ProductIn, db: Session = Depends(get_db)):
    return _out(run("creating product", lambda: ProductService(UnitOfWork(db)).create(payload.model_dump())))

@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return _out(run("loading product", lambda: ProductService(UnitOfWork(db)).get(product_id)))

@router.patch("/{product_id}", response_model=ProductOut)
def update_product(product_id: int, payload: ProductUpdate, db: Session = Depends(get_db)):
    data = payload.model_dump(exclude_unset=True)
    return _out(run("updating product", lambda: ProductService(UnitOfWork(db)).update(product_id, data)))

@router.delete("/{product_id}")
def delete_product(product_id: int, db: Session = Depends(get_db)):
    """Products with purchase or invoice history cannot be deleted."""
    run("deleting product", lambda: ProductService(UnitOfWork(db)).delete(product_id))
    return {"ok": True}
