from datetime import date, datetime
from decimal import Decimal
from typing import Tuple
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session
from ...dependencies import get_db
from ...security.auth import get_current_user
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.notifications import CollectingSink
from ...application.services_purchases import PurchaseService
from ..common import page_params, page_response, run

router = APIRouter(prefix="/purchases", tags=["purchases"], dependencies=[Depends(get_current_user)])

class NewProductIn(BaseModel):
    """Product created together with its first purchase."""
    name: str
    description: str | None = None
    hsn_code: str | None = None
    sku: str | None = None
    unit_price: Decimal = Decimal("0")
    tax_rate: Decimal = Decimal("0")
    unit_id: int | None = None
    unit_name: str | None = None  # Created when it does not exist
    category_id: int | None = None
    category_name: str | None = None  # Created when it does not exist

class PurchaseIn(BaseModel):
    product_id: int | None = None
    new_product: NewProductIn | None = None
    purchase_date: date
    reference_invoice: str | None = None
    quantity: int

class PurchaseUpdate(BaseModel):
    product_id: int | None = None
    purchase_date: date | None = None
    reference_invoice: str | None = None
    quantity: int | None = None

class PurchaseOut(BaseModel):
    id: int
    product_id: int
    product_name: str | None = None
    purchase_date: date
    reference_invoice: str | None = None
    quantity: int
    created_at: datetime | None = None

def _out(p) -> PurchaseOut:
    return PurchaseOut(
        id=p.id,
        product_id=p.product_id,
        product_name=p.product.name if p.product else None,
        purchase_date=p.purchase_date,
        reference_invoice=p.reference_invoice,
        quantity=p.quantity,
        created_at=p.created_at,
    )

@router.get("")
def list_purchases(
    product_id: int | None = Query(None),
    paging: Tuple[int, int] = Depends(page_params),
    db: Session = Depends(get_db),
):
    page, page_size = paging
    items, total = PurchaseService(UnitOfWork(db)).list(page, page_size, product_id)
    return page_response([_out(p) for p in items], page, page_size, total)

@router.post("", status_code=201)
def create_purchase(payload: PurchaseIn, db: Session = Depends(get_db)):
    """Records a purchase and credits the product's stock."""
    sink = CollectingSink()
    purchase = run("creating purchase", lambda: PurchaseService(UnitOfWork(db), sink).create(
        purchase_date=payload.purchase_date,
        quantity=payload.quantity,
        product_id=payload.product_id,
        reference_invoice=payload.reference_invoice,
        new_product=payload.new_product.model_dump() if payload.new_product else None,
    ))
    return {**_out(purchase).model_dump(), "messages": sink.messages}

@router.get("/{purchase_id}", response_model=PurchaseOut)
def get_purchase(purchase_id: int, db: Session = Depends(get_db)):
    return _out(run("loading purchase", lambda: PurchaseService(UnitOfWork(db)).get(purchase_id)))

@router.patch("/{purchase_id}")
def update_purchase(purchase_id: int, payload: PurchaseUpdate, db: Session = Depends(get_db)):
    """Applies the quantity delta (or moves it to another product) to stock."""
    sink = CollectingSink()
    data = payload.model_dump(exclude_unset=True)
    purchase = run("updating purchase", lambda: PurchaseService(UnitOfWork(db), sink).update(purchase_id, data))
    return {**_out(purchase).model_dump(), "messages": sink.messages}

@router.delete("/{purchase_id}")
def delete_purchase(purchase_id: int, db: Session = Depends(get_db)):
    sink = CollectingSink()
    run("deleting purchase", lambda: PurchaseService(UnitOfWork(db), sink).delete(purchase_id))
    return {"ok": True, "messages": sink.messages}
