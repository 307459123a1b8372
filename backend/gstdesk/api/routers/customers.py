from datetime import datetime
from typing import Tuple
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session
from ...dependencies import get_db
from ...security.auth import get_current_user
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.services_masterdata import MasterDataService
from ..common import page_params, page_response, run

router = APIRouter(prefix="/customers", tags=["customers"], dependencies=[Depends(get_current_user)])

class CustomerIn(BaseModel):
    name: str
    email: str | None = None
    phone: str | None = None
    gstin: str | None = None
    billing_address: str | None = None
    is_guest: bool = False

class CustomerUpdate(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    gstin: str | None = None
    billing_address: str | None = None
    is_guest: bool | None = None

class CustomerOut(BaseModel):
    id: int
    name: str
    email: str | None = None
    phone: str | None = None
    gstin: str | None = None
    billing_address: str | None = None
    is_guest: bool = False
    created_at: datetime | None = None

    class Config:
        from_attributes = True

@router.get("")
def list_customers(
    q: str | None = Query(None, description="Name contains"),
    paging: Tuple[int, int] = Depends(page_params),
    db: Session = Depends(get_db),
):
    page, page_size = paging
    items, total = MasterDataService(UnitOfWork(db)).list_customers(page, page_size, q)
    return page_response([CustomerOut.model_validate(c) for c in items], page, page_size, total)

@router.post("", response_model=CustomerOut, status_code=201)
def create_customer(payload: CustomerIn, db: Session = Depends(get_db)):
    return run("creating customer", lambda: MasterDataService(UnitOfWork(db)).create_customer(payload.model_dump()))

@router.get("/{customer_id}", response_model=CustomerOut)
def get_customer(customer_id: int, db: Session = Depends(get_db)):
    return run("loading customer", lambda: MasterDataService(UnitOfWork(db)).get_customer(customer_id))

@router.patch("/{customer_id}", response_model=CustomerOut)
def update_customer(customer_id: int, payload: CustomerUpdate, db: Session = Depends(get_db)):
    data = payload.model_dump(exclude_unset=True)
    return run("updating customer", lambda: MasterDataService(UnitOfWork(db)).update_customer(customer_id, data))

@router.delete("/{customer_id}")
def delete_customer(customer_id: int, db: Session = Depends(get_db)):
    run("deleting customer", lambda: MasterDataService(UnitOfWork(db)).delete_customer(customer_id))
    return {"ok": True}
