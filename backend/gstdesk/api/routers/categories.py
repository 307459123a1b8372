from datetime import datetime
from typing import Tuple
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session
from ...dependencies import get_db
from ...security.auth import get_current_user
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.services_masterdata import MasterDataService
from ..common import page_params, page_response, run

router = APIRouter(prefix="/categories", tags=["categories"], dependencies=[Depends(get_current_user)])

class CategoryIn(BaseModel):
    name: str
    description: str | None = None

class CategoryUpdate(BaseModel):
    name: str | None = None
    description: str | None = None

class CategoryOut(BaseModel):
    id: int
    name: str
    description: str | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True

@router.get("")
def list_categories(paging: Tuple[int, int] = Depends(page_params), db: Session = Depends(get_db)):
    page, page_size = paging
    items, total = MasterDataService(UnitOfWork(db)).list_categories(page, page_size)
    return page_response([CategoryOut.model_validate(c) for c in items], page, page_size, total)

@router.post("", response_model=CategoryOut, status_code=201)
def create_category(payload: CategoryIn, db: Session = Depends(get_db)):
    return run("creating category", lambda: MasterDataService(UnitOfWork(db)).create_category(payload.name, payload.description))

@router.get("/{category_id}", response_model=CategoryOut)
def get_category(category_id: int, db: Session = Depends(get_db)):
    return run("loading category", lambda: MasterDataService(UnitOfWork(db)).get_category(category_id))

@router.patch("/{category_id}", response_model=CategoryOut)
def update_category(category_id: int, payload: CategoryUpdate, db: Session = Depends(get_db)):
    data = payload.model_dump(exclude_unset=True)
    return run("updating category", lambda: MasterDataService(UnitOfWork(db)).update_category(category_id, data))

@router.delete("/{category_id}")
def delete_category(category_id: int, db: Session = Depends(get_db)):
    """Blocked while any product still uses the category."""
    run("deleting category", lambda: MasterDataService(UnitOfWork(db)).delete_category(category_id))
    return {"ok": True}
