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

router = APIRouter(prefix="/units", tags=["units"], dependencies=[Depends(get_current_user)])

class UnitIn(BaseModel):
    name: str
    abbreviation: str

class UnitUpdate(BaseModel):
    name: str | None = None
    abbreviation: str | None = None

class UnitOut(BaseModel):
    id: int
    name: str
    abbreviation: str
    created_at: datetime | None = None

    class Config:
        from_attributes = True

@router.get("")
def list_units(paging: Tuple[int, int] = Depends(page_params), db: Session = Depends(get_db)):
    page, page_size = paging
    items, total = MasterDataService(UnitOfWork(db)).list_units(page, page_size)
    return page_response([UnitOut.model_validate(u) for u in items], page, page_size, total)

@router.post("", response_model=UnitOut, status_code=201)
def create_unit(payload: UnitIn, db: Session = Depends(get_db)):
    return run("creating unit", lambda: MasterDataService(UnitOfWork(db)).create_unit(payload.name, payload.abbreviation))

@router.get("/{unit_id}", response_model=UnitOut)
def get_unit(unit_id: int, db: Session = Depends(get_db)):
    return run("loading unit", lambda: MasterDataService(UnitOfWork(db)).get_unit(unit_id))

@router.patch("/{unit_id}", response_model=UnitOut)
def update_unit(unit_id: int, payload: UnitUpdate, db: Session = Depends(get_db)):
    data = payload.model_dump(exclude_unset=True)
    return run("updating unit", lambda: MasterDataService(UnitOfWork(db)).update_unit(unit_id, data))

@router.delete("/{unit_id}")
def delete_unit(unit_id: int, db: Session = Depends(get_db)):
    run("deleting unit", lambda: MasterDataService(UnitOfWork(db)).delete_unit(unit_id))
    return {"ok": True}
