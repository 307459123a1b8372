from datetime import datetime
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session
from ...dependencies import get_db
from ...security.auth import get_current_user
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.services_company import get_company, save_company
from ..common import run

router = APIRouter(prefix="/company", tags=["company"], dependencies=[Depends(get_current_user)])

class CompanyIn(BaseModel):
    name: str
    slogan: str | None = None
    address: str | None = None
    gstin: str | None = None
    phone: str | None = None
    email: str | None = None
    bank_name: str | None = None
    account_name: str | None = None
    account_number: str | None = None
    account_type: str | None = None
    ifsc_code: str | None = None

class CompanyOut(CompanyIn):
    id: int
    updated_at: datetime | None = None

    class Config:
        from_attributes = True

@router.get("", response_model=CompanyOut | None)
def read_company(db: Session = Depends(get_db)):
    """Company profile, or null until configured."""
    return get_company(UnitOfWork(db))

@router.put("", response_model=CompanyOut)
def update_company(payload: CompanyIn, db: Session = Depends(get_db)):
    return run("saving company details", lambda: save_company(UnitOfWork(db), payload.model_dump()))
