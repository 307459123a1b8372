from dataclasses import asdict
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from ...dependencies import get_db
from ...security.auth import get_current_user
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.services_dashboard import dashboard_summary

router = APIRouter(prefix="/dashboard", tags=["dashboard"], dependencies=[Depends(get_current_user)])

@router.get("")
def get_dashboard(db: Session = Depends(get_db)):
    return asdict(dashboard_summary(UnitOfWork(db)))
