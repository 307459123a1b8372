from typing import Any, Dict, Optional
import logging

from ..domain.models import CompanyDetails
from ..infrastructure.unit_of_work import UnitOfWork
from .errors import ValidationError

logger = logging.getLogger(__name__)

COMPANY_FIELDS = (
    "name", "slogan", "address", "gstin", "phone", "email",
    "bank_name", "account_name", "account_number", "account_type", "ifsc_code",
)


def get_company(uow: UnitOfWork) -> Optional[CompanyDetails]:
    """Company profile, or None until it has been configured."""
    company = uow.company.get()
    if company and not company.name:
        return None
    return company


def save_company(uow: UnitOfWork, data: Dict[str, Any]) -> CompanyDetails:
    if not (data.get("name") or "").strip():
        raise ValidationError("Company name is required")
    company = uow.company.get_or_create()
    for key in COMPANY_FIELDS:
        if key in data:
            value = data[key]
            setattr(company, key, value.strip() if isinstance(value, str) else value)
    if company.gstin:
        company.gstin = company.gstin.upper()
    if company.ifsc_code:
        company.ifsc_code = company.ifsc_code.upper()
    uow.commit()
    logger.info("Company details saved")
    return company
