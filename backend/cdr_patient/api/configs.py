"""Service information endpoint."""
from fastapi import APIRouter
from typing import Dict, List
from pydantic import BaseModel

from ..core.config import settings

router = APIRouter(prefix="/configs", tags=["configs"])


class AppConfigResponse(BaseModel):
    contact_details: Dict[str, str]
    description: str
    version: str
    work_days: List[str]
    email: str


@router.get("", response_model=AppConfigResponse)
def get_app_config():
    return AppConfigResponse(
        contact_details=settings.CONTACT_DETAILS,
        description=settings.DESCRIPTION,
        version=settings.VERSION,
        work_days=settings.WORK_DAYS,
        email=settings.SUPPORT_EMAIL,
    )
