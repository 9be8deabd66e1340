"""Schemas shared by every router that exposes audited records."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict


class AuditResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    uuid: str
    created_by: int
    created_at: datetime
    last_modified_by: Optional[int]
    last_modified_at: Optional[datetime]
    voided: bool
    voided_by: Optional[int]
    voided_at: Optional[datetime]
    void_reason: Optional[str]


class VoidRequest(BaseModel):
    void_reason: str
