"""Patient identifier type catalog endpoints."""
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
from typing import List, Optional
from pydantic import BaseModel

from ..models.base import get_db
from ..core.security import Principal, get_current_principal
from ..services.identifier_types import IdentifierTypeCatalog
from .common import AuditResponse, VoidRequest

router = APIRouter(prefix="/patient-identifier-types", tags=["patient-identifier-types"])


class IdentifierTypeFields(BaseModel):
    description: Optional[str] = None
    format: Optional[str] = None
    format_hint: Optional[str] = None
    validator: Optional[str] = None
    required: bool = False
    is_unique: bool = False


class IdentifierTypeCreate(IdentifierTypeFields):
    name: str


class IdentifierTypeResponse(AuditResponse):
    patient_identifier_type_id: int
    name: str
    description: Optional[str]
    format: Optional[str]
    format_hint: Optional[str]
    validator: Optional[str]
    required: bool
    is_unique: bool


def get_catalog(db: Session = Depends(get_db)) -> IdentifierTypeCatalog:
    return IdentifierTypeCatalog(db)


@router.post("", response_model=IdentifierTypeResponse, status_code=status.HTTP_201_CREATED)
def create_identifier_type(
    type_in: IdentifierTypeCreate,
    catalog: IdentifierTypeCatalog = Depends(get_catalog),
    principal: Principal = Depends(get_current_principal),
):
    return catalog.create(principal, **type_in.model_dump())


@router.get("", response_model=List[IdentifierTypeResponse])
def list_identifier_types(catalog: IdentifierTypeCatalog = Depends(get_catalog)):
    return catalog.list()


@router.get("/both-voided", response_model=List[IdentifierTypeResponse])
def list_identifier_types_including_voided(catalog: IdentifierTypeCatalog = Depends(get_catalog)):
    return catalog.list(include_voided=True)


@router.get("/{identifier_type_id}", response_model=IdentifierTypeResponse)
def get_identifier_type(identifier_type_id: int, catalog: IdentifierTypeCatalog = Depends(get_catalog)):
    return catalog.get(identifier_type_id)


@router.put("/{identifier_type_id}", response_model=IdentifierTypeResponse)
def update_identifier_type(
    identifier_type_id: int,
    type_in: IdentifierTypeFields,
    catalog: IdentifierTypeCatalog = Depends(get_catalog),
    principal: Principal = Depends(get_current_principal),
):
    return catalog.update(principal, identifier_type_id, **type_in.model_dump())


@router.delete("/{identifier_type_id}", status_code=status.HTTP_204_NO_CONTENT)
def void_identifier_type(
    identifier_type_id: int,
    void_in: VoidRequest,
    catalog: IdentifierTypeCatalog = Depends(get_catalog),
    principal: Principal = Depends(get_current_principal),
):
    catalog.void(principal, identifier_type_id, void_in.void_reason)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
