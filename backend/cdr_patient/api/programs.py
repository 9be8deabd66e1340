"""Program catalog endpoints."""
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
from typing import List, Optional
from pydantic import BaseModel

from ..models.base import get_db
from ..core.security import Principal, get_current_principal
from ..services.programs import ProgramCatalog
from .common import AuditResponse, VoidRequest

router = APIRouter(prefix="/programs", tags=["programs"])


class ProgramCreate(BaseModel):
    name: str
    program_code: str
    description: Optional[str] = None
    active: bool = True


class ProgramUpdate(BaseModel):
    name: str
    description: Optional[str] = None
    active: bool = True


class ProgramResponse(AuditResponse):
    program_id: int
    name: str
    program_code: str
    description: Optional[str]
    active: bool


def get_catalog(db: Session = Depends(get_db)) -> ProgramCatalog:
    return ProgramCatalog(db)


@router.post("", response_model=ProgramResponse, status_code=status.HTTP_201_CREATED)
def create_program(
    program_in: ProgramCreate,
    catalog: ProgramCatalog = Depends(get_catalog),
    principal: Principal = Depends(get_current_principal),
):
    return catalog.create(principal, **program_in.model_dump())


@router.get("", response_model=List[ProgramResponse])
def list_programs(catalog: ProgramCatalog = Depends(get_catalog)):
    return catalog.list()


@router.get("/both-voided", response_model=List[ProgramResponse])
def list_programs_including_voided(catalog: ProgramCatalog = Depends(get_catalog)):
    return catalog.list(include_voided=True)


@router.get("/{program_id}", response_model=ProgramResponse)
def get_program(program_id: int, catalog: ProgramCatalog = Depends(get_catalog)):
    return catalog.get(program_id)


@router.put("/{program_id}", response_model=ProgramResponse)
def update_program(
    program_id: int,
    program_in: ProgramUpdate,
    catalog: ProgramCatalog = Depends(get_catalog),
    principal: Principal = Depends(get_current_principal),
):
    return catalog.update(principal, program_id, **program_in.model_dump())


@router.delete("/{program_id}", status_code=status.HTTP_204_NO_CONTENT)
def void_program(
    program_id: int,
    void_in: VoidRequest,
    catalog: ProgramCatalog = Depends(get_catalog),
    principal: Principal = Depends(get_current_principal),
):
    catalog.void(principal, program_id, void_in.void_reason)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
