from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict
from datetime import date
from ..models.base import get_db
from ..core.audit_middleware import get_correlation_id
from ..core.security import Principal, get_current_principal
from ..services.patients import PatientDirectory, HydratedPatient
from ..services.identifiers import IdentifierPreferenceEnforcer
from ..services.enrollments import EnrollmentRegistrar
from .common import AuditResponse, VoidRequest

router = APIRouter(prefix="/patients", tags=["patients"])


class PatientCreate(BaseModel):
    patient_id: int
    allergies: Optional[str] = None


class PatientUpdate(BaseModel):
    allergies: Optional[str] = None


class PatientResponse(AuditResponse):
    patient_id: int
    allergies: Optional[str]


class IdentifierCreate(BaseModel):
    patient_id: int
    identifier_type_id: int
    identifier: str
    preferred: bool = False
    location_id: Optional[int] = None


class IdentifierUpdate(BaseModel):
    # The identifier value is immutable; sending it is rejected
    model_config = ConfigDict(extra="forbid")

    preferred: Optional[bool] = None
    location_id: Optional[int] = None


class IdentifierResponse(AuditResponse):
    patient_identifier_id: int
    patient_id: int
    identifier_type_id: int
    identifier: str
    preferred: bool
    location_id: Optional[int]


class EnrollmentCreate(BaseModel):
    date_enrolled: date
    location_id: Optional[int] = None


class EnrollmentCompletion(BaseModel):
    date_completed: Optional[date] = None
    outcome_concept_id: Optional[int] = None
    outcome_comment: Optional[str] = None


class EnrollmentResponse(AuditResponse):
    patient_program_id: int
    patient_id: int
    program_id: int
    location_id: Optional[int]
    date_enrolled: date
    date_completed: Optional[date]
    outcome_concept_id: Optional[int]
    outcome_comment: Optional[str]


class HydratedPatientResponse(PatientResponse):
    person: Optional[Dict[str, Any]] = None
    identifiers: List[IdentifierResponse] = []
    programs: List[EnrollmentResponse] = []
    locations: Dict[int, Optional[Dict[str, Any]]] = {}


def get_directory(db: Session = Depends(get_db)) -> PatientDirectory:
    return PatientDirectory(db)


def _hydrated_response(hydrated: HydratedPatient) -> HydratedPatientResponse:
    base = PatientResponse.model_validate(hydrated.patient).model_dump()
    return HydratedPatientResponse(
        **base,
        person=hydrated.person,
        identifiers=[IdentifierResponse.model_validate(i) for i in hydrated.identifiers],
        programs=[EnrollmentResponse.model_validate(e) for e in hydrated.enrollments],
        locations=hydrated.locations,
    )


# ── Patients ────────────────────────────────────────────────────────────────

@router.get("", response_model=List[PatientResponse])
def list_patients(directory: PatientDirectory = Depends(get_directory)):
    return directory.list_active()


@router.get("/both-voided", response_model=List[PatientResponse])
def list_patients_including_voided(directory: PatientDirectory = Depends(get_directory)):
    return directory.list_including_voided()


@router.post("", response_model=PatientResponse, status_code=status.HTTP_201_CREATED)
def create_patient(
    patient_in: PatientCreate,
    directory: PatientDirectory = Depends(get_directory),
    principal: Principal = Depends(get_current_principal),
):
    return directory.register(principal, patient_in.patient_id, patient_in.allergies)


# ── Identifiers ─────────────────────────────────────────────────────────────

@router.get("/identifier/type/{identifier_type_id}", response_model=List[PatientResponse])
def list_patients_by_identifier_type(
    identifier_type_id: int,
    directory: PatientDirectory = Depends(get_directory),
):
    return directory.list_by_identifier_type(identifier_type_id)


@router.get("/identifier/{value}", response_model=PatientResponse)
def get_patient_by_identifier(value: str, directory: PatientDirectory = Depends(get_directory)):
    return directory.find_by_identifier_value(value)


@router.post("/identifier", response_model=IdentifierResponse, status_code=status.HTTP_201_CREATED)
def assign_identifier(
    identifier_in: IdentifierCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return IdentifierPreferenceEnforcer(db).assign_identifier(
        principal,
        patient_id=identifier_in.patient_id,
        identifier_type_id=identifier_in.identifier_type_id,
        value=identifier_in.identifier,
        preferred=identifier_in.preferred,
        location_id=identifier_in.location_id,
    )


@router.put("/identifier/{identifier_id}", response_model=IdentifierResponse)
def update_identifier(
    identifier_id: int,
    identifier_in: IdentifierUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return IdentifierPreferenceEnforcer(db).change_preference(
        principal,
        identifier_id,
        preferred=identifier_in.preferred,
        location_id=identifier_in.location_id,
    )


@router.delete("/identifier/{identifier_id}", status_code=status.HTTP_204_NO_CONTENT)
def void_identifier(
    identifier_id: int,
    void_in: VoidRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    IdentifierPreferenceEnforcer(db).retire_identifier(principal, identifier_id, void_in.void_reason)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Programs ────────────────────────────────────────────────────────────────

@router.get("/program/{program_id}/status/{active}", response_model=List[PatientResponse])
def list_patients_by_program_and_status(
    program_id: int,
    active: bool,
    directory: PatientDirectory = Depends(get_directory),
):
    return directory.list_by_program_and_status(program_id, active)


@router.get("/program/{program_id}", response_model=List[PatientResponse])
def list_patients_by_program(program_id: int, directory: PatientDirectory = Depends(get_directory)):
    return directory.list_by_program(program_id)


@router.post(
    "/{patient_id}/program/{program_id}",
    response_model=EnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
)
def enroll_patient(
    patient_id: int,
    program_id: int,
    enrollment_in: EnrollmentCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return EnrollmentRegistrar(db).enroll(
        principal,
        patient_id,
        program_id,
        date_enrolled=enrollment_in.date_enrolled,
        location_id=enrollment_in.location_id,
    )


@router.get("/{patient_id}/program/{program_id}", response_model=EnrollmentResponse)
def get_patient_enrollment(patient_id: int, program_id: int, db: Session = Depends(get_db)):
    return EnrollmentRegistrar(db).get_enrollment(patient_id, program_id)


@router.put("/{patient_id}/program/{program_id}", response_model=EnrollmentResponse)
def record_program_completion(
    patient_id: int,
    program_id: int,
    completion_in: EnrollmentCompletion,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return EnrollmentRegistrar(db).record_completion(
        principal,
        patient_id,
        program_id,
        date_completed=completion_in.date_completed,
        outcome_concept_id=completion_in.outcome_concept_id,
        outcome_comment=completion_in.outcome_comment,
    )


# ── Single patient ──────────────────────────────────────────────────────────

@router.get("/{patient_id}", response_model=HydratedPatientResponse)
def get_patient(
    patient_id: int,
    directory: PatientDirectory = Depends(get_directory),
    correlation_id: str = Depends(get_correlation_id),
):
    """Local record merged with the Person record, identifiers and enrollments."""
    patient = directory.get(patient_id)
    return _hydrated_response(directory.hydrate(patient, correlation_id=correlation_id))


@router.put("/{patient_id}", response_model=PatientResponse)
def update_patient(
    patient_id: int,
    patient_in: PatientUpdate,
    directory: PatientDirectory = Depends(get_directory),
    principal: Principal = Depends(get_current_principal),
):
    return directory.update(principal, patient_id, patient_in.allergies)


@router.delete("/{patient_id}", status_code=status.HTTP_204_NO_CONTENT)
def void_patient(
    patient_id: int,
    void_in: VoidRequest,
    directory: PatientDirectory = Depends(get_directory),
    principal: Principal = Depends(get_current_principal),
    correlation_id: str = Depends(get_correlation_id),
):
    directory.retire(principal, patient_id, void_in.void_reason, correlation_id=correlation_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
