"""
Patient aggregate operations.

Composes the identifier and enrollment services with audit stamping, and is
the one place that merges local patient rows with the externally owned Person
record.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.errors import ConflictError, NotFoundError, RecordValidationError
from ..core.security import Principal
from ..models.identifier import PatientIdentifier
from ..models.patient import Patient
from ..models.program import PatientProgram, Program
from . import audit
from .demographic_client import DemographicClient, demographic_client
from .enrollments import EnrollmentRegistrar
from .identifiers import IdentifierPreferenceEnforcer
from .metadata_client import MetadataClient, metadata_client
from .transaction import commit_or_conflict

logger = logging.getLogger(__name__)


@dataclass
class HydratedPatient:
    """A patient row plus everything fetched for it on demand."""
    patient: Patient
    person: Optional[dict] = None
    identifiers: List[PatientIdentifier] = field(default_factory=list)
    enrollments: List[PatientProgram] = field(default_factory=list)
    locations: Dict[int, Optional[dict]] = field(default_factory=dict)


class PatientDirectory:
    def __init__(
        self,
        db: Session,
        demographic: Optional[DemographicClient] = None,
        metadata: Optional[MetadataClient] = None,
    ):
        self.db = db
        self.demographic = demographic or demographic_client
        self.metadata = metadata or metadata_client
        self.identifiers = IdentifierPreferenceEnforcer(db)
        self.enrollments = EnrollmentRegistrar(db)

    # ── commands ────────────────────────────────────────────────────────────

    def register(self, principal: Principal, patient_id: Optional[int], allergies: Optional[str] = None) -> Patient:
        """Persist the local clinical record for a Person created elsewhere."""
        if patient_id is None or patient_id <= 0:
            raise RecordValidationError({"patient_id": "must be the positive id of an existing Person"})
        if self.db.query(Patient).filter(Patient.patient_id == patient_id).first():
            raise ConflictError(f"Patient with Id of '{patient_id}' already exists")

        patient = Patient(patient_id=patient_id, allergies=allergies)
        audit.stamp_created(patient, principal)
        self.db.add(patient)
        commit_or_conflict(self.db, ConflictError(f"Patient with Id of '{patient_id}' already exists"))
        self.db.refresh(patient)
        logger.info("Registered patient %s", patient_id)
        return patient

    def update(self, principal: Principal, patient_id: int, allergies: Optional[str]) -> Patient:
        patient = self.get(patient_id)
        patient.allergies = allergies
        audit.stamp_modified(patient, principal)
        self.db.commit()
        self.db.refresh(patient)
        logger.info("Updated patient %s", patient_id)
        return patient

    def retire(
        self,
        principal: Principal,
        patient_id: int,
        reason: str,
        correlation_id: Optional[str] = None,
    ) -> Patient:
        """Void the patient here and on the demographic service.

        The remote void runs first; if it fails the local row is left as it
        was. Reads degrade on remote failure but this path does not.
        """
        reason = audit.require_void_reason(reason)
        patient = self.get(patient_id, include_voided=True)
        if patient.voided:
            logger.info("Patient %s already voided", patient_id)
            return patient

        self.demographic.delete_person(patient_id, reason, correlation_id=correlation_id)

        audit.void(patient, principal, reason)
        self.db.commit()
        self.db.refresh(patient)
        logger.info("Voided patient %s: %s", patient_id, reason)
        return patient

    # ── queries ─────────────────────────────────────────────────────────────

    def get(self, patient_id: int, include_voided: bool = False) -> Patient:
        q = self.db.query(Patient).filter(Patient.patient_id == patient_id)
        if not include_voided:
            q = q.filter(Patient.voided == False)
        patient = q.first()
        if not patient:
            logger.error("Patient With Id: %s not found.", patient_id)
            raise NotFoundError("Patient", "Id", patient_id)
        return patient

    def find_by_identifier_value(self, value: str) -> Patient:
        patient = (
            self.db.query(Patient)
            .join(PatientIdentifier, PatientIdentifier.patient_id == Patient.patient_id)
            .filter(
                PatientIdentifier.identifier == value,
                PatientIdentifier.voided == False,
                Patient.voided == False,
            )
            .first()
        )
        if not patient:
            raise NotFoundError("Patient", "Identifier", value)
        return patient

    def _enrolled_query(self, program_id: int):
        return (
            self.db.query(Patient)
            .join(PatientProgram, PatientProgram.patient_id == Patient.patient_id)
            .filter(
                PatientProgram.program_id == program_id,
                PatientProgram.voided == False,
                Patient.voided == False,
            )
        )

    def list_by_program(self, program_id: int) -> List[Patient]:
        return self._enrolled_query(program_id).distinct().order_by(Patient.patient_id).all()

    def list_by_program_and_status(self, program_id: int, active: bool) -> List[Patient]:
        """Patients enrolled in ``program_id`` when the program's active flag equals ``active``."""
        return (
            self._enrolled_query(program_id)
            .join(Program, Program.program_id == PatientProgram.program_id)
            .filter(Program.active == active)
            .distinct()
            .order_by(Patient.patient_id)
            .all()
        )

    def list_by_identifier_type(self, identifier_type_id: int) -> List[Patient]:
        return (
            self.db.query(Patient)
            .join(PatientIdentifier, PatientIdentifier.patient_id == Patient.patient_id)
            .filter(
                PatientIdentifier.identifier_type_id == identifier_type_id,
                PatientIdentifier.voided == False,
                Patient.voided == False,
            )
            .distinct()
            .order_by(Patient.patient_id)
            .all()
        )

    def list_active(self) -> List[Patient]:
        return self.db.query(Patient).filter(Patient.voided == False).order_by(Patient.patient_id).all()

    def list_including_voided(self) -> List[Patient]:
        return self.db.query(Patient).order_by(Patient.patient_id).all()

    def hydrate(self, patient: Patient, correlation_id: Optional[str] = None) -> HydratedPatient:
        """Attach the Person record, live identifiers and enrollments, and their locations.

        Never fails because a remote service did: missing pieces stay empty.
        """
        hydrated = HydratedPatient(
            patient=patient,
            person=self.demographic.get_person(patient.patient_id, False, correlation_id=correlation_id),
            identifiers=self.identifiers.identifiers_for_patient(patient.patient_id),
            enrollments=self.enrollments.enrollments_for_patient(patient.patient_id),
        )
        location_ids = {
            row.location_id
            for row in [*hydrated.identifiers, *hydrated.enrollments]
            if row.location_id is not None
        }
        for location_id in sorted(location_ids):
            hydrated.locations[location_id] = self.metadata.get_location(location_id, correlation_id=correlation_id)
        return hydrated
