"""
Program enrollment with a hard one-row-per-(patient, program) rule.

Re-enrollment is never modelled: a completed or voided enrollment still blocks
a new one for the same pair.
"""
import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.errors import AlreadyEnrolledError, NotFoundError
from ..core.security import Principal
from ..models.patient import Patient
from ..models.program import PatientProgram, Program
from . import audit
from .transaction import commit_or_conflict

logger = logging.getLogger(__name__)


class EnrollmentRegistrar:
    def __init__(self, db: Session):
        self.db = db

    def _find(self, patient_id: int, program_id: int) -> Optional[PatientProgram]:
        return (
            self.db.query(PatientProgram)
            .filter(PatientProgram.patient_id == patient_id, PatientProgram.program_id == program_id)
            .first()
        )

    def _require_patient(self, patient_id: int) -> Patient:
        patient = (
            self.db.query(Patient)
            .filter(Patient.patient_id == patient_id, Patient.voided == False)
            .first()
        )
        if not patient:
            raise NotFoundError("Patient", "Id", patient_id)
        return patient

    def get_enrollment(self, patient_id: int, program_id: int) -> PatientProgram:
        enrollment = self._find(patient_id, program_id)
        if not enrollment:
            raise NotFoundError("Patient Enrollment", "Program Id", program_id)
        return enrollment

    def enrollments_for_patient(self, patient_id: int, include_voided: bool = False) -> List[PatientProgram]:
        q = self.db.query(PatientProgram).filter(PatientProgram.patient_id == patient_id)
        if not include_voided:
            q = q.filter(PatientProgram.voided == False)
        return q.order_by(PatientProgram.date_enrolled).all()

    def enroll(
        self,
        principal: Principal,
        patient_id: int,
        program_id: int,
        date_enrolled: date,
        location_id: Optional[int] = None,
    ) -> PatientProgram:
        if self._find(patient_id, program_id) is not None:
            raise AlreadyEnrolledError(patient_id, program_id)

        self._require_patient(patient_id)
        program = (
            self.db.query(Program)
            .filter(Program.program_id == program_id, Program.voided == False)
            .first()
        )
        if not program:
            raise NotFoundError("Program", "Id", program_id)

        enrollment = PatientProgram(
            patient_id=patient_id,
            program_id=program_id,
            date_enrolled=date_enrolled,
            location_id=location_id,
        )
        audit.stamp_created(enrollment, principal)
        self.db.add(enrollment)
        # A concurrent enroll for the same pair trips uq_patient_program here
        commit_or_conflict(self.db, AlreadyEnrolledError(patient_id, program_id))
        self.db.refresh(enrollment)
        logger.info("Enrolled patient %s in program %s on %s", patient_id, program_id, date_enrolled)
        return enrollment

    def record_completion(
        self,
        principal: Principal,
        patient_id: int,
        program_id: int,
        date_completed: Optional[date],
        outcome_concept_id: Optional[int] = None,
        outcome_comment: Optional[str] = None,
    ) -> PatientProgram:
        self._require_patient(patient_id)
        enrollment = self.get_enrollment(patient_id, program_id)

        # Enrollment date and location are left as recorded at enrollment
        enrollment.date_completed = date_completed
        enrollment.outcome_concept_id = outcome_concept_id
        enrollment.outcome_comment = outcome_comment
        audit.stamp_modified(enrollment, principal)
        self.db.commit()
        self.db.refresh(enrollment)
        logger.info("Recorded completion of program %s for patient %s", program_id, patient_id)
        return enrollment
