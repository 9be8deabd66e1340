"""Tests for program enrollment and completion."""
from datetime import date

import pytest

from cdr_patient.core.errors import AlreadyEnrolledError, ConflictError, NotFoundError
from cdr_patient.core.security import Principal
from cdr_patient.models.program import PatientProgram
from cdr_patient.services.enrollments import EnrollmentRegistrar
from cdr_patient.services.programs import ProgramCatalog


class TestEnroll:
    def test_enroll_then_reenroll_conflicts(self, db, registrar, principal, registry):
        program_id = registry["program"].program_id
        enrollment = registrar.enroll(principal, 100, program_id, date(2024, 1, 1))
        assert enrollment.date_enrolled == date(2024, 1, 1)
        assert enrollment.date_completed is None
        assert enrollment.created_by == principal.person_id

        with pytest.raises(AlreadyEnrolledError):
            registrar.enroll(principal, 100, program_id, date(2024, 2, 1))
        assert db.query(PatientProgram).count() == 1

    def test_concurrent_enroll_is_caught_by_storage(self, session_factory, principal, registry, monkeypatch):
        """A second request that passed the existence check before the first committed."""
        program_id = registry["program"].program_id
        first_session, second_session = session_factory(), session_factory()
        try:
            first = EnrollmentRegistrar(first_session)
            second = EnrollmentRegistrar(second_session)
            monkeypatch.setattr(second, "_find", lambda patient_id, program_id: None)

            first.enroll(principal, 100, program_id, date(2024, 1, 1))
            with pytest.raises(AlreadyEnrolledError) as exc_info:
                second.enroll(principal, 100, program_id, date(2024, 1, 2))
            assert isinstance(exc_info.value, ConflictError)

            rows = second_session.query(PatientProgram).filter(PatientProgram.patient_id == 100).all()
            assert [r.date_enrolled for r in rows] == [date(2024, 1, 1)]
        finally:
            first_session.close()
            second_session.close()

    def test_completed_enrollment_still_blocks_reenrollment(self, registrar, principal, registry):
        """Re-enrollment after completion is not modelled."""
        program_id = registry["program"].program_id
        registrar.enroll(principal, 100, program_id, date(2023, 1, 1))
        registrar.record_completion(principal, 100, program_id, date(2023, 12, 31))
        with pytest.raises(AlreadyEnrolledError):
            registrar.enroll(principal, 100, program_id, date(2024, 1, 1))

    def test_unknown_patient_is_not_found(self, registrar, principal, registry):
        with pytest.raises(NotFoundError):
            registrar.enroll(principal, 555, registry["program"].program_id, date(2024, 1, 1))

    def test_unknown_program_is_not_found(self, registrar, principal, registry):
        with pytest.raises(NotFoundError, match="Program with Id of '77' not found"):
            registrar.enroll(principal, 100, 77, date(2024, 1, 1))

    def test_voided_program_cannot_be_enrolled(self, db, registrar, principal, registry):
        program_id = registry["program"].program_id
        ProgramCatalog(db).void(principal, program_id, "retired programme")
        with pytest.raises(NotFoundError):
            registrar.enroll(principal, 100, program_id, date(2024, 1, 1))

    def test_enrollments_are_ordered_by_date(self, db, registrar, principal, registry):
        other = ProgramCatalog(db).create(principal, "TB Care", "TB")
        registrar.enroll(principal, 100, registry["program"].program_id, date(2024, 5, 1))
        registrar.enroll(principal, 100, other.program_id, date(2023, 5, 1))
        dates = [e.date_enrolled for e in registrar.enrollments_for_patient(100)]
        assert dates == [date(2023, 5, 1), date(2024, 5, 1)]


class TestRecordCompletion:
    def test_completion_leaves_enrollment_date(self, registrar, registry):
        program_id = registry["program"].program_id
        registrar.enroll(Principal(1), 100, program_id, date(2024, 1, 1), location_id=4)

        completed = registrar.record_completion(
            Principal(2), 100, program_id, date(2024, 6, 1), outcome_concept_id=5, outcome_comment="cured"
        )
        assert completed.date_completed == date(2024, 6, 1)
        assert completed.outcome_concept_id == 5
        assert completed.outcome_comment == "cured"
        assert completed.date_enrolled == date(2024, 1, 1)
        assert completed.location_id == 4
        assert completed.created_by == 1
        assert completed.last_modified_by == 2

    def test_missing_enrollment_is_not_found(self, registrar, principal, registry):
        with pytest.raises(NotFoundError, match="Patient Enrollment"):
            registrar.record_completion(principal, 100, registry["program"].program_id, date(2024, 6, 1))

    def test_voided_patient_is_not_found(self, directory, registrar, principal, registry):
        program_id = registry["program"].program_id
        registrar.enroll(principal, 100, program_id, date(2024, 1, 1))
        directory.retire(principal, 100, "duplicate record")
        with pytest.raises(NotFoundError):
            registrar.record_completion(principal, 100, program_id, date(2024, 6, 1))

    def test_get_enrollment(self, registrar, principal, registry):
        program_id = registry["program"].program_id
        registrar.enroll(principal, 100, program_id, date(2024, 1, 1))
        assert registrar.get_enrollment(100, program_id).program_id == program_id
        with pytest.raises(NotFoundError):
            registrar.get_enrollment(100, program_id + 1)
