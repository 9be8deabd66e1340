"""Tests for audit stamping, transactions and principal resolution."""
from datetime import datetime, timedelta

import pytest

from cdr_patient.core.errors import ConflictError, RecordValidationError
from cdr_patient.core.security import (
    Principal,
    create_access_token,
    decode_access_token,
    principal_from_token,
)
from cdr_patient.models.patient import Patient
from cdr_patient.services import audit
from cdr_patient.services.transaction import commit_or_conflict


class TestStamping:
    def setup_method(self):
        self.principal = Principal(person_id=11)
        self.now = datetime(2024, 1, 1, 8, 30)

    def test_stamp_created_resets_other_metadata(self):
        patient = Patient(patient_id=1, voided=True, void_reason="stale", last_modified_by=3)
        audit.stamp_created(patient, self.principal, now=self.now)
        assert patient.created_by == 11
        assert patient.created_at == self.now
        assert patient.uuid
        assert patient.last_modified_by is None
        assert patient.voided is False
        assert patient.void_reason is None

    def test_each_creation_gets_a_fresh_uuid(self):
        a = audit.stamp_created(Patient(patient_id=1), self.principal)
        b = audit.stamp_created(Patient(patient_id=2), self.principal)
        assert a.uuid != b.uuid

    def test_stamp_modified(self):
        patient = audit.stamp_created(Patient(patient_id=1), Principal(1), now=self.now)
        later = self.now + timedelta(hours=1)
        audit.stamp_modified(patient, self.principal, now=later)
        assert patient.last_modified_by == 11
        assert patient.last_modified_at == later
        assert patient.created_by == 1

    def test_modified_values_for_bulk_updates(self):
        assert audit.modified_values(self.principal, now=self.now) == {
            "last_modified_by": 11,
            "last_modified_at": self.now,
        }

    def test_void_sets_all_void_fields(self):
        patient = audit.stamp_created(Patient(patient_id=1), Principal(1))
        assert audit.void(patient, self.principal, "  duplicate record ", now=self.now) is True
        assert patient.voided is True
        assert patient.voided_by == 11
        assert patient.voided_at == self.now
        assert patient.void_reason == "duplicate record"

    def test_void_is_a_no_op_when_already_voided(self):
        patient = audit.stamp_created(Patient(patient_id=1), Principal(1))
        audit.void(patient, Principal(1), "first", now=self.now)
        assert audit.void(patient, self.principal, "second") is False
        assert patient.voided_by == 1
        assert patient.void_reason == "first"

    @pytest.mark.parametrize("reason", [None, "", "   "])
    def test_void_requires_a_reason(self, reason):
        patient = audit.stamp_created(Patient(patient_id=1), self.principal)
        with pytest.raises(RecordValidationError) as exc_info:
            audit.void(patient, self.principal, reason)
        assert exc_info.value.errors == {"void_reason": "must not be blank"}
        assert patient.voided is False


class TestCommitOrConflict:
    def test_integrity_error_becomes_conflict(self, db):
        principal = Principal(1)
        db.add(audit.stamp_created(Patient(patient_id=5), principal))
        db.commit()
        db.expunge_all()
        db.add(audit.stamp_created(Patient(patient_id=5), principal))
        with pytest.raises(ConflictError, match="taken"):
            commit_or_conflict(db, ConflictError("taken"))
        assert db.query(Patient).count() == 1


class TestPrincipalToken:
    def test_round_trip_subject(self):
        token = create_access_token({"sub": "17"})
        assert decode_access_token(token)["sub"] == "17"
        assert principal_from_token(token) == Principal(person_id=17)

    def test_garbage_token_has_no_principal(self):
        assert decode_access_token("not-a-jwt") is None
        assert principal_from_token("not-a-jwt") is None

    def test_expired_token_has_no_principal(self):
        token = create_access_token({"sub": "17"}, expires_delta=timedelta(minutes=-5))
        assert principal_from_token(token) is None

    def test_non_numeric_subject_has_no_principal(self):
        assert principal_from_token(create_access_token({"sub": "nurse"})) is None
