"""
Identifier assignment with the one-preferred-identifier-per-(patient, type) rule.

The application checks run first and reject bad transitions before anything is
written; the partial unique index on ``patient_identifier`` backs them up when
two requests race for the same (patient, type).
"""
import logging
import re
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.errors import (
    ConflictError,
    DataIntegrityError,
    InvalidTransitionError,
    NotFoundError,
    RecordValidationError,
)
from ..core.security import Principal
from ..models.identifier import PatientIdentifier, PatientIdentifierType
from ..models.patient import Patient
from . import audit
from .transaction import commit_or_conflict

logger = logging.getLogger(__name__)


class IdentifierPreferenceEnforcer:
    def __init__(self, db: Session):
        self.db = db

    # ── lookups ─────────────────────────────────────────────────────────────

    def get_identifier(self, identifier_id: int) -> PatientIdentifier:
        identifier = (
            self.db.query(PatientIdentifier)
            .filter(PatientIdentifier.patient_identifier_id == identifier_id)
            .first()
        )
        if not identifier:
            raise NotFoundError("Patient Identifier", "Id", identifier_id)
        return identifier

    def preferred_identifier(self, patient_id: int, identifier_type_id: int) -> Optional[PatientIdentifier]:
        """Return the live preferred identifier for (patient, type), if any.

        Storage guarantees at most one; seeing two means enforcement failed
        somewhere and is reported rather than resolved.
        """
        matches: List[PatientIdentifier] = (
            self.db.query(PatientIdentifier)
            .filter(
                PatientIdentifier.patient_id == patient_id,
                PatientIdentifier.identifier_type_id == identifier_type_id,
                PatientIdentifier.preferred == True,
                PatientIdentifier.voided == False,
            )
            .all()
        )
        if len(matches) > 1:
            raise DataIntegrityError(
                f"{len(matches)} preferred identifiers found for patient {patient_id} "
                f"and identifier type {identifier_type_id}"
            )
        return matches[0] if matches else None

    def identifiers_for_patient(self, patient_id: int, include_voided: bool = False) -> List[PatientIdentifier]:
        q = self.db.query(PatientIdentifier).filter(PatientIdentifier.patient_id == patient_id)
        if not include_voided:
            q = q.filter(PatientIdentifier.voided == False)
        return q.order_by(PatientIdentifier.patient_identifier_id).all()

    def _live_patient(self, patient_id: int) -> Patient:
        patient = (
            self.db.query(Patient)
            .filter(Patient.patient_id == patient_id, Patient.voided == False)
            .first()
        )
        if not patient:
            raise NotFoundError("Patient", "Id", patient_id)
        return patient

    def _live_type(self, identifier_type_id: int) -> PatientIdentifierType:
        identifier_type = (
            self.db.query(PatientIdentifierType)
            .filter(
                PatientIdentifierType.patient_identifier_type_id == identifier_type_id,
                PatientIdentifierType.voided == False,
            )
            .first()
        )
        if not identifier_type:
            raise NotFoundError("Patient Identifier Type", "Id", identifier_type_id)
        return identifier_type

    # ── mutations ───────────────────────────────────────────────────────────

    def _clear_preferred(
        self,
        principal: Principal,
        patient_id: int,
        identifier_type_id: int,
        keep_id: Optional[int] = None,
    ) -> int:
        q = self.db.query(PatientIdentifier).filter(
            PatientIdentifier.patient_id == patient_id,
            PatientIdentifier.identifier_type_id == identifier_type_id,
            PatientIdentifier.preferred == True,
            PatientIdentifier.voided == False,
        )
        if keep_id is not None:
            q = q.filter(PatientIdentifier.patient_identifier_id != keep_id)
        values = {"preferred": False, **audit.modified_values(principal)}
        cleared = q.update(values, synchronize_session="fetch")
        if cleared:
            logger.info(
                "Cleared preferred flag on %d identifier(s) for patient %s type %s",
                cleared, patient_id, identifier_type_id,
            )
        return cleared

    def assign_identifier(
        self,
        principal: Principal,
        patient_id: int,
        identifier_type_id: int,
        value: str,
        preferred: bool = False,
        location_id: Optional[int] = None,
    ) -> PatientIdentifier:
        self._live_patient(patient_id)
        identifier_type = self._live_type(identifier_type_id)
        value = _validate_value(identifier_type, value)

        # Clear and insert share one transaction; nothing is visible until commit
        if preferred:
            self._clear_preferred(principal, patient_id, identifier_type_id)

        identifier = PatientIdentifier(
            patient_id=patient_id,
            identifier_type_id=identifier_type_id,
            identifier=value,
            preferred=preferred,
            location_id=location_id,
        )
        audit.stamp_created(identifier, principal)
        self.db.add(identifier)
        commit_or_conflict(
            self.db,
            ConflictError(
                f"Identifier '{value}' conflicts with an existing identifier "
                f"for patient {patient_id} and identifier type {identifier_type_id}"
            ),
        )
        self.db.refresh(identifier)
        logger.info(
            "Assigned identifier %s (type %s, preferred=%s) to patient %s",
            identifier.patient_identifier_id, identifier_type_id, preferred, patient_id,
        )
        return identifier

    def change_preference(
        self,
        principal: Principal,
        identifier_id: int,
        preferred: Optional[bool] = None,
        location_id: Optional[int] = None,
    ) -> PatientIdentifier:
        """Update the mutable fields of an identifier: ``preferred`` and ``location_id``.

        ``None`` leaves a field unchanged. The identifier value itself cannot be
        changed here or anywhere else.
        """
        identifier = self.get_identifier(identifier_id)
        if identifier.voided:
            raise InvalidTransitionError(f"Patient Identifier {identifier_id} is voided and cannot be modified")

        changed = False
        if preferred is False:
            # Inherited rule: once a (patient, type) has a preferred identifier,
            # no update may set preferred=false. Preference only moves by
            # assigning a new preferred identifier or by voiding.
            if self.preferred_identifier(identifier.patient_id, identifier.identifier_type_id) is not None:
                raise InvalidTransitionError("Preferred Patient Identifier can not be unset")
        elif preferred is True and not identifier.preferred:
            self._clear_preferred(
                principal, identifier.patient_id, identifier.identifier_type_id, keep_id=identifier_id
            )
            identifier.preferred = True
            changed = True

        if location_id is not None and location_id != identifier.location_id:
            identifier.location_id = location_id
            changed = True

        if not changed:
            return identifier

        audit.stamp_modified(identifier, principal)
        commit_or_conflict(
            self.db,
            ConflictError(
                f"Patient {identifier.patient_id} already has a preferred identifier "
                f"of type {identifier.identifier_type_id}"
            ),
        )
        self.db.refresh(identifier)
        logger.info("Updated identifier %s (preferred=%s)", identifier_id, identifier.preferred)
        return identifier

    def retire_identifier(self, principal: Principal, identifier_id: int, reason: str) -> PatientIdentifier:
        identifier = self.get_identifier(identifier_id)
        # Siblings are not re-balanced: voiding the preferred one leaves none preferred
        if audit.void(identifier, principal, reason):
            self.db.commit()
            self.db.refresh(identifier)
            logger.info("Voided identifier %s: %s", identifier_id, identifier.void_reason)
        return identifier


def _validate_value(identifier_type: PatientIdentifierType, value: Optional[str]) -> str:
    value = (value or "").strip()
    if not value:
        raise RecordValidationError({"identifier": "must not be blank"})
    if identifier_type.format and not re.fullmatch(identifier_type.format, value):
        hint = identifier_type.format_hint or identifier_type.format
        raise RecordValidationError({"identifier": f"does not match the {identifier_type.name} format ({hint})"})
    return value
