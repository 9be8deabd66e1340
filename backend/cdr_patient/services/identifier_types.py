import logging
import re
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.errors import ConflictError, NotFoundError, RecordValidationError
from ..core.security import Principal
from ..models.identifier import PatientIdentifierType
from . import audit
from .transaction import commit_or_conflict

logger = logging.getLogger(__name__)

# Fields a caller may set; the name is fixed once created
MUTABLE_FIELDS = ("description", "format", "format_hint", "validator", "required", "is_unique")


def _check_format(pattern: Optional[str]) -> None:
    if not pattern:
        return
    try:
        re.compile(pattern)
    except re.error as exc:
        raise RecordValidationError({"format": f"not a valid regular expression: {exc}"})


class IdentifierTypeCatalog:
    def __init__(self, db: Session):
        self.db = db

    def create(self, principal: Principal, name: str, **fields) -> PatientIdentifierType:
        if name is None or not name.strip():
            raise RecordValidationError({"name": "must not be blank"})
        _check_format(fields.get("format"))

        identifier_type = PatientIdentifierType(
            name=name.strip(), **{k: v for k, v in fields.items() if k in MUTABLE_FIELDS}
        )
        audit.stamp_created(identifier_type, principal)
        self.db.add(identifier_type)
        commit_or_conflict(self.db, ConflictError(f"Patient Identifier Type '{name}' already exists"))
        self.db.refresh(identifier_type)
        logger.info("Created identifier type %s (%s)", identifier_type.patient_identifier_type_id, name)
        return identifier_type

    def update(self, principal: Principal, identifier_type_id: int, **fields) -> PatientIdentifierType:
        _check_format(fields.get("format"))
        identifier_type = self.get(identifier_type_id)
        for key in MUTABLE_FIELDS:
            if key in fields:
                setattr(identifier_type, key, fields[key])
        audit.stamp_modified(identifier_type, principal)
        self.db.commit()
        self.db.refresh(identifier_type)
        return identifier_type

    def void(self, principal: Principal, identifier_type_id: int, reason: str) -> PatientIdentifierType:
        identifier_type = self.get(identifier_type_id, include_voided=True)
        if audit.void(identifier_type, principal, reason):
            self.db.commit()
            self.db.refresh(identifier_type)
            logger.info("Voided identifier type %s: %s", identifier_type_id, identifier_type.void_reason)
        return identifier_type

    def get(self, identifier_type_id: int, include_voided: bool = False) -> PatientIdentifierType:
        q = self.db.query(PatientIdentifierType).filter(
            PatientIdentifierType.patient_identifier_type_id == identifier_type_id
        )
        if not include_voided:
            q = q.filter(PatientIdentifierType.voided == False)
        identifier_type = q.first()
        if not identifier_type:
            raise NotFoundError("Patient Identifier Type", "Id", identifier_type_id)
        return identifier_type

    def list(self, include_voided: bool = False) -> List[PatientIdentifierType]:
        q = self.db.query(PatientIdentifierType)
        if not include_voided:
            q = q.filter(PatientIdentifierType.voided == False)
        return q.order_by(PatientIdentifierType.patient_identifier_type_id).all()
