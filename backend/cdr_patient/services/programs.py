import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.errors import ConflictError, NotFoundError, RecordValidationError
from ..core.security import Principal
from ..models.program import Program
from . import audit
from .transaction import commit_or_conflict

logger = logging.getLogger(__name__)


def _require(errors: dict, name: str, value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        errors[name] = "must not be blank"
        return None
    return value.strip()


class ProgramCatalog:
    """Care program definitions. Name and code uniqueness is left to storage."""

    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        principal: Principal,
        name: str,
        program_code: str,
        description: Optional[str] = None,
        active: bool = True,
    ) -> Program:
        errors: dict = {}
        name = _require(errors, "name", name)
        program_code = _require(errors, "program_code", program_code)
        if errors:
            raise RecordValidationError(errors)

        program = Program(name=name, program_code=program_code, description=description, active=active)
        audit.stamp_created(program, principal)
        self.db.add(program)
        commit_or_conflict(
            self.db, ConflictError(f"Program with name '{name}' or code '{program_code}' already exists")
        )
        self.db.refresh(program)
        logger.info("Created program %s (%s)", program.program_id, program_code)
        return program

    def update(
        self,
        principal: Principal,
        program_id: int,
        name: str,
        description: Optional[str] = None,
        active: bool = True,
    ) -> Program:
        errors: dict = {}
        name = _require(errors, "name", name)
        if errors:
            raise RecordValidationError(errors)

        program = self.get(program_id)
        program.name = name
        program.description = description
        program.active = active
        audit.stamp_modified(program, principal)
        commit_or_conflict(self.db, ConflictError(f"Program with name '{name}' already exists"))
        self.db.refresh(program)
        return program

    def void(self, principal: Principal, program_id: int, reason: str) -> Program:
        program = self.get(program_id, include_voided=True)
        if audit.void(program, principal, reason):
            self.db.commit()
            self.db.refresh(program)
            logger.info("Voided program %s: %s", program_id, program.void_reason)
        return program

    def get(self, program_id: int, include_voided: bool = False) -> Program:
        q = self.db.query(Program).filter(Program.program_id == program_id)
        if not include_voided:
            q = q.filter(Program.voided == False)
        program = q.first()
        if not program:
            raise NotFoundError("Program", "Id", program_id)
        return program

    def list(self, include_voided: bool = False) -> List[Program]:
        q = self.db.query(Program)
        if not include_voided:
            q = q.filter(Program.voided == False)
        return q.order_by(Program.program_id).all()
