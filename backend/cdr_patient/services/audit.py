"""
Audit stamping shared by every registry entity.

Each helper mutates the in-session record only; callers commit it together
with the business change so metadata and data land in the same transaction.
"""
import logging
from datetime import datetime
from typing import Optional

from ..core.errors import RecordValidationError
from ..core.security import Principal
from ..models.base import AuditMixin, generate_uuid

logger = logging.getLogger(__name__)


def stamp_created(record: AuditMixin, principal: Principal, now: Optional[datetime] = None) -> AuditMixin:
    record.created_by = principal.person_id
    record.created_at = now or datetime.utcnow()
    record.uuid = generate_uuid()
    record.last_modified_by = None
    record.last_modified_at = None
    record.voided = False
    record.voided_by = None
    record.voided_at = None
    record.void_reason = None
    return record


def stamp_modified(record: AuditMixin, principal: Principal, now: Optional[datetime] = None) -> AuditMixin:
    record.last_modified_by = principal.person_id
    record.last_modified_at = now or datetime.utcnow()
    return record


def modified_values(principal: Principal, now: Optional[datetime] = None) -> dict:
    """Column values for bulk UPDATE statements that bypass the ORM instances."""
    return {
        "last_modified_by": principal.person_id,
        "last_modified_at": now or datetime.utcnow(),
    }


def require_void_reason(reason: Optional[str]) -> str:
    if reason is None or not reason.strip():
        raise RecordValidationError({"void_reason": "must not be blank"})
    return reason.strip()


def void(record: AuditMixin, principal: Principal, reason: Optional[str], now: Optional[datetime] = None) -> bool:
    """Void ``record``. Returns False when it was already voided and nothing changed."""
    reason = require_void_reason(reason)
    if record.voided:
        logger.info("%s %s already voided, leaving void metadata untouched", type(record).__name__, record.uuid)
        return False
    record.voided = True
    record.voided_by = principal.person_id
    record.voided_at = now or datetime.utcnow()
    record.void_reason = reason
    return True
