import logging
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.errors import ConflictError

logger = logging.getLogger(__name__)


def commit_or_conflict(db: Session, conflict: ConflictError) -> None:
    """Commit the unit of work; a storage uniqueness violation becomes ``conflict``."""
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("Integrity violation on commit, reporting conflict: %s", exc.orig)
        raise conflict from exc
    except Exception:
        db.rollback()
        raise
