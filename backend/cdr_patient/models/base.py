import uuid
from datetime import datetime

from sqlalchemy import create_engine, Column, String, Integer, DateTime, Boolean, Text
from sqlalchemy.orm import declarative_base, sessionmaker

from ..core.config import settings

_connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(settings.DATABASE_URL, connect_args=_connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def generate_uuid() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.utcnow()


class AuditMixin:
    """Creation, modification and void metadata carried by every registry table.

    Columns are only written through ``services.audit``; nothing else should
    assign them directly.
    """

    created_by = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    last_modified_by = Column(Integer, nullable=True)
    last_modified_at = Column(DateTime, nullable=True)

    voided = Column(Boolean, nullable=False, default=False, index=True)
    voided_by = Column(Integer, nullable=True)
    voided_at = Column(DateTime, nullable=True)
    void_reason = Column(Text, nullable=True)

    uuid = Column(String(36), nullable=False, unique=True, default=generate_uuid)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
