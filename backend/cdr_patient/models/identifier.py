from sqlalchemy import Column, Integer, String, Text, Boolean, ForeignKey, Index, text
from .base import Base, AuditMixin


class PatientIdentifierType(Base, AuditMixin):
    __tablename__ = "patient_identifier_type"

    patient_identifier_type_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    format = Column(String(255), nullable=True)  # regex enforced on assignment
    format_hint = Column(String(255), nullable=True)
    # Stored catalog attributes, returned to clients but not evaluated on assignment
    validator = Column(String(255), nullable=True)
    required = Column(Boolean, nullable=False, default=False)
    is_unique = Column(Boolean, nullable=False, default=False)


class PatientIdentifier(Base, AuditMixin):
    __tablename__ = "patient_identifier"
    __table_args__ = (
        Index("patient_identifier_idx", "identifier_type_id", "patient_id", "preferred"),
        # At most one live preferred identifier per (patient, type)
        Index(
            "uq_patient_identifier_preferred",
            "patient_id",
            "identifier_type_id",
            unique=True,
            sqlite_where=text("preferred = 1 AND voided = 0"),
            postgresql_where=text("preferred AND NOT voided"),
        ),
    )

    patient_identifier_id = Column(Integer, primary_key=True, autoincrement=True)
    patient_id = Column(Integer, ForeignKey("patient.patient_id"), nullable=False, index=True)
    identifier_type_id = Column(
        Integer, ForeignKey("patient_identifier_type.patient_identifier_type_id"), nullable=False
    )
    identifier = Column(String(100), unique=True, nullable=False)
    preferred = Column(Boolean, nullable=False, default=False)
    location_id = Column(Integer, nullable=True)
