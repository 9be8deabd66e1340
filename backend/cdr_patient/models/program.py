from sqlalchemy import Column, Integer, String, Text, Boolean, Date, ForeignKey, Index, UniqueConstraint
from .base import Base, AuditMixin


class Program(Base, AuditMixin):
    __tablename__ = "program"

    program_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(150), unique=True, nullable=False)
    program_code = Column(String(50), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    active = Column(Boolean, nullable=False, default=True)


class PatientProgram(Base, AuditMixin):
    __tablename__ = "patient_program"
    __table_args__ = (
        # One enrollment per (patient, program), completed or not
        UniqueConstraint("patient_id", "program_id", name="uq_patient_program"),
        Index("idx_program_date", "program_id", "date_enrolled"),
    )

    patient_program_id = Column(Integer, primary_key=True, autoincrement=True)
    patient_id = Column(Integer, ForeignKey("patient.patient_id"), nullable=False, index=True)
    program_id = Column(Integer, ForeignKey("program.program_id"), nullable=False)
    location_id = Column(Integer, nullable=True)
    date_enrolled = Column(Date, nullable=False)
    date_completed = Column(Date, nullable=True)
    outcome_concept_id = Column(Integer, nullable=True)
    outcome_comment = Column(Text, nullable=True)
