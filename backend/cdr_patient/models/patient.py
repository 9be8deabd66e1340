from sqlalchemy import Column, Integer, Text
from .base import Base, AuditMixin


class Patient(Base, AuditMixin):
    __tablename__ = "patient"

    # Same value as the Person id owned by the demographic service
    patient_id = Column(Integer, primary_key=True, autoincrement=False)
    allergies = Column(Text, nullable=True)
