from .base import Base
from .patient import Patient
from .identifier import PatientIdentifier, PatientIdentifierType
from .program import Program, PatientProgram

__all__ = [
    "Base",
    "Patient",
    "PatientIdentifier",
    "PatientIdentifierType",
    "Program",
    "PatientProgram",
]
