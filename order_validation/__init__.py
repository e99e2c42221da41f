"""Medication order validation.

Checks a proposed medication order against a patient's recorded allergies,
active orders and prescriptions, and reference dose ranges, and returns a
single verdict on whether the order may proceed.
"""

from .data_source import InMemoryPatientDataSource, PatientDataSource, PatientNotFoundError
from .dose_reference import DoseRange, DoseReferenceTable
from .drug_classes import DrugClassRegistry
from .models import (
    ActiveTherapy,
    AllergyAlert,
    DoseVerdict,
    DuplicateAlert,
    OverallSeverity,
    PatientSnapshot,
    ValidationResponse,
)
from .policy import OverridePolicy
from .validation_service import ValidationOrchestrator

__all__ = [
    "ActiveTherapy",
    "AllergyAlert",
    "DoseRange",
    "DoseReferenceTable",
    "DoseVerdict",
    "DrugClassRegistry",
    "DuplicateAlert",
    "InMemoryPatientDataSource",
    "OverallSeverity",
    "OverridePolicy",
    "PatientDataSource",
    "PatientNotFoundError",
    "PatientSnapshot",
    "ValidationOrchestrator",
    "ValidationResponse",
]
