"""Shared fixtures for order validation tests."""

from datetime import date, datetime

import pytest

from order_validation.data_source import InMemoryPatientDataSource
from order_validation.dose_reference import DoseReferenceTable
from order_validation.drug_classes import DrugClassRegistry
from order_validation.models import ActiveTherapy, PatientSnapshot, TherapySource
from order_validation.policy import OverridePolicy
from order_validation.validation_service import ValidationOrchestrator

TODAY = date(2026, 10, 19)


def make_order(record_id, order_details, status="PENDING", order_type="MEDICATION", created_at=None):
    """Create a physician order record."""
    return ActiveTherapy(
        record_id=record_id,
        source=TherapySource.ORDER,
        status=status,
        created_at=created_at or datetime(2026, 10, 18, 9, 0),
        order_details=order_details,
        order_type=order_type,
    )


def make_prescription(record_id, drug_name, status="PENDING", created_at=None):
    """Create a prescription record."""
    return ActiveTherapy(
        record_id=record_id,
        source=TherapySource.PRESCRIPTION,
        status=status,
        created_at=created_at or datetime(2026, 10, 17, 14, 30),
        drug_name=drug_name,
    )


@pytest.fixture
def registry():
    return DrugClassRegistry.default()


@pytest.fixture
def dose_table():
    return DoseReferenceTable.default()


@pytest.fixture
def adult():
    return PatientSnapshot(
        patient_id="P001",
        first_name="Jane",
        last_name="Doe",
        date_of_birth=date(1981, 3, 14),
        weight_kg=70.0,
    )


@pytest.fixture
def child():
    return PatientSnapshot(
        patient_id="P002",
        first_name="Sam",
        last_name="Rivera",
        date_of_birth=date(2018, 6, 1),
        weight_kg=20.0,
    )


@pytest.fixture
def data_source(adult, child):
    return InMemoryPatientDataSource(patients=[adult, child])


@pytest.fixture
def orchestrator(data_source):
    return ValidationOrchestrator(
        data_source,
        policy=OverridePolicy(escalate_informational=False),
        today=lambda: TODAY,
    )
