"""Patient data collaborators consumed by the validation engine.

The engine only reads three things: the patient, their active medication
orders, and their active prescriptions. Implementations must raise
PatientNotFoundError for an unknown patient and return empty lists (never
raise) when a patient has no orders or prescriptions.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import date, datetime

from .models import ActiveTherapy, PatientSnapshot, TherapySource

logger = logging.getLogger(__name__)


class PatientNotFoundError(LookupError):
    """Raised when a patient id does not resolve to a patient."""

    def __init__(self, patient_id: str):
        super().__init__(f"Patient not found with id: {patient_id}")
        self.patient_id = patient_id


class PatientDataSource(ABC):
    """Read-only access to patient data needed for order validation."""

    @abstractmethod
    def get_patient(self, patient_id: str) -> PatientSnapshot:
        """Fetch a patient, raising PatientNotFoundError if absent."""
        raise NotImplementedError

    @abstractmethod
    def get_active_medication_orders(self, patient_id: str) -> list[ActiveTherapy]:
        """Active physician medication orders for the patient."""
        raise NotImplementedError

    @abstractmethod
    def get_active_prescriptions(self, patient_id: str) -> list[ActiveTherapy]:
        """Active prescriptions for the patient."""
        raise NotImplementedError


def _parse_date(value: str | date | None) -> date | None:
    if value is None or isinstance(value, date):
        return value
    return date.fromisoformat(value)


def _parse_datetime(value: str | datetime | None) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


class InMemoryPatientDataSource(PatientDataSource):
    """Dict-backed data source for tests, demos, and offline runs."""

    def __init__(
        self,
        patients: Iterable[PatientSnapshot] = (),
        therapies: Iterable[tuple[str, ActiveTherapy]] = (),
    ):
        """Initialize the data source.

        Args:
            patients: Known patients
            therapies: (patient_id, record) pairs for orders and prescriptions
        """
        self._patients: dict[str, PatientSnapshot] = {}
        self._therapies: dict[str, list[ActiveTherapy]] = {}

        for patient in patients:
            self.add_patient(patient)
        for patient_id, therapy in therapies:
            self.add_therapy(patient_id, therapy)

    def add_patient(self, patient: PatientSnapshot) -> None:
        self._patients[patient.patient_id] = patient

    def add_therapy(self, patient_id: str, therapy: ActiveTherapy) -> None:
        self._therapies.setdefault(patient_id, []).append(therapy)

    def get_patient(self, patient_id: str) -> PatientSnapshot:
        patient = self._patients.get(str(patient_id))
        if patient is None:
            raise PatientNotFoundError(patient_id)
        return patient

    def get_active_medication_orders(self, patient_id: str) -> list[ActiveTherapy]:
        return self._active(patient_id, TherapySource.ORDER)

    def get_active_prescriptions(self, patient_id: str) -> list[ActiveTherapy]:
        return self._active(patient_id, TherapySource.PRESCRIPTION)

    def _active(self, patient_id: str, source: TherapySource) -> list[ActiveTherapy]:
        return [
            therapy
            for therapy in self._therapies.get(str(patient_id), [])
            if therapy.source == source and therapy.is_active
        ]

    @classmethod
    def from_dict(cls, data: dict) -> "InMemoryPatientDataSource":
        """Build a data source from a JSON-style dict.

        Expected shape::

            {
              "patients": [
                {
                  "patient_id": "P001",
                  "first_name": "Jane",
                  "last_name": "Doe",
                  "date_of_birth": "1980-04-02",
                  "weight_kg": 70,
                  "allergies": "penicillin, sulfa",
                  "orders": [
                    {"record_id": "O1", "status": "PENDING",
                     "order_details": "Drug: Omeprazole, Dose: 20mg",
                     "created_at": "2026-01-05T08:00:00"}
                  ],
                  "prescriptions": [
                    {"record_id": "RX1", "status": "PENDING",
                     "drug_name": "Metformin"}
                  ]
                }
              ]
            }
        """
        source = cls()

        for entry in data.get("patients", []):
            patient_id = str(entry["patient_id"])
            weight = entry.get("weight_kg")
            source.add_patient(PatientSnapshot(
                patient_id=patient_id,
                first_name=entry.get("first_name", ""),
                last_name=entry.get("last_name", ""),
                date_of_birth=_parse_date(entry.get("date_of_birth")),
                weight_kg=float(weight) if weight is not None else None,
                allergies=entry.get("allergies"),
            ))

            for order in entry.get("orders", []):
                source.add_therapy(patient_id, ActiveTherapy(
                    record_id=str(order.get("record_id", "")),
                    source=TherapySource.ORDER,
                    status=order.get("status", "PENDING"),
                    created_at=_parse_datetime(order.get("created_at")),
                    order_details=order.get("order_details"),
                    order_type=order.get("order_type") or "MEDICATION",
                ))

            for rx in entry.get("prescriptions", []):
                source.add_therapy(patient_id, ActiveTherapy(
                    record_id=str(rx.get("record_id", "")),
                    source=TherapySource.PRESCRIPTION,
                    status=rx.get("status", "PENDING"),
                    created_at=_parse_datetime(rx.get("created_at")),
                    drug_name=rx.get("drug_name"),
                ))

        logger.debug(f"Loaded {len(source._patients)} patients into in-memory data source")
        return source
