"""FHIR-backed patient data source for order validation.

Reads:
- Patient demographics (name, birth date)
- Most recent body weight (Observation, LOINC 29463-7)
- Active allergies (AllergyIntolerance)
- Physician medication orders (ServiceRequest with a MEDICATION category)
- Prescriptions (MedicationRequest)
"""

import logging
from datetime import date, datetime

import requests

from .config import config
from .data_source import PatientDataSource, PatientNotFoundError
from .models import (
    MEDICATION_ORDER_TYPE,
    ActiveTherapy,
    OrderStatus,
    PatientSnapshot,
    PrescriptionStatus,
    TherapySource,
)

logger = logging.getLogger(__name__)


BODY_WEIGHT_LOINC = "29463-7"
POUNDS_TO_KG = 0.45359237

# FHIR ServiceRequest.status -> OrderStatus
FHIR_ORDER_STATUS = {
    "draft": OrderStatus.PENDING,
    "active": OrderStatus.IN_PROGRESS,
    "on-hold": OrderStatus.ON_HOLD,
    "revoked": OrderStatus.CANCELLED,
    "entered-in-error": OrderStatus.CANCELLED,
    "completed": OrderStatus.COMPLETED,
}

# FHIR MedicationRequest.status -> PrescriptionStatus
FHIR_PRESCRIPTION_STATUS = {
    "draft": PrescriptionStatus.PENDING,
    "active": PrescriptionStatus.PENDING,
    "on-hold": PrescriptionStatus.PENDING,
    "completed": PrescriptionStatus.DISPENSED,
    "cancelled": PrescriptionStatus.CANCELLED,
    "entered-in-error": PrescriptionStatus.CANCELLED,
    "stopped": PrescriptionStatus.EXPIRED,
}


def parse_fhir_datetime(value: str | None) -> datetime | None:
    """Parse a FHIR dateTime, accepting a trailing 'Z'."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.debug(f"Unparseable FHIR dateTime: {value}")
        return None


def parse_fhir_date(value: str | None) -> date | None:
    """Parse a full FHIR date; partial dates (year only) are treated as unknown."""
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        logger.debug(f"Unparseable FHIR date: {value}")
        return None


def _codeable_text(concept: dict | None) -> str | None:
    """Text of a CodeableConcept, falling back to the first coding display."""
    if not concept:
        return None
    text = concept.get("text")
    if text:
        return text
    for coding in concept.get("coding", []):
        if coding.get("display"):
            return coding["display"]
    return None


class FHIRPatientDataSource(PatientDataSource):
    """Patient data source backed by a FHIR R4 server."""

    def __init__(self, fhir_url: str | None = None, timeout: int | None = None):
        """Initialize FHIR client.

        Args:
            fhir_url: Base URL for FHIR server. Defaults to FHIR_BASE_URL env var.
            timeout: Request timeout in seconds
        """
        self.fhir_url = (fhir_url or config.FHIR_BASE_URL).rstrip("/")
        self.timeout = timeout or config.FHIR_TIMEOUT_SECONDS
        logger.info(f"Initialized FHIR client: {self.fhir_url}")

    def _get(self, resource_path: str, params: dict | None = None) -> dict:
        """Execute FHIR GET request."""
        url = f"{self.fhir_url}/{resource_path}"
        try:
            response = requests.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            logger.error(f"FHIR request failed: {e}")
            raise

    def _search(self, resource_type: str, params: dict) -> list[dict]:
        """Run a search and return the matching resources."""
        bundle = self._get(resource_type, params)
        return [entry["resource"] for entry in bundle.get("entry", []) if "resource" in entry]

    def get_patient(self, patient_id: str) -> PatientSnapshot:
        try:
            patient = self._get(f"Patient/{patient_id}")
        except requests.HTTPError as e:
            if e.response is not None and e.response.status_code in (404, 410):
                raise PatientNotFoundError(patient_id) from e
            raise

        name = (patient.get("name") or [{}])[0]
        given = name.get("given") or [""]

        return PatientSnapshot(
            patient_id=patient.get("id", str(patient_id)),
            first_name=given[0],
            last_name=name.get("family", ""),
            date_of_birth=parse_fhir_date(patient.get("birthDate")),
            weight_kg=self.get_patient_weight(patient_id),
            allergies=self.get_allergy_text(patient_id),
        )

    def get_patient_weight(self, patient_id: str) -> float | None:
        """Get most recent patient weight in kg."""
        try:
            observations = self._search("Observation", {
                "patient": patient_id,
                "code": BODY_WEIGHT_LOINC,
                "_sort": "-date",
                "_count": "1",
            })
        except requests.RequestException as e:
            logger.debug(f"Failed to get weight for {patient_id}: {e}")
            return None

        if not observations:
            return None

        quantity = observations[0].get("valueQuantity", {})
        value = quantity.get("value")
        if value is None:
            return None

        unit = (quantity.get("code") or quantity.get("unit") or "kg").lower()
        if unit in ("lb", "lbs", "[lb_av]"):
            return float(value) * POUNDS_TO_KG
        return float(value)

    def get_allergy_text(self, patient_id: str) -> str | None:
        """Active allergy substances joined as comma-separated text."""
        try:
            allergies = self._search("AllergyIntolerance", {
                "patient": patient_id,
                "clinical-status": "active",
            })
        except requests.RequestException as e:
            logger.error(f"Failed to get allergies for {patient_id}: {e}")
            return None

        substances = [
            text for text in (_codeable_text(a.get("code")) for a in allergies) if text
        ]
        return ", ".join(substances) if substances else None

    def get_active_medication_orders(self, patient_id: str) -> list[ActiveTherapy]:
        try:
            requests_ = self._search("ServiceRequest", {"patient": patient_id})
        except requests.RequestException as e:
            logger.error(f"Failed to get orders for {patient_id}: {e}")
            return []

        orders = [self._parse_service_request(sr) for sr in requests_]
        return [order for order in orders if order.is_active]

    def get_active_prescriptions(self, patient_id: str) -> list[ActiveTherapy]:
        try:
            med_requests = self._search("MedicationRequest", {"patient": patient_id})
        except requests.RequestException as e:
            logger.error(f"Failed to get prescriptions for {patient_id}: {e}")
            return []

        prescriptions = [self._parse_medication_request(mr) for mr in med_requests]
        return [rx for rx in prescriptions if rx.is_active]

    def _parse_service_request(self, service_request: dict) -> ActiveTherapy:
        """Parse FHIR ServiceRequest into a physician order."""
        categories = [
            (_codeable_text(c) or "").upper() for c in service_request.get("category", [])
        ]
        order_type = MEDICATION_ORDER_TYPE if MEDICATION_ORDER_TYPE in categories else (
            categories[0] if categories and categories[0] else "OTHER"
        )

        details = None
        for detail in service_request.get("orderDetail", []):
            details = _codeable_text(detail)
            if details:
                break
        if not details:
            notes = service_request.get("note", [])
            details = notes[0].get("text") if notes else None

        status = FHIR_ORDER_STATUS.get(service_request.get("status", ""), OrderStatus.PENDING)

        return ActiveTherapy(
            record_id=service_request.get("id", ""),
            source=TherapySource.ORDER,
            status=status.value,
            created_at=parse_fhir_datetime(service_request.get("authoredOn")),
            order_details=details,
            order_type=order_type,
        )

    def _parse_medication_request(self, med_request: dict) -> ActiveTherapy:
        """Parse FHIR MedicationRequest into a prescription."""
        status = FHIR_PRESCRIPTION_STATUS.get(
            med_request.get("status", ""), PrescriptionStatus.PENDING
        )

        return ActiveTherapy(
            record_id=med_request.get("id", ""),
            source=TherapySource.PRESCRIPTION,
            status=status.value,
            created_at=parse_fhir_datetime(med_request.get("authoredOn")),
            drug_name=_codeable_text(med_request.get("medicationCodeableConcept")),
        )
