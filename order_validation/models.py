"""Data models for medication order validation."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

from .parsing import extract_drug_name


class AllergyAlertType(str, Enum):
    """How an allergy alert was matched."""
    KNOWN_ALLERGY = "KNOWN_ALLERGY"
    CROSS_ALLERGY = "CROSS_ALLERGY"


class AllergySeverity(str, Enum):
    """Severity of an allergy alert."""
    MILD = "MILD"
    MODERATE = "MODERATE"
    SEVERE = "SEVERE"
    LIFE_THREATENING = "LIFE_THREATENING"


class DuplicateAlertType(str, Enum):
    """Kind of therapy duplication detected."""
    EXACT_DUPLICATE = "EXACT_DUPLICATE"
    THERAPEUTIC_DUPLICATE = "THERAPEUTIC_DUPLICATE"
    SAME_CLASS = "SAME_CLASS"


class DuplicateSeverity(str, Enum):
    """Severity of a duplicate therapy alert."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class DoseValidationType(str, Enum):
    """Which reference was used to validate a dose."""
    NO_DATA = "NO_DATA"
    AGE_BASED = "AGE_BASED"
    WEIGHT_BASED = "WEIGHT_BASED"


class DoseSeverity(str, Enum):
    """Severity of a dose verdict."""
    INFO = "INFO"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"


class OverallSeverity(str, Enum):
    """Aggregate verdict for a validation call."""
    SAFE = "SAFE"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"


class TherapySource(str, Enum):
    """Record type an active therapy was read from."""
    ORDER = "ORDER"
    PRESCRIPTION = "PRESCRIPTION"


class OrderStatus(str, Enum):
    """Physician order lifecycle status."""
    PENDING = "PENDING"
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    ON_HOLD = "ON_HOLD"


class PrescriptionStatus(str, Enum):
    """Prescription lifecycle status."""
    PENDING = "PENDING"
    DISPENSED = "DISPENSED"
    PARTIALLY_DISPENSED = "PARTIALLY_DISPENSED"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


ORDER_TERMINAL_STATUSES = frozenset({
    OrderStatus.COMPLETED,
    OrderStatus.CANCELLED,
})

PRESCRIPTION_TERMINAL_STATUSES = frozenset({
    PrescriptionStatus.DISPENSED,
    PrescriptionStatus.CANCELLED,
    PrescriptionStatus.EXPIRED,
})

MEDICATION_ORDER_TYPE = "MEDICATION"


def _isoformat(value: date | datetime | None) -> str | None:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class PatientSnapshot:
    """Read-only view of the patient fields the engine needs."""
    patient_id: str
    first_name: str
    last_name: str
    date_of_birth: date | None
    weight_kg: float | None = None
    allergies: str | None = None  # Comma-separated, e.g. "penicillin, sulfa"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class ActiveTherapy:
    """A physician order or prescription that may still be in effect.

    Prescriptions carry the medication name directly. Physician orders only
    carry free-text details ("Drug: Aspirin, Dose: 100mg") which are parsed
    on demand.
    """
    record_id: str
    source: TherapySource
    status: str
    created_at: datetime | None = None
    drug_name: str | None = None
    order_details: str | None = None
    order_type: str = MEDICATION_ORDER_TYPE

    @property
    def is_active(self) -> bool:
        """True if the status is outside the terminal set for this record type."""
        if self.source == TherapySource.ORDER:
            if (self.order_type or "").upper() != MEDICATION_ORDER_TYPE:
                return False
            try:
                return OrderStatus(self.status) not in ORDER_TERMINAL_STATUSES
            except ValueError:
                return True
        try:
            return PrescriptionStatus(self.status) not in PRESCRIPTION_TERMINAL_STATUSES
        except ValueError:
            return True

    @property
    def resolved_drug_name(self) -> str | None:
        """Drug name this record refers to, or None if it cannot be determined."""
        if self.source == TherapySource.ORDER:
            return extract_drug_name(self.order_details)
        if self.drug_name and self.drug_name.strip():
            return self.drug_name.strip()
        return None


@dataclass(frozen=True)
class AllergyAlert:
    """A conflict between the ordered drug and a recorded allergy."""
    alert_type: AllergyAlertType
    severity: AllergySeverity
    drug_name: str
    allergen: str
    reaction: str
    recommendation: str
    requires_override: bool

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "alert_type": self.alert_type.value,
            "severity": self.severity.value,
            "drug_name": self.drug_name,
            "allergen": self.allergen,
            "reaction": self.reaction,
            "recommendation": self.recommendation,
            "requires_override": self.requires_override,
        }


@dataclass(frozen=True)
class DuplicateAlert:
    """The ordered drug duplicates therapy the patient is already on."""
    alert_type: DuplicateAlertType
    severity: DuplicateSeverity
    drug_name: str
    existing_drug: str
    recommendation: str
    requires_review: bool
    existing_order_date: datetime | None = None
    drug_class: str | None = None
    therapeutic_category: str | None = None

    @property
    def is_informational(self) -> bool:
        return self.severity == DuplicateSeverity.LOW and not self.requires_review

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "alert_type": self.alert_type.value,
            "severity": self.severity.value,
            "drug_name": self.drug_name,
            "existing_drug": self.existing_drug,
            "drug_class": self.drug_class,
            "therapeutic_category": self.therapeutic_category,
            "existing_order_date": _isoformat(self.existing_order_date),
            "recommendation": self.recommendation,
            "requires_review": self.requires_review,
        }


@dataclass(frozen=True)
class DoseVerdict:
    """Outcome of checking one dose against reference ranges."""
    is_valid: bool
    validation_type: DoseValidationType
    severity: DoseSeverity
    prescribed_dose: float
    prescribed_unit: str
    message: str
    recommendation: str
    recommended_min_dose: float | None = None
    recommended_max_dose: float | None = None
    recommended_unit: str | None = None
    patient_factor: str | None = None
    warnings: tuple[str, ...] = ()

    @property
    def is_critical(self) -> bool:
        return not self.is_valid and self.severity == DoseSeverity.CRITICAL

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "is_valid": self.is_valid,
            "validation_type": self.validation_type.value,
            "severity": self.severity.value,
            "prescribed_dose": self.prescribed_dose,
            "prescribed_unit": self.prescribed_unit,
            "recommended_min_dose": self.recommended_min_dose,
            "recommended_max_dose": self.recommended_max_dose,
            "recommended_unit": self.recommended_unit,
            "patient_factor": self.patient_factor,
            "message": self.message,
            "recommendation": self.recommendation,
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True)
class ValidationResponse:
    """Aggregate result returned for every validation call."""
    can_proceed: bool
    requires_override: bool
    overall_severity: OverallSeverity
    allergy_alerts: tuple[AllergyAlert, ...] = ()
    duplicate_alerts: tuple[DuplicateAlert, ...] = ()
    dose_verdicts: tuple[DoseVerdict, ...] = ()
    general_warnings: tuple[str, ...] = ()
    summary: str = ""

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "can_proceed": self.can_proceed,
            "requires_override": self.requires_override,
            "overall_severity": self.overall_severity.value,
            "allergy_alerts": [a.to_dict() for a in self.allergy_alerts],
            "duplicate_alerts": [a.to_dict() for a in self.duplicate_alerts],
            "dose_verdicts": [v.to_dict() for v in self.dose_verdicts],
            "general_warnings": list(self.general_warnings),
            "summary": self.summary,
        }


@dataclass
class ValidationResponseBuilder:
    """Accumulates checker output before the response is frozen."""
    allergy_alerts: list[AllergyAlert] = field(default_factory=list)
    duplicate_alerts: list[DuplicateAlert] = field(default_factory=list)
    dose_verdicts: list[DoseVerdict] = field(default_factory=list)
    general_warnings: list[str] = field(default_factory=list)

    def add_allergy_alerts(self, alerts: list[AllergyAlert]) -> None:
        self.allergy_alerts.extend(alerts)

    def add_duplicate_alerts(self, alerts: list[DuplicateAlert]) -> None:
        self.duplicate_alerts.extend(alerts)

    def add_dose_verdict(self, verdict: DoseVerdict) -> None:
        self.dose_verdicts.append(verdict)

    def add_general_warning(self, warning: str) -> None:
        self.general_warnings.append(warning)

    def build(
        self,
        can_proceed: bool,
        requires_override: bool,
        overall_severity: OverallSeverity,
        summary: str,
    ) -> ValidationResponse:
        return ValidationResponse(
            can_proceed=can_proceed,
            requires_override=requires_override,
            overall_severity=overall_severity,
            allergy_alerts=tuple(self.allergy_alerts),
            duplicate_alerts=tuple(self.duplicate_alerts),
            dose_verdicts=tuple(self.dose_verdicts),
            general_warnings=tuple(self.general_warnings),
            summary=summary,
        )
