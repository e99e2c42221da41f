"""Medication order validation with clinical decision support.

Runs the allergy, duplicate therapy, and dose checks for a proposed order and
combines their output into a single ValidationResponse. The checks are
independent of each other; the overall verdict comes from OverridePolicy.
"""

import logging
from collections.abc import Callable, Sequence
from datetime import date, datetime
from itertools import combinations

from .data_source import PatientDataSource
from .dose_reference import DoseReferenceTable
from .drug_classes import DrugClassRegistry
from .models import (
    ActiveTherapy,
    DuplicateAlertType,
    OverallSeverity,
    PatientSnapshot,
    ValidationResponse,
    ValidationResponseBuilder,
)
from .parsing import parse_allergy_list
from .policy import OverridePolicy, PolicyDecision
from .rules import AllergyScreener, DoseRangeValidator, DuplicateTherapyDetector

logger = logging.getLogger(__name__)


class ValidationOrchestrator:
    """Validates medication orders against allergies, active therapy, and dose ranges."""

    def __init__(
        self,
        data_source: PatientDataSource,
        registry: DrugClassRegistry | None = None,
        dose_table: DoseReferenceTable | None = None,
        policy: OverridePolicy | None = None,
        today: Callable[[], date] | None = None,
    ):
        """Initialize the orchestrator.

        Args:
            data_source: Patient, order, and prescription reads
            registry: Drug class reference data (defaults to standard tables)
            dose_table: Dose range reference data (defaults to standard tables)
            policy: Overall severity policy
            today: Clock used for patient age
        """
        self.data_source = data_source
        self.registry = registry if registry is not None else DrugClassRegistry.default()
        self.dose_table = dose_table if dose_table is not None else DoseReferenceTable.default()
        self.policy = policy if policy is not None else OverridePolicy()

        self.allergy_screener = AllergyScreener(self.registry)
        self.duplicate_detector = DuplicateTherapyDetector(self.registry)
        self.dose_validator = DoseRangeValidator(self.dose_table, today=today or date.today)

    def validate_medication_order(
        self,
        patient_id: str,
        drug_name: str,
        dose: float,
        unit: str,
        frequency: str | None = None,
    ) -> ValidationResponse:
        """Full validation: allergies, duplicate therapy, and dose range.

        Args:
            patient_id: Patient identifier
            drug_name: Drug being ordered
            dose: Single dose amount
            unit: Dose unit
            frequency: Dosing frequency (informational)

        Returns:
            ValidationResponse

        Raises:
            PatientNotFoundError: If the patient does not exist
        """
        logger.info(f"Validating medication order: {drug_name} {dose}{unit} for patient {patient_id}")

        patient = self.data_source.get_patient(patient_id)
        therapies = self._get_active_therapies(patient_id)
        results = ValidationResponseBuilder()

        results.add_allergy_alerts(self.allergy_screener.screen(patient.allergies, drug_name))
        results.add_duplicate_alerts(
            self.duplicate_detector.check(therapies, drug_name, datetime.now())
        )
        results.add_dose_verdict(self.dose_validator.validate(
            drug_name, dose, unit, patient.date_of_birth, patient.weight_kg
        ))

        header = f"Validation for {drug_name} {dose:g}{unit}"
        if frequency:
            header += f" {frequency}"
        response = self._finish(results, patient, header)

        logger.info(
            f"Validation complete for {drug_name}: {response.overall_severity.value} "
            f"- Can proceed: {response.can_proceed}"
        )
        return response

    def quick_validate(self, patient_id: str, drug_name: str) -> ValidationResponse:
        """Fast check: allergies and exact duplicates only, no dose check.

        Raises:
            PatientNotFoundError: If the patient does not exist
        """
        patient = self.data_source.get_patient(patient_id)
        therapies = self._get_active_therapies(patient_id)
        results = ValidationResponseBuilder()

        results.add_allergy_alerts(self.allergy_screener.screen(patient.allergies, drug_name))
        results.add_duplicate_alerts(self.duplicate_detector.check(
            therapies,
            drug_name,
            datetime.now(),
            alert_types=(DuplicateAlertType.EXACT_DUPLICATE,),
        ))

        return self._finish(results, patient, f"Quick check for {drug_name}")

    def validate_multiple_drugs(
        self, patient_id: str, drug_names: Sequence[str]
    ) -> ValidationResponse:
        """Validate several drugs ordered together.

        Each drug gets allergy and duplicate checks; every pair of drugs is
        then checked for shared allergy class and therapeutic overlap. Doses
        are not supplied in this mode, so no dose check is run.

        Raises:
            PatientNotFoundError: If the patient does not exist
        """
        patient = self.data_source.get_patient(patient_id)
        therapies = self._get_active_therapies(patient_id)
        results = ValidationResponseBuilder()
        order_date = datetime.now()

        for drug_name in drug_names:
            results.add_allergy_alerts(self.allergy_screener.screen(patient.allergies, drug_name))
            results.add_duplicate_alerts(
                self.duplicate_detector.check(therapies, drug_name, order_date)
            )

        for warning in self._check_drug_pairs(drug_names):
            results.add_general_warning(warning)

        return self._finish(results, patient, f"Validation for {', '.join(drug_names)}")

    def allergy_summary(self, patient_id: str) -> dict:
        """Summarize a patient's recorded allergies and the drugs they rule out.

        Raises:
            PatientNotFoundError: If the patient does not exist
        """
        patient = self.data_source.get_patient(patient_id)
        allergy_list = parse_allergy_list(patient.allergies)
        class_names = {name.lower(): name for name in self.registry.class_membership}

        allergy_classes: dict[str, str | None] = {}
        avoid: set[str] = set()
        cross_reactions: list[dict] = []

        for allergen in allergy_list:
            if allergen in class_names:
                allergen_class = class_names[allergen]
                avoid.update(self.registry.class_membership[allergen_class])
            else:
                allergen_class = self.registry.get_drug_class(allergen)
                avoid.add(allergen)
                avoid.update(self.registry.get_related_drugs(allergen))
            allergy_classes[allergen] = allergen_class

            if allergen_class is None:
                continue
            for (from_class, to_class), reactivity in self.registry.cross_reactivity_rules.items():
                if from_class == allergen_class:
                    cross_reactions.append({
                        "allergen": allergen,
                        "allergy_class": from_class,
                        "cross_reactive_class": to_class,
                        "reactivity": reactivity,
                    })

        return {
            "patient_id": patient.patient_id,
            "patient_name": patient.full_name,
            "allergies": allergy_list,
            "allergy_classes": allergy_classes,
            "drugs_to_avoid": sorted(avoid),
            "cross_reactions": cross_reactions,
        }

    def _get_active_therapies(self, patient_id: str) -> list[ActiveTherapy]:
        orders = self.data_source.get_active_medication_orders(patient_id)
        prescriptions = self.data_source.get_active_prescriptions(patient_id)
        return list(orders) + list(prescriptions)

    def _check_drug_pairs(self, drug_names: Sequence[str]) -> list[str]:
        """Pairwise same-class and therapeutic overlap warnings."""
        warnings = []
        for drug1, drug2 in combinations(drug_names, 2):
            if self.registry.is_same_class(drug1, drug2):
                warnings.append(
                    f"WARNING: {drug1} and {drug2} are from the same drug class "
                    f"({self.registry.get_drug_class(drug1)}). Consider if both are necessary."
                )
            if self.registry.are_therapeutic_equivalents(drug1, drug2):
                warnings.append(
                    f"THERAPEUTIC OVERLAP: {drug1} and {drug2} have similar therapeutic effects."
                )
        return warnings

    def _finish(
        self, results: ValidationResponseBuilder, patient: PatientSnapshot, header: str
    ) -> ValidationResponse:
        decision = self.policy.decide(results)
        summary = render_summary(header, patient, results, decision)
        return results.build(
            can_proceed=decision.can_proceed,
            requires_override=decision.requires_override,
            overall_severity=decision.overall_severity,
            summary=summary,
        )


def render_summary(
    header: str,
    patient: PatientSnapshot,
    results: ValidationResponseBuilder,
    decision: PolicyDecision,
) -> str:
    """Human-readable summary of a validation result.

    Every alert is counted, informational ones included, even when the
    overall verdict is SAFE.
    """
    lines = [f"{header} - Patient: {patient.full_name}"]

    has_alerts = (
        results.allergy_alerts
        or results.duplicate_alerts
        or results.general_warnings
        or any(not verdict.is_valid for verdict in results.dose_verdicts)
    )
    if not has_alerts:
        lines.append("No contraindications found. Safe to prescribe.")
        return "\n".join(lines)

    counts = [
        (len(results.allergy_alerts), "allergy alert(s)"),
        (len(results.duplicate_alerts), "duplicate drug alert(s)"),
        (len(results.dose_verdicts), "dose validation(s)"),
        (len(results.general_warnings), "general warning(s)"),
    ]
    for count, label in counts:
        if count:
            lines.append(f"{count} {label}")

    if decision.requires_override:
        lines.append("")
        lines.append("REQUIRES PHYSICIAN OVERRIDE TO PROCEED")
    elif decision.overall_severity == OverallSeverity.WARNING:
        lines.append("")
        lines.append("Review alerts before confirming order")

    return "\n".join(lines)
