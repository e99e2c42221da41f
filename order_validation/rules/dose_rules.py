"""Dose range validation.

Validates a single dose against reference ranges:
- Pediatric (< 18 years): age contraindications, then per-kg weight dosing
- Adult: absolute single-dose bounds, daily maximum, renal/INR monitoring

Range comparisons are inclusive at both ends and never rounded; numbers are
only rounded when formatted into messages.
"""

import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import date

from ..config import config
from ..dose_reference import DoseRange, DoseReferenceTable
from ..models import DoseSeverity, DoseValidationType, DoseVerdict

logger = logging.getLogger(__name__)


def calculate_age_years(date_of_birth: date, today: date) -> int:
    """Whole years between birth date and today."""
    years = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        years -= 1
    return years


class DoseRangeValidator:
    """Check a prescribed dose against age- and weight-appropriate ranges."""

    def __init__(
        self,
        dose_table: DoseReferenceTable,
        today: Callable[[], date] = date.today,
        pediatric_age_years: int | None = None,
    ):
        """Initialize validator.

        Args:
            dose_table: Reference dose ranges
            today: Clock returning the current date
            pediatric_age_years: Age below which pediatric rules apply
        """
        self.dose_table = dose_table
        self.today = today
        self.pediatric_age_years = (
            pediatric_age_years if pediatric_age_years is not None else config.PEDIATRIC_AGE_YEARS
        )

    def validate(
        self,
        drug_name: str,
        dose: float,
        unit: str,
        date_of_birth: date | None,
        weight_kg: float | None,
    ) -> DoseVerdict:
        """Validate one dose for a patient.

        Args:
            drug_name: Drug being ordered
            dose: Single dose amount
            unit: Dose unit as ordered
            date_of_birth: Patient birth date (None if unknown)
            weight_kg: Patient weight (None if unknown)

        Returns:
            DoseVerdict
        """
        dose_range = self.dose_table.get(drug_name)

        if dose_range is None:
            logger.debug(f"No dose range data for {drug_name}")
            return DoseVerdict(
                is_valid=True,
                validation_type=DoseValidationType.NO_DATA,
                severity=DoseSeverity.INFO,
                prescribed_dose=dose,
                prescribed_unit=unit,
                message=f"No dose range data available for {drug_name}",
                recommendation="Verify dose against drug reference",
            )

        if date_of_birth is None:
            verdict = self._validate_adult(dose, unit, dose_range, "Adult (Age: unknown)")
            return _with_warning(verdict, "Patient age unknown; adult dose ranges applied")

        age_years = calculate_age_years(date_of_birth, self.today())

        if age_years < self.pediatric_age_years:
            return self._validate_pediatric(drug_name, dose, unit, dose_range, age_years, weight_kg)

        return self._validate_adult(dose, unit, dose_range, f"Adult (Age: {age_years} years)")

    def _validate_adult(
        self, dose: float, unit: str, dose_range: DoseRange, patient_factor: str
    ) -> DoseVerdict:
        """Validate against absolute adult bounds."""
        min_dose = dose_range.adult_min_dose
        max_dose = dose_range.adult_max_dose
        drug_unit = dose_range.unit
        warnings: list[str] = []

        if min_dose is not None and dose < min_dose:
            is_valid = False
            severity = DoseSeverity.WARNING
            message = "Dose below recommended range"
            recommendation = (
                f"Recommended range: {min_dose:.2f} - {_fmt(max_dose)} {drug_unit} per dose"
            )
            warnings.append("Subtherapeutic dose may be ineffective")
        elif max_dose is not None and dose > max_dose:
            is_valid = False
            severity = DoseSeverity.CRITICAL
            message = "Dose EXCEEDS maximum recommended"
            recommendation = f"Maximum recommended dose: {max_dose:.2f} {drug_unit} per dose"
            warnings.append("Risk of toxicity or adverse effects")
        else:
            is_valid = True
            severity = DoseSeverity.INFO
            message = "Dose within recommended range"
            recommendation = "Dose appropriate for adult patient"

        if dose_range.adult_max_daily is not None:
            warnings.append(f"Maximum daily dose: {dose_range.adult_max_daily:.2f} {drug_unit}")

        if dose_range.requires_renal_function:
            warnings.append(f"RENAL ADJUSTMENT: {dose_range.renal_adjustment or 'Check renal function'}")

        if dose_range.requires_inr_monitoring:
            warnings.append("INR MONITORING: Adjust dose based on INR results")

        return DoseVerdict(
            is_valid=is_valid,
            validation_type=DoseValidationType.AGE_BASED,
            severity=severity,
            prescribed_dose=dose,
            prescribed_unit=unit,
            recommended_min_dose=min_dose,
            recommended_max_dose=max_dose,
            recommended_unit=drug_unit,
            patient_factor=patient_factor,
            message=message,
            recommendation=recommendation,
            warnings=tuple(warnings),
        )

    def _validate_pediatric(
        self,
        drug_name: str,
        dose: float,
        unit: str,
        dose_range: DoseRange,
        age_years: int,
        weight_kg: float | None,
    ) -> DoseVerdict:
        """Validate a pediatric dose, weight-based where per-kg data exists."""
        drug_unit = dose_range.unit
        patient_factor = f"Age: {age_years} years"

        # Age contraindication overrides any weight-based check
        if dose_range.contraindicated_in_children:
            logger.warning(f"{drug_name} contraindicated for pediatric patient (age {age_years})")
            return DoseVerdict(
                is_valid=False,
                validation_type=DoseValidationType.AGE_BASED,
                severity=DoseSeverity.CRITICAL,
                prescribed_dose=dose,
                prescribed_unit=unit,
                recommended_unit=drug_unit,
                patient_factor=patient_factor,
                message=f"CONTRAINDICATED: {dose_range.contraindication}",
                recommendation="Consider alternative medication suitable for pediatric use",
            )

        if not dose_range.has_pediatric_dosing:
            return DoseVerdict(
                is_valid=False,
                validation_type=DoseValidationType.AGE_BASED,
                severity=DoseSeverity.WARNING,
                prescribed_dose=dose,
                prescribed_unit=unit,
                recommended_unit=drug_unit,
                patient_factor=patient_factor,
                message=f"No pediatric dose range data available for {drug_name}",
                recommendation="Verify pediatric dose against drug reference",
            )

        if weight_kg is None or weight_kg <= 0:
            return DoseVerdict(
                is_valid=False,
                validation_type=DoseValidationType.WEIGHT_BASED,
                severity=DoseSeverity.WARNING,
                prescribed_dose=dose,
                prescribed_unit=unit,
                recommended_unit=drug_unit,
                patient_factor=patient_factor,
                message="Patient weight not available",
                recommendation="Enter patient weight to validate dose",
                warnings=("Weight-based dosing required for pediatric patient",),
            )

        per_kg_min = dose_range.pediatric_dose_per_kg
        per_kg_max = dose_range.pediatric_max_dose_per_kg or per_kg_min
        min_dose = per_kg_min * weight_kg
        max_dose = per_kg_max * weight_kg
        warnings: list[str] = []

        if dose < min_dose:
            is_valid = False
            severity = DoseSeverity.WARNING
            message = "Dose below weight-based recommendation"
            recommendation = (
                f"Recommended: {min_dose:.2f} - {max_dose:.2f} {drug_unit} "
                f"({per_kg_min:.1f}-{per_kg_max:.1f} {drug_unit}/kg)"
            )
        elif dose > max_dose:
            is_valid = False
            severity = DoseSeverity.CRITICAL
            message = "Dose EXCEEDS weight-based maximum"
            recommendation = f"Maximum: {max_dose:.2f} {drug_unit} ({per_kg_max:.1f} {drug_unit}/kg)"
            warnings.append("OVERDOSE RISK: Immediate review required")
        else:
            is_valid = True
            severity = DoseSeverity.INFO
            message = "Dose appropriate for patient weight"
            recommendation = (
                f"Dose: {dose:.2f} {drug_unit} ({dose / weight_kg:.2f} {drug_unit}/kg)"
            )

        if dose_range.pediatric_max_daily_per_kg is not None:
            max_daily = dose_range.pediatric_max_daily_per_kg * weight_kg
            warnings.append(
                f"Maximum daily dose: {max_daily:.2f} {drug_unit} "
                f"({dose_range.pediatric_max_daily_per_kg:.1f} {drug_unit}/kg)"
            )

        return DoseVerdict(
            is_valid=is_valid,
            validation_type=DoseValidationType.WEIGHT_BASED,
            severity=severity,
            prescribed_dose=dose,
            prescribed_unit=unit,
            recommended_min_dose=min_dose,
            recommended_max_dose=max_dose,
            recommended_unit=drug_unit,
            patient_factor=f"Weight: {weight_kg} kg",
            message=message,
            recommendation=recommendation,
            warnings=tuple(warnings),
        )


def _fmt(value: float | None) -> str:
    return f"{value:.2f}" if value is not None else "?"


def _with_warning(verdict: DoseVerdict, warning: str) -> DoseVerdict:
    return replace(verdict, warnings=verdict.warnings + (warning,))
