"""Tests for the overall severity and override policy."""

from order_validation.models import (
    AllergyAlert,
    AllergyAlertType,
    AllergySeverity,
    DoseSeverity,
    DoseValidationType,
    DoseVerdict,
    DuplicateAlert,
    DuplicateAlertType,
    DuplicateSeverity,
    OverallSeverity,
    ValidationResponseBuilder,
)
from order_validation.policy import OverridePolicy


def allergy_alert(severity, requires_override):
    return AllergyAlert(
        alert_type=AllergyAlertType.CROSS_ALLERGY,
        severity=severity,
        drug_name="meropenem",
        allergen="penicillin",
        reaction="1-2% cross-reactivity",
        recommendation="Consider alternative.",
        requires_override=requires_override,
    )


def duplicate_alert(alert_type, severity, requires_review):
    return DuplicateAlert(
        alert_type=alert_type,
        severity=severity,
        drug_name="ibuprofen",
        existing_drug="naproxen",
        recommendation="Review.",
        requires_review=requires_review,
    )


def dose_verdict(is_valid, severity):
    return DoseVerdict(
        is_valid=is_valid,
        validation_type=DoseValidationType.AGE_BASED,
        severity=severity,
        prescribed_dose=400,
        prescribed_unit="mg",
        message="",
        recommendation="",
    )


SAME_CLASS = duplicate_alert(DuplicateAlertType.SAME_CLASS, DuplicateSeverity.LOW, False)
THERAPEUTIC = duplicate_alert(DuplicateAlertType.THERAPEUTIC_DUPLICATE, DuplicateSeverity.MEDIUM, True)


class TestOverridePolicy:

    def test_nothing_found_is_safe(self):
        decision = OverridePolicy(escalate_informational=False).decide(ValidationResponseBuilder())

        assert decision.overall_severity == OverallSeverity.SAFE
        assert decision.can_proceed
        assert not decision.requires_override

    def test_severe_allergy_blocks(self):
        results = ValidationResponseBuilder()
        results.add_allergy_alerts([allergy_alert(AllergySeverity.SEVERE, True)])

        decision = OverridePolicy(escalate_informational=False).decide(results)

        assert decision.overall_severity == OverallSeverity.CRITICAL
        assert not decision.can_proceed
        assert decision.requires_override

    def test_critical_dose_blocks(self):
        results = ValidationResponseBuilder()
        results.add_dose_verdict(dose_verdict(False, DoseSeverity.CRITICAL))

        decision = OverridePolicy(escalate_informational=False).decide(results)

        assert decision.overall_severity == OverallSeverity.CRITICAL
        assert not decision.can_proceed

    def test_review_alert_needs_override(self):
        results = ValidationResponseBuilder()
        results.add_duplicate_alerts([THERAPEUTIC])

        decision = OverridePolicy(escalate_informational=False).decide(results)

        assert decision.overall_severity == OverallSeverity.WARNING
        assert decision.can_proceed
        assert decision.requires_override

    def test_moderate_allergy_is_warning_without_override(self):
        results = ValidationResponseBuilder()
        results.add_allergy_alerts([allergy_alert(AllergySeverity.MODERATE, False)])

        decision = OverridePolicy(escalate_informational=False).decide(results)

        assert decision.overall_severity == OverallSeverity.WARNING
        assert decision.can_proceed
        assert not decision.requires_override

    def test_invalid_dose_is_warning(self):
        results = ValidationResponseBuilder()
        results.add_dose_verdict(dose_verdict(False, DoseSeverity.WARNING))

        decision = OverridePolicy(escalate_informational=False).decide(results)

        assert decision.overall_severity == OverallSeverity.WARNING
        assert not decision.requires_override

    def test_same_class_alone_stays_safe(self):
        results = ValidationResponseBuilder()
        results.add_duplicate_alerts([SAME_CLASS])
        results.add_dose_verdict(dose_verdict(True, DoseSeverity.INFO))

        decision = OverridePolicy(escalate_informational=False).decide(results)

        assert decision.overall_severity == OverallSeverity.SAFE
        assert decision.can_proceed
        assert not decision.requires_override

    def test_escalate_informational(self):
        results = ValidationResponseBuilder()
        results.add_duplicate_alerts([SAME_CLASS])

        decision = OverridePolicy(escalate_informational=True).decide(results)

        assert decision.overall_severity == OverallSeverity.WARNING
        assert not decision.requires_override

    def test_general_warning_is_finding(self):
        results = ValidationResponseBuilder()
        results.add_general_warning("THERAPEUTIC OVERLAP: a and b have similar therapeutic effects.")

        assert OverridePolicy(escalate_informational=False).decide(results).overall_severity == OverallSeverity.WARNING

    def test_critical_requires_override(self):
        # CRITICAL always implies requires_override and not can_proceed
        results = ValidationResponseBuilder()
        results.add_allergy_alerts([allergy_alert(AllergySeverity.LIFE_THREATENING, True)])
        results.add_duplicate_alerts([THERAPEUTIC])

        decision = OverridePolicy(escalate_informational=False).decide(results)

        assert decision.overall_severity == OverallSeverity.CRITICAL
        assert decision.requires_override and not decision.can_proceed
