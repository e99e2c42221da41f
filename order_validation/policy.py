"""Overall severity and override policy for a validation call.

Decision table, applied after all checks have run:

    severe allergy or critical dose    -> CRITICAL, cannot proceed, override
    any alert needing override/review  -> WARNING, may proceed, override
    any other finding                  -> WARNING, may proceed
    nothing                            -> SAFE
"""

from dataclasses import dataclass

from .config import config
from .models import (
    AllergySeverity,
    OverallSeverity,
    ValidationResponseBuilder,
)


BLOCKING_ALLERGY_SEVERITIES = frozenset({
    AllergySeverity.SEVERE,
    AllergySeverity.LIFE_THREATENING,
})


@dataclass(frozen=True)
class PolicyDecision:
    can_proceed: bool
    requires_override: bool
    overall_severity: OverallSeverity


class OverridePolicy:
    """Classify accumulated alerts into one overall verdict."""

    def __init__(self, escalate_informational: bool | None = None):
        """Initialize policy.

        Args:
            escalate_informational: Count informational alerts (LOW duplicates)
                as findings. Defaults to config.ESCALATE_INFORMATIONAL_ALERTS.
        """
        if escalate_informational is None:
            escalate_informational = config.ESCALATE_INFORMATIONAL_ALERTS
        self.escalate_informational = escalate_informational

    def has_critical_alerts(self, results: ValidationResponseBuilder) -> bool:
        """Any alert carrying an override or review flag."""
        return (
            any(alert.requires_override for alert in results.allergy_alerts)
            or any(alert.requires_review for alert in results.duplicate_alerts)
        )

    def has_life_threatening_allergy(self, results: ValidationResponseBuilder) -> bool:
        return any(
            alert.severity in BLOCKING_ALLERGY_SEVERITIES
            for alert in results.allergy_alerts
        )

    def has_critical_dose(self, results: ValidationResponseBuilder) -> bool:
        return any(verdict.is_critical for verdict in results.dose_verdicts)

    def has_findings(self, results: ValidationResponseBuilder) -> bool:
        """Anything a clinician should see before confirming the order."""
        if results.allergy_alerts or results.general_warnings:
            return True
        if any(not verdict.is_valid for verdict in results.dose_verdicts):
            return True
        if self.escalate_informational:
            return bool(results.duplicate_alerts)
        return any(not alert.is_informational for alert in results.duplicate_alerts)

    def decide(self, results: ValidationResponseBuilder) -> PolicyDecision:
        if self.has_life_threatening_allergy(results) or self.has_critical_dose(results):
            return PolicyDecision(False, True, OverallSeverity.CRITICAL)
        if self.has_critical_alerts(results):
            return PolicyDecision(True, True, OverallSeverity.WARNING)
        if self.has_findings(results):
            return PolicyDecision(True, False, OverallSeverity.WARNING)
        return PolicyDecision(True, False, OverallSeverity.SAFE)
