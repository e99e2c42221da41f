"""Allergy checking and cross-reactivity rules.

Checks, in order:
1. Direct match: the ordered drug is itself a recorded allergy (stops here)
2. Class match: the ordered drug's class is recorded as an allergy
3. Cross-reactivity: a recorded allergy belongs to a class with a known
   cross-reaction to the ordered drug's class
"""

import logging

from ..drug_classes import DrugClassRegistry
from ..models import AllergyAlert, AllergyAlertType, AllergySeverity
from ..parsing import parse_allergy_list

logger = logging.getLogger(__name__)


OVERRIDE_SEVERITIES = frozenset({
    AllergySeverity.SEVERE,
    AllergySeverity.LIFE_THREATENING,
})


def cross_reactivity_severity(descriptor: str | None) -> AllergySeverity:
    """Derive alert severity from a cross-reactivity descriptor.

    Args:
        descriptor: e.g. "10% cross-reactivity", "Low cross-reactivity"

    Returns:
        AllergySeverity (MODERATE when the descriptor is not recognized)
    """
    if descriptor:
        text = descriptor.lower()
        if "10%" in text:
            return AllergySeverity.SEVERE
        if "1-2%" in text:
            return AllergySeverity.MODERATE
        if "low" in text:
            return AllergySeverity.MILD
    return AllergySeverity.MODERATE


class AllergyScreener:
    """Screen an ordered drug against a patient's recorded allergies."""

    def __init__(self, registry: DrugClassRegistry):
        self.registry = registry

    def screen(self, allergies: str | None, drug_name: str) -> list[AllergyAlert]:
        """Check an ordered drug against recorded allergy text.

        Args:
            allergies: Patient allergy text (comma-separated)
            drug_name: Drug being ordered

        Returns:
            List of AllergyAlert objects (empty if no conflict)
        """
        alerts: list[AllergyAlert] = []
        allergy_list = parse_allergy_list(allergies)

        if not allergy_list:
            logger.debug("No allergies recorded, skipping allergy screen")
            return alerts

        normalized = drug_name.strip().lower()

        # A documented allergy to the drug itself is definitive
        if normalized in allergy_list:
            logger.warning(f"ALLERGY ALERT: known allergy to {drug_name}")
            alerts.append(AllergyAlert(
                alert_type=AllergyAlertType.KNOWN_ALLERGY,
                severity=AllergySeverity.SEVERE,
                drug_name=drug_name,
                allergen=drug_name,
                reaction="Known allergy documented",
                recommendation="DO NOT PRESCRIBE. Consider alternative medication.",
                requires_override=True,
            ))
            return alerts

        drug_class = self.registry.get_drug_class(normalized)
        if drug_class is None:
            return alerts

        class_alert = self._check_class_allergy(drug_name, drug_class, allergy_list)
        if class_alert:
            alerts.append(class_alert)

        alerts.extend(self._check_cross_reactivity(drug_name, drug_class, allergy_list))

        return alerts

    def _check_class_allergy(
        self, drug_name: str, drug_class: str, allergy_list: list[str]
    ) -> AllergyAlert | None:
        """Check for an allergy recorded at the drug class level."""
        if drug_class.lower() not in allergy_list:
            return None

        logger.warning(f"ALLERGY ALERT: {drug_name} belongs to allergic class {drug_class}")
        return AllergyAlert(
            alert_type=AllergyAlertType.KNOWN_ALLERGY,
            severity=AllergySeverity.SEVERE,
            drug_name=drug_name,
            allergen=drug_class,
            reaction=f"Patient allergic to {drug_class} class",
            recommendation="DO NOT PRESCRIBE. Select drug from different class.",
            requires_override=True,
        )

    def _check_cross_reactivity(
        self, drug_name: str, drug_class: str, allergy_list: list[str]
    ) -> list[AllergyAlert]:
        """Check each recorded allergy for cross-reactivity with the drug class."""
        alerts = []

        for allergen in allergy_list:
            allergen_class = self.registry.get_drug_class(allergen)
            if allergen_class is None or allergen_class == drug_class:
                continue

            descriptor = self.registry.get_cross_reactivity(allergen_class, drug_class)
            if descriptor is None:
                continue

            severity = cross_reactivity_severity(descriptor)
            logger.warning(
                f"CROSS-ALLERGY ALERT: allergy to {allergen} may react to "
                f"{drug_name} ({allergen_class} -> {drug_class}, {descriptor})"
            )
            alerts.append(AllergyAlert(
                alert_type=AllergyAlertType.CROSS_ALLERGY,
                severity=severity,
                drug_name=drug_name,
                allergen=allergen,
                reaction=descriptor,
                recommendation="Consider alternative. If necessary, administer with caution and monitoring.",
                requires_override=severity in OVERRIDE_SEVERITIES,
            ))

        return alerts
