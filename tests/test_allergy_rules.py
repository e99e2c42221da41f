"""Tests for allergy screening and cross-reactivity."""

import pytest

from order_validation.drug_classes import DrugClassRegistry
from order_validation.models import AllergyAlertType, AllergySeverity
from order_validation.rules.allergy_rules import AllergyScreener, cross_reactivity_severity


@pytest.fixture
def screener(registry):
    return AllergyScreener(registry)


class TestCrossReactivitySeverity:

    @pytest.mark.parametrize("descriptor,expected", [
        ("10% cross-reactivity", AllergySeverity.SEVERE),
        ("1-2% cross-reactivity", AllergySeverity.MODERATE),
        ("Low cross-reactivity", AllergySeverity.MILD),
        ("unknown risk", AllergySeverity.MODERATE),
        (None, AllergySeverity.MODERATE),
    ])
    def test_descriptor_mapping(self, descriptor, expected):
        assert cross_reactivity_severity(descriptor) == expected


class TestAllergyScreener:

    def test_no_allergies(self, screener):
        assert screener.screen(None, "amoxicillin") == []
        assert screener.screen("  ", "amoxicillin") == []

    def test_direct_match_stops_further_checks(self, screener):
        alerts = screener.screen("Amoxicillin, penicillin", "amoxicillin")

        assert len(alerts) == 1
        alert = alerts[0]
        assert alert.alert_type == AllergyAlertType.KNOWN_ALLERGY
        assert alert.severity == AllergySeverity.SEVERE
        assert alert.requires_override
        assert alert.allergen == "amoxicillin"
        assert alert.reaction == "Known allergy documented"

    def test_class_level_allergy(self, screener):
        alerts = screener.screen("nsaid", "Naproxen")

        assert len(alerts) == 1
        assert alerts[0].alert_type == AllergyAlertType.KNOWN_ALLERGY
        assert alerts[0].allergen == "NSAID"
        assert alerts[0].reaction == "Patient allergic to NSAID class"
        assert alerts[0].requires_override

    def test_penicillin_to_cephalosporin_is_severe(self, screener):
        alerts = screener.screen("penicillin", "ceftriaxone")

        assert len(alerts) == 1
        alert = alerts[0]
        assert alert.alert_type == AllergyAlertType.CROSS_ALLERGY
        assert alert.severity == AllergySeverity.SEVERE
        assert alert.requires_override
        assert alert.allergen == "penicillin"
        assert alert.reaction == "10% cross-reactivity"

    def test_penicillin_to_carbapenem_is_moderate(self, screener):
        alerts = screener.screen("amoxicillin", "meropenem")

        assert len(alerts) == 1
        assert alerts[0].severity == AllergySeverity.MODERATE
        assert not alerts[0].requires_override

    def test_cephalosporin_to_carbapenem_is_mild(self, screener):
        alerts = screener.screen("cefazolin", "imipenem")

        assert len(alerts) == 1
        assert alerts[0].severity == AllergySeverity.MILD
        assert not alerts[0].requires_override

    def test_cross_reactivity_is_directional(self, screener):
        assert screener.screen("ceftriaxone", "amoxicillin") == []

    def test_unclassified_drug_has_no_alerts(self, screener):
        assert screener.screen("penicillin, sulfa", "acetaminophen") == []

    def test_unclassified_allergen_is_ignored(self, screener):
        assert screener.screen("latex, peanuts", "ceftriaxone") == []

    def test_class_alert_precedes_cross_alerts(self, screener):
        alerts = screener.screen("carbapenem, penicillin, cephalexin", "meropenem")

        assert [a.alert_type for a in alerts] == [
            AllergyAlertType.KNOWN_ALLERGY,
            AllergyAlertType.CROSS_ALLERGY,
            AllergyAlertType.CROSS_ALLERGY,
        ]
        assert [a.allergen for a in alerts] == ["CARBAPENEM", "penicillin", "cephalexin"]

    def test_custom_registry(self):
        registry = DrugClassRegistry(
            {"MACROLIDE": ["azithromycin"], "KETOLIDE": ["telithromycin"]},
            {("MACROLIDE", "KETOLIDE"): "10% cross-reactivity"},
            {},
        )
        alerts = AllergyScreener(registry).screen("azithromycin", "telithromycin")

        assert len(alerts) == 1
        assert alerts[0].severity == AllergySeverity.SEVERE
