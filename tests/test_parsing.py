"""Tests for allergy text and order detail parsing."""

import pytest

from order_validation.parsing import extract_drug_name, parse_allergy_list


class TestParseAllergyList:

    def test_normalizes_tokens(self):
        assert parse_allergy_list(" Penicillin ,SULFA") == ["penicillin", "sulfa"]

    def test_drops_empty_and_repeated_tokens(self):
        assert parse_allergy_list("penicillin,, ,Penicillin, nsaid") == ["penicillin", "nsaid"]

    @pytest.mark.parametrize("text", [None, "", "   ", ", ,"])
    def test_nothing_recorded(self, text):
        assert parse_allergy_list(text) == []


class TestExtractDrugName:

    def test_standard_details(self):
        assert extract_drug_name("Drug: Aspirin, Dose: 100mg") == "Aspirin"

    def test_marker_is_case_insensitive(self):
        assert extract_drug_name("Dose: 20mg, DRUG:  Omeprazole ") == "Omeprazole"

    def test_uses_first_marked_part(self):
        assert extract_drug_name("Drug: Lisinopril, Drug: Enalapril") == "Lisinopril"

    def test_value_stops_at_second_colon(self):
        assert extract_drug_name("Drug: Morphine: IV, Dose: 2mg") == "Morphine"

    @pytest.mark.parametrize("details", [
        None,
        "",
        "Aspirin 100mg daily",
        "Drug:, Dose: 5mg",
    ])
    def test_no_drug_named(self, details):
        assert extract_drug_name(details) is None
