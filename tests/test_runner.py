"""Tests for the order validation CLI."""

import json

import pytest

from order_validation.runner import EXIT_OK, EXIT_PATIENT_NOT_FOUND, main

PATIENT_DATA = {
    "patients": [
        {
            "patient_id": "P001",
            "first_name": "Jane",
            "last_name": "Doe",
            "date_of_birth": "1981-03-14",
            "weight_kg": 70,
            "allergies": "penicillin",
            "orders": [
                {
                    "record_id": "O1",
                    "status": "PENDING",
                    "order_details": "Drug: Omeprazole, Dose: 20mg",
                    "created_at": "2026-10-18T09:00:00",
                },
                {
                    "record_id": "O2",
                    "status": "CANCELLED",
                    "order_details": "Drug: Ibuprofen, Dose: 400mg",
                },
            ],
            "prescriptions": [
                {"record_id": "RX1", "status": "PENDING", "drug_name": "Metformin"},
            ],
        }
    ]
}


@pytest.fixture
def data_file(tmp_path):
    path = tmp_path / "patients.json"
    path.write_text(json.dumps(PATIENT_DATA))
    return str(path)


def run_json(capsys, *argv):
    exit_code = main(list(argv))
    return exit_code, json.loads(capsys.readouterr().out)


class TestRunner:

    def test_validate(self, capsys, data_file):
        exit_code, result = run_json(
            capsys, "--data", data_file, "--patient", "P001",
            "--validate", "ibuprofen", "--dose", "400", "--unit", "mg", "--json",
        )

        assert exit_code == EXIT_OK
        assert result["overall_severity"] == "SAFE"
        assert result["dose_verdicts"][0]["is_valid"] is True

    def test_quick_exact_duplicate(self, capsys, data_file):
        exit_code, result = run_json(
            capsys, "--data", data_file, "--patient", "P001", "--quick", "metformin", "--json",
        )

        assert exit_code == EXIT_OK
        assert result["duplicate_alerts"][0]["alert_type"] == "EXACT_DUPLICATE"
        assert result["requires_override"] is True

    def test_multi(self, capsys, data_file):
        exit_code, result = run_json(
            capsys, "--data", data_file, "--patient", "P001",
            "--multi", "cefazolin", "pantoprazole", "--json",
        )

        assert exit_code == EXIT_OK
        assert result["overall_severity"] == "CRITICAL"
        assert result["allergy_alerts"][0]["alert_type"] == "CROSS_ALLERGY"
        assert result["duplicate_alerts"][0]["alert_type"] == "THERAPEUTIC_DUPLICATE"

    def test_allergy_summary(self, capsys, data_file):
        exit_code, result = run_json(
            capsys, "--data", data_file, "--patient", "P001", "--allergy-summary", "--json",
        )

        assert exit_code == EXIT_OK
        assert result["allergy_classes"] == {"penicillin": "PENICILLIN"}

    def test_text_output(self, capsys, data_file):
        exit_code = main(["--data", data_file, "--patient", "P001", "--quick", "amoxicillin"])

        out = capsys.readouterr().out
        assert exit_code == EXIT_OK
        assert "ORDER VALIDATION: CRITICAL" in out
        assert "REQUIRES PHYSICIAN OVERRIDE TO PROCEED" in out

    def test_unknown_patient(self, capsys, data_file):
        exit_code = main(["--data", data_file, "--patient", "P999", "--quick", "aspirin"])

        assert exit_code == EXIT_PATIENT_NOT_FOUND

    def test_validate_requires_dose(self, data_file):
        with pytest.raises(SystemExit) as exc_info:
            main(["--data", data_file, "--patient", "P001", "--validate", "ibuprofen"])

        assert exc_info.value.code == 2

    def test_missing_data_file(self, tmp_path):
        exit_code = main([
            "--data", str(tmp_path / "missing.json"), "--patient", "P001", "--quick", "aspirin",
        ])

        assert exit_code == 1
