"""Configuration for the medication order validation engine.

All settings can be overridden with environment variables.
"""

import os


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Order validation settings."""

    # FHIR server used by the FHIR-backed patient data source
    FHIR_BASE_URL: str = os.environ.get("FHIR_BASE_URL", "http://localhost:8081/fhir")
    FHIR_TIMEOUT_SECONDS: int = int(os.environ.get("FHIR_TIMEOUT_SECONDS", "30"))

    # Patients younger than this are dosed with pediatric rules
    PEDIATRIC_AGE_YEARS: int = int(os.environ.get("PEDIATRIC_AGE_YEARS", "18"))

    # When true, informational alerts (e.g. SAME_CLASS) raise the overall
    # severity to WARNING instead of leaving it SAFE
    ESCALATE_INFORMATIONAL_ALERTS: bool = _env_bool("ORDER_VALIDATION_ESCALATE_INFORMATIONAL")


config = Config()
