"""Dose range reference data.

Adult bounds are absolute single-dose amounts. Pediatric bounds are per
kilogram of body weight. A drug without an entry has no dose data, which is
a valid state and not an error.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType


@dataclass(frozen=True)
class DoseRange:
    """Reference dosing bounds for one drug."""
    unit: str
    adult_min_dose: float | None = None
    adult_max_dose: float | None = None
    adult_max_daily: float | None = None
    pediatric_dose_per_kg: float | None = None
    pediatric_max_dose_per_kg: float | None = None
    pediatric_max_daily_per_kg: float | None = None
    requires_weight_based: bool = False
    requires_renal_function: bool = False
    renal_adjustment: str | None = None
    requires_inr_monitoring: bool = False
    contraindication: str | None = None

    @property
    def has_pediatric_dosing(self) -> bool:
        return bool(self.pediatric_dose_per_kg and self.pediatric_dose_per_kg > 0)

    @property
    def contraindicated_in_children(self) -> bool:
        return bool(self.contraindication and "children" in self.contraindication.lower())


DOSE_RANGES: dict[str, DoseRange] = {
    # Acetaminophen (paracetamol)
    "acetaminophen": DoseRange(
        unit="mg",
        adult_min_dose=325.0, adult_max_dose=1000.0, adult_max_daily=4000.0,
        pediatric_dose_per_kg=10.0, pediatric_max_dose_per_kg=15.0,
        pediatric_max_daily_per_kg=75.0,
    ),
    "ibuprofen": DoseRange(
        unit="mg",
        adult_min_dose=200.0, adult_max_dose=800.0, adult_max_daily=3200.0,
        pediatric_dose_per_kg=5.0, pediatric_max_dose_per_kg=10.0,
        pediatric_max_daily_per_kg=40.0,
    ),
    "amoxicillin": DoseRange(
        unit="mg",
        adult_min_dose=250.0, adult_max_dose=1000.0, adult_max_daily=3000.0,
        pediatric_dose_per_kg=20.0, pediatric_max_dose_per_kg=40.0,
        pediatric_max_daily_per_kg=100.0,
    ),
    # Not for children (Reye's syndrome)
    "aspirin": DoseRange(
        unit="mg",
        adult_min_dose=75.0, adult_max_dose=1000.0, adult_max_daily=4000.0,
        pediatric_dose_per_kg=0.0, pediatric_max_dose_per_kg=0.0,
        pediatric_max_daily_per_kg=0.0,
        contraindication="Not recommended for children under 12 years (Reye's syndrome risk)",
    ),
    "metformin": DoseRange(
        unit="mg",
        adult_min_dose=500.0, adult_max_dose=1000.0, adult_max_daily=2550.0,
        requires_renal_function=True,
        renal_adjustment="Contraindicated if eGFR < 30 mL/min",
    ),
    "morphine": DoseRange(
        unit="mg",
        adult_min_dose=2.5, adult_max_dose=15.0, adult_max_daily=120.0,
        pediatric_dose_per_kg=0.1, pediatric_max_dose_per_kg=0.2,
        pediatric_max_daily_per_kg=2.0,
        requires_weight_based=True,
    ),
    "warfarin": DoseRange(
        unit="mg",
        adult_min_dose=1.0, adult_max_dose=10.0, adult_max_daily=10.0,
        requires_inr_monitoring=True,
        contraindication="Requires INR monitoring, adjust based on INR",
    ),
    "digoxin": DoseRange(
        unit="mg",
        adult_min_dose=0.0625, adult_max_dose=0.25, adult_max_daily=0.25,
        requires_renal_function=True,
        renal_adjustment="Reduce dose if eGFR < 50 mL/min",
    ),
}


class DoseReferenceTable:
    """Immutable drug name -> DoseRange lookup."""

    def __init__(self, entries: Mapping[str, DoseRange]):
        self._entries = MappingProxyType({
            name.strip().lower(): entry for name, entry in entries.items()
        })

    @classmethod
    def default(cls) -> "DoseReferenceTable":
        return cls(DOSE_RANGES)

    def get(self, drug_name: str | None) -> DoseRange | None:
        """Get the dose range for a drug, or None if no data is available."""
        return self._entries.get((drug_name or "").strip().lower())

    def __contains__(self, drug_name: str) -> bool:
        return self.get(drug_name) is not None

    def __len__(self) -> int:
        return len(self._entries)
