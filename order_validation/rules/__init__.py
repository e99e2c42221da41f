"""Order validation rule modules."""

from .allergy_rules import AllergyScreener
from .dose_rules import DoseRangeValidator
from .duplicate_rules import DuplicateTherapyDetector

__all__ = [
    "AllergyScreener",
    "DoseRangeValidator",
    "DuplicateTherapyDetector",
]
