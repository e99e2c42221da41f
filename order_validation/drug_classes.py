"""Drug class reference data for allergy and duplicate therapy checks.

Two independent groupings are kept:
- Allergy classes: drugs sharing immunologic cross-reactivity risk
- Therapeutic equivalence groups: drugs with the same clinical effect

A drug may appear in both. Lookups are case-insensitive and a drug missing
from the registry simply has no class.
"""

from collections.abc import Iterable, Mapping
from types import MappingProxyType


# =============================================================================
# Allergy Classes
# =============================================================================

DRUG_CLASSES: dict[str, list[str]] = {
    # Beta-lactams
    "PENICILLIN": [
        "amoxicillin",
        "ampicillin",
        "penicillin",
        "piperacillin",
        "ticarcillin",
    ],
    "CEPHALOSPORIN": [
        "cefazolin",
        "ceftriaxone",
        "cefuroxime",
        "cephalexin",
        "cefixime",
        "cefotaxime",
    ],
    "CARBAPENEM": [
        "meropenem",
        "imipenem",
        "ertapenem",
        "doripenem",
    ],
    "NSAID": [
        "ibuprofen",
        "naproxen",
        "diclofenac",
        "aspirin",
        "indomethacin",
        "ketorolac",
    ],
    "SULFONAMIDE": [
        "sulfamethoxazole",
        "trimethoprim",
        "sulfasalazine",
        "sulfadiazine",
    ],
    "OPIOID": [
        "morphine",
        "codeine",
        "oxycodone",
        "hydrocodone",
        "fentanyl",
        "tramadol",
    ],
}


# Key: (allergy_class, ordered_drug_class) -> reactivity descriptor
CROSS_REACTIVITY: dict[tuple[str, str], str] = {
    ("PENICILLIN", "CEPHALOSPORIN"): "10% cross-reactivity",
    ("PENICILLIN", "CARBAPENEM"): "1-2% cross-reactivity",
    ("CEPHALOSPORIN", "CARBAPENEM"): "Low cross-reactivity",
}


# =============================================================================
# Therapeutic Equivalence Groups
# =============================================================================

THERAPEUTIC_EQUIVALENTS: dict[str, list[str]] = {
    "PPI": [
        "omeprazole",
        "pantoprazole",
        "esomeprazole",
        "lansoprazole",
        "rabeprazole",
    ],
    "ACE_INHIBITOR": [
        "lisinopril",
        "enalapril",
        "ramipril",
        "captopril",
        "perindopril",
    ],
    "ARB": [
        "losartan",
        "valsartan",
        "irbesartan",
        "telmisartan",
        "candesartan",
    ],
    "BETA_BLOCKER": [
        "metoprolol",
        "atenolol",
        "propranolol",
        "carvedilol",
        "bisoprolol",
    ],
    "STATIN": [
        "atorvastatin",
        "simvastatin",
        "rosuvastatin",
        "pravastatin",
        "lovastatin",
    ],
    "H2_BLOCKER": [
        "ranitidine",
        "famotidine",
        "cimetidine",
        "nizatidine",
    ],
    "BENZODIAZEPINE": [
        "diazepam",
        "lorazepam",
        "alprazolam",
        "clonazepam",
        "midazolam",
    ],
}


def _normalize(drug_name: str | None) -> str:
    return (drug_name or "").strip().lower()


def _freeze_groups(groups: Mapping[str, Iterable[str]]) -> Mapping[str, frozenset[str]]:
    return MappingProxyType({
        name: frozenset(_normalize(member) for member in members)
        for name, members in groups.items()
    })


def _index_members(groups: Mapping[str, Iterable[str]]) -> Mapping[str, str]:
    """Map each member drug to its group; the first registered group wins."""
    index: dict[str, str] = {}
    for name, members in groups.items():
        for member in members:
            index.setdefault(_normalize(member), name)
    return MappingProxyType(index)


class DrugClassRegistry:
    """Immutable lookup of allergy classes and therapeutic equivalence groups."""

    def __init__(
        self,
        class_membership: Mapping[str, Iterable[str]],
        cross_reactivity: Mapping[tuple[str, str], str],
        therapeutic_equivalence: Mapping[str, Iterable[str]],
    ):
        """Build the registry.

        Args:
            class_membership: Allergy class name -> member drug names
            cross_reactivity: (allergy class, drug class) -> descriptor text
            therapeutic_equivalence: Equivalence group name -> member drug names
        """
        self._classes = _freeze_groups(class_membership)
        self._class_index = _index_members(class_membership)
        self._cross_reactivity = MappingProxyType(dict(cross_reactivity))
        self._equivalents = _freeze_groups(therapeutic_equivalence)
        self._equivalent_index = _index_members(therapeutic_equivalence)

    @classmethod
    def default(cls) -> "DrugClassRegistry":
        """Registry built from the standard reference tables."""
        return cls(DRUG_CLASSES, CROSS_REACTIVITY, THERAPEUTIC_EQUIVALENTS)

    @property
    def class_membership(self) -> Mapping[str, frozenset[str]]:
        return self._classes

    @property
    def cross_reactivity_rules(self) -> Mapping[tuple[str, str], str]:
        return self._cross_reactivity

    @property
    def therapeutic_equivalence(self) -> Mapping[str, frozenset[str]]:
        return self._equivalents

    def get_drug_class(self, drug_name: str | None) -> str | None:
        """Get the allergy class for a drug, or None if unclassified."""
        return self._class_index.get(_normalize(drug_name))

    def get_cross_reactivity(self, allergy_class: str, drug_class: str) -> str | None:
        """Get the reactivity descriptor for an ordered class pair."""
        return self._cross_reactivity.get((allergy_class, drug_class))

    def get_therapeutic_group(self, drug_name: str | None) -> str | None:
        """Get the therapeutic equivalence group for a drug."""
        return self._equivalent_index.get(_normalize(drug_name))

    def get_related_drugs(self, drug_name: str | None) -> list[str]:
        """All drugs sharing the given drug's allergy class (sorted)."""
        drug_class = self.get_drug_class(drug_name)
        if drug_class is None:
            return []
        return sorted(self._classes[drug_class])

    def is_same_class(self, drug1: str | None, drug2: str | None) -> bool:
        """Check if two drugs belong to the same allergy class."""
        class1 = self.get_drug_class(drug1)
        return class1 is not None and class1 == self.get_drug_class(drug2)

    def are_therapeutic_equivalents(self, drug1: str | None, drug2: str | None) -> bool:
        """Check if two drugs are in the same therapeutic equivalence group."""
        group1 = self.get_therapeutic_group(drug1)
        return group1 is not None and group1 == self.get_therapeutic_group(drug2)
