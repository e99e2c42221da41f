"""Parsing for the free-text fields the engine reads.

Allergies are stored as comma-separated text and physician orders as
"Drug: <name>, Dose: <dose>" detail strings. Each field has exactly one
parser here so structured records can replace them later.
"""

import logging

logger = logging.getLogger(__name__)

DRUG_MARKER = "drug:"


def parse_allergy_list(allergies: str | None) -> list[str]:
    """Split recorded allergy text into normalized tokens.

    Tokens are lowercased and trimmed; empty tokens and repeats are dropped.
    Recorded order is preserved.

    Args:
        allergies: Comma-separated allergy text, e.g. "Penicillin, Sulfa"

    Returns:
        List of allergy tokens (empty if nothing recorded)
    """
    if not allergies or not allergies.strip():
        return []

    tokens: list[str] = []
    for part in allergies.split(","):
        token = part.strip().lower()
        if token and token not in tokens:
            tokens.append(token)
    return tokens


def extract_drug_name(order_details: str | None) -> str | None:
    """Extract the drug name from physician order detail text.

    Only text containing "drug:" (any case) names a drug. The first
    comma-separated part carrying the marker is used, and the value between
    its first and second colon is returned trimmed.

    >>> extract_drug_name("Drug: Aspirin, Dose: 100mg")
    'Aspirin'

    Args:
        order_details: Raw order detail text

    Returns:
        Drug name, or None if the text does not name a drug
    """
    if not order_details or DRUG_MARKER not in order_details.lower():
        return None

    for part in order_details.split(","):
        if DRUG_MARKER in part.lower():
            pieces = part.split(":")
            if len(pieces) < 2:
                break
            name = pieces[1].strip()
            return name or None

    logger.debug(f"Could not extract drug name from order details: {order_details!r}")
    return None
