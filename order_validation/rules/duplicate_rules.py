"""Duplicate therapy detection.

Compares an ordered drug against the patient's active orders and
prescriptions. Rules fire independently:
- EXACT_DUPLICATE: the same drug is already active (HIGH)
- THERAPEUTIC_DUPLICATE: a drug from the same equivalence group is active (MEDIUM)
- SAME_CLASS: an active order shares the drug's allergy class (LOW, informational)
"""

import logging
from collections.abc import Iterable
from datetime import datetime

from ..drug_classes import DrugClassRegistry
from ..models import (
    ActiveTherapy,
    DuplicateAlert,
    DuplicateAlertType,
    DuplicateSeverity,
    TherapySource,
)

logger = logging.getLogger(__name__)


ALL_DUPLICATE_TYPES = frozenset(DuplicateAlertType)


class DuplicateTherapyDetector:
    """Detect duplicate or overlapping therapy for an ordered drug."""

    def __init__(self, registry: DrugClassRegistry):
        self.registry = registry

    def check(
        self,
        therapies: Iterable[ActiveTherapy],
        drug_name: str,
        order_date: datetime | None = None,
        alert_types: Iterable[DuplicateAlertType] = ALL_DUPLICATE_TYPES,
    ) -> list[DuplicateAlert]:
        """Check an ordered drug against active therapy.

        Args:
            therapies: Patient's orders and prescriptions (inactive ones are skipped)
            drug_name: Drug being ordered
            order_date: When the new order is placed (defaults to now)
            alert_types: Restrict which duplicate rules run

        Returns:
            List of DuplicateAlert objects, exact duplicates first
        """
        order_date = order_date or datetime.now()
        enabled = frozenset(alert_types)
        normalized = drug_name.strip().lower()

        # (record, resolved drug) pairs; orders before prescriptions
        active = [
            (therapy, therapy.resolved_drug_name)
            for therapy in sorted(therapies, key=lambda t: t.source != TherapySource.ORDER)
            if therapy.is_active
        ]
        active = [(therapy, existing) for therapy, existing in active if existing]

        logger.debug(
            f"Checking {drug_name} ordered {order_date.isoformat()} against "
            f"{len(active)} active records"
        )

        alerts: list[DuplicateAlert] = []

        if DuplicateAlertType.EXACT_DUPLICATE in enabled:
            alerts.extend(self._check_exact(active, drug_name, normalized))

        if DuplicateAlertType.THERAPEUTIC_DUPLICATE in enabled:
            alerts.extend(self._check_therapeutic(active, drug_name, normalized))

        if DuplicateAlertType.SAME_CLASS in enabled:
            alerts.extend(self._check_same_class(active, drug_name, normalized))

        return alerts

    def _check_exact(
        self,
        active: list[tuple[ActiveTherapy, str]],
        drug_name: str,
        normalized: str,
    ) -> list[DuplicateAlert]:
        alerts = []

        for therapy, existing in active:
            if existing.lower() != normalized:
                continue

            if therapy.source == TherapySource.ORDER:
                recommendation = (
                    "DUPLICATE ORDER: Same medication already ordered. "
                    "Consider cancelling existing order or modifying dose."
                )
            else:
                recommendation = (
                    "DUPLICATE PRESCRIPTION: Same medication already prescribed. "
                    "Review existing prescription."
                )

            logger.warning(
                f"DUPLICATE {therapy.source.value}: {drug_name} already active "
                f"(record {therapy.record_id}, {therapy.created_at})"
            )
            alerts.append(DuplicateAlert(
                alert_type=DuplicateAlertType.EXACT_DUPLICATE,
                severity=DuplicateSeverity.HIGH,
                drug_name=drug_name,
                existing_drug=existing,
                existing_order_date=therapy.created_at,
                recommendation=recommendation,
                requires_review=True,
            ))

        return alerts

    def _check_therapeutic(
        self,
        active: list[tuple[ActiveTherapy, str]],
        drug_name: str,
        normalized: str,
    ) -> list[DuplicateAlert]:
        group = self.registry.get_therapeutic_group(normalized)
        if group is None:
            return []

        alerts = []
        for therapy, existing in active:
            if self.registry.get_therapeutic_group(existing) != group:
                continue

            verb = "ordered" if therapy.source == TherapySource.ORDER else "prescribed"
            logger.info(f"Therapeutic duplicate detected: {drug_name} and {existing} are both {group}")
            alerts.append(DuplicateAlert(
                alert_type=DuplicateAlertType.THERAPEUTIC_DUPLICATE,
                severity=DuplicateSeverity.MEDIUM,
                drug_name=drug_name,
                existing_drug=existing,
                drug_class=group,
                therapeutic_category=group,
                existing_order_date=therapy.created_at,
                recommendation=(
                    f"THERAPEUTIC DUPLICATE: Patient already {verb} {existing} "
                    f"({group}). Consider using only one."
                ),
                requires_review=True,
            ))

        return alerts

    def _check_same_class(
        self,
        active: list[tuple[ActiveTherapy, str]],
        drug_name: str,
        normalized: str,
    ) -> list[DuplicateAlert]:
        drug_class = self.registry.get_drug_class(normalized)
        if drug_class is None:
            return []

        alerts = []
        # Only physician orders are compared at the class level
        for therapy, existing in active:
            if therapy.source != TherapySource.ORDER:
                continue
            if self.registry.get_drug_class(existing) != drug_class:
                continue

            alerts.append(DuplicateAlert(
                alert_type=DuplicateAlertType.SAME_CLASS,
                severity=DuplicateSeverity.LOW,
                drug_name=drug_name,
                existing_drug=existing,
                drug_class=drug_class,
                existing_order_date=therapy.created_at,
                recommendation="INFO: Same drug class as existing order. Review for appropriateness.",
                requires_review=False,
            ))

        return alerts
