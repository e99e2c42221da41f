#!/usr/bin/env python3
"""CLI entry point for medication order validation.

Usage:
    # Full validation of a single order
    order-validation --patient P001 --validate ibuprofen --dose 400 --unit mg

    # Allergy and exact-duplicate check only
    order-validation --patient P001 --quick ceftriaxone

    # Several drugs ordered together
    order-validation --patient P001 --multi lisinopril enalapril

    # Recorded allergies and drugs to avoid
    order-validation --patient P001 --allergy-summary

    # Offline run against a JSON patient file instead of FHIR
    order-validation --data patients.json --patient P001 --quick aspirin --json
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from .data_source import InMemoryPatientDataSource, PatientDataSource, PatientNotFoundError
from .fhir_client import FHIRPatientDataSource
from .models import ValidationResponse
from .validation_service import ValidationOrchestrator

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_PATIENT_NOT_FOUND = 2


def setup_logging(verbose: bool = False):
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Medication Order Validation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    # Mode
    mode_group = parser.add_mutually_exclusive_group(required=True)
    mode_group.add_argument("--validate", metavar="DRUG", help="Full validation (requires --dose and --unit)")
    mode_group.add_argument("--quick", metavar="DRUG", help="Allergy and exact duplicate check only")
    mode_group.add_argument("--multi", metavar="DRUG", nargs="+", help="Validate several drugs together")
    mode_group.add_argument("--allergy-summary", action="store_true", help="Show patient allergy summary")

    # Options
    parser.add_argument("--patient", required=True, metavar="ID", help="Patient identifier")
    parser.add_argument("--dose", type=float, help="Single dose amount (validate mode)")
    parser.add_argument("--unit", help="Dose unit, e.g. mg (validate mode)")
    parser.add_argument("--frequency", help="Dosing frequency, e.g. q6h (informational)")
    parser.add_argument("--data", type=Path, metavar="FILE", help="JSON patient data file (skips FHIR)")
    parser.add_argument("--fhir-url", help="FHIR server base URL (default: FHIR_BASE_URL env var)")
    parser.add_argument("--json", action="store_true", help="Print result as JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")

    return parser


def build_data_source(args: argparse.Namespace) -> PatientDataSource:
    """Select the in-memory or FHIR data source from CLI options."""
    if args.data:
        with open(args.data) as f:
            return InMemoryPatientDataSource.from_dict(json.load(f))
    return FHIRPatientDataSource(fhir_url=args.fhir_url)


def print_response(response: ValidationResponse) -> None:
    """Print a validation response for a human reader."""
    print("\n" + "=" * 60)
    print(f"ORDER VALIDATION: {response.overall_severity.value}")
    print("=" * 60)
    print(f"  Can proceed:       {response.can_proceed}")
    print(f"  Requires override: {response.requires_override}")

    for alert in response.allergy_alerts:
        print(f"\n  [{alert.severity.value}] {alert.alert_type.value}: {alert.allergen}")
        print(f"    {alert.reaction}")
        print(f"    {alert.recommendation}")

    for alert in response.duplicate_alerts:
        print(f"\n  [{alert.severity.value}] {alert.alert_type.value}: {alert.existing_drug}")
        print(f"    {alert.recommendation}")

    for verdict in response.dose_verdicts:
        print(f"\n  [{verdict.severity.value}] DOSE {verdict.validation_type.value}: {verdict.message}")
        print(f"    {verdict.recommendation}")
        for warning in verdict.warnings:
            print(f"    - {warning}")

    for warning in response.general_warnings:
        print(f"\n  {warning}")

    print("\n" + response.summary)


def print_allergy_summary(summary: dict) -> None:
    print("\n" + "=" * 60)
    print(f"ALLERGY SUMMARY: {summary['patient_name']} ({summary['patient_id']})")
    print("=" * 60)

    if not summary["allergies"]:
        print("  No allergies recorded")
        return

    for allergen in summary["allergies"]:
        allergy_class = summary["allergy_classes"].get(allergen) or "unclassified"
        print(f"  - {allergen} ({allergy_class})")

    if summary["drugs_to_avoid"]:
        print(f"\n  Avoid: {', '.join(summary['drugs_to_avoid'])}")

    for reaction in summary["cross_reactions"]:
        print(
            f"  Cross-reactivity: {reaction['allergy_class']} -> "
            f"{reaction['cross_reactive_class']} ({reaction['reactivity']})"
        )


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.validate and (args.dose is None or not args.unit):
        parser.error("--validate requires --dose and --unit")

    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    try:
        orchestrator = ValidationOrchestrator(build_data_source(args))

        if args.allergy_summary:
            summary = orchestrator.allergy_summary(args.patient)
            if args.json:
                print(json.dumps(summary, indent=2))
            else:
                print_allergy_summary(summary)
            return EXIT_OK

        if args.validate:
            response = orchestrator.validate_medication_order(
                args.patient, args.validate, args.dose, args.unit, args.frequency
            )
        elif args.quick:
            response = orchestrator.quick_validate(args.patient, args.quick)
        else:
            response = orchestrator.validate_multiple_drugs(args.patient, args.multi)

        if args.json:
            print(json.dumps(response.to_dict(), indent=2))
        else:
            print_response(response)
        return EXIT_OK

    except PatientNotFoundError as e:
        logger.error(str(e))
        return EXIT_PATIENT_NOT_FOUND
    except KeyboardInterrupt:
        logger.info("\nShutdown requested by user")
        return EXIT_OK
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
