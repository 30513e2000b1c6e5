"""
Operator CLI for the bulk NPPES import.

Steps are meant to be run one at a time so the shadow tables can be
inspected between validate and swap:

    python scripts/nppes_import.py build
    python scripts/nppes_import.py transform
    python scripts/nppes_import.py validate
    python scripts/nppes_import.py swap
    python scripts/nppes_import.py summary

    python scripts/nppes_import.py rollback     # while the _old generation exists
    python scripts/nppes_import.py all          # build through swap in one go
"""

import argparse
import asyncio
import logging
import sys
import os

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from core.database import engine
from core.exceptions import ImportException
from core.logging import setup_logging
from ingestion.pipeline.tables import SHADOW_SUFFIX
from ingestion.runner import BulkImportRunner

logger = logging.getLogger(__name__)

SUMMARY_LABELS = (
    ("providers", "Providers"),
    ("individuals", "- Individuals"),
    ("organizations", "- Organizations"),
    ("active", "- Active"),
    ("deactivated", "- Deactivated"),
    ("addresses", "Addresses"),
    ("location_addresses", "- Location"),
    ("mailing_addresses", "- Mailing"),
    ("taxonomy_links", "Provider Taxonomies"),
    ("primary_taxonomy_links", "- Primary"),
    ("identifiers", "Identifiers"),
    ("authorized_officials", "Authorized Officials"),
)


def _parse_args(argv):
    parser = argparse.ArgumentParser(description="Bulk NPPES import pipeline")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("build", help="Create empty shadow tables")
    subparsers.add_parser("transform", help="Populate shadow tables from the staging table")

    validate = subparsers.add_parser("validate", help="Run integrity checks on the shadow tables")
    validate.add_argument(
        "--production",
        action="store_true",
        help="Validate the production tables instead of the shadow tables",
    )

    swap = subparsers.add_parser("swap", help="Promote shadow tables to production")
    swap.add_argument(
        "--keep-old",
        action="store_true",
        help="Keep the previous generation (allows rollback until drop-old)",
    )

    subparsers.add_parser("drop-old", help="Drop the previous generation kept by swap --keep-old")

    summary = subparsers.add_parser("summary", help="Print row counts")
    summary.add_argument(
        "--shadow",
        action="store_true",
        help="Summarize the shadow tables instead of production",
    )

    subparsers.add_parser("rollback", help="Restore the previous generation")
    subparsers.add_parser("all", help="build, transform, validate and swap")

    return parser.parse_args(argv)


def print_summary(counts, title="NPPES IMPORT SUMMARY"):
    print("\n" + "=" * 60)
    print(title)
    print("=" * 60)
    for key, label in SUMMARY_LABELS:
        print(f"  {label:<24} {counts.get(key, 0):>14,}")
    print("=" * 60)


async def run_command(args) -> int:
    runner = BulkImportRunner(engine)

    if args.command == "build":
        await runner.build()
        print("Shadow tables created.")

    elif args.command == "transform":
        counts = await runner.transform()
        for table, count in counts.items():
            print(f"  {table:<24} {count:>14,}")

    elif args.command == "validate":
        report = await runner.validate("" if args.production else None)
        print(report.format())
        return 0 if report.integrity_ok else 1

    elif args.command == "swap":
        result = await runner.swap(keep_old=args.keep_old)
        print(f"Swapped: {', '.join(result['promoted'])}")
        if result["dropped"]:
            print(f"Dropped: {', '.join(result['dropped'])}")
        else:
            print("Previous generation kept; run drop-old or rollback.")

    elif args.command == "drop-old":
        dropped = await runner.drop_old()
        print(f"Dropped: {', '.join(dropped) or 'nothing'}")

    elif args.command == "summary":
        generation = SHADOW_SUFFIX if args.shadow else ""
        print_summary(await runner.summary(generation))

    elif args.command == "rollback":
        restored = await runner.rollback()
        print(f"Restored: {', '.join(restored) or 'nothing (no previous generation)'}")

    elif args.command == "all":
        result = await runner.run_all()
        print_summary(await runner.summary())
        if not result["integrity_ok"]:
            print(f"Warning: integrity checks failed: {', '.join(result['failed_checks'])}")

    return 0


async def main(argv) -> int:
    args = _parse_args(argv)
    try:
        return await run_command(args)
    except ImportException as e:
        logger.error(str(e))
        return 1
    finally:
        await engine.dispose()


if __name__ == "__main__":
    setup_logging()
    sys.exit(asyncio.run(main(sys.argv[1:])))
