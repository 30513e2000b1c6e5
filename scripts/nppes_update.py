"""
Apply an NPPES weekly update file to the production tables

Usage:
    python scripts/nppes_update.py path/to/npidata_pfile_weekly.csv
"""

import argparse
import asyncio
import logging
import sys
import os

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from core.database import engine
from core.exceptions import FeedFileError
from core.logging import setup_logging
from ingestion.runner import NppesUpdateWorker

logger = logging.getLogger(__name__)


def _parse_args(argv):
    parser = argparse.ArgumentParser(description="Apply an NPPES update file")
    parser.add_argument("file_path", help="Path to the NPPES CSV update file")
    parser.add_argument(
        "--sync-identifiers",
        action="store_true",
        default=None,
        help="Also replace other-provider identifiers (slower)",
    )
    parser.add_argument(
        "--progress-interval",
        type=int,
        default=None,
        help="Log progress every N records (defaults to config)",
    )
    return parser.parse_args(argv)


async def main(argv) -> int:
    args = _parse_args(argv)
    worker = NppesUpdateWorker(
        progress_interval=args.progress_interval,
        sync_identifiers=args.sync_identifiers,
    )
    try:
        summary = await worker.perform(args.file_path)
    except FeedFileError as e:
        logger.error(str(e))
        return 1
    finally:
        await engine.dispose()

    print(summary.format())
    return 0 if summary.errors == 0 else 2


if __name__ == "__main__":
    setup_logging()
    sys.exit(asyncio.run(main(sys.argv[1:])))
