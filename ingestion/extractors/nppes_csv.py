"""
Chunked reader for NPPES delimited update files.
"""

import pandas as pd
from typing import Dict, Iterator, Optional, Tuple
from pathlib import Path
from core.config import settings
from core.exceptions import FeedFileError
from ingestion.slots import FeedColumns
import logging

logger = logging.getLogger(__name__)


class NppesCsvReader:
    """
    Read an NPPES CSV in chunks, one dict per row keyed by header name.

    Every cell is read as text with no NA coercion, so "NA" or "NULL" in a
    name field stays a string and blanks stay "" for the normalizer to clean.
    """

    def __init__(self, file_path: str, chunk_size: Optional[int] = None, delimiter: str = ","):
        self.file_path = Path(file_path)
        self.chunk_size = chunk_size or settings.UPDATE_CHUNK_SIZE
        self.delimiter = delimiter

    def _check_file(self) -> None:
        if not self.file_path.exists():
            raise FeedFileError(
                f"Update file not found: {self.file_path}",
                context={"file_path": str(self.file_path)}
            )

    def _read(self, **kwargs):
        try:
            return pd.read_csv(
                self.file_path,
                sep=self.delimiter,
                dtype=str,
                keep_default_na=False,
                chunksize=self.chunk_size,
                **kwargs
            )
        except (OSError, ValueError) as e:
            raise FeedFileError(
                f"Cannot read update file: {self.file_path}",
                context={"file_path": str(self.file_path)},
                original_exception=e
            )

    def count_records(self) -> int:
        """Count data rows by scanning only the NPI column."""
        self._check_file()
        total = 0
        for chunk in self._read(usecols=[FeedColumns.NPI]):
            total += len(chunk)
        return total

    def iter_rows(self) -> Iterator[Tuple[int, Dict[str, str]]]:
        """Yield (row_number, row) pairs; row numbers start at 1."""
        self._check_file()
        logger.info(f"Reading update file {self.file_path}")

        row_number = 0
        for chunk in self._read():
            chunk.columns = chunk.columns.str.strip()
            for row in chunk.to_dict(orient="records"):
                row_number += 1
                yield row_number, row
