"""
Export functionality for imagematch.

Writes de-duplication matches to an append-only CSV file: a header row is
written when the file is created, then one row per matching folder pair,
flushed as soon as it is found so partial results survive an interrupted run.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterable, Optional, TextIO

from ..config import DEDUPE_CSV_HEADERS
from ..models import ComparisonResult


class CsvResultWriter:
    """
    Append-only CSV sink for ComparisonResult rows.

    Usage:
        with CsvResultWriter(Path('results.csv')) as sink:
            for result in results:
                sink.write(result)

    Raises:
        OSError: If the output file cannot be created
    """

    def __init__(self, output_path: Path, headers: Iterable[str] = DEDUPE_CSV_HEADERS):
        self.output_path = Path(output_path)
        self.headers = tuple(headers)
        self.rows_written = 0
        self._file: Optional[TextIO] = None
        self._writer = None

    def open(self) -> 'CsvResultWriter':
        """Create (truncate) the output file and write the header row."""
        self._file = open(self.output_path, 'w', encoding='utf-8', newline='')
        self._writer = csv.writer(self._file)
        self._writer.writerow(self.headers)
        self._file.flush()
        return self

    def write(self, result: ComparisonResult) -> None:
        """Append one result row."""
        if self._writer is None:
            raise ValueError("CsvResultWriter is not open")
        self._writer.writerow(result.to_row())
        self._file.flush()
        self.rows_written += 1

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None
            self._writer = None

    def __enter__(self) -> 'CsvResultWriter':
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = ['CsvResultWriter']
