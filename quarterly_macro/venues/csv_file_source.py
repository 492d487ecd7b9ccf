"""
Local delimited-file source.

Reads a header-having, comma-separated UTF-8 file (e.g. the FRED DEXUSEU
download) into a DataFrame. Reading is blocking; the orchestrator runs it on
a dedicated file worker so it cannot stall concurrent network fetches.

All cells are read as text. Type conversion is the normalizer's job: it
parses the date column with the dataset's mask and coerces the target column,
which is where FRED's "." / empty missing-value markers are handled.
"""

import csv
import logging
from pathlib import Path
from typing import Optional

import pandas as pd

from quarterly_macro.errors import DatasetIOError, FormatError


logger = logging.getLogger(__name__)


def _short_row_lines(path: Path, width: int) -> list[int]:
    """1-based line numbers of non-blank rows with fewer than `width` fields."""
    with open(path, newline="", encoding="utf-8") as handle:
        return [
            line_number
            for line_number, row in enumerate(csv.reader(handle), start=1)
            if row and len(row) < width
        ]


class CsvFileSource:
    """
    Adapter for local CSV files.

    Args:
        base_dir: Directory that relative identifiers are resolved against.
                  Absolute identifiers are used as-is. Defaults to the current
                  working directory.
    """

    def __init__(self, base_dir: Optional[Path | str] = None):
        self.base_dir = Path(base_dir) if base_dir is not None else None

    def resolve_path(self, identifier: str) -> Path:
        path = Path(identifier)
        if not path.is_absolute() and self.base_dir is not None:
            path = self.base_dir / path
        return path

    def fetch(self, identifier: str) -> pd.DataFrame:
        """
        Read a CSV file into a DataFrame of strings.

        Raises:
            DatasetIOError: If the path is missing, not a file, or unreadable.
            FormatError: If the file is empty, has no header, or a row has
                         more or fewer fields than the header.
        """
        path = self.resolve_path(identifier)
        logger.info("Retrieving data from csv: %s", path)

        if not path.is_file():
            raise DatasetIOError(str(path), "file does not exist")

        # header=None so the first line fixes the row width and any longer
        # row is a tokenizing error instead of an implicit index column.
        try:
            raw = pd.read_csv(
                path,
                sep=",",
                header=None,
                dtype=str,
                encoding="utf-8",
                keep_default_na=False,
            )
        except pd.errors.EmptyDataError as e:
            raise FormatError(f"{path}: file is empty or has no header row ({e})") from e
        except pd.errors.ParserError as e:
            raise FormatError(f"{path}: inconsistent row shape ({e})") from e
        except UnicodeDecodeError as e:
            raise FormatError(f"{path}: not valid UTF-8 ({e})") from e
        except OSError as e:
            raise DatasetIOError(str(path), str(e)) from e

        header = [str(cell).strip() if isinstance(cell, str) else "" for cell in raw.iloc[0]]
        if any(cell == "" for cell in header):
            raise FormatError(
                f"{path}: header row has empty column names; "
                f"header and rows do not have the same shape"
            )
        if len(set(header)) != len(header):
            raise FormatError(f"{path}: duplicate column names in header {header}")

        df = raw.iloc[1:].reset_index(drop=True)
        df.columns = header

        # pandas fills missing trailing fields with "" under keep_default_na=False,
        # so short rows are only visible by counting fields per line.
        short_lines = _short_row_lines(path, len(header))
        if short_lines:
            raise FormatError(
                f"{path}: rows at lines {short_lines[:5]} have fewer fields than the header"
            )

        logger.debug("Read %d rows x %d columns from %s", len(df), len(df.columns), path)
        return df

    def close(self) -> None:
        """Nothing to release; present for the SourceAdapter protocol."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
