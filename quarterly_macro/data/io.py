"""
CSV and Parquet writers/readers for the wide table, with schema enforcement.

**Conceptual**: This module is the *only* I/O boundary for pipeline output.
The final wide table passes through these functions on its way to disk, which
guarantees that:
  - the column contract (data/schemas.py) is validated before every write,
  - rows are sorted ascending by quarter,
  - files land at the fixed, documented paths under the output directory.

**Rule**: Never call df.to_csv / df.to_parquet directly in orchestration code.
Always use these functions, so the contract stays enforceable in one place.

**Output layout** (relative to the configured output dir):
  - csv/result.csv          header + comma-separated rows
  - parquet/result.parquet  snappy-compressed (pyarrow engine)
"""

import logging
from pathlib import Path

import pandas as pd

from quarterly_macro.data.schemas import (
    METRIC_COLUMNS,
    WIDE_TABLE_COLUMNS,
    SchemaValidationError,
    validate_wide_table_schema,
)


logger = logging.getLogger(__name__)

CSV_RESULT_PATH = Path("csv") / "result.csv"
PARQUET_RESULT_PATH = Path("parquet") / "result.parquet"


def _prepare_for_write(df: pd.DataFrame, context: str) -> pd.DataFrame:
    # Copy so the caller's frame is never reordered in place
    df_to_write = df.copy()
    validate_wide_table_schema(df_to_write, context=context)
    df_to_write = df_to_write[WIDE_TABLE_COLUMNS]
    return df_to_write.sort_values("quarter").reset_index(drop=True)


def write_wide_table_csv(df: pd.DataFrame, path: Path | str) -> Path:
    """
    Write the wide table to a comma-separated CSV file with header.

    **Functionally**:
      - Validates the wide-table schema.
      - Orders columns per WIDE_TABLE_COLUMNS and rows by quarter.
      - Creates the parent directory if needed.
      - Writes with index=False.

    Args:
        df: Wide table from the join engine.
        path: Destination file (e.g. outputs/csv/result.csv).

    Returns:
        The path written.

    Raises:
        SchemaValidationError: If df doesn't conform to the wide-table schema.
        OSError: If the file can't be written.
    """
    path = Path(path)
    df_to_write = _prepare_for_write(df, context=str(path))

    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        df_to_write.to_csv(path, index=False, sep=",")
    except Exception as e:
        raise OSError(f"Failed to write CSV to {path}. Error: {e}") from e

    logger.info("Wrote %d rows to %s", len(df_to_write), path)
    return path


def read_wide_table_csv(path: Path | str) -> pd.DataFrame:
    """
    Read a wide table previously written by write_wide_table_csv.

    Quarter labels are read as strings and metrics as float64, so a
    write/read round trip yields the same shape and values.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        SchemaValidationError: If the CSV doesn't conform to the wide-table schema.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(
            f"Wide table CSV not found: {path}. "
            f"Run the pipeline first or check the output directory."
        )

    try:
        df = pd.read_csv(
            path,
            dtype={"quarter": str, **{c: "float64" for c in METRIC_COLUMNS}},
        )
    except (ValueError, pd.errors.ParserError) as e:
        raise SchemaValidationError(f"{path}: Failed to read CSV. Error: {e}") from e

    validate_wide_table_schema(df, context=str(path))
    return df


def write_wide_table_parquet(df: pd.DataFrame, path: Path | str) -> Path:
    """
    Write the wide table to a snappy-compressed Parquet file.

    Raises:
        SchemaValidationError: If df doesn't conform to the wide-table schema.
        OSError: If the file can't be written.
    """
    path = Path(path)
    df_to_write = _prepare_for_write(df, context=str(path))

    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        df_to_write.to_parquet(path, engine="pyarrow", compression="snappy", index=False)
    except Exception as e:
        raise OSError(f"Failed to write Parquet to {path}. Error: {e}") from e

    logger.info("Wrote %d rows to %s", len(df_to_write), path)
    return path


def read_wide_table_parquet(path: Path | str) -> pd.DataFrame:
    """Read a wide table written by write_wide_table_parquet."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Wide table Parquet not found: {path}.")
    df = pd.read_parquet(path, engine="pyarrow")
    validate_wide_table_schema(df, context=str(path))
    return df
