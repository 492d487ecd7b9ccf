"""
Tests for the wide-table contract and its I/O boundary.

This module tests:
  - Schema validation (quarterly_macro/data/schemas.py).
  - CSV writer/reader round trip (quarterly_macro/data/io.py).
  - Parquet writer (snappy, pyarrow).

All tests use temporary directories (via tmp_path fixture) to avoid polluting
the real outputs/ directory.
"""

import pandas as pd
import pyarrow.parquet as pq
import pytest

from quarterly_macro.data.io import (
    CSV_RESULT_PATH,
    PARQUET_RESULT_PATH,
    read_wide_table_csv,
    read_wide_table_parquet,
    write_wide_table_csv,
    write_wide_table_parquet,
)
from quarterly_macro.data.schemas import (
    WIDE_TABLE_COLUMNS,
    SchemaValidationError,
    validate_wide_table_schema,
)
from quarterly_macro.errors import FormatError, PipelineError


# ============================================================================
# Tests for schema validation (quarterly_macro/data/schemas.py)
# ============================================================================

def test_validate_wide_table_schema_valid(wide_table):
    # Should not raise
    validate_wide_table_schema(wide_table, context="test")


def test_validate_wide_table_schema_missing_column(wide_table):
    df = wide_table.drop(columns=["sp500_usd"])

    with pytest.raises(SchemaValidationError) as exc_info:
        validate_wide_table_schema(df, context="test")

    assert "sp500_usd" in str(exc_info.value)
    assert "Missing required columns" in str(exc_info.value)


def test_validate_wide_table_schema_malformed_quarter(wide_table):
    df = wide_table.copy()
    df.loc[0, "quarter"] = "2023Q1"

    with pytest.raises(SchemaValidationError, match="Malformed quarter labels"):
        validate_wide_table_schema(df)


def test_validate_wide_table_schema_duplicate_quarter(wide_table):
    df = wide_table.copy()
    df.loc[1, "quarter"] = "2023-Q1"

    with pytest.raises(SchemaValidationError, match="Duplicate quarters"):
        validate_wide_table_schema(df)


def test_validate_wide_table_schema_non_numeric_metric(wide_table):
    df = wide_table.copy()
    df["eu_gdp_usd_millions"] = ["a", "b", "c"]

    with pytest.raises(SchemaValidationError, match="not numeric"):
        validate_wide_table_schema(df)


def test_schema_validation_error_is_a_pipeline_error():
    assert issubclass(SchemaValidationError, FormatError)
    assert issubclass(SchemaValidationError, PipelineError)


# ============================================================================
# Tests for CSV I/O (quarterly_macro/data/io.py)
# ============================================================================

def test_csv_round_trip(tmp_path, wide_table):
    path = tmp_path / CSV_RESULT_PATH

    written = write_wide_table_csv(wide_table, path)
    df_read = read_wide_table_csv(written)

    assert written == path
    assert df_read.shape == wide_table.shape
    assert df_read.columns.tolist() == WIDE_TABLE_COLUMNS
    pd.testing.assert_frame_equal(df_read, wide_table, check_dtype=False)


def test_csv_header_and_delimiter(tmp_path, wide_table):
    path = write_wide_table_csv(wide_table, tmp_path / "out.csv")

    lines = path.read_text().splitlines()

    assert lines[0] == ",".join(WIDE_TABLE_COLUMNS)
    assert lines[1].startswith("2023-Q1,1.07,")
    assert len(lines) == 4


def test_csv_writer_sorts_rows_and_orders_columns(tmp_path, wide_table):
    shuffled = wide_table.iloc[::-1][list(reversed(WIDE_TABLE_COLUMNS))]

    path = write_wide_table_csv(shuffled, tmp_path / "out.csv")
    df_read = read_wide_table_csv(path)

    assert df_read.columns.tolist() == WIDE_TABLE_COLUMNS
    assert df_read["quarter"].tolist() == ["2023-Q1", "2023-Q2", "2023-Q3"]


def test_csv_writer_rejects_invalid_table(tmp_path, wide_table):
    path = tmp_path / "out.csv"

    with pytest.raises(SchemaValidationError):
        write_wide_table_csv(wide_table.drop(columns=["quarter"]), path)

    # Nothing written on failure
    assert not path.exists()


def test_read_missing_csv_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_wide_table_csv(tmp_path / "nope.csv")


# ============================================================================
# Tests for Parquet I/O
# ============================================================================

def test_parquet_written_with_snappy(tmp_path, wide_table):
    path = write_wide_table_parquet(wide_table, tmp_path / PARQUET_RESULT_PATH)

    metadata = pq.ParquetFile(path).metadata
    assert metadata.num_rows == 3
    assert metadata.row_group(0).column(0).compression == "SNAPPY"

    df_read = read_wide_table_parquet(path)
    assert df_read.columns.tolist() == WIDE_TABLE_COLUMNS
    pd.testing.assert_frame_equal(df_read, wide_table, check_dtype=False)
