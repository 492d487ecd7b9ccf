"""
Wide-table output contract and validation.

**Conceptual**: This module defines the "data contract" between the pipeline
core and its sinks (CSV writer, Parquet writer, chart renderer). The core
guarantees exactly these column names, in this order, with one row per
quarter sorted ascending. Sinks rely on them without re-checking.

**Schema philosophy**:
  - `quarter` ("YYYY-Qn") is the key column and is unique.
  - Metric names carry their unit (usd, usd_millions, perc) so exported files
    are self-describing.
  - Validation raises SchemaValidationError with actionable messages.
"""

from typing import Dict, List, Optional

import pandas as pd

from quarterly_macro.errors import FormatError


class SchemaValidationError(FormatError):
    """
    Raised when a DataFrame does not conform to the wide-table schema.

    **Usage**: Raised by the I/O layer before writing and after reading, so a
    broken table never reaches disk and a hand-edited file is rejected early.
    """


# Joined column name -> final output column name
FINAL_COLUMN_NAMES: Dict[str, str] = {
    "eur_to_usd": "fx_rate_eur_to_usd",
    "sp500_usd": "sp500_usd",
    "us_gdp_usd": "us_gdp_usd_billions",
    "us_total_debt_usd": "us_total_debt_usd_millions",
    "us_inflation": "us_inflation_perc",
    "eu_inflation": "eu_inflation_perc",
    "eu_government_debt_converted": "eu_government_debt_usd_millions",
    "eu_gdp_converted": "eu_gdp_usd_millions",
}

WIDE_TABLE_COLUMNS: List[str] = [
    "quarter",
    "fx_rate_eur_to_usd",
    "sp500_usd",
    "us_gdp_usd_billions",
    "us_total_debt_usd_millions",
    "us_inflation_perc",
    "eu_inflation_perc",
    "eu_government_debt_usd_millions",
    "eu_gdp_usd_millions",
]

METRIC_COLUMNS: List[str] = [c for c in WIDE_TABLE_COLUMNS if c != "quarter"]


def validate_wide_table_schema(df: pd.DataFrame, context: Optional[str] = None) -> None:
    """
    Validate that a DataFrame conforms to the wide-table contract.

    Checks:
      - all contract columns are present,
      - quarter labels are unique and well-formed ("YYYY-Qn"),
      - metric columns are numeric.

    Args:
        df: Wide table (from the join engine or read back from CSV).
        context: Optional source description for error messages.

    Raises:
        SchemaValidationError: On any violation.
    """
    ctx = f"{context}: " if context else ""

    missing_cols = [c for c in WIDE_TABLE_COLUMNS if c not in df.columns]
    if missing_cols:
        raise SchemaValidationError(
            f"{ctx}Missing required columns: {missing_cols}. "
            f"Expected columns: {WIDE_TABLE_COLUMNS}. "
            f"Found columns: {list(df.columns)}."
        )

    quarters = df["quarter"].astype(str)
    malformed = quarters[~quarters.str.match(r"^\d{4}-Q[1-4]$")]
    if len(malformed) > 0:
        raise SchemaValidationError(
            f"{ctx}Malformed quarter labels: {malformed.tolist()[:5]} (showing first 5). "
            f"Expected format 'YYYY-Qn'."
        )

    duplicated = quarters[quarters.duplicated()]
    if len(duplicated) > 0:
        raise SchemaValidationError(
            f"{ctx}Duplicate quarters: {duplicated.tolist()[:5]} (showing first 5)."
        )

    non_numeric = [c for c in METRIC_COLUMNS if not pd.api.types.is_numeric_dtype(df[c])]
    if non_numeric:
        raise SchemaValidationError(f"{ctx}Metric columns are not numeric: {non_numeric}.")
