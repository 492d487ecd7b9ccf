"""
Quarterly normalization: bucket dated observations into fiscal quarters.

**Conceptual**: The eight source series come at different cadences (daily FX
and S&P 500, monthly inflation, quarterly GDP and debt). To join them, every
series is reduced to one row per quarter, labelled "<year>-Q<1..4>", holding
the arithmetic mean of the readings that fall in that quarter.

**Algorithm** (process_quarterly_average):
  1. Parse the date column with the dataset's strftime mask. Rows whose date
     does not parse are dropped, never defaulted.
  2. Quarter index from month: 1-3 -> Q1, 4-6 -> Q2, 7-9 -> Q3, 10-12 -> Q4.
  3. Label "{year}-Q{quarter}".
  4. Group by label, mean of the target column. Missing targets (NaN, "",
     FRED's ".") are excluded from the mean, not treated as zero.
  5. Output [quarter, output_alias], one row per label, sorted by quarter.

**Parallelism**: each dataset's normalization reads only its own table and
touches no shared state, so normalize_datasets() is a plain parallel map.
"""

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Mapping, Optional

import pandas as pd

from quarterly_macro.data.dataset import QUARTER_COLUMN, Dataset
from quarterly_macro.data.registry import QuarterlyAverageSpec
from quarterly_macro.errors import FormatError, PipelineError


logger = logging.getLogger(__name__)

QUARTER_LABEL_PATTERN = re.compile(r"^\d{4}-Q[1-4]$")


def quarter_of_month(month: int) -> int:
    """
    Map a calendar month (1-12) to its quarter index (1-4).

    Raises:
        ValueError: If month is outside 1..12.
    """
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be in 1..12, got: {month}")
    return (month - 1) // 3 + 1


def quarter_label(year: int, quarter: int) -> str:
    """Build the canonical quarter label, e.g. quarter_label(2023, 1) -> "2023-Q1"."""
    return f"{year}-Q{quarter}"


def is_quarter_label(value: object) -> bool:
    return isinstance(value, str) and QUARTER_LABEL_PATTERN.match(value) is not None


def _quarter_labels(dates: pd.Series, date_format_mask: str) -> pd.Series:
    """
    Compute quarter labels for a column of date strings.

    Values that already are quarter labels are kept as-is, which makes
    normalizing an already-normalized table a no-op. Unparseable values map
    to NA.
    """
    text = dates.astype("string")
    already_labelled = text.str.match(QUARTER_LABEL_PATTERN.pattern).fillna(False).astype(bool)

    parsed = pd.to_datetime(text.where(~already_labelled), format=date_format_mask, errors="coerce")
    quarters = (parsed.dt.month - 1) // 3 + 1
    computed = parsed.dt.year.astype("Int64").astype("string") + "-Q" + quarters.astype("Int64").astype("string")

    return computed.where(~already_labelled, text)


def process_quarterly_average(frame: pd.DataFrame, spec: QuarterlyAverageSpec) -> pd.DataFrame:
    """
    Average one dataset's target column per quarter.

    Args:
        frame: Raw table containing spec.date_column and spec.target_column.
        spec: Column names, output alias and date mask for this dataset.

    Returns:
        New DataFrame with columns [quarter, spec.output_alias], one row per
        distinct quarter, sorted by quarter. The input is not modified.

    Raises:
        FormatError: If the date or target column is missing.

    Example:
        >>> raw = pd.DataFrame({
        ...     "date": ["2023-01-15", "2023-02-20", "2023-04-10"],
        ...     "value": [10.0, 20.0, 30.0],
        ... })
        >>> spec = QuarterlyAverageSpec("date", "value", "avg", "%Y-%m-%d")
        >>> process_quarterly_average(raw, spec)
           quarter   avg
        0  2023-Q1  15.0
        1  2023-Q2  30.0
    """
    missing = [c for c in (spec.date_column, spec.target_column) if c not in frame.columns]
    if missing:
        raise FormatError(
            f"Cannot compute quarterly average: missing columns {missing}. "
            f"Found columns: {list(frame.columns)}"
        )

    work = pd.DataFrame(
        {
            QUARTER_COLUMN: _quarter_labels(frame[spec.date_column], spec.date_format_mask),
            "_target": pd.to_numeric(frame[spec.target_column], errors="coerce"),
        }
    )

    dropped = int(work[QUARTER_COLUMN].isna().sum())
    if dropped:
        logger.debug("Dropping %d rows with unparseable dates in '%s'", dropped, spec.date_column)
    work = work.dropna(subset=[QUARTER_COLUMN])
    # plain str keys so every dataset joins on the same dtype
    work[QUARTER_COLUMN] = work[QUARTER_COLUMN].astype(object)

    result = (
        work.groupby(QUARTER_COLUMN, sort=True)["_target"]
        .mean()
        .rename(spec.output_alias)
        .reset_index()
    )
    return result


def normalize_dataset(dataset: Dataset) -> Dataset:
    """
    Normalize one dataset if its descriptor requires quarterly averaging.

    Datasets that are already quarterly pass through unchanged.
    """
    descriptor = dataset.descriptor
    if not descriptor.requires_quarterly_average:
        return dataset

    try:
        frame = process_quarterly_average(dataset.frame, descriptor.quarterly_spec)
    except PipelineError as e:
        raise e.with_context(dataset=dataset.name, stage="normalize")

    logger.debug("Normalized %s: %d raw rows -> %d quarters", dataset.name, len(dataset.frame), len(frame))
    return dataset.replace_frame(frame)


def normalize_datasets(
    datasets: Mapping[str, Dataset],
    max_workers: Optional[int] = None,
) -> Dict[str, Dataset]:
    """
    Normalize every dataset in parallel.

    Args:
        datasets: Ordered mapping of dataset name to raw Dataset.
        max_workers: Thread pool size (default: one per dataset).

    Returns:
        New ordered mapping with the same keys, in the same order.
    """
    if not datasets:
        return {}

    names = list(datasets.keys())
    workers = max_workers or len(names)
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="normalize") as executor:
        normalized = list(executor.map(normalize_dataset, (datasets[n] for n in names)))

    return dict(zip(names, normalized))
