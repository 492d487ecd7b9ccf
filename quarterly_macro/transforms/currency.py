"""
Currency conversion of EUR-denominated metrics into USD.

**Conceptual**: EU GDP and EU government debt are reported in EUR. To compare
them with the US series they are multiplied by the quarterly-average EUR/USD
rate of the same quarter. Which datasets are converted is decided by the
descriptor's `currency_denominated` flag; inflation is a percentage, not an
amount, so it is never converted.

**Join semantics**: each convertible dataset is LEFT-joined with the FX table
on quarter. A quarter with no FX rate yields a NaN converted value; the join
engine drops that row later. The converted metric is renamed
"<metric>_converted" and the original column is not carried forward.
"""

import logging
from typing import Dict, Mapping

import pandas as pd

from quarterly_macro.data import registry
from quarterly_macro.data.dataset import QUARTER_COLUMN, Dataset
from quarterly_macro.errors import FormatError, JoinError


logger = logging.getLogger(__name__)

FX_DATASET_NAME = registry.FX_RATES
FX_RATE_COLUMN = "eur_to_usd"
CONVERTED_SUFFIX = "_converted"


def extract_fx_table(datasets: Mapping[str, Dataset]) -> pd.DataFrame:
    """
    Return the [quarter, eur_to_usd] FX table.

    Raises:
        JoinError: If the FX dataset is missing.
        FormatError: If it lacks the quarter or rate column.
    """
    fx = datasets.get(FX_DATASET_NAME)
    if fx is None:
        raise JoinError(
            f"FX dataset '{FX_DATASET_NAME}' is not available; cannot convert currencies"
        ).with_context(stage="convert")

    missing = [c for c in (QUARTER_COLUMN, FX_RATE_COLUMN) if c not in fx.frame.columns]
    if missing:
        raise FormatError(
            f"FX table is missing columns {missing}. Found: {list(fx.frame.columns)}"
        ).with_context(dataset=FX_DATASET_NAME, stage="convert")

    return fx.frame[[QUARTER_COLUMN, FX_RATE_COLUMN]]


def convert_metric(frame: pd.DataFrame, metric: str, fx_table: pd.DataFrame) -> pd.DataFrame:
    """
    Multiply `metric` by the FX rate of the same quarter.

    Returns:
        New [quarter, <metric>_converted] DataFrame with one row per input row.
        Quarters without a rate get NaN.

    Example:
        >>> frame = pd.DataFrame({"quarter": ["2023-Q1"], "eu_gdp": [100.0]})
        >>> fx = pd.DataFrame({"quarter": ["2023-Q1"], "eur_to_usd": [1.1]})
        >>> convert_metric(frame, "eu_gdp", fx)
           quarter  eu_gdp_converted
        0  2023-Q1             110.0
    """
    converted_name = f"{metric}{CONVERTED_SUFFIX}"
    # Duplicate FX quarters would fan out rows; the normalizer never emits them.
    fx_unique = fx_table.drop_duplicates(subset=[QUARTER_COLUMN], keep="last")
    merged = frame[[QUARTER_COLUMN, metric]].merge(fx_unique, on=QUARTER_COLUMN, how="left")
    merged[converted_name] = merged[metric] * merged[FX_RATE_COLUMN]
    return merged[[QUARTER_COLUMN, converted_name]]


def convert_dataset(dataset: Dataset, fx_table: pd.DataFrame) -> Dataset:
    """Convert one dataset if its descriptor marks it as currency-denominated."""
    if not dataset.descriptor.currency_denominated:
        return dataset

    metrics = dataset.metric_columns()
    if len(metrics) != 1:
        raise FormatError(
            f"Expected exactly one metric column to convert, got {metrics}"
        ).with_context(dataset=dataset.name, stage="convert")

    frame = convert_metric(dataset.frame, metrics[0], fx_table)
    unmatched = int(frame.iloc[:, 1].isna().sum())
    if unmatched:
        logger.debug("%s: %d quarters have no FX rate", dataset.name, unmatched)
    return dataset.replace_frame(frame)


def convert_currency(datasets: Mapping[str, Dataset]) -> Dict[str, Dataset]:
    """
    Convert every currency-denominated dataset using the FX dataset.

    Returns:
        New ordered mapping; non-convertible datasets (including the FX
        dataset itself) are passed through unmodified.
    """
    fx_table = extract_fx_table(datasets)
    return {name: convert_dataset(dataset, fx_table) for name, dataset in datasets.items()}
