"""
Schema unification: give every normalized metric its canonical column name.

After normalization each dataset is [quarter, <metric>], but the metric column
still carries a source-specific name ("avg_fx_rate", "value", ...). This stage
renames it using a static table keyed by dataset name. Datasets without an
entry pass through unchanged.
"""

import logging
from typing import Dict, Mapping

from quarterly_macro.data import registry
from quarterly_macro.data.dataset import QUARTER_COLUMN, Dataset
from quarterly_macro.errors import FormatError


logger = logging.getLogger(__name__)


# Dataset name -> canonical metric column
CANONICAL_METRIC_NAMES: Dict[str, str] = {
    registry.FX_RATES: "eur_to_usd",
    registry.SP500: "sp500_usd",
    registry.US_GDP: "us_gdp_usd",
    registry.US_TOTAL_PUBLIC_DEBT: "us_total_debt_usd",
    registry.US_INFLATION: "us_inflation",
    registry.EU_GOVERNMENT_DEBT: "eu_government_debt",
    registry.EU_GDP: "eu_gdp",
    registry.EU_INFLATION: "eu_inflation",
}


def unify_dataset(dataset: Dataset) -> Dataset:
    """
    Rename the metric column of one dataset to its canonical name.

    Raises:
        FormatError: If the table is not exactly [quarter, <one metric>].
                     That shape is guaranteed by the normalizer/adapters, so a
                     mismatch is an upstream contract violation.
    """
    canonical = CANONICAL_METRIC_NAMES.get(dataset.name)
    if canonical is None:
        return dataset

    columns = list(dataset.frame.columns)
    metrics = dataset.metric_columns()
    if QUARTER_COLUMN not in columns or len(columns) != 2 or len(metrics) != 1:
        raise FormatError(
            f"Expected columns [{QUARTER_COLUMN}, <metric>] before renaming, got {columns}"
        ).with_context(dataset=dataset.name, stage="unify")

    frame = dataset.frame.rename(columns={metrics[0]: canonical})
    return dataset.replace_frame(frame[[QUARTER_COLUMN, canonical]])


def unify_datasets(datasets: Mapping[str, Dataset]) -> Dict[str, Dataset]:
    """Apply unify_dataset to every dataset, preserving order."""
    return {name: unify_dataset(dataset) for name, dataset in datasets.items()}
