"""
Dataset registry: the fixed set of eight series the pipeline aggregates.

**Conceptual**: The registry is the sole source of truth for *what* gets
fetched and *how* each series is post-processed. Every descriptor names a
dataset, the kind of source it comes from, the source-specific identifier
(file path, FRED series id, or ECB flow reference), and whether the raw
observations must be averaged into quarters.

**Why a static registry?**
  - The set of series, their sources and join key are fixed at design time.
  - Downstream stages route on the descriptor (source kind, averaging spec,
    currency flag) instead of string-matching dataset names.
  - Registry order is the deterministic assembly order used by the
    orchestrator and the join engine, regardless of network latency.

Descriptors are frozen dataclasses; the registry tuple is built once at
import time and never mutated.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class SourceKind(Enum):
    """Kind of source a dataset is extracted from."""
    FILE = "file"          # local delimited text file
    JSON_API = "json_api"  # FRED series observations (JSON)
    XML_API = "xml_api"    # ECB SDMX generic data (XML)


@dataclass(frozen=True)
class QuarterlyAverageSpec:
    """
    How to bucket and label one dataset's raw table into quarters.

    Attributes:
        date_column: Column holding the observation date (text).
        target_column: Column holding the numeric reading to average.
        output_alias: Name of the averaged column in the output table.
        date_format_mask: strftime mask used to parse date_column
                          (e.g. "%Y-%m-%d" for daily data, "%Y-%m" for monthly
                          SDMX periods).
    """
    date_column: str
    target_column: str
    output_alias: str
    date_format_mask: str


@dataclass(frozen=True)
class DatasetDescriptor:
    """
    Immutable description of one dataset.

    Attributes:
        name: Unique dataset name; the identity used for renaming and routing.
        source_kind: Which adapter fetches this dataset.
        identifier: File path (FILE), series id (JSON_API) or flow reference (XML_API).
        requires_quarterly_average: True if raw rows must be averaged per quarter.
        quarterly_spec: Averaging spec; required when requires_quarterly_average is True.
        currency_denominated: True if the metric is an amount in the foreign
                              region's currency and must be converted with the FX series.
    """
    name: str
    source_kind: SourceKind
    identifier: str
    requires_quarterly_average: bool
    quarterly_spec: Optional[QuarterlyAverageSpec] = None
    currency_denominated: bool = False

    def __post_init__(self):
        if not self.name:
            raise ValueError("Dataset name cannot be empty")
        if not self.identifier:
            raise ValueError(f"Dataset '{self.name}' has an empty identifier")
        if self.requires_quarterly_average and self.quarterly_spec is None:
            raise ValueError(
                f"Dataset '{self.name}' requires quarterly averaging but has no quarterly_spec"
            )


FX_RATES = "fx_rates"
SP500 = "sp500"
US_GDP = "us_gdp"
US_TOTAL_PUBLIC_DEBT = "us_total_public_debt"
US_INFLATION = "us_inflation"
EU_GOVERNMENT_DEBT = "eu_government_debt"
EU_GDP = "eu_gdp"
EU_INFLATION = "eu_inflation"


def _daily_fred_spec(output_alias: str) -> QuarterlyAverageSpec:
    return QuarterlyAverageSpec(
        date_column="date",
        target_column="value",
        output_alias=output_alias,
        date_format_mask="%Y-%m-%d",
    )


_DATASET_DESCRIPTORS: Tuple[DatasetDescriptor, ...] = (
    DatasetDescriptor(
        name=FX_RATES,
        source_kind=SourceKind.FILE,
        identifier="csv_data/DEXUSEU.csv",
        requires_quarterly_average=True,
        quarterly_spec=QuarterlyAverageSpec(
            date_column="observation_date",
            target_column="DEXUSEU",
            output_alias="avg_fx_rate",
            date_format_mask="%Y-%m-%d",
        ),
    ),
    DatasetDescriptor(
        name=SP500,
        source_kind=SourceKind.JSON_API,
        identifier="SP500",
        requires_quarterly_average=True,
        quarterly_spec=_daily_fred_spec("sp500_usd"),
    ),
    DatasetDescriptor(
        name=US_GDP,
        source_kind=SourceKind.JSON_API,
        identifier="GDP",
        requires_quarterly_average=True,
        quarterly_spec=_daily_fred_spec("us_gdp_usd"),
    ),
    DatasetDescriptor(
        name=US_TOTAL_PUBLIC_DEBT,
        source_kind=SourceKind.JSON_API,
        identifier="GFDEBTN",
        requires_quarterly_average=True,
        quarterly_spec=_daily_fred_spec("us_total_debt_usd"),
    ),
    DatasetDescriptor(
        name=US_INFLATION,
        source_kind=SourceKind.JSON_API,
        identifier="CORESTICKM159SFRBATL",
        requires_quarterly_average=True,
        quarterly_spec=_daily_fred_spec("us_inflation"),
    ),
    # ECB quarterly series already carry "YYYY-Qn" period labels.
    DatasetDescriptor(
        name=EU_GOVERNMENT_DEBT,
        source_kind=SourceKind.XML_API,
        identifier="GFS/Q.N.I9.W0.S13.S1.C.L.LE.GD.T._Z.XDC._T.F.V.N._T",
        requires_quarterly_average=False,
        currency_denominated=True,
    ),
    DatasetDescriptor(
        name=EU_GDP,
        source_kind=SourceKind.XML_API,
        identifier="MNA/Q.Y.I9.W2.S1.S1.B.B1GQ._Z._Z._Z.EUR.LR.N",
        requires_quarterly_average=False,
        currency_denominated=True,
    ),
    # Monthly HICP: periods look like "2023-01".
    DatasetDescriptor(
        name=EU_INFLATION,
        source_kind=SourceKind.XML_API,
        identifier="ICP/M.U2.N.XEF000.4.ANR",
        requires_quarterly_average=True,
        quarterly_spec=QuarterlyAverageSpec(
            date_column="quarter",
            target_column="value",
            output_alias="value",
            date_format_mask="%Y-%m",
        ),
    ),
)


def _check_unique_names(descriptors: Tuple[DatasetDescriptor, ...]) -> None:
    seen = set()
    for descriptor in descriptors:
        if descriptor.name in seen:
            raise ValueError(f"Duplicate dataset name in registry: {descriptor.name}")
        seen.add(descriptor.name)


_check_unique_names(_DATASET_DESCRIPTORS)


def get_dataset_descriptors() -> Tuple[DatasetDescriptor, ...]:
    """
    Return the fixed, ordered tuple of dataset descriptors.

    The order is significant: it is the assembly order of extraction results
    and the fold order of the join.
    """
    return _DATASET_DESCRIPTORS


def get_dataset_descriptor(name: str) -> DatasetDescriptor:
    """
    Look up a descriptor by dataset name.

    Raises:
        KeyError: If no dataset with that name is registered.
    """
    for descriptor in _DATASET_DESCRIPTORS:
        if descriptor.name == name:
            return descriptor
    raise KeyError(f"Unknown dataset: {name}")


def get_dataset_names() -> Tuple[str, ...]:
    """Return registered dataset names in registry order."""
    return tuple(descriptor.name for descriptor in _DATASET_DESCRIPTORS)
