"""
Tests for the join engine (quarterly_macro/transforms/join.py).

The join keeps only quarters present in every dataset, drops rows with nulls
beforehand, and renames columns to the output contract.
"""

import numpy as np
import pandas as pd
import pytest

from quarterly_macro.data.dataset import Dataset
from quarterly_macro.data.registry import DatasetDescriptor, SourceKind, get_dataset_descriptors
from quarterly_macro.data.schemas import WIDE_TABLE_COLUMNS
from quarterly_macro.errors import JoinError
from quarterly_macro.transforms.join import (
    build_wide_table,
    drop_incomplete_rows,
    join_datasets,
    join_on_quarter,
)


def simple_dataset(name, frame):
    return Dataset(DatasetDescriptor(name, SourceKind.FILE, f"{name}.csv", False), frame)


def converted_datasets(quarters):
    """All eight registry datasets as they look after currency conversion."""
    metric_names = {
        "fx_rates": "eur_to_usd",
        "sp500": "sp500_usd",
        "us_gdp": "us_gdp_usd",
        "us_total_public_debt": "us_total_debt_usd",
        "us_inflation": "us_inflation",
        "eu_government_debt": "eu_government_debt_converted",
        "eu_gdp": "eu_gdp_converted",
        "eu_inflation": "eu_inflation",
    }
    return {
        d.name: Dataset(d, pd.DataFrame({"quarter": quarters, metric_names[d.name]: [1.0] * len(quarters)}))
        for d in get_dataset_descriptors()
    }


def test_join_keeps_only_common_quarters():
    a = simple_dataset("A", pd.DataFrame({"quarter": ["2023-Q1", "2023-Q2"], "a": [1.0, 2.0]}))
    b = simple_dataset("B", pd.DataFrame({"quarter": ["2023-Q1"], "b": [3.0]}))

    result = join_datasets({"A": a, "B": b}, expected_names=["A", "B"])

    assert result.to_dict("records") == [{"quarter": "2023-Q1", "a": 1.0, "b": 3.0}]


def test_rows_with_nulls_are_dropped_before_join():
    a = simple_dataset("A", pd.DataFrame({"quarter": ["2023-Q1", "2023-Q2"], "a": [1.0, np.nan]}))
    b = simple_dataset("B", pd.DataFrame({"quarter": ["2023-Q1", "2023-Q2"], "b": [3.0, 4.0]}))

    result = join_datasets({"A": a, "B": b}, expected_names=["A", "B"])

    assert result["quarter"].tolist() == ["2023-Q1"]


def test_join_result_sorted_by_quarter():
    a = pd.DataFrame({"quarter": ["2024-Q1", "2023-Q4", "2023-Q3"], "a": [1.0, 2.0, 3.0]})
    b = pd.DataFrame({"quarter": ["2023-Q3", "2024-Q1", "2023-Q4"], "b": [4.0, 5.0, 6.0]})

    result = join_on_quarter([a, b])

    assert result["quarter"].tolist() == ["2023-Q3", "2023-Q4", "2024-Q1"]
    assert result["b"].tolist() == [4.0, 6.0, 5.0]


def test_missing_expected_dataset_raises_join_error():
    a = simple_dataset("A", pd.DataFrame({"quarter": ["2023-Q1"], "a": [1.0]}))

    with pytest.raises(JoinError, match="B"):
        join_datasets({"A": a}, expected_names=["A", "B"])


def test_empty_intersection_raises_join_error():
    a = simple_dataset("A", pd.DataFrame({"quarter": ["2023-Q1"], "a": [1.0]}))
    b = simple_dataset("B", pd.DataFrame({"quarter": ["2023-Q2"], "b": [2.0]}))

    with pytest.raises(JoinError, match="Empty intersection"):
        join_datasets({"A": a, "B": b}, expected_names=["A", "B"])


def test_join_on_quarter_requires_frames():
    with pytest.raises(JoinError):
        join_on_quarter([])


def test_drop_incomplete_rows():
    frame = pd.DataFrame({"quarter": ["2023-Q1", None], "a": [1.0, 2.0]})
    assert drop_incomplete_rows(frame)["quarter"].tolist() == ["2023-Q1"]


def test_build_wide_table_applies_output_contract():
    datasets = converted_datasets(["2023-Q2", "2023-Q1"])

    wide = build_wide_table(datasets)

    assert wide.columns.tolist() == WIDE_TABLE_COLUMNS
    assert wide["quarter"].tolist() == ["2023-Q1", "2023-Q2"]


def test_build_wide_table_reports_missing_registry_dataset():
    datasets = converted_datasets(["2023-Q1"])
    del datasets["eu_inflation"]

    with pytest.raises(JoinError, match="eu_inflation") as exc_info:
        build_wide_table(datasets)

    assert exc_info.value.stage == "join"
