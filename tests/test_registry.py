"""
Tests for the dataset registry (quarterly_macro/data/registry.py).

The registry is static data, so these tests pin down the parts the rest of
the pipeline relies on: the eight names, their order, source kinds and which
datasets get averaged or converted.
"""

import pytest

from quarterly_macro.data import registry
from quarterly_macro.data.registry import (
    DatasetDescriptor,
    QuarterlyAverageSpec,
    SourceKind,
    get_dataset_descriptor,
    get_dataset_descriptors,
    get_dataset_names,
)


def test_registry_has_eight_datasets_in_fixed_order():
    assert get_dataset_names() == (
        "fx_rates",
        "sp500",
        "us_gdp",
        "us_total_public_debt",
        "us_inflation",
        "eu_government_debt",
        "eu_gdp",
        "eu_inflation",
    )


def test_registry_names_are_unique():
    names = get_dataset_names()
    assert len(set(names)) == len(names)


def test_source_kinds():
    kinds = {d.name: d.source_kind for d in get_dataset_descriptors()}
    assert kinds["fx_rates"] is SourceKind.FILE
    for name in ("sp500", "us_gdp", "us_total_public_debt", "us_inflation"):
        assert kinds[name] is SourceKind.JSON_API
    for name in ("eu_government_debt", "eu_gdp", "eu_inflation"):
        assert kinds[name] is SourceKind.XML_API


def test_fred_identifiers():
    assert get_dataset_descriptor("sp500").identifier == "SP500"
    assert get_dataset_descriptor("us_gdp").identifier == "GDP"
    assert get_dataset_descriptor("us_total_public_debt").identifier == "GFDEBTN"
    assert get_dataset_descriptor("us_inflation").identifier == "CORESTICKM159SFRBATL"


def test_quarterly_average_flag_matches_averaging_config():
    for descriptor in get_dataset_descriptors():
        assert (descriptor.quarterly_spec is not None) == descriptor.requires_quarterly_average


def test_ecb_quarterly_series_are_not_averaged():
    assert not get_dataset_descriptor("eu_gdp").requires_quarterly_average
    assert not get_dataset_descriptor("eu_government_debt").requires_quarterly_average


def test_eu_inflation_uses_monthly_mask():
    spec = get_dataset_descriptor("eu_inflation").quarterly_spec
    assert spec.date_column == "quarter"
    assert spec.target_column == "value"
    assert spec.date_format_mask == "%Y-%m"


def test_fx_rates_spec():
    spec = get_dataset_descriptor("fx_rates").quarterly_spec
    assert spec == QuarterlyAverageSpec(
        date_column="observation_date",
        target_column="DEXUSEU",
        output_alias="avg_fx_rate",
        date_format_mask="%Y-%m-%d",
    )


def test_only_eur_amounts_are_currency_denominated():
    converted = {d.name for d in get_dataset_descriptors() if d.currency_denominated}
    assert converted == {registry.EU_GOVERNMENT_DEBT, registry.EU_GDP}


def test_unknown_dataset_raises_key_error():
    with pytest.raises(KeyError, match="Unknown dataset"):
        get_dataset_descriptor("does_not_exist")


def test_descriptor_requires_spec_when_averaging():
    with pytest.raises(ValueError):
        DatasetDescriptor(
            name="broken",
            source_kind=SourceKind.JSON_API,
            identifier="X",
            requires_quarterly_average=True,
        )
