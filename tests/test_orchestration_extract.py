"""
Tests for the extraction orchestrator (quarterly_macro/orchestration/extract.py).

**Purpose**: Verify that results come back keyed by name in registry order
regardless of completion order, that failures are surfaced with dataset and
stage context, and that fail_fast=False drops failed datasets instead.

Adapters are plain fakes satisfying the SourceAdapter protocol.
"""

import threading
import time

import pandas as pd
import pytest

from quarterly_macro.config.settings import EcbSettings, FredSettings, PathSettings, Settings
from quarterly_macro.data.registry import SourceKind, get_dataset_descriptors, get_dataset_names
from quarterly_macro.errors import ConfigError, NetworkError, PipelineError
from quarterly_macro.orchestration.extract import build_default_adapters, extract_datasets
from quarterly_macro.venues.csv_file_source import CsvFileSource
from quarterly_macro.venues.ecb_client import EcbClient
from quarterly_macro.venues.fred_client import FredClient


class FakeAdapter:
    """Returns a one-row table per identifier; optional per-identifier delay or failure."""

    def __init__(self, delays=None, failures=None):
        self.delays = delays or {}
        self.failures = failures or {}
        self.calls = []
        self.threads = set()
        self._lock = threading.Lock()

    def fetch(self, identifier):
        with self._lock:
            self.calls.append(identifier)
            self.threads.add(threading.current_thread().name)
        time.sleep(self.delays.get(identifier, 0))
        if identifier in self.failures:
            raise self.failures[identifier]
        return pd.DataFrame({"id": [identifier]})

    def close(self):
        pass


def make_adapters(**kwargs):
    file_adapter = FakeAdapter()
    network_adapter = FakeAdapter(**kwargs)
    return file_adapter, network_adapter, {
        SourceKind.FILE: file_adapter,
        SourceKind.JSON_API: network_adapter,
        SourceKind.XML_API: network_adapter,
    }


def test_results_in_registry_order_despite_completion_order():
    # SP500 finishes last but must still come second
    _, _, adapters = make_adapters(delays={"SP500": 0.2})

    result = extract_datasets(get_dataset_descriptors(), adapters)

    assert tuple(result.keys()) == get_dataset_names()
    assert result["sp500"].frame["id"].tolist() == ["SP500"]
    assert result["sp500"].descriptor.identifier == "SP500"


def test_every_descriptor_fetched_exactly_once():
    file_adapter, network_adapter, adapters = make_adapters()

    extract_datasets(get_dataset_descriptors(), adapters)

    assert file_adapter.calls == ["csv_data/DEXUSEU.csv"]
    assert sorted(network_adapter.calls) == sorted(
        d.identifier for d in get_dataset_descriptors() if d.source_kind is not SourceKind.FILE
    )


def test_file_reads_run_on_dedicated_pool():
    file_adapter, network_adapter, adapters = make_adapters()

    extract_datasets(get_dataset_descriptors(), adapters)

    assert all(name.startswith("extract-file") for name in file_adapter.threads)
    assert all(name.startswith("extract-net") for name in network_adapter.threads)


def test_fail_fast_raises_with_context():
    _, _, adapters = make_adapters(failures={"GDP": NetworkError(500, "https://fred/obs")})

    with pytest.raises(NetworkError) as exc_info:
        extract_datasets(get_dataset_descriptors(), adapters)

    assert exc_info.value.dataset == "us_gdp"
    assert exc_info.value.stage == "extract"


def test_fail_fast_reports_first_failure_in_registry_order():
    _, _, adapters = make_adapters(
        delays={"SP500": 0.2},
        failures={
            "SP500": NetworkError(500, "https://fred/obs"),
            "GFDEBTN": NetworkError(503, "https://fred/obs"),
        },
    )

    with pytest.raises(NetworkError) as exc_info:
        extract_datasets(get_dataset_descriptors(), adapters)

    # SP500 precedes GFDEBTN in the registry even though it fails later
    assert exc_info.value.dataset == "sp500"


def test_untyped_failure_wrapped_in_pipeline_error():
    _, _, adapters = make_adapters(failures={"GDP": RuntimeError("boom")})

    with pytest.raises(PipelineError, match="boom") as exc_info:
        extract_datasets(get_dataset_descriptors(), adapters)

    assert exc_info.value.dataset == "us_gdp"


def test_fail_fast_false_drops_failed_datasets():
    _, _, adapters = make_adapters(failures={"GDP": NetworkError(500, "https://fred/obs")})

    result = extract_datasets(get_dataset_descriptors(), adapters, fail_fast=False)

    assert "us_gdp" not in result
    assert len(result) == 7
    assert list(result.keys()) == [n for n in get_dataset_names() if n != "us_gdp"]


def test_missing_adapter_raises_config_error_before_fetching():
    file_adapter = FakeAdapter()
    adapters = {SourceKind.FILE: file_adapter}

    with pytest.raises(ConfigError):
        extract_datasets(get_dataset_descriptors(), adapters)

    assert file_adapter.calls == []


def test_build_default_adapters(tmp_path):
    settings = Settings(
        fred=FredSettings(api_key="k"),
        ecb=EcbSettings(),
        paths=PathSettings(data_dir=tmp_path, output_dir=tmp_path / "out"),
    )

    adapters = build_default_adapters(settings)
    try:
        assert isinstance(adapters[SourceKind.FILE], CsvFileSource)
        assert adapters[SourceKind.FILE].base_dir == tmp_path
        assert isinstance(adapters[SourceKind.JSON_API], FredClient)
        assert isinstance(adapters[SourceKind.XML_API], EcbClient)
    finally:
        for adapter in adapters.values():
            adapter.close()
