"""
End-to-end pipeline: extract -> normalize -> unify -> convert -> join.

run_pipeline() returns the final wide table and writes nothing; sinks are
run separately (orchestration/load.py) so a failed run never leaves partial
output on disk.
"""

import logging
from typing import Mapping, Optional

import pandas as pd

from quarterly_macro.config.settings import Settings, get_settings
from quarterly_macro.data.registry import SourceKind, get_dataset_descriptors, get_dataset_names
from quarterly_macro.orchestration.extract import (
    build_default_adapters,
    close_adapters,
    extract_datasets,
)
from quarterly_macro.transforms.currency import convert_currency
from quarterly_macro.transforms.join import build_wide_table
from quarterly_macro.transforms.normalize import normalize_datasets
from quarterly_macro.transforms.unify import unify_datasets
from quarterly_macro.venues.base import SourceAdapter


logger = logging.getLogger(__name__)


def run_pipeline(
    settings: Optional[Settings] = None,
    adapters: Optional[Mapping[SourceKind, SourceAdapter]] = None,
    fail_fast: bool = True,
) -> pd.DataFrame:
    """
    Run every pipeline stage and return the wide table.

    Args:
        settings: Loaded settings (default: get_settings(), which raises
                  ConfigError if API_KEY is missing, before any fetch).
        adapters: SourceKind -> adapter mapping. When omitted, the default
                  adapters are built from settings and closed afterwards.
                  Caller-supplied adapters are left open.
        fail_fast: Passed to extract_datasets().

    Returns:
        Wide table with WIDE_TABLE_COLUMNS, one row per common quarter.

    Raises:
        PipelineError: Any stage failure (with dataset/stage context).
    """
    owns_adapters = adapters is None
    if owns_adapters:
        if settings is None:
            settings = get_settings()
        adapters = build_default_adapters(settings)

    try:
        raw = extract_datasets(get_dataset_descriptors(), adapters, fail_fast=fail_fast)
    finally:
        if owns_adapters:
            close_adapters(adapters)

    normalized = normalize_datasets(raw)
    unified = unify_datasets(normalized)
    converted = convert_currency(unified)
    return build_wide_table(converted, expected_names=get_dataset_names())
