"""
Extraction orchestrator: fetch every registered dataset concurrently.

**Conceptual**: One task per dataset descriptor. Network fetches (FRED JSON,
ECB XML) run on a shared network thread pool; local file reads run on a
separate single-worker pool so a slow disk never occupies a network worker.
All tasks are awaited (full barrier) before anything downstream runs, and
results are assembled in registry order, not completion order.

**Dispatch**: adapters are given as an explicit SourceKind -> adapter
mapping. Every descriptor's kind is resolved before the first task starts,
so a missing adapter is a ConfigError, not a half-finished extraction.

**Failure semantics**:
  - fail_fast=True (default): the first failure in registry order is logged
    and re-raised with dataset/stage context. Nothing is returned.
  - fail_fast=False: failed datasets are logged and left out of the result;
    the join engine later reports them as missing.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Dict, Mapping, Optional, Sequence

from quarterly_macro.config.settings import Settings
from quarterly_macro.data.dataset import Dataset
from quarterly_macro.data.registry import DatasetDescriptor, SourceKind, get_dataset_descriptors
from quarterly_macro.errors import ConfigError, PipelineError
from quarterly_macro.venues.base import SourceAdapter
from quarterly_macro.venues.csv_file_source import CsvFileSource
from quarterly_macro.venues.ecb_client import EcbClient
from quarterly_macro.venues.fred_client import FredClient


logger = logging.getLogger(__name__)


def build_default_adapters(settings: Settings) -> Dict[SourceKind, SourceAdapter]:
    """
    Construct one adapter per source kind from settings.

    The caller owns the returned adapters and should close() them when done
    (see close_adapters).
    """
    return {
        SourceKind.FILE: CsvFileSource(base_dir=settings.paths.data_dir),
        SourceKind.JSON_API: FredClient(settings.fred),
        SourceKind.XML_API: EcbClient(settings.ecb),
    }


def close_adapters(adapters: Mapping[SourceKind, SourceAdapter]) -> None:
    for adapter in adapters.values():
        adapter.close()


def _resolve_adapters(
    descriptors: Sequence[DatasetDescriptor],
    adapters: Mapping[SourceKind, SourceAdapter],
) -> Dict[str, SourceAdapter]:
    resolved: Dict[str, SourceAdapter] = {}
    for descriptor in descriptors:
        adapter = adapters.get(descriptor.source_kind)
        if adapter is None:
            raise ConfigError(
                f"adapter for {descriptor.source_kind.value}",
                f"No source adapter configured for dataset '{descriptor.name}'",
            ).with_context(dataset=descriptor.name, stage="extract")
        resolved[descriptor.name] = adapter
    return resolved


def _fetch_one(descriptor: DatasetDescriptor, adapter: SourceAdapter) -> Dataset:
    logger.debug("Fetching %s (%s) from %s", descriptor.name, descriptor.identifier,
                 descriptor.source_kind.value)
    frame = adapter.fetch(descriptor.identifier)
    logger.debug("Fetched %s: %d rows", descriptor.name, len(frame))
    return Dataset(descriptor=descriptor, frame=frame)


def extract_datasets(
    descriptors: Optional[Sequence[DatasetDescriptor]] = None,
    adapters: Optional[Mapping[SourceKind, SourceAdapter]] = None,
    fail_fast: bool = True,
    max_network_workers: Optional[int] = None,
) -> Dict[str, Dataset]:
    """
    Fetch all datasets concurrently and return them keyed by name.

    Args:
        descriptors: Datasets to fetch (default: the full registry).
        adapters: SourceKind -> adapter mapping. Required.
        fail_fast: Re-raise the first failure (True) or drop failed datasets (False).
        max_network_workers: Network pool size (default: one per HTTP dataset).

    Returns:
        Ordered dict of dataset name -> raw Dataset, in descriptor order.

    Raises:
        ConfigError: If adapters are missing for any descriptor's source kind.
        PipelineError: With fail_fast=True, the first failure in descriptor order.
    """
    if descriptors is None:
        descriptors = get_dataset_descriptors()
    if adapters is None:
        raise ConfigError("adapters", "extract_datasets() needs a SourceKind -> adapter mapping")

    resolved = _resolve_adapters(descriptors, adapters)

    file_descriptors = [d for d in descriptors if d.source_kind is SourceKind.FILE]
    network_descriptors = [d for d in descriptors if d.source_kind is not SourceKind.FILE]

    futures: Dict[str, Future] = {}
    network_workers = max_network_workers or max(len(network_descriptors), 1)
    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="extract-file") as file_pool, \
            ThreadPoolExecutor(max_workers=network_workers, thread_name_prefix="extract-net") as net_pool:
        for descriptor in file_descriptors:
            futures[descriptor.name] = file_pool.submit(_fetch_one, descriptor, resolved[descriptor.name])
        for descriptor in network_descriptors:
            futures[descriptor.name] = net_pool.submit(_fetch_one, descriptor, resolved[descriptor.name])
    # Both pools have shut down here: every task has finished.

    results: Dict[str, Dataset] = {}
    for descriptor in descriptors:
        try:
            results[descriptor.name] = futures[descriptor.name].result()
        except PipelineError as e:
            e.with_context(dataset=descriptor.name, stage="extract")
            logger.error("Failed to extract %s: %s", descriptor.name, e)
            if fail_fast:
                raise
        except Exception as e:
            # Untyped adapter failure (e.g. a test double or library bug)
            logger.error("Failed to extract %s: %s", descriptor.name, e)
            if fail_fast:
                raise PipelineError(
                    f"Unexpected error while fetching {descriptor.identifier}: {e}",
                    dataset=descriptor.name,
                    stage="extract",
                ) from e

    logger.info("Extracted %d/%d datasets", len(results), len(descriptors))
    return results
