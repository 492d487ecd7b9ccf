"""
Load phase: hand the finished wide table to every sink.

Sinks run sequentially in a fixed order (CSV, Parquet, charts). Each one
validates the table against the output contract before touching disk.

All files are first written to a staging directory inside the output
directory and only moved to their final paths once every sink succeeded, so
a failing sink leaves no partial output behind.
"""

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Dict, List

import pandas as pd

from quarterly_macro.data.io import (
    CSV_RESULT_PATH,
    PARQUET_RESULT_PATH,
    write_wide_table_csv,
    write_wide_table_parquet,
)
from quarterly_macro.errors import DatasetIOError
from quarterly_macro.reporting.charts import generate_charts


logger = logging.getLogger(__name__)

STAGING_PREFIX = ".staging-"


def _write_all(wide: pd.DataFrame, staging_dir: Path) -> Dict[str, List[Path]]:
    csv_path = write_wide_table_csv(wide, staging_dir / CSV_RESULT_PATH)
    parquet_path = write_wide_table_parquet(wide, staging_dir / PARQUET_RESULT_PATH)
    chart_paths = generate_charts(wide, staging_dir)
    return {"csv": [csv_path], "parquet": [parquet_path], "graph": chart_paths}


def _publish(staged: Dict[str, List[Path]], staging_dir: Path, output_dir: Path) -> Dict[str, List[Path]]:
    published: Dict[str, List[Path]] = {}
    for sink, paths in staged.items():
        published[sink] = []
        for path in paths:
            target = output_dir / path.relative_to(staging_dir)
            target.parent.mkdir(parents=True, exist_ok=True)
            os.replace(path, target)
            published[sink].append(target)
    return published


def load_outputs(wide: pd.DataFrame, output_dir: Path | str) -> Dict[str, List[Path]]:
    """
    Write the wide table to CSV and Parquet and render the charts.

    Returns:
        {"csv": [...], "parquet": [...], "graph": [...]} written paths.

    Raises:
        SchemaValidationError: If the table breaks the output contract.
        DatasetIOError: If a sink cannot write its file. No sink output is
                        left in output_dir in that case.
    """
    output_dir = Path(output_dir)
    staging_dir = None
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        staging_dir = Path(tempfile.mkdtemp(prefix=STAGING_PREFIX, dir=output_dir))
        staged = _write_all(wide, staging_dir)
        written = _publish(staged, staging_dir, output_dir)
    except DatasetIOError:
        raise
    except OSError as e:
        raise DatasetIOError(str(output_dir), str(e)).with_context(stage="load") from e
    finally:
        if staging_dir is not None:
            shutil.rmtree(staging_dir, ignore_errors=True)

    logger.info("Outputs written under %s", output_dir)
    return written
