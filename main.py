"""
quarterly_macro - Main entry point.

Runs the full pipeline (extract, normalize, convert, join) and writes the
wide table to CSV, Parquet and charts under the configured output directory.

Exit codes:
  0  success
  1  any pipeline failure (nothing is written to the sinks)
"""

import logging
import sys
import time

from quarterly_macro.config.settings import get_settings
from quarterly_macro.errors import PipelineError
from quarterly_macro.orchestration.load import load_outputs
from quarterly_macro.orchestration.pipeline import run_pipeline


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger("quarterly_macro")


def main() -> int:
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    start = time.perf_counter()

    try:
        settings = get_settings()
        logging.getLogger().setLevel(settings.log_level)
        wide = run_pipeline(settings)
        load_outputs(wide, settings.paths.output_dir)
    except PipelineError as e:
        logger.error("Pipeline failed: %s", e)
        return 1

    logger.info("Execution time: %.2f seconds", time.perf_counter() - start)
    return 0


if __name__ == "__main__":
    sys.exit(main())
