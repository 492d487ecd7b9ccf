"""
Dataset value type flowing through every pipeline stage.

A Dataset pairs a registry descriptor with one table. Stages never mutate a
Dataset: each transform returns a new one via replace_frame(), so the raw,
normalized, unified and converted tables of one run are independent values.
"""

from dataclasses import dataclass, replace

import pandas as pd

from quarterly_macro.data.registry import DatasetDescriptor


QUARTER_COLUMN = "quarter"


@dataclass(frozen=True)
class Dataset:
    """
    One dataset at one pipeline stage.

    Attributes:
        descriptor: Registry entry this table was produced from.
        frame: The table. Raw tables have source-specific columns; from the
               normalizer onward the table is [quarter, <metric>].
    """
    descriptor: DatasetDescriptor
    frame: pd.DataFrame

    @property
    def name(self) -> str:
        return self.descriptor.name

    def replace_frame(self, frame: pd.DataFrame) -> "Dataset":
        """Return a new Dataset with the same descriptor and a new table."""
        return replace(self, frame=frame)

    def metric_columns(self) -> list[str]:
        """Columns other than the quarter key."""
        return [c for c in self.frame.columns if c != QUARTER_COLUMN]
