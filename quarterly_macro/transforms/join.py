"""
Join engine: fold all eight quarterly series into one wide table.

**Conceptual**: Every dataset is now [quarter, <metric>]. Before joining, any
row with a null in any column is dropped (an unmatched FX rate or an empty
quarter mean loses that quarter entirely). The datasets are then inner-joined
one after another on `quarter`, so the accumulated result only keeps quarters
present in every table folded in so far. The final table holds only quarters
present in all eight sources; a quarter missing from even one source is
silently absent, not reported as a gap.

**Why sequential inner joins instead of an outer join + dropna?**
  - Same result, but the intermediate table never grows beyond the smallest
    series, and the fold order (registry order) makes the column order stable.
"""

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

import pandas as pd

from quarterly_macro.data.dataset import QUARTER_COLUMN, Dataset
from quarterly_macro.data.registry import get_dataset_names
from quarterly_macro.data.schemas import FINAL_COLUMN_NAMES, WIDE_TABLE_COLUMNS
from quarterly_macro.errors import JoinError


logger = logging.getLogger(__name__)


def drop_incomplete_rows(frame: pd.DataFrame) -> pd.DataFrame:
    """Return a copy of `frame` without rows that contain any null."""
    return frame.dropna(how="any").reset_index(drop=True)


def join_on_quarter(frames: Iterable[pd.DataFrame]) -> pd.DataFrame:
    """
    Inner-join frames sequentially on the quarter column.

    Raises:
        JoinError: If no frames are given or a frame lacks the quarter column.

    Example:
        >>> a = pd.DataFrame({"quarter": ["2023-Q1", "2023-Q2"], "a": [1.0, 2.0]})
        >>> b = pd.DataFrame({"quarter": ["2023-Q1"], "b": [3.0]})
        >>> join_on_quarter([a, b])
           quarter    a    b
        0  2023-Q1  1.0  3.0
    """
    result: Optional[pd.DataFrame] = None
    for frame in frames:
        if QUARTER_COLUMN not in frame.columns:
            raise JoinError(
                f"Cannot join a table without a '{QUARTER_COLUMN}' column: {list(frame.columns)}"
            )
        if result is None:
            result = frame
        else:
            result = result.merge(frame, on=QUARTER_COLUMN, how="inner")

    if result is None:
        raise JoinError("Nothing to join: no datasets given")

    return result.sort_values(QUARTER_COLUMN).reset_index(drop=True)


def finalize_column_names(frame: pd.DataFrame) -> pd.DataFrame:
    """
    Rename joined columns to the output contract and order them.

    Columns not part of the contract are dropped.
    """
    renamed = frame.rename(columns=FINAL_COLUMN_NAMES)
    missing = [c for c in WIDE_TABLE_COLUMNS if c not in renamed.columns]
    if missing:
        raise JoinError(f"Joined table is missing output columns {missing}").with_context(stage="join")
    return renamed[WIDE_TABLE_COLUMNS]


def join_datasets(
    datasets: Mapping[str, Dataset],
    expected_names: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """
    Null-drop and inner-join datasets on quarter.

    Args:
        datasets: Converted datasets keyed by name.
        expected_names: Names that must all be present, in fold order
                        (default: the registry order).

    Returns:
        Joined table with the datasets' own metric column names, sorted by quarter.

    Raises:
        JoinError: If an expected dataset is missing or the intersection is empty.
    """
    names: List[str] = list(expected_names) if expected_names is not None else list(get_dataset_names())

    missing = [n for n in names if n not in datasets]
    if missing:
        raise JoinError(f"Datasets missing from join input: {missing}").with_context(stage="join")

    cleaned: Dict[str, pd.DataFrame] = {}
    for name in names:
        frame = drop_incomplete_rows(datasets[name].frame)
        dropped = len(datasets[name].frame) - len(frame)
        if dropped:
            logger.debug("%s: dropped %d rows with nulls before join", name, dropped)
        cleaned[name] = frame

    joined = join_on_quarter(cleaned[name] for name in names)
    if joined.empty:
        raise JoinError(
            "Empty intersection: no quarter is present in every dataset"
        ).with_context(stage="join")

    return joined


def build_wide_table(
    datasets: Mapping[str, Dataset],
    expected_names: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """
    Join all datasets and apply the output column contract.

    Returns:
        Wide table with WIDE_TABLE_COLUMNS, one row per common quarter, sorted.
    """
    names = list(expected_names) if expected_names is not None else list(get_dataset_names())
    wide = finalize_column_names(join_datasets(datasets, names))
    logger.info(
        "Joined %d datasets into %d quarters (%s to %s)",
        len(names),
        len(wide),
        wide[QUARTER_COLUMN].iloc[0],
        wide[QUARTER_COLUMN].iloc[-1],
    )
    return wide
