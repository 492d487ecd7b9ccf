"""
Base abstraction for source adapters (venues).

**Conceptual**: This module defines the SourceAdapter protocol, the interface
every data source implements. The orchestrator only knows this protocol and a
SourceKind -> adapter mapping, so adding a file, JSON or XML source never
touches extraction logic.

**Why protocols over inheritance?**
  - Structural typing: any class with fetch()/close() is an adapter.
  - Test doubles are plain classes, no base class to inherit from.

**Contract guarantees**:
All SourceAdapter implementations MUST:
  1. Return a fully-populated pandas DataFrame or raise; never a partial table.
  2. Raise typed errors from quarterly_macro.errors (NetworkError, ParseError,
     FormatError, DatasetIOError) rather than library-specific exceptions.
  3. Hold no state shared with other adapters (each owns its own HTTP session).
  4. Be safe to call from a worker thread.
"""

from typing import Protocol

import pandas as pd


class SourceAdapter(Protocol):
    """
    Protocol for fetching one raw dataset from any source.

    **Example usage**:
        >>> from quarterly_macro.venues.fred_client import FredClient
        >>> with FredClient(settings.fred) as client:
        ...     raw = client.fetch("GDP")
        >>> raw.columns.tolist()
        ['date', 'value']

    **Testing strategy**:
        >>> class FakeAdapter:
        ...     def fetch(self, identifier):
        ...         return pd.DataFrame({"date": ["2023-01-15"], "value": [10.0]})
        ...     def close(self):
        ...         pass
    """

    def fetch(self, identifier: str) -> pd.DataFrame:
        """
        Fetch one dataset.

        Args:
            identifier: Source-specific id (file path, series id, flow reference).

        Returns:
            Raw table with source-specific columns.

        Raises:
            NetworkError, ParseError, FormatError, DatasetIOError.
        """
        ...

    def close(self) -> None:
        """Release resources (HTTP sessions). Safe to call more than once."""
        ...
