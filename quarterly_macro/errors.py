"""
Typed errors raised by the extraction, normalization and join pipeline.

**Conceptual**: Every stage of the pipeline is fail-fast. Any adapter,
normalizer or join failure aborts the whole run, and nothing is written to
the sinks. Custom exceptions make that failure precise: the caller (main.py)
can catch PipelineError once and still report *what* went wrong (network,
parse, shape, file, config, join) and *where* (which dataset, which stage).

**Error kinds**:
  - NetworkError: non-2xx response or transport failure (status, url).
  - ParseError: bad date, bad number, bad JSON shape (field, raw_value).
  - FormatError: XML dimension/value count mismatch, inconsistent table shape.
  - DatasetIOError: local file missing or unreadable (path).
  - ConfigError: required configuration key missing (missing_key).
  - JoinError: a dataset is missing or the quarter intersection is empty.

Context (dataset name, stage) is attached by the orchestration layer via
with_context() as the error propagates, so adapters stay unaware of which
dataset they are serving.
"""

from typing import Optional


class PipelineError(Exception):
    """
    Base exception for all pipeline failures.

    Attributes:
        dataset: Name of the dataset being processed when the error occurred
                 (None if not yet known).
        stage: Pipeline stage ("extract", "normalize", "unify", "convert",
               "join", "load"), None if not yet known.
    """

    def __init__(self, message: str, dataset: Optional[str] = None, stage: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.dataset = dataset
        self.stage = stage

    def with_context(self, dataset: Optional[str] = None, stage: Optional[str] = None) -> "PipelineError":
        """Attach dataset/stage context without overwriting context already set."""
        if self.dataset is None:
            self.dataset = dataset
        if self.stage is None:
            self.stage = stage
        return self

    def __str__(self) -> str:
        parts = []
        if self.stage:
            parts.append(f"stage={self.stage}")
        if self.dataset:
            parts.append(f"dataset={self.dataset}")
        if parts:
            return f"[{', '.join(parts)}] {self.message}"
        return self.message


class NetworkError(PipelineError):
    """
    Raised when an HTTP source returns a non-2xx status or cannot be reached.

    **Recovery**: None at this layer (no retry). Check the base URL, network
    connection and, for FRED, the API key.

    Attributes:
        status: HTTP status code, or None for connection errors / timeouts.
        url: Requested URL (credentials redacted).
    """

    def __init__(self, status: Optional[int], url: str, detail: str = ""):
        message = f"Request to {url} failed"
        if status is not None:
            message += f" with status {status}"
        if detail:
            message += f": {detail}"
        super().__init__(message)
        self.status = status
        self.url = url


class ParseError(PipelineError):
    """
    Raised when a response payload cannot be decoded into a table.

    Attributes:
        field: Name of the field that failed (e.g. "value", "observations", "body").
        raw_value: Offending raw text (truncated for very long payloads).
    """

    def __init__(self, field: str, raw_value: object, detail: str = ""):
        raw_text = str(raw_value)
        if len(raw_text) > 200:
            raw_text = raw_text[:200] + "..."
        message = f"Could not parse field '{field}' from raw value {raw_text!r}"
        if detail:
            message += f": {detail}"
        super().__init__(message)
        self.field = field
        self.raw_value = raw_value


class FormatError(PipelineError):
    """Raised when a table or document has an inconsistent shape."""

    def __init__(self, description: str):
        super().__init__(description)
        self.description = description


class DatasetIOError(PipelineError, OSError):
    """
    Raised when a local source file is missing or unreadable.

    Subclasses OSError so callers that already handle file errors keep working.
    """

    def __init__(self, path: str, detail: str = ""):
        message = f"Cannot read source file {path}"
        if detail:
            message += f": {detail}"
        PipelineError.__init__(self, message)
        self.path = path


class ConfigError(PipelineError, ValueError):
    """
    Raised when required configuration is missing or invalid.

    Subclasses ValueError to match how settings validation errors are raised
    elsewhere in the config layer.
    """

    def __init__(self, missing_key: str, detail: str = ""):
        message = f"Missing or invalid configuration: {missing_key}"
        if detail:
            message += f". {detail}"
        PipelineError.__init__(self, message)
        self.missing_key = missing_key


class JoinError(PipelineError):
    """Raised when the quarter join cannot produce a meaningful wide table."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason
