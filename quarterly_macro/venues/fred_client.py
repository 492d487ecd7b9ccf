"""
HTTP client for the FRED series-observations API (JSON-HTTP source).

**Conceptual**: This module wraps GET requests to
`https://api.stlouisfed.org/fred/series/observations`. It handles request
construction (series id + API key + `file_type=json`), HTTP error mapping,
JSON decoding and the text -> float64 cast of observation values. It does NOT
bucket observations into quarters; that's the normalizer's job.

**API response format**:
    {
        "realtime_start": "2025-03-24",
        ...
        "observations": [
            {"realtime_start": "...", "date": "1966-01-01", "value": "320999"},
            {"realtime_start": "...", "date": "1966-04-01", "value": "."},
            ...
        ]
    }

Values arrive as strings. FRED writes "." for a date with no observation
(e.g. market holidays in SP500); that sentinel becomes NaN so the normalizer
can exclude it from the quarterly mean. Any other non-numeric value is a
ParseError.

**Security note**: FRED only accepts the key as a query parameter, so every
URL that is logged or put into an exception goes through redact_api_key().
"""

import logging
import re
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd
import requests

from quarterly_macro.config.settings import FredSettings
from quarterly_macro.errors import NetworkError, ParseError


logger = logging.getLogger(__name__)

# FRED's marker for "no observation on this date"
FRED_MISSING_VALUE = "."

_API_KEY_PATTERN = re.compile(r"(api_key=)[^&]*")


def redact_api_key(url: str) -> str:
    """Replace the api_key query parameter value with '***'."""
    return _API_KEY_PATTERN.sub(r"\1***", url)


def parse_observations(payload: Any) -> pd.DataFrame:
    """
    Convert a decoded FRED JSON payload into a [date, value] DataFrame.

    Args:
        payload: Decoded JSON body (must be an object with an `observations` list).

    Returns:
        DataFrame with columns date (str) and value (float64), in API order.

    Raises:
        ParseError: If the payload shape is wrong or a value is not numeric.
    """
    if not isinstance(payload, dict):
        raise ParseError("body", payload, "expected a JSON object")

    observations = payload.get("observations")
    if not isinstance(observations, list):
        raise ParseError(
            "observations",
            observations,
            f"expected a list of observations. Keys: {sorted(payload.keys())}",
        )

    dates: List[str] = []
    values: List[float] = []
    for position, observation in enumerate(observations):
        if not isinstance(observation, dict):
            raise ParseError("observations", observation, f"entry {position} is not an object")
        if "date" not in observation or "value" not in observation:
            raise ParseError(
                "observations",
                observation,
                f"entry {position} is missing 'date' or 'value'",
            )

        raw_value = observation["value"]
        if raw_value == FRED_MISSING_VALUE:
            value = np.nan
        else:
            try:
                value = float(raw_value)
            except (TypeError, ValueError):
                raise ParseError("value", raw_value, f"non-numeric value at {observation['date']}")

        dates.append(str(observation["date"]))
        values.append(value)

    return pd.DataFrame(
        {
            "date": pd.Series(dates, dtype=object),
            "value": pd.Series(values, dtype="float64"),
        }
    )


class FredClient:
    """
    Thin HTTP client + parser for FRED series observations.

    **Responsibilities**:
      - Construct request URL and query params
      - Make HTTP requests with timeout (own requests.Session per client)
      - Map non-2xx responses and transport errors to NetworkError
      - Decode JSON and cast values (ParseError on malformed data)

    **Example usage**:
        >>> from quarterly_macro.config.settings import get_settings
        >>> with FredClient(get_settings().fred) as client:
        ...     gdp = client.fetch("GDP")
        >>> gdp.columns.tolist()
        ['date', 'value']
    """

    def __init__(self, settings: FredSettings, session: Optional[requests.Session] = None):
        """
        Args:
            settings: FRED configuration (api_key, base_url, timeout_seconds).
            session: Optional pre-configured session (for testing/DI).
        """
        self.settings = settings
        self.session = session if session is not None else requests.Session()
        self.session.headers.update({
            "Accept": "application/json",
            "User-Agent": "quarterly_macro/1.0",
        })

    def build_params(self, series_id: str) -> Dict[str, str]:
        return {
            "series_id": series_id,
            "api_key": self.settings.api_key,
            "file_type": "json",
        }

    def fetch(self, identifier: str) -> pd.DataFrame:
        """
        Fetch all observations of one FRED series.

        Args:
            identifier: FRED series id (e.g. "GDP", "SP500").

        Returns:
            DataFrame with columns date (str) and value (float64).

        Raises:
            ValueError: If identifier is empty.
            NetworkError: Non-2xx status, connection failure or timeout.
            ParseError: Malformed JSON, wrong shape or non-numeric value.
        """
        if not identifier or not identifier.strip():
            raise ValueError("FRED series id cannot be empty")

        series_id = identifier.strip()
        params = self.build_params(series_id)
        url = self.settings.base_url
        safe_url = redact_api_key(
            requests.Request("GET", url, params=params).prepare().url or url
        )
        logger.info("Retrieving data from fred: %s", safe_url)

        try:
            response = self.session.get(
                url,
                params=params,
                timeout=self.settings.timeout_seconds,
            )
        except requests.Timeout as e:
            raise NetworkError(
                None,
                safe_url,
                f"timed out after {self.settings.timeout_seconds}s",
            ) from e
        except requests.RequestException as e:
            # ConnectionError and friends; str(e) may contain the key
            raise NetworkError(None, safe_url, redact_api_key(str(e))) from e

        if not 200 <= response.status_code < 300:
            raise NetworkError(
                response.status_code,
                safe_url,
                redact_api_key(response.text[:200]) if response.text else "",
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise ParseError("body", response.text, f"malformed JSON: {e}") from e

        df = parse_observations(payload)
        logger.debug("FRED series %s: %d observations", series_id, len(df))
        return df

    def close(self):
        """Close the HTTP session and release pooled connections."""
        self.session.close()

    def __enter__(self):
        """Enable context manager support (with statement)."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Clean up session when exiting context manager."""
        self.close()
        return False  # Don't suppress exceptions
