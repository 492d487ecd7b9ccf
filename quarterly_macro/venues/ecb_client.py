"""
HTTP client for the ECB SDMX data service (XML-HTTP source).

**Conceptual**: The ECB publishes series as SDMX 2.1 "generic data" XML. Each
observation is a pair of empty elements:

    <generic:Obs>
        <generic:ObsDimension value="2024-Q1"/>
        <generic:ObsValue value="1000.50"/>
    </generic:Obs>

This client requests the generic-data media type, scans the body as a stream
of XML events, and collects the `value` attribute of every ObsDimension
(period label) and every ObsValue (reading). The two sequences are zipped
positionally into a period -> value mapping.

**Strict pairing**: every dimension event must be paired with exactly one
value event. A count mismatch means the positional zip would silently shift
readings onto the wrong periods, so it is a FormatError, never a partial
import.

Element names are matched on their local name, so the client does not depend
on the namespace URI the server binds to the `generic` prefix.
"""

import io
import logging
from typing import Dict, List, Optional
from xml.etree import ElementTree as ET

import pandas as pd
import requests

from quarterly_macro.config.settings import EcbSettings
from quarterly_macro.errors import FormatError, NetworkError, ParseError


logger = logging.getLogger(__name__)

SDMX_GENERIC_DATA_MEDIA_TYPE = "application/vnd.sdmx.genericdata+xml;version=2.1"

OBS_DIMENSION_TAG = "ObsDimension"
OBS_VALUE_TAG = "ObsValue"


def _local_name(tag: str) -> str:
    # "{namespace}ObsValue" -> "ObsValue"
    return tag.rsplit("}", 1)[-1]


def parse_generic_data(xml_body: bytes | str) -> Dict[str, float]:
    """
    Extract the period -> value mapping from an SDMX generic-data document.

    Args:
        xml_body: Raw XML document.

    Returns:
        Mapping of period label (e.g. "2024-Q1", "2023-01") to reading, in
        document order. A period that appears twice keeps its last reading.

    Raises:
        FormatError: If the document is not well-formed XML, or the number of
                     ObsDimension and ObsValue elements differs.
        ParseError: If an ObsValue value attribute is not numeric.
    """
    if isinstance(xml_body, str):
        xml_body = xml_body.encode("utf-8")

    periods: List[str] = []
    values: List[float] = []

    try:
        for _event, element in ET.iterparse(io.BytesIO(xml_body), events=("start",)):
            name = _local_name(element.tag)
            if name == OBS_DIMENSION_TAG:
                period = element.get("value")
                if period is not None:
                    periods.append(period)
            elif name == OBS_VALUE_TAG:
                raw_value = element.get("value")
                if raw_value is not None:
                    try:
                        values.append(float(raw_value))
                    except ValueError:
                        raise ParseError("value", raw_value, "ObsValue is not numeric")
    except ET.ParseError as e:
        raise FormatError(f"Malformed SDMX XML document: {e}") from e

    if len(periods) != len(values):
        raise FormatError(
            f"SDMX observation count mismatch: {len(periods)} ObsDimension "
            f"elements but {len(values)} ObsValue elements"
        )

    return dict(zip(periods, values))


class EcbClient:
    """
    HTTP client + parser for ECB SDMX generic data.

    **Example usage**:
        >>> with EcbClient(EcbSettings()) as client:
        ...     eu_gdp = client.fetch("MNA/Q.Y.I9.W2.S1.S1.B.B1GQ._Z._Z._Z.EUR.LR.N")
        >>> eu_gdp.columns.tolist()
        ['quarter', 'value']
    """

    def __init__(self, settings: EcbSettings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.session = session if session is not None else requests.Session()
        self.session.headers.update({
            "Accept": SDMX_GENERIC_DATA_MEDIA_TYPE,
            "User-Agent": "quarterly_macro/1.0",
        })

    def build_url(self, flow_ref: str) -> str:
        return f"{self.settings.base_url}{flow_ref}"

    def fetch(self, identifier: str) -> pd.DataFrame:
        """
        Fetch one SDMX series.

        Args:
            identifier: Flow reference appended to the base URL
                        (e.g. "ICP/M.U2.N.XEF000.4.ANR").

        Returns:
            DataFrame with columns quarter (period label, str) and value (float64).

        Raises:
            ValueError: If identifier is empty.
            NetworkError: Non-2xx status, connection failure or timeout.
            FormatError: Malformed XML or dimension/value count mismatch.
            ParseError: Non-numeric observation value.
        """
        if not identifier or not identifier.strip():
            raise ValueError("ECB flow reference cannot be empty")

        url = self.build_url(identifier.strip())
        logger.info("Retrieving data from ecb: %s", url)

        try:
            response = self.session.get(
                url,
                headers={"Accept": SDMX_GENERIC_DATA_MEDIA_TYPE},
                timeout=self.settings.timeout_seconds,
            )
        except requests.Timeout as e:
            raise NetworkError(
                None, url, f"timed out after {self.settings.timeout_seconds}s"
            ) from e
        except requests.RequestException as e:
            raise NetworkError(None, url, str(e)) from e

        if not 200 <= response.status_code < 300:
            raise NetworkError(response.status_code, url)

        observations = parse_generic_data(response.content)
        logger.debug("ECB flow %s: %d observations", identifier, len(observations))

        return pd.DataFrame(
            {
                "quarter": pd.Series(list(observations.keys()), dtype=object),
                "value": pd.Series(list(observations.values()), dtype="float64"),
            }
        )

    def close(self):
        """Close the HTTP session and release pooled connections."""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
