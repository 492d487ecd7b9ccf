"""
Configuration settings for the quarterly macro pipeline.

**Conceptual**: This module provides strongly-typed configuration objects that
load from environment variables, with a .env file as fallback. All settings
are validated at startup, ensuring fail-fast behavior if configuration is
missing or invalid: a missing FRED API key is reported before any dataset is
fetched, not halfway through the extraction phase.

**Precedence**: For every key, a real environment variable wins. If it is not
set, the value from the .env file at the project root is used (or the file
named by QUARTERLY_MACRO_ENV_FILE). Values from the file are read with
python-dotenv's dotenv_values() and are never written into os.environ, so
tests can freely monkeypatch the environment.

**Why centralized config?**
  - Single source of truth for API keys, base URLs, timeouts and paths.
  - Easy to test (inject fake settings instead of reading from environment).
  - Secrets stay out of source code (.env is git-ignored).
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional

from dotenv import dotenv_values

from quarterly_macro.errors import ConfigError


# Project root is 2 levels up from quarterly_macro/config/settings.py
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

DEFAULT_ENV_FILE = PROJECT_ROOT / ".env"

DEFAULT_FRED_BASE_URL = "https://api.stlouisfed.org/fred/series/observations"
DEFAULT_ECB_BASE_URL = "https://data-api.ecb.europa.eu/service/data/"

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def load_config_file(path: Optional[Path] = None) -> Dict[str, str]:
    """
    Read key/value pairs from a .env-style config file.

    Returns an empty dict when the file does not exist. Keys with no value
    (bare `KEY` lines) are skipped.
    """
    if path is None:
        override = os.getenv("QUARTERLY_MACRO_ENV_FILE")
        path = Path(override) if override else DEFAULT_ENV_FILE
    path = Path(path)
    if not path.is_file():
        return {}
    return {k: v for k, v in dotenv_values(path).items() if v is not None}


def resolve_value(
    key: str,
    config_file_values: Mapping[str, str],
    default: Optional[str] = None,
) -> Optional[str]:
    """
    Resolve one setting: environment variable first, then the config file.

    The config file lookup also accepts the lower-case spelling of the key
    (e.g. `api_key=...`), which is how the key is often written in hand-made
    config files.
    """
    value = os.getenv(key)
    if value:
        return value
    for candidate in (key, key.lower()):
        file_value = config_file_values.get(candidate)
        if file_value:
            return file_value
    return default


def _parse_timeout(key: str, raw: Optional[str], default: int) -> int:
    if raw is None or raw == "":
        return default
    try:
        timeout = int(raw)
    except ValueError:
        raise ConfigError(key, f"{key} must be an integer, got: {raw}")
    if timeout <= 0:
        raise ConfigError(key, f"{key} must be positive, got: {timeout}")
    return timeout


@dataclass(frozen=True)
class FredSettings:
    """
    Configuration for the FRED series-observations API (JSON-HTTP source).

    **Security note**: the API key is a secret. Load it from the API_KEY
    environment variable or the .env file; never hardcode it. It is sent as a
    query parameter (FRED does not support header auth), so adapters redact it
    before logging URLs.

    Attributes:
        api_key: FRED API key. REQUIRED - raises ConfigError if empty.
        base_url: Observations endpoint (overridable for test doubles).
        timeout_seconds: HTTP request timeout in seconds (default 30).
    """
    api_key: str
    base_url: str = DEFAULT_FRED_BASE_URL
    timeout_seconds: int = 30

    def __post_init__(self):
        """Validate settings after initialization."""
        if not self.api_key:
            raise ConfigError(
                "API_KEY",
                "Please set it in your environment or in the .env file. "
                "Get a free key at https://fred.stlouisfed.org/docs/api/api_key.html",
            )
        if not self.base_url:
            raise ConfigError("FRED_BASE_URL", "Base URL cannot be empty.")

    @classmethod
    def from_env(cls, config_file_values: Optional[Mapping[str, str]] = None) -> "FredSettings":
        """
        Load FRED settings.

        **Environment variables** (or .env entries):
          - API_KEY (required): FRED API key.
          - FRED_BASE_URL (optional): defaults to the public observations endpoint.
          - FRED_TIMEOUT_SECONDS (optional): defaults to 30.

        Raises:
            ConfigError: If API_KEY is missing or the timeout is not a positive integer.
        """
        values = load_config_file() if config_file_values is None else config_file_values
        return cls(
            api_key=resolve_value("API_KEY", values, "") or "",
            base_url=resolve_value("FRED_BASE_URL", values, DEFAULT_FRED_BASE_URL),
            timeout_seconds=_parse_timeout(
                "FRED_TIMEOUT_SECONDS", resolve_value("FRED_TIMEOUT_SECONDS", values), 30
            ),
        )


@dataclass(frozen=True)
class EcbSettings:
    """
    Configuration for the ECB SDMX data service (XML-HTTP source).

    No credential is required. The base URL must end with a slash; the
    dataset flow reference (e.g. "MNA/Q.Y.I9...") is appended verbatim.
    """
    base_url: str = DEFAULT_ECB_BASE_URL
    timeout_seconds: int = 30

    def __post_init__(self):
        if not self.base_url:
            raise ConfigError("ECB_BASE_URL", "Base URL cannot be empty.")

    @classmethod
    def from_env(cls, config_file_values: Optional[Mapping[str, str]] = None) -> "EcbSettings":
        values = load_config_file() if config_file_values is None else config_file_values
        return cls(
            base_url=resolve_value("ECB_BASE_URL", values, DEFAULT_ECB_BASE_URL),
            timeout_seconds=_parse_timeout(
                "ECB_TIMEOUT_SECONDS", resolve_value("ECB_TIMEOUT_SECONDS", values), 30
            ),
        )


@dataclass(frozen=True)
class PathSettings:
    """
    Filesystem locations.

    Attributes:
        data_dir: Base directory for relative file identifiers in the registry
                  (e.g. "csv_data/DEXUSEU.csv"). Defaults to the project root.
        output_dir: Root of the sink outputs (csv/, parquet/, graph/).
    """
    data_dir: Path = PROJECT_ROOT
    output_dir: Path = PROJECT_ROOT / "outputs"

    @classmethod
    def from_env(cls, config_file_values: Optional[Mapping[str, str]] = None) -> "PathSettings":
        values = load_config_file() if config_file_values is None else config_file_values
        data_dir = resolve_value("DATA_DIR", values)
        output_dir = resolve_value("OUTPUT_DIR", values)
        return cls(
            data_dir=Path(data_dir) if data_dir else PROJECT_ROOT,
            output_dir=Path(output_dir) if output_dir else PROJECT_ROOT / "outputs",
        )


@dataclass(frozen=True)
class Settings:
    """
    Global settings for the pipeline.

    **Usage pattern**:
      ```python
      from quarterly_macro.config.settings import get_settings

      settings = get_settings()
      fred_settings = settings.fred
      ```

    Attributes:
        fred: FRED API settings (API key is required, so this is never None).
        ecb: ECB SDMX settings.
        paths: Input/output locations.
        log_level: Logging level name for main.py (default "INFO").
    """
    fred: FredSettings
    ecb: EcbSettings
    paths: PathSettings
    log_level: str = "INFO"

    def __post_init__(self):
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(
                "LOG_LEVEL",
                f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got: {self.log_level}",
            )

    @classmethod
    def from_env(cls, config_file_values: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Load all subsystem settings.

        The config file is read once and shared by every subsystem loader.

        Raises:
            ConfigError: If API_KEY is missing or any value is invalid.
        """
        values = load_config_file() if config_file_values is None else config_file_values
        return cls(
            fred=FredSettings.from_env(values),
            ecb=EcbSettings.from_env(values),
            paths=PathSettings.from_env(values),
            log_level=(resolve_value("LOG_LEVEL", values, "INFO") or "INFO").upper(),
        )


# Lazily-initialized singleton. Tests create Settings(...) directly or call
# reset_settings() between environment changes.
_default_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get the global settings singleton.

    Settings are loaded from the environment (and .env file) on first call,
    then cached for reuse.

    Raises:
        ConfigError: If the settings cannot be loaded (e.g. API_KEY missing).
    """
    global _default_settings

    if _default_settings is None:
        _default_settings = Settings.from_env()

    return _default_settings


def reset_settings():
    """Reset the global settings singleton (for testing)."""
    global _default_settings
    _default_settings = None
