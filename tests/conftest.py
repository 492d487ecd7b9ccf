"""
Pytest configuration file.

Ensures the repo root is on sys.path so that 'import quarterly_macro...' works,
and provides a small valid wide table shared by the I/O, chart and load tests.
"""
import sys
from pathlib import Path

import pandas as pd
import pytest

# Add the repo root to sys.path
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))


@pytest.fixture
def wide_table() -> pd.DataFrame:
    """Three quarters conforming to the wide-table contract, sorted by quarter."""
    return pd.DataFrame({
        "quarter": ["2023-Q1", "2023-Q2", "2023-Q3"],
        "fx_rate_eur_to_usd": [1.07, 1.09, 1.09],
        "sp500_usd": [3999.1, 4206.0, 4458.3],
        "us_gdp_usd_billions": [27164.4, 27453.8, 27967.7],
        "us_total_debt_usd_millions": [31458438.0, 32332274.0, 33167334.0],
        "us_inflation_perc": [6.3, 5.6, 4.8],
        "eu_inflation_perc": [7.5, 5.9, 4.9],
        "eu_government_debt_usd_millions": [13250000.0, 13510000.0, 13580000.0],
        "eu_gdp_usd_millions": [3530000.0, 3610000.0, 3630000.0],
    })
