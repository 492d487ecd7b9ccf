"""
quarterly_macro - EU vs US quarterly macro-indicator pipeline.

Extracts eight economic series (local FX file, FRED JSON API, ECB SDMX XML
API), normalizes them to calendar quarters, converts EUR amounts to USD,
joins them into one wide table and writes CSV, Parquet and comparison charts.
"""
