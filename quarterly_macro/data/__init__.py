"""
Dataset registry, the Dataset value type, the wide-table contract and the
CSV/Parquet I/O boundary.
"""
