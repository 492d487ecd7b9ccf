"""
Source adapters for the pipeline's data venues.

Defines the SourceAdapter protocol and one adapter per source kind: a local
CSV file reader, the FRED JSON client and the ECB SDMX XML client.
"""
