"""
Historical price data sources.

- InMemoryDataService: series registered in-process (tests, embedding)
- CsvDataService: per-symbol CSV files under the configured data directory
"""

from stratsim_engine.data.csv_store import CsvDataService
from stratsim_engine.data.memory import InMemoryDataService

__all__ = ["CsvDataService", "InMemoryDataService"]
