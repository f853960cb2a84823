"""
In-memory data service.
"""

from collections.abc import Iterable
from datetime import datetime

from stratsim_engine.domain import PricePoint, as_utc
from stratsim_engine.interfaces.data_provider import DataService


class InMemoryDataService(DataService):
    """
    Serves series registered with add_series().

    Series are keyed by (symbol, interval); interval None is the fallback
    used when no interval-specific series exists.
    """

    def __init__(self) -> None:
        self._series: dict[tuple[str, str | None], list[PricePoint]] = {}
        self.fetch_count = 0

    def add_series(
        self,
        symbol: str,
        points: Iterable[PricePoint],
        interval: str | None = None,
    ) -> None:
        """Register (or replace) a series, sorted and de-duplicated by timestamp."""
        by_ts: dict[datetime, PricePoint] = {}
        for point in points:
            by_ts.setdefault(as_utc(point.timestamp), point)
        self._series[(symbol, interval)] = [by_ts[ts] for ts in sorted(by_ts)]

    def fetch(
        self,
        symbol: str,
        start: datetime,
        end: datetime,
        source_name: str | None = None,
        interval: str | None = None,
    ) -> list[PricePoint]:
        self.fetch_count += 1
        series = self._series.get((symbol, interval))
        if series is None:
            series = self._series.get((symbol, None), [])

        lo, hi = as_utc(start), as_utc(end)
        return [p for p in series if lo <= as_utc(p.timestamp) <= hi]

    def list_symbols(self, source_name: str | None = None) -> list[str]:
        return sorted({symbol for symbol, _ in self._series})
