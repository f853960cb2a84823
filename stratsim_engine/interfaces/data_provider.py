"""
DataService interface.

Defines the contract for fetching historical price series.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from stratsim_engine.domain import PricePoint


class DataService(ABC):
    """
    Abstract base class for historical price sources.

    Implementations may block (disk, network); the engine only calls fetch()
    once per run, before the simulation loop starts.
    """

    @abstractmethod
    def fetch(
        self,
        symbol: str,
        start: datetime,
        end: datetime,
        source_name: str | None = None,
        interval: str | None = None,
    ) -> list[PricePoint]:
        """
        Get historical price points for a symbol.

        Args:
            symbol: Instrument symbol
            start: Start datetime (inclusive)
            end: End datetime (inclusive)
            source_name: Optional provider/source selector
            interval: Optional bar interval, e.g. "1d"

        Returns:
            Price points ordered ascending by timestamp, possibly empty.
        """
        pass

    def list_symbols(self, source_name: str | None = None) -> list[str]:
        """
        Symbols this source can serve, sorted.

        Sources that cannot enumerate their contents return an empty list.
        """
        return []
