"""
Price point (OHLCV) domain model.

Represents a single candle of a historical series. Series handed to the
engine are ordered strictly ascending by timestamp with no duplicates;
bar spacing is not assumed to be uniform.
"""

from collections.abc import Sequence
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Timeframe(str, Enum):
    """Supported bar intervals."""

    M1 = "1m"  # 1 minute
    M5 = "5m"  # 5 minutes
    M15 = "15m"  # 15 minutes
    M30 = "30m"  # 30 minutes
    H1 = "1h"  # 1 hour
    H4 = "4h"  # 4 hours
    D1 = "1d"  # 1 trading day
    W1 = "1w"  # 1 week
    MO1 = "1mo"  # 1 month

    @property
    def periods_per_year(self) -> int:
        """Bars per year, used to annualize per-bar return statistics."""
        mapping = {
            "1m": 252 * 390,
            "5m": 252 * 78,
            "15m": 252 * 26,
            "30m": 252 * 13,
            "1h": 252 * 7,
            "4h": 252 * 2,
            "1d": 252,
            "1w": 52,
            "1mo": 12,
        }
        return mapping[self.value]


class PricePoint(BaseModel):
    """
    A single OHLCV candle.

    Immutable to ensure deterministic backtesting.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(..., description="Candle timestamp")
    open: float = Field(..., description="Opening price")
    high: float = Field(..., description="Highest price")
    low: float = Field(..., description="Lowest price")
    close: float = Field(..., description="Closing price")
    volume: float = Field(default=0.0, ge=0, description="Traded volume")


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so mixed inputs compare cleanly."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def closes(series: Sequence[PricePoint]) -> list[float]:
    """Extract close prices."""
    return [p.close for p in series]


def is_strictly_ascending(series: Sequence[PricePoint]) -> bool:
    """Check timestamps increase strictly (no duplicates, no reordering)."""
    return all(
        series[i].timestamp < series[i + 1].timestamp for i in range(len(series) - 1)
    )
