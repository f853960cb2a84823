"""
Domain models for the StratSim engine.

These models represent the core concepts used throughout the system:
- PricePoint: OHLCV candle of a historical series
- Timeframe: Bar interval, with its annualization factor
- Signal: Per-bar decision of a strategy
"""

from stratsim_engine.domain.bar import (
    PricePoint,
    Timeframe,
    as_utc,
    closes,
    is_strictly_ascending,
)
from stratsim_engine.domain.signal import Signal

__all__ = [
    "PricePoint",
    "Signal",
    "Timeframe",
    "as_utc",
    "closes",
    "is_strictly_ascending",
]
