"""
Trading signal emitted by a strategy for a single bar.
"""

from enum import Enum


class Signal(str, Enum):
    """Per-bar strategy decision."""

    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"
