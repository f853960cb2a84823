"""
StratSim Backtest Engine

A deterministic strategy simulation engine supporting:
- Technical indicator library (SMA, Bollinger Bands, RSI, MACD, Ichimoku)
- Pluggable strategies with declarative parameter specs
- Bar-by-bar backtesting with performance metrics
- A selector meta-strategy that re-chooses among candidate strategies
"""

__version__ = "1.0.0"
__author__ = "StratSim Development Team"

from stratsim_engine.config import Settings, get_settings

__all__ = ["__version__", "Settings", "get_settings"]
