"""
Backtest engine module.

Provides deterministic, bar-driven backtesting with:
- Portfolio for cash/share accounting
- Metrics calculation (Sharpe, drawdown, CAGR, win rate)
- BacktestEngine for validated runs and simulate() for nested runs
"""

from stratsim_engine.backtest.models import (
    BacktestRequest,
    BacktestResult,
    Decision,
    EquityPoint,
    MetricsSummary,
    Trade,
    TradeAction,
)

__all__ = [
    "BacktestRequest",
    "BacktestResult",
    "Decision",
    "EquityPoint",
    "MetricsSummary",
    "Trade",
    "TradeAction",
]
