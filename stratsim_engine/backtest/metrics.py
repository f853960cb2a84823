"""
Performance metrics calculation for backtesting.

Computes Sharpe, max drawdown, CAGR and win rate from an equity curve and a
trade list. Undefined metrics are reported as None rather than a sentinel.
"""

import math
from collections.abc import Sequence
from datetime import datetime

from stratsim_engine.backtest.models import EquityPoint, MetricsSummary, Trade, TradeAction
from stratsim_engine.domain import Timeframe
from stratsim_engine.logging import get_logger

logger = get_logger(__name__)

TRADING_DAYS_PER_YEAR = 252
DAYS_PER_YEAR = 365
SECONDS_PER_DAY = 86400


def periods_per_year_for_interval(
    interval: str | None,
    default: int = TRADING_DAYS_PER_YEAR,
) -> int:
    """Annualization factor for a bar interval; default when unknown."""
    if not interval:
        return default
    try:
        return Timeframe(interval.lower()).periods_per_year
    except ValueError:
        logger.warning("Unknown interval %r, annualizing with %d periods", interval, default)
        return default


def calculate_returns(equity_curve: Sequence[EquityPoint]) -> list[float]:
    """Calculate period-over-period returns from equity curve."""
    if len(equity_curve) < 2:
        return []

    returns = []
    for i in range(1, len(equity_curve)):
        prev_value = equity_curve[i - 1].portfolio_value
        curr_value = equity_curve[i].portfolio_value
        if prev_value != 0:
            returns.append((curr_value - prev_value) / prev_value)
        else:
            returns.append(0.0)

    return returns


def calculate_sharpe_ratio(
    returns: Sequence[float],
    periods_per_year: int = TRADING_DAYS_PER_YEAR,
) -> float | None:
    """
    Calculate annualized Sharpe ratio (zero risk-free rate).

    Sharpe = mean_return / std_dev * sqrt(periods_per_year), with the
    sample standard deviation. None for fewer than 2 returns or zero
    volatility.
    """
    if len(returns) < 2:
        return None

    mean_ret = sum(returns) / len(returns)
    variance = sum((r - mean_ret) ** 2 for r in returns) / (len(returns) - 1)
    std_dev = math.sqrt(variance) if variance > 0 else 0.0

    if std_dev <= 0:
        return None

    return (mean_ret / std_dev) * math.sqrt(periods_per_year)


def calculate_max_drawdown(equity_curve: Sequence[EquityPoint]) -> float:
    """
    Calculate maximum drawdown as a fraction of the running peak.

    Returns a value in [0, 1]; 0 for curves shorter than two points.
    """
    if len(equity_curve) < 2:
        return 0.0

    peak = equity_curve[0].portfolio_value
    max_dd = 0.0
    for point in equity_curve:
        value = point.portfolio_value
        if value > peak:
            peak = value
        if peak > 0:
            dd = (peak - value) / peak
            if dd > max_dd:
                max_dd = dd

    return min(max_dd, 1.0)


def calculate_cagr(
    initial_value: float,
    final_value: float,
    start: datetime,
    end: datetime,
) -> float | None:
    """
    Calculate compound annual growth rate.

    CAGR = (final / initial) ** (365 / days) - 1, days being the fractional
    number of days between start and end. None when days is 0 or the growth
    ratio is not positive.
    """
    days = (end - start).total_seconds() / SECONDS_PER_DAY
    if days <= 0 or initial_value <= 0:
        return None

    ratio = final_value / initial_value
    if ratio <= 0:
        return None
    try:
        return ratio ** (DAYS_PER_YEAR / days) - 1
    except OverflowError:
        logger.warning("CAGR overflow for ratio %.4f over %.4f days", ratio, days)
        return None


def pair_round_trips(trades: Sequence[Trade]) -> list[tuple[Trade, Trade]]:
    """
    Pair each BUY with the SELL immediately following it.

    Trades that do not form a BUY->SELL pair (e.g. an open BUY at the end)
    are ignored.
    """
    pairs = []
    for prev, curr in zip(trades, trades[1:]):
        if prev.action == TradeAction.BUY and curr.action == TradeAction.SELL:
            pairs.append((prev, curr))
    return pairs


def calculate_win_rate(trades: Sequence[Trade]) -> tuple[float | None, int, int]:
    """
    Calculate the share of round-trips that realized a gain.

    Returns:
        (win_rate or None if no round-trips, round_trips, winning_round_trips)
    """
    pairs = pair_round_trips(trades)
    if not pairs:
        return None, 0, 0
    wins = sum(1 for buy, sell in pairs if sell.price > buy.price)
    return wins / len(pairs), len(pairs), wins


def compute_metrics_summary(
    equity_curve: Sequence[EquityPoint],
    trades: Sequence[Trade],
    initial_value: float,
    start: datetime,
    end: datetime,
    periods_per_year: int = TRADING_DAYS_PER_YEAR,
) -> MetricsSummary:
    """
    Compute complete metrics summary.

    Args:
        equity_curve: Equity curve points
        trades: Executed trades in order
        initial_value: Starting portfolio value
        start: Start of the requested range (for CAGR)
        end: End of the requested range (for CAGR)
        periods_per_year: Annualization factor for the Sharpe ratio

    Returns:
        MetricsSummary with all calculated metrics
    """
    returns = calculate_returns(equity_curve)
    final_value = equity_curve[-1].portfolio_value if equity_curve else initial_value
    win_rate, round_trips, wins = calculate_win_rate(trades)

    return MetricsSummary(
        sharpe_ratio=calculate_sharpe_ratio(returns, periods_per_year),
        max_drawdown=calculate_max_drawdown(equity_curve),
        cagr=calculate_cagr(initial_value, final_value, start, end),
        win_rate=win_rate,
        round_trips=round_trips,
        winning_round_trips=wins,
        periods_per_year=periods_per_year,
    )
