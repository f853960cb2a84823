"""
Portfolio management for backtesting.

Single-asset, long-only cash/shares accounting. Trades execute at the bar's
closing price with no fees or slippage.
"""

from dataclasses import dataclass, field
from datetime import datetime

from stratsim_engine.backtest.models import EquityPoint, Trade, TradeAction
from stratsim_engine.logging import get_logger

logger = get_logger(__name__)


@dataclass
class Portfolio:
    """
    Cash and share holdings for one run.

    Only buy() and sell() mutate holdings; both append to the trade list.
    """

    initial_cash: float
    cash: float = field(init=False)
    shares_held: float = 0.0
    trades: list[Trade] = field(default_factory=list)
    equity_curve: list[EquityPoint] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.cash = self.initial_cash

    def value(self, price: float) -> float:
        """Mark-to-market value at the given price."""
        return self.cash + self.shares_held * price

    def buy(self, timestamp: datetime, price: float, fraction: float = 1.0) -> Trade | None:
        """
        Convert cash into shares at price.

        Returns the recorded Trade, or None when there is no cash to spend.
        """
        if self.cash <= 0 or price <= 0:
            return None

        spend = self.cash if fraction >= 1.0 else self.cash * fraction
        shares = spend / price
        if shares <= 0:
            return None

        self.cash = 0.0 if fraction >= 1.0 else self.cash - spend
        self.shares_held += shares
        return self._record(timestamp, TradeAction.BUY, price, shares)

    def sell(self, timestamp: datetime, price: float, fraction: float = 1.0) -> Trade | None:
        """
        Convert shares into cash at price.

        Returns the recorded Trade, or None when no shares are held.
        """
        if self.shares_held <= 0:
            return None

        shares = self.shares_held if fraction >= 1.0 else self.shares_held * fraction
        if shares <= 0:
            return None

        self.cash += shares * price
        self.shares_held = 0.0 if fraction >= 1.0 else self.shares_held - shares
        return self._record(timestamp, TradeAction.SELL, price, shares)

    def mark(self, timestamp: datetime, price: float) -> EquityPoint:
        """Append the post-trade equity point for a bar."""
        point = EquityPoint(timestamp=timestamp, portfolio_value=self.value(price))
        self.equity_curve.append(point)
        return point

    def _record(
        self, timestamp: datetime, action: TradeAction, price: float, shares: float
    ) -> Trade:
        trade = Trade(
            timestamp=timestamp,
            action=action,
            price=price,
            shares_traded=shares,
            cash_after_trade=self.cash,
        )
        self.trades.append(trade)
        logger.debug(
            "%s %.6f @ %.4f (cash=%.2f, shares=%.6f)",
            action.value,
            shares,
            price,
            self.cash,
            self.shares_held,
        )
        return trade
