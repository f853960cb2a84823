"""
Error taxonomy for the backtest core.

Every error raised before simulation (bad request, unknown strategy, missing
data) or during it (a strategy blowing up) derives from BacktestError so
adapters can translate the whole family in one place.
"""

from datetime import datetime


class BacktestError(Exception):
    """Base class for all backtest errors."""

    pass


class ValidationError(BacktestError):
    """Invalid request: bad dates, cash, parameters or malformed series."""

    pass


class StrategyNotFoundError(BacktestError):
    """Unknown strategy id."""

    def __init__(self, strategy_id: str):
        super().__init__(f"Strategy not found: {strategy_id}")
        self.strategy_id = strategy_id


class DataUnavailableError(BacktestError):
    """The data service returned no price points for the request."""

    pass


class StrategyExecutionError(BacktestError):
    """
    A strategy raised while evaluating a bar.

    The run is aborted; the original exception is chained as __cause__.
    """

    def __init__(
        self,
        strategy_id: str,
        index: int,
        timestamp: datetime | None,
        message: str,
    ):
        super().__init__(
            f"Strategy {strategy_id} failed at bar {index} ({timestamp}): {message}"
        )
        self.strategy_id = strategy_id
        self.index = index
        self.timestamp = timestamp
