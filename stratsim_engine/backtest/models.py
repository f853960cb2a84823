"""
Backtest data models.

Defines contracts for backtest requests, results, trades, decisions and metrics.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, field_validator

from stratsim_engine.domain import as_utc


class TradeAction(str, Enum):
    """Executed trade direction."""

    BUY = "BUY"
    SELL = "SELL"


# =============================================================================
# Request Models
# =============================================================================


class BacktestRequest(BaseModel):
    """
    Request to run a backtest.

    Range and cash are checked by the engine rather than here, so a bad
    request surfaces as the engine's ValidationError on every entry point.
    """

    symbol: str = Field(..., min_length=1, description="Symbol to backtest")
    start_date: datetime = Field(
        ...,
        description="Backtest start time",
        validation_alias=AliasChoices("start_date", "startDate", "start"),
    )
    end_date: datetime = Field(
        ...,
        description="Backtest end time",
        validation_alias=AliasChoices("end_date", "endDate", "end"),
    )
    initial_cash: float = Field(
        default=10000.0,
        description="Starting capital",
        validation_alias=AliasChoices("initial_cash", "initialCash", "initial_capital"),
    )
    strategy_id: str = Field(
        ...,
        description="Registry id of the strategy to run",
        validation_alias=AliasChoices("strategy_id", "strategyId"),
    )
    strategy_params: dict[str, Any] = Field(
        default_factory=dict,
        description="Strategy parameters; missing keys take spec defaults",
        validation_alias=AliasChoices("strategy_params", "strategyParams", "parameters"),
    )
    source_name: str | None = Field(
        default=None,
        description="Optional data source selector",
        validation_alias=AliasChoices("source_name", "sourceApi", "source"),
    )
    interval: str | None = Field(default=None, description="Bar interval, e.g. 1d")

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_to_utc(cls, v: datetime) -> datetime:
        """Naive timestamps are read as UTC."""
        return as_utc(v)


# =============================================================================
# Result Models
# =============================================================================


class EquityPoint(BaseModel):
    """Single point on the equity curve."""

    timestamp: datetime
    portfolio_value: float


class Trade(BaseModel):
    """Record of an executed trade."""

    timestamp: datetime
    action: TradeAction
    price: float
    shares_traded: float = Field(gt=0)
    cash_after_trade: float


class Decision(BaseModel):
    """One selector evaluation, recorded at a re-evaluation bar."""

    timestamp: datetime
    chosen_strategy_id: str | None = Field(
        default=None, description="None means no choice yet (HOLD)"
    )
    chosen_strategy_name: str | None = None
    chosen_parameters: dict[str, Any] | None = None
    evaluation_score: float | None = None
    evaluation_metric: str
    evaluated: bool = Field(
        default=True,
        description="False when the window was too short and the previous choice carried over",
    )


class MetricsSummary(BaseModel):
    """Summary performance metrics."""

    sharpe_ratio: float | None = None
    max_drawdown: float = 0.0
    cagr: float | None = None
    win_rate: float | None = None
    round_trips: int = 0
    winning_round_trips: int = 0
    periods_per_year: int = 252


class BacktestResult(BaseModel):
    """Complete backtest result."""

    run_id: str
    symbol: str
    strategy_id: str
    start_date: datetime
    end_date: datetime
    strategy_params: dict[str, Any] = Field(default_factory=dict)

    initial_portfolio_value: float
    final_portfolio_value: float
    total_profit_or_loss: float
    profit_or_loss_percentage: float

    trades: list[Trade] = Field(default_factory=list)
    total_trades: int = 0
    data_points_processed: int = 0
    equity_curve: list[EquityPoint] = Field(default_factory=list)
    decision_log: list[Decision] | None = None

    sharpe_ratio: float | None = None
    max_drawdown: float = 0.0
    cagr: float | None = None
    win_rate: float | None = None
    metrics: MetricsSummary = Field(default_factory=MetricsSummary)
