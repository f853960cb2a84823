"""
Data models for the selector.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, Field

from stratsim_engine.backtest.models import Decision

NO_CHOICE_MESSAGE = "No strategy choice has been made for this symbol yet."


class EvaluationMetric(str, Enum):
    """How candidates are scored over the lookback window."""

    PNL = "pnl"  # Final value minus starting cash
    SHARPE = "sharpe"  # Annualized Sharpe ratio, 0.0 when undefined
    WIN_RATE = "winRate"  # Share of winning round-trips, 0.0 when undefined


class ActiveChoice(BaseModel):
    """Most recent selector choice for a symbol."""

    symbol: str
    chosen_strategy_id: str
    chosen_strategy_name: str
    chosen_parameters: dict[str, Any] = Field(default_factory=dict)
    decided_at: datetime | None = Field(
        default=None, description="Timestamp of the bar the choice was made on"
    )


class ActiveChoiceResponse(BaseModel):
    """Active-choice query result; all fields None with a message when no choice exists."""

    symbol: str
    chosen_strategy_id: str | None = None
    chosen_strategy_name: str | None = None
    chosen_parameters: dict[str, Any] | None = None
    decided_at: datetime | None = None
    message: str | None = None


class Regime(BaseModel):
    """Contiguous span of bars with the same chosen strategy and parameters."""

    start: datetime
    end: datetime
    strategy_id: str | None
    parameters: dict[str, Any] | None
    bars: int


@dataclass
class CandidateScore:
    """Score of one candidate/parameter combination over a window."""

    strategy_id: str
    parameters: dict[str, Any]
    score: float
    trades: int = 0


@dataclass
class SelectorRunState:
    """Selector scratch state for one run."""

    symbol: str
    current_id: str | None = None
    current_name: str | None = None
    current_params: dict[str, Any] | None = None
    decisions: list[Decision] = field(default_factory=list)
    delegate_states: dict[str, dict[str, Any]] = field(default_factory=dict)


# =============================================================================
# Suggestion Models
# =============================================================================


class SuggestionRequest(BaseModel):
    """Request for a capital-aware strategy suggestion across symbols."""

    symbols: list[str] | None = Field(
        default=None,
        description="Symbols to analyse; None means every symbol the data source knows",
    )
    initial_cash: float = Field(
        default=10000.0,
        gt=0,
        allow_inf_nan=False,
        validation_alias=AliasChoices("initial_cash", "initialCash", "initial_capital"),
    )
    lookback: int = Field(
        default=30,
        ge=2,
        le=500,
        validation_alias=AliasChoices("lookback", "evaluationLookbackPeriod"),
    )
    evaluation_metric: EvaluationMetric = Field(
        default=EvaluationMetric.PNL,
        description="Metric the selector scores candidates with on each symbol",
        validation_alias=AliasChoices("evaluation_metric", "evaluationMetric"),
    )
    overall_metric: EvaluationMetric = Field(
        default=EvaluationMetric.PNL,
        description="Metric used to pick the best symbol result",
        validation_alias=AliasChoices("overall_metric", "overallSelectionMetric"),
    )
    optimize_parameters: bool = Field(
        default=False,
        validation_alias=AliasChoices("optimize_parameters", "optimizeParameters"),
    )
    risk_percentage: float = Field(
        default=20.0,
        ge=1.0,
        le=100.0,
        description="Share of capital a single BUY should commit",
        validation_alias=AliasChoices("risk_percentage", "riskPercentage"),
    )
    as_of: datetime | None = Field(
        default=None, description="End of the evaluation window; None means now"
    )
    interval: str = "1d"
    source_name: str | None = None


class SymbolEvaluation(BaseModel):
    """Selector choice for one symbol, re-simulated with the requested capital."""

    symbol: str
    strategy_id: str
    strategy_name: str
    parameters: dict[str, Any]
    evaluation_score: float
    pnl: float
    sharpe: float | None = None
    win_rate: float | None = None
    recent_price: float


class StrategySuggestion(BaseModel):
    """Best strategy across symbols; suggested fields are None when nothing qualified."""

    symbol: str | None = None
    suggested_strategy_id: str | None = None
    suggested_strategy_name: str | None = None
    suggested_parameters: dict[str, Any] | None = None
    evaluation_score: float | None = None
    evaluation_metric: EvaluationMetric
    overall_metric: EvaluationMetric
    recent_price: float | None = None
    evaluations: list[SymbolEvaluation] = Field(default_factory=list)
    message: str
