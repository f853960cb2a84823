"""
Backtest Engine - Deterministic bar-driven backtesting.

Main orchestration for running backtests with:
- Request validation before any simulation
- Price series loading via a DataService
- Bar-by-bar strategy evaluation and trade application
- Metrics calculation and result assembly

The bar loop itself lives in simulate(), a pure function over a series
slice, so the selector can run nested sub-backtests without touching the
outer engine's state.
"""

import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from stratsim_engine.backtest.metrics import (
    compute_metrics_summary,
    periods_per_year_for_interval,
)
from stratsim_engine.backtest.models import BacktestRequest, BacktestResult
from stratsim_engine.backtest.portfolio import Portfolio
from stratsim_engine.backtest.sizing import resolve_trade_fraction
from stratsim_engine.config import Settings, get_settings
from stratsim_engine.domain import PricePoint, Signal, is_strictly_ascending
from stratsim_engine.errors import (
    DataUnavailableError,
    StrategyExecutionError,
    ValidationError,
)
from stratsim_engine.interfaces.data_provider import DataService
from stratsim_engine.interfaces.strategy import Strategy
from stratsim_engine.logging import get_logger, run_context
from stratsim_engine.strategies.params import validate_parameters

if TYPE_CHECKING:
    from stratsim_engine.strategies.registry import StrategyRegistry

logger = get_logger(__name__)

ENGINE_VERSION = "1.0.0"


@dataclass
class SimulationOutcome:
    """Raw output of one bar loop."""

    portfolio: Portfolio
    state: dict[str, Any] = field(default_factory=dict)
    bars: int = 0

    @property
    def final_value(self) -> float:
        if not self.portfolio.equity_curve:
            return self.portfolio.initial_cash
        return self.portfolio.equity_curve[-1].portfolio_value

    @property
    def profit_or_loss(self) -> float:
        return self.final_value - self.portfolio.initial_cash


def simulate(
    series: Sequence[PricePoint],
    strategy: Strategy,
    params: dict[str, Any],
    initial_cash: float,
    symbol: str,
) -> SimulationOutcome:
    """
    Run the bar loop for one strategy over a series.

    Args:
        series: Ordered price points
        strategy: Strategy to evaluate on each bar
        params: Validated parameter record
        initial_cash: Starting cash
        symbol: Instrument symbol (passed to the strategy's state)

    Returns:
        SimulationOutcome holding the portfolio (trades, equity curve)
        and the strategy's final run state

    Raises:
        StrategyExecutionError: If evaluate raises; no partial result
    """
    portfolio = Portfolio(initial_cash=initial_cash)
    state = strategy.create_state(symbol)
    fraction = resolve_trade_fraction(params).fraction

    for i, point in enumerate(series):
        try:
            signal = Signal(strategy.evaluate(series, i, params, state))
        except StrategyExecutionError:
            raise
        except Exception as e:
            raise StrategyExecutionError(strategy.id, i, point.timestamp, str(e)) from e

        if signal == Signal.BUY:
            portfolio.buy(point.timestamp, point.close, fraction)
        elif signal == Signal.SELL:
            portfolio.sell(point.timestamp, point.close, fraction)

        portfolio.mark(point.timestamp, point.close)

    return SimulationOutcome(portfolio=portfolio, state=state, bars=len(series))


class BacktestEngine:
    """
    Deterministic bar-driven backtest engine.

    Validates a request, fetches its price series and runs the referenced
    strategy over it. One engine can serve concurrent runs; per-run data
    never lives on the instance.
    """

    def __init__(
        self,
        registry: "StrategyRegistry",
        data_service: DataService | None = None,
        settings: Settings | None = None,
        progress_callback: Callable[[dict[str, Any]], None] | None = None,
    ):
        """
        Initialize backtest engine.

        Args:
            registry: Strategy lookup
            data_service: Price series source (required for run())
            settings: Engine settings (defaults to get_settings())
            progress_callback: Optional callback for progress events
        """
        self._registry = registry
        self._data_service = data_service
        self._settings = settings or get_settings()
        self._progress_callback = progress_callback

    def run(self, request: BacktestRequest) -> BacktestResult:
        """
        Validate, fetch data and run a backtest.

        Raises:
            ValidationError: Bad range, cash, parameters or series
            StrategyNotFoundError: Unknown strategy id
            DataUnavailableError: The data service returned no points
            StrategyExecutionError: The strategy raised during the loop
        """
        strategy, params = self._validate_request(request)

        if self._data_service is None:
            raise DataUnavailableError("No data service configured")

        series = self._data_service.fetch(
            request.symbol,
            request.start_date,
            request.end_date,
            source_name=request.source_name,
            interval=request.interval,
        )
        return self._run_validated(request, strategy, params, series)

    def run_on_series(
        self,
        request: BacktestRequest,
        series: Sequence[PricePoint],
    ) -> BacktestResult:
        """Run a backtest on an already fetched series."""
        strategy, params = self._validate_request(request)
        return self._run_validated(request, strategy, params, series)

    def _validate_request(self, request: BacktestRequest) -> tuple[Strategy, dict[str, Any]]:
        if request.end_date <= request.start_date:
            raise ValidationError(
                f"end_date {request.end_date.isoformat()} must be after "
                f"start_date {request.start_date.isoformat()}"
            )
        if not math.isfinite(request.initial_cash) or request.initial_cash <= 0:
            raise ValidationError(f"initial_cash must be positive, got {request.initial_cash}")

        strategy = self._registry.get_strategy(request.strategy_id)
        params = validate_parameters(strategy.parameter_specs, request.strategy_params)
        strategy.validate(params)
        return strategy, params

    def _run_validated(
        self,
        request: BacktestRequest,
        strategy: Strategy,
        params: dict[str, Any],
        series: Sequence[PricePoint],
    ) -> BacktestResult:
        if not series:
            raise DataUnavailableError(
                f"No price data for {request.symbol} between "
                f"{request.start_date.isoformat()} and {request.end_date.isoformat()}"
            )
        if not is_strictly_ascending(series):
            raise ValidationError(
                f"Price series for {request.symbol} is not strictly ascending by timestamp"
            )

        run_id = str(uuid4())[:8]
        with run_context(run_id):
            logger.info(
                "Starting backtest run_id=%s: %s on %s, %d bars, %s to %s",
                run_id,
                strategy.id,
                request.symbol,
                len(series),
                request.start_date.isoformat(),
                request.end_date.isoformat(),
            )
            self._emit_progress({
                "stage": "starting",
                "run_id": run_id,
                "message": f"Running {strategy.id} on {len(series)} bars",
            })

            outcome = simulate(series, strategy, params, request.initial_cash, request.symbol)
            result = self._build_result(run_id, request, strategy, params, outcome)

            self._emit_progress({
                "stage": "completed",
                "run_id": run_id,
                "message": f"Backtest completed: {result.total_trades} trades",
            })
            logger.info(
                "Backtest completed run_id=%s: %d trades, P&L=%.2f (%.2f%%), MaxDD=%.2f%%",
                run_id,
                result.total_trades,
                result.total_profit_or_loss,
                result.profit_or_loss_percentage,
                result.max_drawdown * 100,
            )
            return result

    def _build_result(
        self,
        run_id: str,
        request: BacktestRequest,
        strategy: Strategy,
        params: dict[str, Any],
        outcome: SimulationOutcome,
    ) -> BacktestResult:
        portfolio = outcome.portfolio
        initial = request.initial_cash
        final = outcome.final_value
        pnl = final - initial

        metrics = compute_metrics_summary(
            equity_curve=portfolio.equity_curve,
            trades=portfolio.trades,
            initial_value=initial,
            start=request.start_date,
            end=request.end_date,
            periods_per_year=periods_per_year_for_interval(
                request.interval, self._settings.default_periods_per_year
            ),
        )

        return BacktestResult(
            run_id=run_id,
            symbol=request.symbol,
            strategy_id=strategy.id,
            start_date=request.start_date,
            end_date=request.end_date,
            strategy_params=params,
            initial_portfolio_value=initial,
            final_portfolio_value=final,
            total_profit_or_loss=pnl,
            profit_or_loss_percentage=pnl / initial * 100,
            trades=list(portfolio.trades),
            total_trades=len(portfolio.trades),
            data_points_processed=outcome.bars,
            equity_curve=list(portfolio.equity_curve),
            decision_log=strategy.decision_log(outcome.state),
            sharpe_ratio=metrics.sharpe_ratio,
            max_drawdown=metrics.max_drawdown,
            cagr=metrics.cagr,
            win_rate=metrics.win_rate,
            metrics=metrics,
        )

    def _emit_progress(self, event: dict[str, Any]) -> None:
        if self._progress_callback is not None:
            self._progress_callback(event)
