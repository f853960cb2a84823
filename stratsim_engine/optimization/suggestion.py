"""
Capital-aware strategy suggestion.

Runs the selector once per symbol over the most recent lookback window,
re-simulates each symbol's winner with the caller's capital, picks the best
symbol by an overall metric and sizes the winner's trades to the capital.
"""

import math
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

from stratsim_engine.backtest.engine import simulate
from stratsim_engine.backtest.metrics import (
    calculate_returns,
    calculate_sharpe_ratio,
    calculate_win_rate,
    periods_per_year_for_interval,
)
from stratsim_engine.backtest.sizing import TRADE_FRACTION_PARAM, capital_aware_fraction
from stratsim_engine.config import Settings, get_settings
from stratsim_engine.domain import PricePoint, as_utc
from stratsim_engine.errors import BacktestError, StrategyNotFoundError
from stratsim_engine.interfaces.data_provider import DataService
from stratsim_engine.logging import get_logger
from stratsim_engine.optimization.models import (
    EvaluationMetric,
    StrategySuggestion,
    SuggestionRequest,
    SymbolEvaluation,
)
from stratsim_engine.optimization.selector import SELECTOR_ID, StrategySelector
from stratsim_engine.strategies.params import validate_parameters

if TYPE_CHECKING:
    from stratsim_engine.strategies.registry import StrategyRegistry

logger = get_logger(__name__)

# Extra calendar days fetched so indicators have warm-up history
INDICATOR_BUFFER_DAYS = 60


class StrategySuggester:
    """
    Suggests one strategy and parameter set for a given amount of capital.

    Symbols whose data is missing, too short or unreadable are skipped with
    a warning. Request and candidate errors propagate.
    """

    def __init__(
        self,
        registry: "StrategyRegistry",
        data_service: DataService,
        settings: Settings | None = None,
    ):
        self._registry = registry
        self._data_service = data_service
        self._settings = settings or get_settings()

    def suggest(self, request: SuggestionRequest) -> StrategySuggestion:
        """
        Evaluate every requested symbol and return the overall best choice.

        Raises:
            ValidationError: Selector parameters are invalid
            StrategyNotFoundError: The registry has no selector
            StrategyExecutionError: A candidate strategy failed
        """
        selector = self._selector()
        params = validate_parameters(
            selector.parameter_specs,
            {
                "evaluationLookbackPeriod": request.lookback,
                "minEvaluationBars": request.lookback,
                "evaluationMetric": request.evaluation_metric.value,
                "optimizeParameters": request.optimize_parameters,
            },
        )
        selector.validate(params)

        symbols = request.symbols or self._data_service.list_symbols(request.source_name)
        base = StrategySuggestion(
            evaluation_metric=request.evaluation_metric,
            overall_metric=request.overall_metric,
            message="",
        )
        if not symbols:
            return base.model_copy(update={"message": "No symbols available for analysis."})

        end = as_utc(request.as_of) if request.as_of else datetime.now(UTC)
        start = end - timedelta(days=request.lookback + INDICATOR_BUFFER_DAYS)
        logger.info(
            "Suggesting for %d symbols: capital=%.2f lookback=%d metric=%s overall=%s",
            len(symbols),
            request.initial_cash,
            request.lookback,
            request.evaluation_metric.value,
            request.overall_metric.value,
        )

        evaluations = []
        for symbol in symbols:
            series = self._load(symbol, start, end, request)
            if series is None:
                continue
            evaluation = self._evaluate_symbol(selector, params, symbol, series, request)
            if evaluation is not None:
                evaluations.append(evaluation)

        base = base.model_copy(update={"evaluations": evaluations})
        if not evaluations:
            return base.model_copy(
                update={"message": "No suitable strategy could be determined for any symbol."}
            )

        best = pick_best(evaluations, request.overall_metric)
        if best is None:
            return base.model_copy(
                update={
                    "message": (
                        "Could not determine an overall best strategy by "
                        f"{request.overall_metric.value}."
                    )
                }
            )

        parameters, sizing_note = self._size_for_capital(best, request)
        logger.info(
            "Suggested %s on %s (%s=%s)",
            best.strategy_id,
            best.symbol,
            request.overall_metric.value,
            metric_value(best, request.overall_metric),
        )
        return base.model_copy(
            update={
                "symbol": best.symbol,
                "suggested_strategy_id": best.strategy_id,
                "suggested_strategy_name": best.strategy_name,
                "suggested_parameters": parameters,
                "evaluation_score": best.evaluation_score,
                "recent_price": best.recent_price,
                "message": (
                    f"Best for {best.symbol} by {request.overall_metric.value}: "
                    f"{best.strategy_name}. {sizing_note}"
                ),
            }
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _selector(self) -> StrategySelector:
        selector = self._registry.get_strategy(SELECTOR_ID)
        if not isinstance(selector, StrategySelector):
            raise StrategyNotFoundError(SELECTOR_ID)
        return selector

    def _load(
        self,
        symbol: str,
        start: datetime,
        end: datetime,
        request: SuggestionRequest,
    ) -> list[PricePoint] | None:
        try:
            series = self._data_service.fetch(
                symbol, start, end, source_name=request.source_name, interval=request.interval
            )
        except (BacktestError, OSError) as e:
            logger.warning("Skipping %s: data could not be loaded: %s", symbol, e)
            return None

        if len(series) < request.lookback:
            logger.warning(
                "Skipping %s: need %d bars, got %d", symbol, request.lookback, len(series)
            )
            return None
        return series

    def _evaluate_symbol(
        self,
        selector: StrategySelector,
        params: dict[str, Any],
        symbol: str,
        series: list[PricePoint],
        request: SuggestionRequest,
    ) -> SymbolEvaluation | None:
        window = series[-request.lookback :]
        best = selector.choose(window, params, symbol)
        if best is None:
            logger.warning("Selector made no choice for %s", symbol)
            return None

        strategy = self._registry.get_strategy(best.strategy_id)
        outcome = simulate(window, strategy, best.parameters, request.initial_cash, symbol)
        periods = periods_per_year_for_interval(
            request.interval, self._settings.default_periods_per_year
        )
        returns = calculate_returns(outcome.portfolio.equity_curve)
        win_rate, _, _ = calculate_win_rate(outcome.portfolio.trades)

        evaluation = SymbolEvaluation(
            symbol=symbol,
            strategy_id=strategy.id,
            strategy_name=strategy.name,
            parameters=dict(best.parameters),
            evaluation_score=best.score,
            pnl=outcome.profit_or_loss,
            sharpe=calculate_sharpe_ratio(returns, periods),
            win_rate=win_rate,
            recent_price=window[-1].close,
        )
        logger.debug("Best for %s: %s (score %.4f)", symbol, strategy.id, best.score)
        return evaluation

    def _size_for_capital(
        self,
        evaluation: SymbolEvaluation,
        request: SuggestionRequest,
    ) -> tuple[dict[str, Any], str]:
        parameters = dict(evaluation.parameters)
        if TRADE_FRACTION_PARAM not in parameters:
            return parameters, "No sizing parameter; trade size not adjusted."

        fraction = capital_aware_fraction(
            request.initial_cash, evaluation.recent_price, request.risk_percentage
        )
        if fraction is None:
            return parameters, (
                f"Capital too low for one unit of {evaluation.symbol} at "
                f"{evaluation.recent_price:.2f}; {TRADE_FRACTION_PARAM} not adjusted."
            )

        parameters[TRADE_FRACTION_PARAM] = fraction
        return parameters, (
            f"{TRADE_FRACTION_PARAM} set to {fraction:.4f} for capital "
            f"{request.initial_cash:.2f} at risk {request.risk_percentage:g}%."
        )


def metric_value(evaluation: SymbolEvaluation, metric: EvaluationMetric) -> float | None:
    if metric == EvaluationMetric.SHARPE:
        return evaluation.sharpe
    if metric == EvaluationMetric.WIN_RATE:
        return evaluation.win_rate
    return evaluation.pnl


def pick_best(
    evaluations: list[SymbolEvaluation],
    metric: EvaluationMetric,
) -> SymbolEvaluation | None:
    """Highest finite metric value; the earliest symbol wins ties, None if no value is defined."""
    best: SymbolEvaluation | None = None
    best_value = -math.inf
    for evaluation in evaluations:
        value = metric_value(evaluation, metric)
        if value is None or not math.isfinite(value):
            continue
        if best is None or value > best_value:
            best, best_value = evaluation, value
    return best
