"""
Tests for the capital-aware strategy suggestion.

Stub candidates make the per-symbol winner predictable:
- always-buy wins on rising symbols
- hold wins on falling ones (score 0 beats a loss)
"""

from collections.abc import Sequence
from datetime import timedelta
from typing import Any
from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError as PydanticValidationError

from stratsim_engine.backtest.sizing import TRADE_FRACTION_SPEC, capital_aware_fraction
from stratsim_engine.config import Settings
from stratsim_engine.data.memory import InMemoryDataService
from stratsim_engine.domain import PricePoint, Signal
from stratsim_engine.errors import StrategyNotFoundError, ValidationError
from stratsim_engine.interfaces.data_provider import DataService
from stratsim_engine.interfaces.strategy import Strategy
from stratsim_engine.optimization.active_choice import ActiveChoiceStore
from stratsim_engine.optimization.models import (
    EvaluationMetric,
    SuggestionRequest,
    SymbolEvaluation,
)
from stratsim_engine.optimization.selector import StrategySelector
from stratsim_engine.optimization.suggestion import StrategySuggester, pick_best
from stratsim_engine.strategies.params import StrategyParameterSpec
from stratsim_engine.strategies.registry import StrategyRegistry, create_default_registry
from tests.synthetic_data import START, linear_trend, sine_wave

AS_OF = START + timedelta(days=39)

# =============================================================================
# Fixtures
# =============================================================================


class FixedSignalStrategy(Strategy):
    """Returns the same signal on every bar."""

    def __init__(self, strategy_id: str, signal: Signal, sized: bool = True):
        self._id = strategy_id
        self._signal = signal
        self._sized = sized

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._id.replace("-", " ").title()

    @property
    def description(self) -> str:
        return f"Always {self._signal.value}"

    @property
    def parameter_specs(self) -> list[StrategyParameterSpec]:
        return [TRADE_FRACTION_SPEC] if self._sized else []

    def evaluate(
        self,
        series: Sequence[PricePoint],
        index: int,
        params: dict[str, Any],
        state: dict[str, Any],
    ) -> Signal:
        return self._signal


@pytest.fixture
def stub_registry(active_choices: ActiveChoiceStore, settings: Settings) -> StrategyRegistry:
    registry = StrategyRegistry()
    registry.register(FixedSignalStrategy("always-buy", Signal.BUY))
    registry.register(FixedSignalStrategy("hold", Signal.HOLD, sized=False))
    registry.register(StrategySelector(registry, active_choices, settings=settings))
    return registry


@pytest.fixture
def markets(data_service: InMemoryDataService) -> InMemoryDataService:
    data_service.add_series("UP", linear_trend(40))
    data_service.add_series("DOWN", linear_trend(40, start_price=200.0, step=-1.0))
    return data_service


@pytest.fixture
def suggester(stub_registry, markets, settings) -> StrategySuggester:
    return StrategySuggester(stub_registry, markets, settings=settings)


def suggestion_request(**overrides) -> SuggestionRequest:
    fields = {"symbols": ["DOWN", "UP"], "initial_cash": 10000.0, "as_of": AS_OF}
    fields.update(overrides)
    return SuggestionRequest(**fields)


# =============================================================================
# Suggestion Tests
# =============================================================================


class TestSuggestion:
    """Tests for per-symbol evaluation and the overall pick."""

    def test_best_symbol_by_pnl(self, suggester) -> None:
        suggestion = suggester.suggest(suggestion_request())

        assert suggestion.symbol == "UP"
        assert suggestion.suggested_strategy_id == "always-buy"
        assert suggestion.suggested_strategy_name == "Always Buy"
        assert suggestion.evaluation_score > 0
        assert suggestion.recent_price == 139.0
        assert suggestion.evaluation_metric == EvaluationMetric.PNL

    def test_each_symbol_evaluated(self, suggester) -> None:
        suggestion = suggester.suggest(suggestion_request())
        by_symbol = {e.symbol: e for e in suggestion.evaluations}

        assert by_symbol["UP"].strategy_id == "always-buy"
        assert by_symbol["DOWN"].strategy_id == "hold"
        assert by_symbol["DOWN"].pnl == 0.0
        # Bought at the first window close (110) with all 10000
        assert by_symbol["UP"].pnl == pytest.approx(10000 / 110 * 139 - 10000)

    def test_all_known_symbols_when_none_given(self, suggester) -> None:
        suggestion = suggester.suggest(suggestion_request(symbols=None))

        assert [e.symbol for e in suggestion.evaluations] == ["DOWN", "UP"]
        assert suggestion.symbol == "UP"

    def test_no_symbols(self, stub_registry, settings) -> None:
        suggester = StrategySuggester(stub_registry, InMemoryDataService(), settings=settings)
        suggestion = suggester.suggest(suggestion_request(symbols=None))

        assert suggestion.suggested_strategy_id is None
        assert suggestion.evaluations == []
        assert "No symbols" in suggestion.message

    def test_short_history_skipped(self, suggester, markets) -> None:
        markets.add_series("NEW", linear_trend(10))
        suggestion = suggester.suggest(suggestion_request(symbols=["NEW", "UP"]))

        assert [e.symbol for e in suggestion.evaluations] == ["UP"]

    def test_nothing_qualifies(self, suggester, markets) -> None:
        markets.add_series("NEW", linear_trend(10))
        suggestion = suggester.suggest(suggestion_request(symbols=["NEW", "NOPE"]))

        assert suggestion.suggested_strategy_id is None
        assert "No suitable strategy" in suggestion.message

    def test_unreadable_symbol_skipped(self, stub_registry, settings) -> None:
        def fetch(symbol, start, end, source_name=None, interval=None):
            if symbol == "BAD":
                raise OSError("disk unavailable")
            return linear_trend(40)

        data_service = MagicMock(spec=DataService)
        data_service.fetch.side_effect = fetch
        suggester = StrategySuggester(stub_registry, data_service, settings=settings)

        suggestion = suggester.suggest(suggestion_request(symbols=["BAD", "UP"]))

        assert suggestion.symbol == "UP"
        assert data_service.fetch.call_count == 2

    def test_window_ends_at_as_of(self, suggester) -> None:
        as_of = START + timedelta(days=34)
        suggestion = suggester.suggest(suggestion_request(symbols=["UP"], as_of=as_of))

        assert suggestion.recent_price == 134.0

    def test_requires_selector(self, markets, settings) -> None:
        registry = StrategyRegistry()
        registry.register(FixedSignalStrategy("always-buy", Signal.BUY))

        with pytest.raises(StrategyNotFoundError):
            StrategySuggester(registry, markets, settings=settings).suggest(suggestion_request())

    def test_oversized_grid_rejected(self, active_choices, markets, settings) -> None:
        limited = settings.model_copy(update={"max_grid_combinations": 1})
        registry = create_default_registry(active_choices, settings=limited)
        suggester = StrategySuggester(registry, markets, settings=limited)

        with pytest.raises(ValidationError, match="parameter combinations"):
            suggester.suggest(suggestion_request(optimize_parameters=True))

    def test_builtin_strategies(self, registry, data_service, settings) -> None:
        data_service.add_series("SINE", sine_wave(120, period=16))
        suggester = StrategySuggester(registry, data_service, settings=settings)

        suggestion = suggester.suggest(
            suggestion_request(symbols=["SINE"], as_of=START + timedelta(days=119))
        )

        candidate_ids = {s.id for s in registry.strategies() if not s.is_meta}
        assert suggestion.suggested_strategy_id in candidate_ids
        assert suggestion.suggested_parameters is not None


class TestCapitalSizing:
    """Tests for fitting the winner's trade size to the capital."""

    def test_trade_fraction_fitted_to_whole_units(self, suggester) -> None:
        suggestion = suggester.suggest(suggestion_request())

        # 20% of 10000 buys 14 whole units at 139
        assert suggestion.suggested_parameters["tradeFraction"] == pytest.approx(14 * 139 / 10000)
        assert "tradeFraction set to" in suggestion.message

    def test_capital_below_one_unit(self, suggester) -> None:
        suggestion = suggester.suggest(suggestion_request(initial_cash=100.0))

        assert suggestion.suggested_parameters == {"tradeFraction": 1.0}
        assert "Capital too low" in suggestion.message

    def test_winner_without_sizing_parameter(self, suggester) -> None:
        suggestion = suggester.suggest(suggestion_request(symbols=["DOWN"]))

        assert suggestion.suggested_strategy_id == "hold"
        assert suggestion.suggested_parameters == {}
        assert "No sizing parameter" in suggestion.message

    @pytest.mark.parametrize(
        ("cash", "price", "risk", "expected"),
        [
            (10000.0, 139.0, 20.0, 14 * 139 / 10000),
            (1000.0, 500.0, 20.0, 0.5),  # rounds up to one unit
            (10000.0, 1.0, 100.0, 1.0),
            (1e7, 1.0, 0.5, 0.01),  # clamped to the minimum fraction
        ],
    )
    def test_capital_aware_fraction(self, cash, price, risk, expected) -> None:
        assert capital_aware_fraction(cash, price, risk) == pytest.approx(expected)

    def test_unaffordable_unit(self) -> None:
        assert capital_aware_fraction(100.0, 139.0, 20.0) is None
        assert capital_aware_fraction(100.0, 0.0, 20.0) is None


class TestOverallPick:
    """Tests for choosing among per-symbol results."""

    @staticmethod
    def evaluation(symbol: str, pnl: float, sharpe: float | None = None) -> SymbolEvaluation:
        return SymbolEvaluation(
            symbol=symbol,
            strategy_id="always-buy",
            strategy_name="Always Buy",
            parameters={},
            evaluation_score=pnl,
            pnl=pnl,
            sharpe=sharpe,
            recent_price=100.0,
        )

    def test_highest_value_wins(self) -> None:
        evaluations = [self.evaluation("A", 5.0), self.evaluation("B", 9.0)]
        assert pick_best(evaluations, EvaluationMetric.PNL).symbol == "B"

    def test_earliest_wins_ties(self) -> None:
        evaluations = [self.evaluation("A", 5.0), self.evaluation("B", 5.0)]
        assert pick_best(evaluations, EvaluationMetric.PNL).symbol == "A"

    def test_undefined_values_skipped(self) -> None:
        evaluations = [self.evaluation("A", 50.0), self.evaluation("B", 1.0, sharpe=0.4)]
        assert pick_best(evaluations, EvaluationMetric.SHARPE).symbol == "B"

    def test_no_defined_values(self) -> None:
        evaluations = [self.evaluation("A", 5.0)]
        assert pick_best(evaluations, EvaluationMetric.WIN_RATE) is None


class TestSuggestionRequest:
    """Tests for request validation."""

    @pytest.mark.parametrize("cash", [0.0, -5.0, float("nan"), float("inf")])
    def test_cash_must_be_positive_and_finite(self, cash) -> None:
        with pytest.raises(PydanticValidationError):
            SuggestionRequest(initial_cash=cash)

    def test_risk_percentage_bounds(self) -> None:
        with pytest.raises(PydanticValidationError):
            SuggestionRequest(risk_percentage=0.5)

    def test_camel_case_fields(self) -> None:
        request = SuggestionRequest.model_validate(
            {"initialCash": 500, "evaluationMetric": "sharpe", "overallSelectionMetric": "winRate"}
        )

        assert request.initial_cash == 500
        assert request.evaluation_metric == EvaluationMetric.SHARPE
        assert request.overall_metric == EvaluationMetric.WIN_RATE
