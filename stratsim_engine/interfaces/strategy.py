"""
Strategy interface.

Defines the contract for trading strategies run by the backtest engine.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from stratsim_engine.domain import PricePoint, Signal
from stratsim_engine.strategies.params import StrategyParameterSpec

if TYPE_CHECKING:
    from stratsim_engine.backtest.models import Decision


class Strategy(ABC):
    """
    Abstract base class for trading strategies.

    A strategy is identified by its id and publishes parameter specs. The
    engine calls evaluate() once per bar with a strictly increasing index.
    Any per-run scratch data lives in the `state` dict created by
    create_state(), never on the instance, so one strategy object can serve
    concurrent runs.
    """

    @property
    @abstractmethod
    def id(self) -> str:
        """
        Unique identifier for this strategy.

        Example: "macd-crossover", "rsi-bollinger"
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable strategy name."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Brief description of the strategy logic."""
        pass

    @property
    @abstractmethod
    def parameter_specs(self) -> list[StrategyParameterSpec]:
        """Tunable parameters, in the order they are enumerated for grids."""
        pass

    @property
    def is_meta(self) -> bool:
        """True for strategies that delegate to other strategies."""
        return False

    # =========================================================================
    # Core Signal Generation
    # =========================================================================

    @abstractmethod
    def evaluate(
        self,
        series: Sequence[PricePoint],
        index: int,
        params: dict[str, Any],
        state: dict[str, Any],
    ) -> Signal:
        """
        Decide the signal for bar `index`.

        MUST only read series[0..index] (no lookahead).

        Args:
            series: Full ordered price series
            index: Current bar
            params: Validated parameter record
            state: Per-run scratch space from create_state()

        Returns:
            BUY, SELL or HOLD
        """
        pass

    # =========================================================================
    # Run Hooks
    # =========================================================================

    def create_state(self, symbol: str) -> dict[str, Any]:
        """Fresh scratch state for one run."""
        return {"symbol": symbol}

    def validate(self, params: dict[str, Any]) -> None:
        """
        Cross-parameter checks beyond per-spec bounds.

        Raises:
            ValidationError: If the combination is invalid
        """
        pass

    def decision_log(self, state: dict[str, Any]) -> "list[Decision] | None":
        """Decision log accumulated during a run (meta strategies only)."""
        return None

    # =========================================================================
    # Helpers
    # =========================================================================

    def cached(
        self,
        state: dict[str, Any],
        series: Sequence[PricePoint],
        key: tuple[Any, ...],
        compute: Any,
    ) -> Any:
        """
        Memoize a full-series indicator computation within a run.

        Indicator value i only depends on bars <= i, so computing over the
        whole series once is equivalent to recomputing at every bar.
        """
        cache = state.setdefault("indicator_cache", {})
        full_key = (id(series), len(series), *key)
        if full_key not in cache:
            cache[full_key] = compute()
        return cache[full_key]
