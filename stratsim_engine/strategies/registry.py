"""
Strategy registry.

Maps strategy ids to instances and publishes their descriptors.
"""

import threading

from pydantic import BaseModel, Field

from stratsim_engine.config import Settings
from stratsim_engine.errors import StrategyNotFoundError
from stratsim_engine.interfaces.strategy import Strategy
from stratsim_engine.logging import get_logger
from stratsim_engine.optimization.active_choice import ActiveChoiceStore
from stratsim_engine.optimization.selector import StrategySelector
from stratsim_engine.strategies.ichimoku import IchimokuCloudStrategy
from stratsim_engine.strategies.macd import MacdCrossoverStrategy
from stratsim_engine.strategies.params import StrategyParameterSpec
from stratsim_engine.strategies.rsi_bollinger import RsiBollingerStrategy
from stratsim_engine.strategies.threshold import SimpleThresholdStrategy

logger = get_logger(__name__)


class StrategyDescriptor(BaseModel):
    """Public description of a registered strategy."""

    id: str
    name: str
    description: str
    is_meta: bool = False
    parameters: list[StrategyParameterSpec] = Field(default_factory=list)


class StrategyRegistry:
    """
    Registry of strategies keyed by id, in registration order.

    Registering an id twice replaces the earlier strategy.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._strategies: dict[str, Strategy] = {}

    def register(self, strategy: Strategy) -> None:
        """Add a strategy; an existing id is overwritten with a warning."""
        with self._lock:
            if strategy.id in self._strategies:
                logger.warning("Strategy %s already registered, overwriting", strategy.id)
            self._strategies[strategy.id] = strategy

    def get_strategy(self, strategy_id: str) -> Strategy:
        """
        Look up a strategy.

        Raises:
            StrategyNotFoundError: If the id is not registered
        """
        with self._lock:
            strategy = self._strategies.get(strategy_id)
        if strategy is None:
            raise StrategyNotFoundError(strategy_id)
        return strategy

    def strategies(self) -> list[Strategy]:
        """Registered strategy instances."""
        with self._lock:
            return list(self._strategies.values())

    def list_strategies(self) -> list[StrategyDescriptor]:
        """Descriptors of every registered strategy."""
        return [describe(s) for s in self.strategies()]

    def ids(self) -> list[str]:
        with self._lock:
            return list(self._strategies)

    def __contains__(self, strategy_id: object) -> bool:
        with self._lock:
            return strategy_id in self._strategies

    def __len__(self) -> int:
        with self._lock:
            return len(self._strategies)


def describe(strategy: Strategy) -> StrategyDescriptor:
    """Build the public descriptor of a strategy."""
    return StrategyDescriptor(
        id=strategy.id,
        name=strategy.name,
        description=strategy.description,
        is_meta=strategy.is_meta,
        parameters=list(strategy.parameter_specs),
    )


def create_default_registry(
    active_choices: ActiveChoiceStore | None = None,
    settings: Settings | None = None,
) -> StrategyRegistry:
    """
    Registry with the built-in strategies and a selector wired to it.

    Args:
        active_choices: Store the selector publishes to (new store if None)
        settings: Settings passed to the selector

    Returns:
        Populated StrategyRegistry
    """
    registry = StrategyRegistry()
    registry.register(SimpleThresholdStrategy())
    registry.register(RsiBollingerStrategy())
    registry.register(MacdCrossoverStrategy())
    registry.register(IchimokuCloudStrategy())
    registry.register(
        StrategySelector(registry, active_choices or ActiveChoiceStore(), settings=settings)
    )
    return registry
