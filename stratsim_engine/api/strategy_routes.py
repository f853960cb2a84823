"""
Strategy catalogue routes.
"""

from fastapi import APIRouter, Depends

from stratsim_engine.api.dependencies import get_registry
from stratsim_engine.api.errors import to_http_exception
from stratsim_engine.errors import StrategyNotFoundError
from stratsim_engine.strategies.registry import StrategyDescriptor, StrategyRegistry, describe

router = APIRouter(prefix="/strategies", tags=["Strategies"])


@router.get("", response_model=list[StrategyDescriptor])
async def list_strategies(
    registry: StrategyRegistry = Depends(get_registry),
) -> list[StrategyDescriptor]:
    """List every registered strategy with its parameter specs."""
    return registry.list_strategies()


@router.get("/{strategy_id}", response_model=StrategyDescriptor)
async def get_strategy(
    strategy_id: str,
    registry: StrategyRegistry = Depends(get_registry),
) -> StrategyDescriptor:
    """Get one strategy descriptor."""
    try:
        return describe(registry.get_strategy(strategy_id))
    except StrategyNotFoundError as e:
        raise to_http_exception(e) from e
