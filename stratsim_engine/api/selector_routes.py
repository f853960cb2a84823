"""
Selector routes.

Read-only view of the most recent choice any selector run made per symbol,
plus the capital-aware suggestion across symbols.
"""

import asyncio

from fastapi import APIRouter, Depends

from stratsim_engine.api.dependencies import (
    get_active_choice_store,
    get_data_service,
    get_registry,
)
from stratsim_engine.api.errors import to_http_exception
from stratsim_engine.config import Settings, get_settings_dep
from stratsim_engine.errors import BacktestError
from stratsim_engine.interfaces.data_provider import DataService
from stratsim_engine.logging import get_logger
from stratsim_engine.optimization.active_choice import ActiveChoiceStore
from stratsim_engine.optimization.models import (
    NO_CHOICE_MESSAGE,
    ActiveChoiceResponse,
    StrategySuggestion,
    SuggestionRequest,
)
from stratsim_engine.optimization.suggestion import StrategySuggester
from stratsim_engine.strategies.registry import StrategyRegistry

router = APIRouter(prefix="/selector", tags=["Selector"])
logger = get_logger(__name__)


@router.get("/active-choice/{symbol}", response_model=ActiveChoiceResponse)
async def get_active_choice(
    symbol: str,
    store: ActiveChoiceStore = Depends(get_active_choice_store),
) -> ActiveChoiceResponse:
    """Latest selector choice for a symbol, or a message when none exists."""
    choice = store.get_active_choice(symbol)
    if choice is None:
        return ActiveChoiceResponse(symbol=symbol, message=NO_CHOICE_MESSAGE)
    return ActiveChoiceResponse(**choice.model_dump())


@router.get("/active-choices")
async def list_active_choices(
    store: ActiveChoiceStore = Depends(get_active_choice_store),
) -> dict[str, list[str]]:
    """Symbols with a recorded choice."""
    return {"symbols": store.symbols()}


@router.post("/suggestion", response_model=StrategySuggestion)
async def suggest_strategy(
    request: SuggestionRequest,
    registry: StrategyRegistry = Depends(get_registry),
    data_service: DataService = Depends(get_data_service),
    settings: Settings = Depends(get_settings_dep),
) -> StrategySuggestion:
    """Best strategy and capital-sized parameters across symbols."""
    suggester = StrategySuggester(registry, data_service, settings=settings)

    loop = asyncio.get_running_loop()
    try:
        return await loop.run_in_executor(None, suggester.suggest, request)
    except BacktestError as e:
        logger.warning("Suggestion failed: %s", e)
        raise to_http_exception(e) from e
