"""
Backtest API routes.

Endpoints for running backtests and reading back recent results.
"""

import asyncio
from collections import OrderedDict
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from stratsim_engine.api.dependencies import get_data_service, get_registry
from stratsim_engine.api.errors import to_http_exception
from stratsim_engine.backtest.engine import BacktestEngine
from stratsim_engine.backtest.models import BacktestRequest, BacktestResult
from stratsim_engine.config import Settings, get_settings_dep
from stratsim_engine.errors import BacktestError
from stratsim_engine.interfaces.data_provider import DataService
from stratsim_engine.logging import get_logger
from stratsim_engine.optimization.models import Regime
from stratsim_engine.optimization.selector import build_regimes
from stratsim_engine.strategies.registry import StrategyRegistry

router = APIRouter(prefix="/backtest", tags=["Backtest"])
logger = get_logger(__name__)

MAX_STORED_RESULTS = 50

# Most recent results, oldest evicted first
_job_results: "OrderedDict[str, BacktestResult]" = OrderedDict()


def _store_result(result: BacktestResult) -> None:
    _job_results[result.run_id] = result
    while len(_job_results) > MAX_STORED_RESULTS:
        _job_results.popitem(last=False)


def clear_results() -> None:
    """Drop stored results (for testing)."""
    _job_results.clear()


# =============================================================================
# Response Models
# =============================================================================


class RegimesResponse(BaseModel):
    """Selector regimes reconstructed from a decision log."""

    run_id: str
    regimes: list[Regime]


# =============================================================================
# Routes
# =============================================================================


@router.post("/run", response_model=BacktestResult)
async def run_backtest(
    request: BacktestRequest,
    registry: StrategyRegistry = Depends(get_registry),
    data_service: DataService = Depends(get_data_service),
    settings: Settings = Depends(get_settings_dep),
) -> BacktestResult:
    """
    Run a backtest synchronously and return the full result.

    The engine runs in a worker thread so the event loop stays responsive.
    """
    engine = BacktestEngine(registry, data_service, settings=settings)

    loop = asyncio.get_running_loop()
    try:
        result = await loop.run_in_executor(None, engine.run, request)
    except BacktestError as e:
        logger.warning("Backtest %s on %s failed: %s", request.strategy_id, request.symbol, e)
        raise to_http_exception(e) from e

    _store_result(result)
    return result


@router.get("/results/{run_id}", response_model=BacktestResult)
async def get_result(run_id: str) -> BacktestResult:
    """Get a stored result by run id."""
    result = _job_results.get(run_id)
    if result is None:
        raise HTTPException(status_code=404, detail=f"Run not found: {run_id}")
    return result


@router.get("/results/{run_id}/regimes", response_model=RegimesResponse)
async def get_regimes(run_id: str) -> RegimesResponse:
    """Get the selector regimes of a stored result."""
    result = _job_results.get(run_id)
    if result is None:
        raise HTTPException(status_code=404, detail=f"Run not found: {run_id}")
    if result.decision_log is None:
        raise HTTPException(status_code=400, detail=f"Run {run_id} has no decision log")

    timestamps = [p.timestamp for p in result.equity_curve]
    return RegimesResponse(run_id=run_id, regimes=build_regimes(result.decision_log, timestamps))


@router.get("/results")
async def list_results() -> dict[str, Any]:
    """List stored run ids, newest last."""
    return {
        "runs": [
            {
                "run_id": r.run_id,
                "symbol": r.symbol,
                "strategy_id": r.strategy_id,
                "total_profit_or_loss": r.total_profit_or_loss,
            }
            for r in _job_results.values()
        ],
        "total": len(_job_results),
    }
