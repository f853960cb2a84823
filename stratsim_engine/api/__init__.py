"""
FastAPI route modules for the StratSim engine.
"""

from stratsim_engine.api.backtest_routes import router as backtest_router
from stratsim_engine.api.selector_routes import router as selector_router
from stratsim_engine.api.strategy_routes import router as strategy_router

__all__ = ["backtest_router", "selector_router", "strategy_router"]
