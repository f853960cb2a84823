"""
StratSim Engine - FastAPI Application

HTTP adapter over the backtest core: strategy catalogue, backtest runs and
selector inspection.
"""

from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import Depends, FastAPI
from pydantic import BaseModel

from stratsim_engine import __version__
from stratsim_engine.api.backtest_routes import router as backtest_router
from stratsim_engine.api.selector_routes import router as selector_router
from stratsim_engine.api.strategy_routes import router as strategy_router
from stratsim_engine.config import Settings, get_settings, get_settings_dep
from stratsim_engine.logging import get_logger, setup_logging

# Setup logging
setup_logging(level=get_settings().log_level, json_output=get_settings().json_logs)
logger = get_logger(__name__)


# =============================================================================
# Response Models
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    time: str
    uptime_seconds: float


class ConfigResponse(BaseModel):
    """Configuration response."""

    config: dict[str, Any]


# =============================================================================
# Application State
# =============================================================================


class AppState:
    """Application state container."""

    def __init__(self) -> None:
        self.start_time: datetime = datetime.now(UTC)


state = AppState()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings = get_settings()
    logger.info("Starting StratSim Engine v%s (%s)", __version__, settings.env.value)
    logger.info("Data directory: %s", settings.data_dir)
    yield
    logger.info("Shutting down StratSim Engine")


# =============================================================================
# FastAPI Application
# =============================================================================


app = FastAPI(
    title="StratSim Engine",
    description="Strategy backtesting and selection engine",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(strategy_router)
app.include_router(backtest_router)
app.include_router(selector_router)


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Liveness check."""
    now = datetime.now(UTC)
    return HealthResponse(
        status="healthy",
        version=__version__,
        time=now.isoformat(),
        uptime_seconds=round((now - state.start_time).total_seconds(), 2),
    )


@app.get("/config", response_model=ConfigResponse)
async def config(settings: Settings = Depends(get_settings_dep)) -> ConfigResponse:
    """Get current configuration."""
    return ConfigResponse(config=settings.get_redacted_config())


@app.get("/")
async def root() -> dict[str, Any]:
    """Root endpoint with API info."""
    return {
        "name": "StratSim Engine",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
    }


def run() -> None:
    """Run the API server with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "stratsim_engine.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
