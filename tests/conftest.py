"""
Pytest configuration and shared fixtures.
"""

import os
import tempfile
from collections.abc import Generator
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Set test environment variables before importing app modules
os.environ.setdefault("STRATSIM_ENV", "development")
os.environ.setdefault("STRATSIM_DATA_DIR", tempfile.mkdtemp(prefix="stratsim-test-"))

from stratsim_engine.backtest.engine import BacktestEngine  # noqa: E402
from stratsim_engine.backtest.models import BacktestRequest  # noqa: E402
from stratsim_engine.config import Settings  # noqa: E402
from stratsim_engine.data.memory import InMemoryDataService  # noqa: E402
from stratsim_engine.optimization.active_choice import ActiveChoiceStore  # noqa: E402
from stratsim_engine.strategies.registry import (  # noqa: E402
    StrategyRegistry,
    create_default_registry,
)
from tests.synthetic_data import START  # noqa: E402


@pytest.fixture
def temp_data_dir() -> Generator[Path, None, None]:
    """Create a temporary data directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def settings(temp_data_dir: Path) -> Settings:
    return Settings(data_dir=temp_data_dir)


@pytest.fixture
def active_choices() -> ActiveChoiceStore:
    """Isolated active-choice store per test."""
    return ActiveChoiceStore()


@pytest.fixture
def registry(active_choices: ActiveChoiceStore, settings: Settings) -> StrategyRegistry:
    return create_default_registry(active_choices, settings=settings)


@pytest.fixture
def data_service() -> InMemoryDataService:
    return InMemoryDataService()


@pytest.fixture
def engine(
    registry: StrategyRegistry,
    data_service: InMemoryDataService,
    settings: Settings,
) -> BacktestEngine:
    return BacktestEngine(registry, data_service, settings=settings)


def make_request(
    strategy_id: str = "simple-threshold",
    symbol: str = "TEST",
    days: int = 365,
    initial_cash: float = 10000.0,
    start: datetime = START,
    **params,
) -> BacktestRequest:
    """Helper: build a request covering `days` days from START."""
    return BacktestRequest(
        symbol=symbol,
        start_date=start,
        end_date=start + timedelta(days=days),
        initial_cash=initial_cash,
        strategy_id=strategy_id,
        strategy_params=params,
    )


@pytest.fixture(autouse=True)
def reset_singletons() -> Generator[None, None, None]:
    """Reset module-level singletons between tests."""
    yield

    from stratsim_engine.api import backtest_routes, dependencies

    dependencies.set_registry(None)
    dependencies.set_data_service(None)
    dependencies.set_active_choice_store(None)
    backtest_routes.clear_results()
