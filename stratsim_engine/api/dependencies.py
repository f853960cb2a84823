"""
Shared FastAPI dependencies.

Lazy module singletons with setters so tests can swap in isolated
instances (or use app.dependency_overrides).
"""

from fastapi import Depends

from stratsim_engine.config import Settings, get_settings_dep
from stratsim_engine.data.csv_store import CsvDataService
from stratsim_engine.interfaces.data_provider import DataService
from stratsim_engine.optimization.active_choice import ActiveChoiceStore
from stratsim_engine.strategies.registry import StrategyRegistry, create_default_registry

_active_choice_store: ActiveChoiceStore | None = None
_registry: StrategyRegistry | None = None
_data_service: DataService | None = None


def get_active_choice_store() -> ActiveChoiceStore:
    """Get or create the process-wide active-choice store."""
    global _active_choice_store
    if _active_choice_store is None:
        _active_choice_store = ActiveChoiceStore()
    return _active_choice_store


def set_active_choice_store(store: ActiveChoiceStore | None) -> None:
    """Set the active-choice store (for testing)."""
    global _active_choice_store
    _active_choice_store = store


def get_registry(
    settings: Settings = Depends(get_settings_dep),
    store: ActiveChoiceStore = Depends(get_active_choice_store),
) -> StrategyRegistry:
    """Get or create the strategy registry singleton."""
    global _registry
    if _registry is None:
        _registry = create_default_registry(store, settings=settings)
    return _registry


def set_registry(registry: StrategyRegistry | None) -> None:
    """Set the strategy registry (for testing)."""
    global _registry
    _registry = registry


def get_data_service(settings: Settings = Depends(get_settings_dep)) -> DataService:
    """Get or create the data service singleton (CSV files under data_dir)."""
    global _data_service
    if _data_service is None:
        _data_service = CsvDataService(settings.data_dir)
    return _data_service


def set_data_service(service: DataService | None) -> None:
    """Set the data service (for testing)."""
    global _data_service
    _data_service = service
