"""
Interfaces (abstract base classes) for the StratSim engine.

These define the contracts that must be implemented by:
- DataService: Historical price series access
- Strategy: Trading strategy logic
"""

from stratsim_engine.interfaces.data_provider import DataService
from stratsim_engine.interfaces.strategy import Strategy

__all__ = [
    "DataService",
    "Strategy",
]
