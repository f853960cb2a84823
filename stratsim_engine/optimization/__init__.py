"""
Optimization module.

Provides:
- StrategySelector meta-strategy
- Parameter grid enumeration
- ActiveChoiceStore read model of the latest selector choice per symbol
"""

from stratsim_engine.optimization.active_choice import ActiveChoiceStore
from stratsim_engine.optimization.models import (
    ActiveChoice,
    ActiveChoiceResponse,
    EvaluationMetric,
    Regime,
)

__all__ = [
    "ActiveChoice",
    "ActiveChoiceResponse",
    "ActiveChoiceStore",
    "EvaluationMetric",
    "Regime",
]
