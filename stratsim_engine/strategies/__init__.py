"""
Strategy implementations and parameter specs.

Concrete strategies are registered through strategies.registry; this
package root only re-exports the parameter spec helpers.
"""

from stratsim_engine.strategies.params import (
    ParameterKind,
    StrategyParameterSpec,
    default_parameters,
    validate_parameters,
)

__all__ = [
    "ParameterKind",
    "StrategyParameterSpec",
    "default_parameters",
    "validate_parameters",
]
