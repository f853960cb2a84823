"""
Declarative strategy parameter specs.

Each strategy publishes a list of StrategyParameterSpec. The same specs are
used to validate user supplied parameter bags (missing keys take defaults,
anything out of spec is rejected, never clamped) and to enumerate the
selector's optimization grid.
"""

import math
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator

from stratsim_engine.errors import ValidationError

ParamValue = float | int | str | bool


class ParameterKind(str, Enum):
    """Parameter value kind."""

    NUMERIC = "numeric"
    TEXT = "text"
    BOOLEAN = "boolean"


class StrategyParameterSpec(BaseModel):
    """Definition of one tunable strategy parameter."""

    name: str = Field(..., description="Key in the parameter bag")
    label: str = Field(default="", description="Human-readable label")
    kind: ParameterKind = Field(default=ParameterKind.NUMERIC)
    default: ParamValue = Field(..., description="Value used when the key is missing")
    description: str = Field(default="")
    min: float | None = Field(default=None, description="Inclusive lower bound")
    max: float | None = Field(default=None, description="Inclusive upper bound")
    step: float | None = Field(default=None, gt=0, description="Grid increment")
    integer: bool = Field(default=False, description="Numeric values must be whole numbers")
    options: list[str] | None = Field(default=None, description="Allowed text values")

    @model_validator(mode="after")
    def check_bounds(self) -> "StrategyParameterSpec":
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError(f"{self.name}: min {self.min} > max {self.max}")
        return self

    @property
    def is_optimizable(self) -> bool:
        """True when a complete numeric range to search is defined."""
        return (
            self.kind == ParameterKind.NUMERIC
            and self.min is not None
            and self.max is not None
            and self.step is not None
        )


def default_parameters(specs: Sequence[StrategyParameterSpec]) -> dict[str, Any]:
    """Parameter bag made of every spec's default."""
    return {spec.name: spec.default for spec in specs}


def validate_parameters(
    specs: Sequence[StrategyParameterSpec],
    raw: Mapping[str, Any] | None,
) -> dict[str, Any]:
    """
    Build a typed parameter record from a raw bag.

    Args:
        specs: Parameter specs of the strategy
        raw: User supplied values (may be None or partial)

    Returns:
        Complete parameter dict, defaults filled in for missing keys

    Raises:
        ValidationError: Unknown key, wrong type or value out of bounds
    """
    raw = raw or {}
    by_name = {spec.name: spec for spec in specs}

    unknown = sorted(set(raw) - set(by_name))
    if unknown:
        raise ValidationError(f"Unknown parameter(s): {', '.join(unknown)}")

    params: dict[str, Any] = {}
    for spec in specs:
        if spec.name not in raw or raw[spec.name] is None:
            params[spec.name] = spec.default
            continue
        params[spec.name] = _coerce_value(spec, raw[spec.name])
    return params


def _coerce_value(spec: StrategyParameterSpec, value: Any) -> ParamValue:
    if spec.kind == ParameterKind.BOOLEAN:
        if not isinstance(value, bool):
            raise ValidationError(f"Parameter {spec.name} must be a boolean, got {value!r}")
        return value

    if spec.kind == ParameterKind.TEXT:
        if not isinstance(value, str):
            raise ValidationError(f"Parameter {spec.name} must be a string, got {value!r}")
        if spec.options is not None and value not in spec.options:
            raise ValidationError(
                f"Parameter {spec.name} must be one of {spec.options}, got {value!r}"
            )
        return value

    # bool is an int subclass; reject it explicitly for numeric params
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"Parameter {spec.name} must be a number, got {value!r}")
    if math.isnan(value) or math.isinf(value):
        raise ValidationError(f"Parameter {spec.name} must be finite, got {value!r}")
    if spec.min is not None and value < spec.min:
        raise ValidationError(f"Parameter {spec.name}={value} is below minimum {spec.min}")
    if spec.max is not None and value > spec.max:
        raise ValidationError(f"Parameter {spec.name}={value} is above maximum {spec.max}")
    if spec.integer:
        if float(value) != int(value):
            raise ValidationError(f"Parameter {spec.name} must be a whole number, got {value}")
        return int(value)
    return value
