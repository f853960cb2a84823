"""
Parameter grid enumeration for the selector's optimization mode.

Numeric specs with a complete min/max/step range are discretized; every
other spec contributes only its default. Combinations are produced in spec
order with the first spec varying slowest.
"""

import itertools
import math
from collections.abc import Iterator, Sequence
from typing import Any

from stratsim_engine.strategies.params import StrategyParameterSpec

GRID_DECIMALS = 10


def parameter_values(spec: StrategyParameterSpec) -> list[Any]:
    """
    Discretize one spec.

    Walks min, min+step, ... up to max; when the step overshoots max, max is
    appended so both ends of the range are always searched.
    """
    if not spec.is_optimizable:
        return [spec.default]

    assert spec.min is not None and spec.max is not None and spec.step is not None
    # Index-based stepping avoids accumulating float error
    count = int(math.floor(round((spec.max - spec.min) / spec.step, 9)))
    values = [round(spec.min + k * spec.step, GRID_DECIMALS) for k in range(count + 1)]
    if values[-1] < spec.max:
        values.append(spec.max)

    if spec.integer:
        deduped: list[Any] = []
        for v in values:
            iv = int(round(v))
            if iv not in deduped:
                deduped.append(iv)
        return deduped
    return values


def grid_size(specs: Sequence[StrategyParameterSpec]) -> int:
    """Number of combinations parameter_grid() yields."""
    return math.prod(len(parameter_values(spec)) for spec in specs)


def parameter_grid(specs: Sequence[StrategyParameterSpec]) -> Iterator[dict[str, Any]]:
    """Yield every complete parameter combination."""
    names = [spec.name for spec in specs]
    axes = [parameter_values(spec) for spec in specs]
    for combo in itertools.product(*axes):
        yield dict(zip(names, combo, strict=True))
