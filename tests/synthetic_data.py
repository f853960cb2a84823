"""Deterministic synthetic price series for engine and strategy tests."""

import math
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta

from stratsim_engine.domain import PricePoint

START = datetime(2024, 1, 1, tzinfo=UTC)


def series_from_closes(
    closes: Sequence[float],
    start: datetime = START,
    step: timedelta = timedelta(days=1),
    spread: float = 0.5,
) -> list[PricePoint]:
    points: list[PricePoint] = []
    for i, close in enumerate(closes):
        points.append(
            PricePoint(
                timestamp=start + i * step,
                open=close,
                high=close + spread,
                low=close - spread,
                close=close,
                volume=1000.0,
            )
        )
    return points


def flat_market(n: int, price: float = 100.0) -> list[PricePoint]:
    return series_from_closes([price] * n)


def linear_trend(n: int, start_price: float = 100.0, step: float = 1.0) -> list[PricePoint]:
    return series_from_closes([start_price + i * step for i in range(n)])


def sine_wave(
    n: int,
    base: float = 100.0,
    amplitude: float = 10.0,
    period: int = 20,
) -> list[PricePoint]:
    """Oscillating market; crosses its mean every period / 2 bars."""
    return series_from_closes(
        [base + amplitude * math.sin(2 * math.pi * i / period) for i in range(n)]
    )


def up_then_down(n: int, start_price: float = 100.0, step: float = 1.0) -> list[PricePoint]:
    """Rises for the first half, falls for the second."""
    pivot = n // 2
    closes = []
    for i in range(n):
        if i < pivot:
            closes.append(start_price + i * step)
        else:
            closes.append(start_price + pivot * step - (i - pivot) * step)
    return series_from_closes(closes)
