"""
Trade sizing for backtesting.

The default policy is all-in/all-out: a BUY converts all cash into shares and
a SELL liquidates the whole position. Strategies may expose an explicit
`tradeFraction` parameter to commit only part of the cash (or shares) per
trade.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any

from stratsim_engine.strategies.params import ParameterKind, StrategyParameterSpec

TRADE_FRACTION_PARAM = "tradeFraction"

TRADE_FRACTION_SPEC = StrategyParameterSpec(
    name=TRADE_FRACTION_PARAM,
    label="Trade Fraction",
    kind=ParameterKind.NUMERIC,
    default=1.0,
    min=0.01,
    max=1.0,
    description="Share of available cash (BUY) or shares (SELL) committed per trade.",
)


class SizingMethod(str, Enum):
    """Trade sizing methods."""

    ALL_IN_ALL_OUT = "all_in_all_out"
    FRACTIONAL = "fractional"


@dataclass
class SizeResult:
    """Resolved sizing policy for a run."""

    fraction: float
    method_used: SizingMethod


def resolve_trade_fraction(params: dict[str, Any]) -> SizeResult:
    """
    Determine the sizing policy from a validated parameter record.

    Returns SizeResult with the fraction applied to both BUY and SELL.
    """
    fraction = params.get(TRADE_FRACTION_PARAM)
    if fraction is None or fraction >= 1.0:
        return SizeResult(fraction=1.0, method_used=SizingMethod.ALL_IN_ALL_OUT)
    return SizeResult(fraction=float(fraction), method_used=SizingMethod.FRACTIONAL)


def capital_aware_fraction(
    initial_cash: float,
    price: float,
    risk_percentage: float,
) -> float | None:
    """
    Trade fraction that buys whole units worth about risk_percentage of capital.

    At least one unit is bought when the capital covers it. The fraction is
    clamped to the tradeFraction bounds.

    Returns:
        The fraction, or None when not even one unit is affordable
    """
    if price <= 0 or initial_cash < price:
        return None

    units = max(math.floor(initial_cash * risk_percentage / 100.0 / price), 1)
    fraction = units * price / initial_cash
    return min(max(fraction, TRADE_FRACTION_SPEC.min), TRADE_FRACTION_SPEC.max)
