"""
Simple price threshold strategy.

Buys when the close rises above an upper level and sells when it falls
below a lower level.
"""

from collections.abc import Sequence
from typing import Any

from stratsim_engine.backtest.sizing import TRADE_FRACTION_SPEC
from stratsim_engine.domain import PricePoint, Signal
from stratsim_engine.errors import ValidationError
from stratsim_engine.interfaces.strategy import Strategy
from stratsim_engine.strategies.params import ParameterKind, StrategyParameterSpec


class SimpleThresholdStrategy(Strategy):
    """BUY above upperThreshold, SELL below lowerThreshold."""

    @property
    def id(self) -> str:
        return "simple-threshold"

    @property
    def name(self) -> str:
        return "Simple Threshold Strategy"

    @property
    def description(self) -> str:
        return "Buys if price > upperThreshold, sells if price < lowerThreshold."

    @property
    def parameter_specs(self) -> list[StrategyParameterSpec]:
        return [
            StrategyParameterSpec(
                name="upperThreshold",
                label="Upper Threshold",
                kind=ParameterKind.NUMERIC,
                default=150,
                min=0,
                description="Price above which to buy.",
            ),
            StrategyParameterSpec(
                name="lowerThreshold",
                label="Lower Threshold",
                kind=ParameterKind.NUMERIC,
                default=140,
                min=0,
                description="Price below which to sell.",
            ),
            TRADE_FRACTION_SPEC,
        ]

    def validate(self, params: dict[str, Any]) -> None:
        if params["lowerThreshold"] > params["upperThreshold"]:
            raise ValidationError("lowerThreshold must not exceed upperThreshold")

    def evaluate(
        self,
        series: Sequence[PricePoint],
        index: int,
        params: dict[str, Any],
        state: dict[str, Any],
    ) -> Signal:
        price = series[index].close
        if price > params["upperThreshold"]:
            return Signal.BUY
        if price < params["lowerThreshold"]:
            return Signal.SELL
        return Signal.HOLD
