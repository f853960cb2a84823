"""
MACD crossover strategy.

Buys when the MACD line crosses above its signal line and sells when it
crosses below.
"""

import math
from collections.abc import Sequence
from typing import Any

from stratsim_engine.backtest.sizing import TRADE_FRACTION_SPEC
from stratsim_engine.domain import PricePoint, Signal, closes
from stratsim_engine.errors import ValidationError
from stratsim_engine.interfaces.strategy import Strategy
from stratsim_engine.strategies.indicators import crossover, crossunder, macd
from stratsim_engine.strategies.params import ParameterKind, StrategyParameterSpec


class MacdCrossoverStrategy(Strategy):
    """MACD / signal line crossover."""

    @property
    def id(self) -> str:
        return "macd-crossover"

    @property
    def name(self) -> str:
        return "MACD Crossover Strategy"

    @property
    def description(self) -> str:
        return (
            "Generates BUY signals when the MACD line crosses above the signal line, "
            "and SELL signals when it crosses below."
        )

    @property
    def parameter_specs(self) -> list[StrategyParameterSpec]:
        return [
            StrategyParameterSpec(
                name="shortPeriod",
                label="Short EMA Period",
                kind=ParameterKind.NUMERIC,
                default=12,
                min=8,
                max=16,
                step=4,
                integer=True,
                description="Period of the shorter EMA.",
            ),
            StrategyParameterSpec(
                name="longPeriod",
                label="Long EMA Period",
                kind=ParameterKind.NUMERIC,
                default=26,
                min=20,
                max=32,
                step=6,
                integer=True,
                description="Period of the longer EMA; must exceed shortPeriod.",
            ),
            StrategyParameterSpec(
                name="signalPeriod",
                label="Signal Line EMA Period",
                kind=ParameterKind.NUMERIC,
                default=9,
                min=5,
                max=13,
                step=4,
                integer=True,
                description="Period of the EMA of the MACD line.",
            ),
            TRADE_FRACTION_SPEC,
        ]

    def validate(self, params: dict[str, Any]) -> None:
        if params["longPeriod"] <= params["shortPeriod"]:
            raise ValidationError("longPeriod must be greater than shortPeriod")

    def evaluate(
        self,
        series: Sequence[PricePoint],
        index: int,
        params: dict[str, Any],
        state: dict[str, Any],
    ) -> Signal:
        if index < 1:
            return Signal.HOLD

        fast = int(params["shortPeriod"])
        slow = int(params["longPeriod"])
        signal = int(params["signalPeriod"])
        lines = self.cached(
            state,
            series,
            ("macd", fast, slow, signal),
            lambda: macd(closes(series), fast, slow, signal),
        )

        window = (lines.macd[index - 1], lines.macd[index], lines.signal[index - 1], lines.signal[index])
        if any(math.isnan(v) for v in window):
            return Signal.HOLD

        if crossover(lines.macd, lines.signal, index):
            return Signal.BUY
        if crossunder(lines.macd, lines.signal, index):
            return Signal.SELL
        return Signal.HOLD
