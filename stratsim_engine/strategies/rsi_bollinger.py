"""
RSI + Bollinger Bands mean-reversion strategy.

Entry when momentum is oversold and price sits at or below the lower band;
exit when momentum is overbought and price sits at or above the upper band.
"""

import math
from collections.abc import Sequence
from typing import Any

from stratsim_engine.backtest.sizing import TRADE_FRACTION_SPEC
from stratsim_engine.domain import PricePoint, Signal, closes
from stratsim_engine.errors import ValidationError
from stratsim_engine.interfaces.strategy import Strategy
from stratsim_engine.strategies.indicators import bollinger_bands, rsi
from stratsim_engine.strategies.params import ParameterKind, StrategyParameterSpec


class RsiBollingerStrategy(Strategy):
    """RSI oversold/overbought confirmed by Bollinger band touches."""

    @property
    def id(self) -> str:
        return "rsi-bollinger"

    @property
    def name(self) -> str:
        return "RSI + Bollinger Bands Strategy"

    @property
    def description(self) -> str:
        return (
            "Buys when RSI is oversold and price is at/below the lower Bollinger Band. "
            "Sells when RSI is overbought and price is at/above the upper Bollinger Band."
        )

    @property
    def parameter_specs(self) -> list[StrategyParameterSpec]:
        return [
            StrategyParameterSpec(
                name="rsiPeriod",
                label="RSI Period",
                kind=ParameterKind.NUMERIC,
                default=14,
                min=7,
                max=21,
                step=7,
                integer=True,
                description="Period for RSI calculation.",
            ),
            StrategyParameterSpec(
                name="rsiOverbought",
                label="RSI Overbought Threshold",
                kind=ParameterKind.NUMERIC,
                default=70,
                min=60,
                max=80,
                step=10,
                description="RSI level above which an asset is considered overbought.",
            ),
            StrategyParameterSpec(
                name="rsiOversold",
                label="RSI Oversold Threshold",
                kind=ParameterKind.NUMERIC,
                default=30,
                min=20,
                max=40,
                step=10,
                description="RSI level below which an asset is considered oversold.",
            ),
            StrategyParameterSpec(
                name="bollingerPeriod",
                label="Bollinger Bands Period",
                kind=ParameterKind.NUMERIC,
                default=20,
                min=10,
                max=30,
                step=10,
                integer=True,
                description="Period for the Bollinger Bands SMA.",
            ),
            StrategyParameterSpec(
                name="bollingerStdDev",
                label="Bollinger Bands StdDev Multiplier",
                kind=ParameterKind.NUMERIC,
                default=2,
                min=1.5,
                max=2.5,
                step=0.5,
                description="Number of standard deviations for the outer bands.",
            ),
            TRADE_FRACTION_SPEC,
        ]

    def validate(self, params: dict[str, Any]) -> None:
        if params["rsiOversold"] >= params["rsiOverbought"]:
            raise ValidationError("rsiOversold must be below rsiOverbought")

    def evaluate(
        self,
        series: Sequence[PricePoint],
        index: int,
        params: dict[str, Any],
        state: dict[str, Any],
    ) -> Signal:
        rsi_period = int(params["rsiPeriod"])
        bb_period = int(params["bollingerPeriod"])
        std_dev = float(params["bollingerStdDev"])

        rsi_values = self.cached(
            state, series, ("rsi", rsi_period), lambda: rsi(closes(series), rsi_period)
        )
        bands = self.cached(
            state,
            series,
            ("bb", bb_period, std_dev),
            lambda: bollinger_bands(closes(series), bb_period, std_dev),
        )

        current_rsi = rsi_values[index]
        upper = bands.upper[index]
        lower = bands.lower[index]
        if math.isnan(current_rsi) or math.isnan(upper) or math.isnan(lower):
            return Signal.HOLD

        price = series[index].close
        if current_rsi < params["rsiOversold"] and price <= lower:
            return Signal.BUY
        if current_rsi > params["rsiOverbought"] and price >= upper:
            return Signal.SELL
        return Signal.HOLD
