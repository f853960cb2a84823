"""
Ichimoku Cloud trend-following strategy.

Entry: bullish Tenkan/Kijun cross with price and Chikou above the current
Kumo and a bullish projected cloud. Exit: the mirrored bearish conditions.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, NamedTuple

from stratsim_engine.backtest.sizing import TRADE_FRACTION_SPEC
from stratsim_engine.domain import PricePoint, Signal
from stratsim_engine.interfaces.strategy import Strategy
from stratsim_engine.strategies.indicators import (
    donchian_mid,
    is_price_above_cloud,
    is_price_below_cloud,
)
from stratsim_engine.strategies.params import ParameterKind, StrategyParameterSpec


@dataclass
class IchimokuSnapshot:
    """Ichimoku lines as seen at one bar."""

    tenkan: float
    kijun: float
    senkou_a: float  # current cloud, projected from `displacement` bars ago
    senkou_b: float
    chikou: float  # close `lag` bars ago
    future_senkou_a: float  # cloud being projected from this bar
    future_senkou_b: float


class PriceColumns(NamedTuple):
    """High, low and close columns of a series."""

    highs: list[float]
    lows: list[float]
    closes: list[float]


def price_columns(series: Sequence[PricePoint]) -> PriceColumns:
    return PriceColumns(
        highs=[p.high for p in series],
        lows=[p.low for p in series],
        closes=[p.close for p in series],
    )


def ichimoku_at(
    columns: PriceColumns,
    index: int,
    tenkan_period: int,
    kijun_period: int,
    senkou_b_period: int,
    lag: int,
    displacement: int,
) -> IchimokuSnapshot | None:
    """
    Compute Ichimoku components at index.

    Only columns[..index] are read. Returns None if any component lacks history.
    """
    highs, lows = columns.highs, columns.lows

    tenkan = donchian_mid(highs, lows, tenkan_period, index)
    kijun = donchian_mid(highs, lows, kijun_period, index)
    future_b = donchian_mid(highs, lows, senkou_b_period, index)

    past = index - displacement
    if past < 0 or index < lag:
        return None
    past_tenkan = donchian_mid(highs, lows, tenkan_period, past)
    past_kijun = donchian_mid(highs, lows, kijun_period, past)
    senkou_b = donchian_mid(highs, lows, senkou_b_period, past)

    values = (tenkan, kijun, future_b, past_tenkan, past_kijun, senkou_b)
    if any(v is None for v in values):
        return None

    return IchimokuSnapshot(
        tenkan=tenkan,
        kijun=kijun,
        senkou_a=(past_tenkan + past_kijun) / 2,
        senkou_b=senkou_b,
        chikou=columns.closes[index - lag],
        future_senkou_a=(tenkan + kijun) / 2,
        future_senkou_b=future_b,
    )


def _period_spec(name: str, label: str, default: int) -> StrategyParameterSpec:
    return StrategyParameterSpec(
        name=name,
        label=label,
        kind=ParameterKind.NUMERIC,
        default=default,
        min=1,
        max=200,
        integer=True,
    )


class IchimokuCloudStrategy(Strategy):
    """Ichimoku Kinko Hyo cross with cloud and lagging span confirmation."""

    @property
    def id(self) -> str:
        return "ichimoku-cloud"

    @property
    def name(self) -> str:
        return "Ichimoku Cloud Strategy"

    @property
    def description(self) -> str:
        return (
            "Trend-following strategy on the Ichimoku indicator: Tenkan/Kijun crosses "
            "confirmed by the projected cloud (Kumo) and the lagging span (Chikou)."
        )

    @property
    def parameter_specs(self) -> list[StrategyParameterSpec]:
        return [
            _period_spec("tenkanPeriod", "Tenkan-sen Period", 9),
            _period_spec("kijunPeriod", "Kijun-sen Period", 26),
            _period_spec("senkouSpanBPeriod", "Senkou Span B Period", 52),
            _period_spec("chikouLaggingPeriod", "Chikou Span Lag Period", 26),
            _period_spec("senkouCloudDisplacement", "Cloud Displacement", 26),
            TRADE_FRACTION_SPEC,
        ]

    def evaluate(
        self,
        series: Sequence[PricePoint],
        index: int,
        params: dict[str, Any],
        state: dict[str, Any],
    ) -> Signal:
        periods = (
            int(params["tenkanPeriod"]),
            int(params["kijunPeriod"]),
            int(params["senkouSpanBPeriod"]),
            int(params["chikouLaggingPeriod"]),
            int(params["senkouCloudDisplacement"]),
        )
        tenkan_p, kijun_p, span_b_p, lag, displacement = periods

        min_bars = max(tenkan_p, kijun_p, span_b_p) + lag + displacement
        if index < min_bars:
            return Signal.HOLD

        columns = self.cached(state, series, ("columns",), lambda: price_columns(series))
        now = ichimoku_at(columns, index, *periods)
        prev = ichimoku_at(columns, index - 1, *periods)
        if now is None or prev is None:
            return Signal.HOLD

        price = series[index].close

        bullish_cross = prev.tenkan < prev.kijun and now.tenkan > now.kijun
        if (
            bullish_cross
            and is_price_above_cloud(price, now.senkou_a, now.senkou_b)
            and is_price_above_cloud(now.chikou, now.senkou_a, now.senkou_b)
            and now.future_senkou_a > now.future_senkou_b
        ):
            return Signal.BUY

        bearish_cross = prev.tenkan > prev.kijun and now.tenkan < now.kijun
        if (
            bearish_cross
            and is_price_below_cloud(price, now.senkou_a, now.senkou_b)
            and is_price_below_cloud(now.chikou, now.senkou_a, now.senkou_b)
            and now.future_senkou_a < now.future_senkou_b
        ):
            return Signal.SELL

        return Signal.HOLD
