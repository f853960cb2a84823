"""
Tests for technical indicators.

Validates warm-up NaN handling, smoothing and cross detection.
"""

import math

import pytest

from stratsim_engine.strategies.indicators import (
    bollinger_bands,
    crossover,
    crossunder,
    donchian_mid,
    ema,
    highest,
    lowest,
    macd,
    rsi,
    sma,
)


def _nan_count(values: list[float]) -> int:
    return sum(1 for v in values if math.isnan(v))


class TestSma:
    """Tests for simple moving average."""

    def test_values_after_warm_up(self) -> None:
        result = sma([1, 2, 3, 4, 5], 3)

        assert _nan_count(result[:2]) == 2
        assert result[2:] == pytest.approx([2.0, 3.0, 4.0])

    def test_rolling_window_example(self) -> None:
        result = sma([10, 11, 12, 13, 14, 15, 16], 3)
        assert result[2:] == pytest.approx([11.0, 12.0, 13.0, 14.0, 15.0])

    def test_period_one_is_identity(self) -> None:
        values = [3.0, 1.5, 4.0, 1.0]
        assert sma(values, 1) == pytest.approx(values)

    def test_same_length_as_input(self) -> None:
        assert len(sma([1.0] * 7, 3)) == 7

    def test_non_positive_period_is_all_nan(self) -> None:
        assert _nan_count(sma([1, 2, 3], 0)) == 3
        assert _nan_count(sma([1, 2, 3], -2)) == 3

    def test_series_shorter_than_period(self) -> None:
        assert _nan_count(sma([1, 2], 5)) == 2

    def test_large_value_leaves_no_residue(self) -> None:
        result = sma([1e12, 0.25, 0.25, 0.25, 0.75, 0.75], 2)
        assert result[2:] == [0.25, 0.25, 0.5, 0.75]


class TestEma:
    """Tests for exponential moving average."""

    def test_seeded_with_sma(self) -> None:
        # multiplier 2 / (3 + 1) = 0.5
        result = ema([1, 2, 3, 4, 5], 3)

        assert _nan_count(result[:2]) == 2
        assert result[2] == pytest.approx(2.0)
        assert result[3] == pytest.approx(3.0)
        assert result[4] == pytest.approx(4.0)

    def test_skips_leading_nan(self) -> None:
        result = ema([math.nan, math.nan, 1.0, 2.0, 3.0], 2)

        assert _nan_count(result[:3]) == 3
        assert result[3] == pytest.approx(1.5)
        assert result[4] == pytest.approx(2.5)

    def test_flat_series_stays_flat(self) -> None:
        result = ema([7.0] * 10, 4)
        assert result[3:] == pytest.approx([7.0] * 7)


class TestBollingerBands:
    """Tests for Bollinger bands."""

    def test_population_std(self) -> None:
        bands = bollinger_bands([1.0, 2.0, 3.0], period=3, std_dev=2.0)
        std = math.sqrt(2.0 / 3.0)

        assert bands.middle[2] == pytest.approx(2.0)
        assert bands.upper[2] == pytest.approx(2.0 + 2 * std)
        assert bands.lower[2] == pytest.approx(2.0 - 2 * std)

    def test_flat_window_collapses_bands(self) -> None:
        bands = bollinger_bands([5.0] * 6, period=3)

        assert bands.upper[5] == pytest.approx(5.0)
        assert bands.lower[5] == pytest.approx(5.0)

    def test_flat_run_after_spike_is_exact(self) -> None:
        bands = bollinger_bands([1e9] + [0.1] * 6, period=3, std_dev=2.0)

        for i in range(3, 7):
            assert bands.middle[i] == 0.1
            assert bands.upper[i] == bands.middle[i] == bands.lower[i]

    def test_band_ordering(self) -> None:
        closes = [100 + 5 * math.sin(i / 2) for i in range(60)]
        bands = bollinger_bands(closes, period=10, std_dev=2.0)

        for i in range(9, 60):
            assert bands.upper[i] >= bands.middle[i] >= bands.lower[i]

    def test_warm_up_is_nan(self) -> None:
        bands = bollinger_bands([1.0, 2.0, 3.0, 4.0], period=3)

        assert math.isnan(bands.upper[1])
        assert math.isnan(bands.lower[1])
        assert not math.isnan(bands.upper[2])


class TestRsi:
    """Tests for RSI with Wilder smoothing."""

    def test_first_period_values_are_nan(self) -> None:
        result = rsi([float(i) for i in range(20)], 14)

        assert _nan_count(result[:14]) == 14
        assert not math.isnan(result[14])

    def test_only_gains_reads_100(self) -> None:
        result = rsi([float(i) for i in range(20)], 14)
        assert result[14:] == pytest.approx([100.0] * 6)

    def test_short_all_gain_example(self) -> None:
        result = rsi([10.0, 11.0, 12.0, 13.0, 14.0, 15.0], 3)

        assert _nan_count(result[:3]) == 3
        assert result[3:] == pytest.approx([100.0, 100.0, 100.0])

    def test_only_losses_reads_0(self) -> None:
        result = rsi([float(100 - i) for i in range(20)], 14)
        assert result[14:] == pytest.approx([0.0] * 6)

    def test_flat_series_reads_100(self) -> None:
        result = rsi([50.0] * 20, 14)
        assert result[14] == pytest.approx(100.0)

    def test_values_bounded(self) -> None:
        closes = [100 + 10 * math.sin(i / 3) for i in range(80)]
        values = [v for v in rsi(closes, 14) if not math.isnan(v)]

        assert values
        assert all(0.0 <= v <= 100.0 for v in values)

    def test_too_short_is_all_nan(self) -> None:
        assert _nan_count(rsi([1.0, 2.0, 3.0], 14)) == 3


class TestMacd:
    """Tests for MACD lines."""

    def test_signal_starts_after_macd_warm_up(self) -> None:
        closes = [float(i) for i in range(20)]
        lines = macd(closes, fast_period=3, slow_period=5, signal_period=2)

        assert math.isnan(lines.macd[3])
        assert not math.isnan(lines.macd[4])
        assert math.isnan(lines.signal[4])
        assert not math.isnan(lines.signal[5])

    def test_flat_series_has_zero_macd(self) -> None:
        lines = macd([10.0] * 50)

        assert lines.macd[-1] == pytest.approx(0.0)
        assert lines.histogram[-1] == pytest.approx(0.0)

    def test_histogram_is_difference(self) -> None:
        closes = [100 + math.sin(i / 4) * 5 for i in range(60)]
        lines = macd(closes)

        assert lines.histogram[-1] == pytest.approx(lines.macd[-1] - lines.signal[-1])


class TestCrosses:
    """Tests for crossover detection."""

    def test_crossover(self) -> None:
        assert crossover([1.0, 3.0], [2.0, 2.0], 1)
        assert not crossunder([1.0, 3.0], [2.0, 2.0], 1)

    def test_crossunder(self) -> None:
        assert crossunder([3.0, 1.0], [2.0, 2.0], 1)
        assert not crossover([3.0, 1.0], [2.0, 2.0], 1)

    def test_touch_is_not_a_cross(self) -> None:
        assert not crossover([2.0, 3.0], [2.0, 2.0], 1)
        assert not crossover([1.0, 2.0], [2.0, 2.0], 1)

    def test_first_index_never_crosses(self) -> None:
        assert not crossover([1.0, 3.0], [2.0, 2.0], 0)


class TestRangeHelpers:
    """Tests for highest/lowest and the Donchian midpoint."""

    def test_highest_and_lowest(self) -> None:
        values = [3.0, 1.0, 4.0, 1.0, 5.0]

        assert highest(values, 3, 4) == 5.0
        assert lowest(values, 3, 4) == 1.0

    def test_incomplete_window_is_none(self) -> None:
        assert highest([1.0, 2.0], 3, 1) is None
        assert lowest([1.0, 2.0], 3, 1) is None

    def test_donchian_mid(self) -> None:
        highs = [10.0, 12.0, 11.0]
        lows = [8.0, 9.0, 7.0]

        assert donchian_mid(highs, lows, 3, 2) == pytest.approx(9.5)
        assert donchian_mid(highs, lows, 4, 2) is None
