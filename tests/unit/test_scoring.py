"""
Unit tests for the composite scorer.

Covers the shared ScoreAccumulator, trend determination and the weighted
bullish/bearish scores.
"""

import pytest
from hypothesis import given, strategies as st

from marketlens.analysis.indicators import (
    Indicators,
    MACDValues,
    StochasticValues,
    VolumeProfile,
)
from marketlens.analysis.scoring import (
    ScoreAccumulator,
    calculate_bearish_score,
    calculate_bullish_score,
    determine_trend,
)


@pytest.mark.unit
class TestScoreAccumulator:
    """Test suite for the shared point accumulator."""

    def test_ratio_defaults_to_neutral(self):
        assert ScoreAccumulator().ratio() == 50.0

    def test_weighted_ratio(self):
        acc = ScoreAccumulator()
        acc.weighted(20)
        acc.weighted(20, 0.5)
        assert acc.ratio() == pytest.approx(75.0)

    def test_additive_total_is_clamped(self):
        assert ScoreAccumulator(base=50).add(80).total() == 100.0
        assert ScoreAccumulator(base=50).add(-80).total() == 0.0
        assert ScoreAccumulator(base=50).add(15).add(-5).total() == pytest.approx(60.0)


@pytest.mark.unit
class TestDetermineTrend:
    """Test suite for trend label and strength."""

    def test_full_bullish_alignment(self):
        prices = [float(p) for p in range(1, 61)]
        trend, strength = determine_trend(prices, sma_20=50, sma_50=35, sma_200=20, macd_histogram=0.5)
        assert trend == "bullish"
        assert strength == pytest.approx(100.0)

    def test_full_bearish_alignment(self):
        prices = [float(p) for p in range(60, 0, -1)]
        trend, strength = determine_trend(prices, sma_20=10, sma_50=25, sma_200=40, macd_histogram=-0.5)
        assert trend == "bearish"
        assert strength == pytest.approx(100.0)

    def test_flat_series_is_neutral(self):
        trend, strength = determine_trend([100.0] * 60, 100.0, 100.0, 100.0, 0.0)
        assert trend == "neutral"
        assert strength == 0.0

    def test_momentum_without_stack_is_neutral(self):
        """Momentum (+2) alone stays neutral; adding MACD (+1) turns bullish."""
        prices = [float(p) for p in range(1, 61)]
        assert determine_trend(prices, 100, 100, 100, 0.0) == ("neutral", pytest.approx(100 * 2 / 6))
        assert determine_trend(prices, 100, 100, 100, 1.0) == ("bullish", pytest.approx(50.0))

    def test_short_history(self):
        assert determine_trend([1.0] * 49, 1, 1, 1, 1) == ("neutral", 0.0)


@pytest.mark.unit
class TestCompositeScores:
    """Test suite for bullish/bearish scoring."""

    def test_quiet_market(self):
        """RSI 50, mid stochastic and a channel give bullish 50 and default bearish 50."""
        indicators = Indicators(
            rsi=50.0,
            stochastic=StochasticValues(k=50.0, d=50.0),
            chart_pattern="channel",
            candle_pattern="doji",
        )
        assert calculate_bullish_score(indicators) == pytest.approx(50.0)
        assert calculate_bearish_score(indicators) == pytest.approx(50.0)

    def test_lone_weak_reading_dominates(self):
        """One opinionated factor carries the whole score."""
        indicators = Indicators(rsi=51.0)
        assert calculate_bearish_score(indicators) == pytest.approx(95.0)
        assert calculate_bullish_score(indicators) == pytest.approx(52.5)

    def test_strong_bullish_setup(self):
        indicators = Indicators(
            trend="bullish",
            trend_strength=100.0,
            rsi=25.0,
            macd=MACDValues(macd=1.0, signal=0.5, histogram=0.5, crossover="bullish"),
            stochastic=StochasticValues(k=10.0, d=10.0, oversold=True),
            volume_profile=VolumeProfile(volume_surge=True, accumulation_distribution=1.0),
            candle_pattern="bullish_engulfing",
        )
        assert calculate_bullish_score(indicators) == pytest.approx(100.0)
        # No factor takes a bearish reading
        assert calculate_bearish_score(indicators) == pytest.approx(50.0)

    def test_strong_bearish_setup(self):
        indicators = Indicators(
            trend="bearish",
            trend_strength=100.0,
            rsi=80.0,
            macd=MACDValues(macd=-1.0, signal=-0.5, histogram=-0.5, crossover="bearish"),
            stochastic=StochasticValues(k=90.0, d=90.0, overbought=True),
            volume_profile=VolumeProfile(volume_surge=True, accumulation_distribution=-1.0),
            candle_pattern="bearish_engulfing",
        )
        assert calculate_bearish_score(indicators) == pytest.approx(100.0)

    def test_partial_weights(self):
        """Half-weight readings score half of their weight."""
        indicators = Indicators(
            rsi=70.0,
            macd=MACDValues(histogram=0.1),
            volume_profile=VolumeProfile(accumulation_distribution=0.2),
        )
        # RSI >= 70 adds nothing; MACD 10/20, volume 7.5/15
        assert calculate_bullish_score(indicators) == pytest.approx(17.5 / 35 * 100)

    def test_doji_counts_only_in_bearish_trend(self):
        neutral = Indicators(rsi=40.0, candle_pattern="doji")
        bearish = Indicators(rsi=40.0, candle_pattern="doji", trend="bearish", trend_strength=100.0)
        assert calculate_bearish_score(neutral) == pytest.approx(50.0)
        # trend 25/25 + doji 7.5/15
        assert calculate_bearish_score(bearish) == pytest.approx(32.5 / 40 * 100)

    @given(
        rsi=st.floats(min_value=0, max_value=100),
        k=st.floats(min_value=0, max_value=100),
        strength=st.floats(min_value=0, max_value=100),
        histogram=st.floats(min_value=-5, max_value=5),
        accumulation=st.floats(min_value=-5, max_value=5),
        trend=st.sampled_from(["bullish", "bearish", "neutral"]),
        candle=st.sampled_from(["bullish_engulfing", "bearish_engulfing", "doji", "none"]),
        chart=st.sampled_from(["triangle", "channel", "none"]),
        surge=st.booleans(),
    )
    def test_scores_bounded(self, rsi, k, strength, histogram, accumulation, trend, candle, chart, surge):
        indicators = Indicators(
            rsi=rsi,
            stochastic=StochasticValues(k=k, d=k, oversold=k < 20, overbought=k > 80),
            trend=trend,
            trend_strength=strength,
            macd=MACDValues(histogram=histogram),
            volume_profile=VolumeProfile(volume_surge=surge, accumulation_distribution=accumulation),
            candle_pattern=candle,
            chart_pattern=chart,
        )
        assert 0.0 <= calculate_bullish_score(indicators) <= 100.0
        assert 0.0 <= calculate_bearish_score(indicators) <= 100.0
