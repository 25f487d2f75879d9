"""Composite directional scoring.

Combines indicator readings into a trend label/strength and into 0-100
bullish and bearish scores. The point-accumulation pattern is shared with
the single-snapshot scanners through ``ScoreAccumulator``, which supports two
modes:

- weighted: factors add points and the weight they were scored against; the
  score is points / weight * 100 (neutral when nothing was weighted)
- additive: a base value plus/minus fixed points, clamped to [0, 100]
"""

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from marketlens.analysis.indicators import Indicators, TrendLabel
from marketlens.config.constants import (
    NEUTRAL_SCORE,
    RSI_OVERBOUGHT,
    RSI_OVERSOLD,
    STOCHASTIC_OVERBOUGHT,
    STOCHASTIC_OVERSOLD,
    WEIGHT_MACD,
    WEIGHT_PATTERN,
    WEIGHT_RSI,
    WEIGHT_STOCHASTIC,
    WEIGHT_TREND,
    WEIGHT_VOLUME,
)

TREND_MIN_HISTORY = 50
TREND_MAX_POINTS = 6.0


def clamp_score(value: float, low: float = 0.0, high: float = 100.0) -> float:
    """Clamp a score into [low, high]."""
    return float(max(low, min(high, value)))


@dataclass
class ScoreAccumulator:
    """Accumulates factor points toward a 0-100 score.

    Attributes:
        base: Starting value for additive scores
        points: Points accumulated so far
        weight: Weight accumulated by factors that expressed an opinion
    """

    base: float = 0.0
    points: float = 0.0
    weight: float = 0.0

    def add(self, points: float, weight: float = 0.0) -> "ScoreAccumulator":
        self.points += points
        self.weight += weight
        return self

    def weighted(self, weight: float, fraction: float = 1.0) -> "ScoreAccumulator":
        """Score a factor at ``fraction`` of its weight."""
        return self.add(weight * fraction, weight)

    def ratio(self, default: float = NEUTRAL_SCORE) -> float:
        """Weighted score: points as a percentage of accumulated weight."""
        if self.weight == 0:
            return default
        return clamp_score(self.points / self.weight * 100)

    def total(self) -> float:
        """Additive score: base plus points, clamped to [0, 100]."""
        return clamp_score(self.base + self.points)


def determine_trend(
    prices: Sequence[float],
    sma_20: float,
    sma_50: float,
    sma_200: float,
    macd_histogram: float,
) -> tuple[TrendLabel, float]:
    """Determine trend direction and strength.

    Three checks add signed points: moving-average stacking (+/-3), the last
    20 bars' mean against the prior 20 (+/-2) and the MACD histogram sign
    (+/-1). Ties in a check contribute nothing.

    Args:
        prices: Closing prices, oldest first
        sma_20: 20-period SMA
        sma_50: 50-period SMA
        sma_200: 200-period SMA
        macd_histogram: Latest MACD histogram value

    Returns:
        Tuple of (trend label, strength 0-100)
    """
    closes = np.asarray(prices, dtype=float).ravel()
    if len(closes) < TREND_MIN_HISTORY:
        return "neutral", 0.0

    current = closes[-1]
    points = 0.0

    if current > sma_20 > sma_50 > sma_200:
        points += 3
    elif current < sma_20 < sma_50 < sma_200:
        points -= 3

    recent = closes[-20:].mean()
    older = closes[-40:-20].mean()
    if recent > older:
        points += 2
    elif recent < older:
        points -= 2

    if macd_histogram > 0:
        points += 1
    elif macd_histogram < 0:
        points -= 1

    trend: TrendLabel = "neutral"
    if points > 2:
        trend = "bullish"
    elif points < -2:
        trend = "bearish"

    return trend, abs(points) / TREND_MAX_POINTS * 100


def calculate_bullish_score(indicators: Indicators) -> float:
    """Score bullish evidence from 0 to 100.

    Only factors that take a bullish reading add their weight; with no such
    factor the score is neutral (50).
    As with the bearish score, one weak reading can dominate.
    """
    acc = ScoreAccumulator()

    if indicators.trend == "bullish":
        acc.weighted(WEIGHT_TREND, indicators.trend_strength / 100)

    rsi = indicators.rsi
    if rsi <= RSI_OVERSOLD:
        acc.weighted(WEIGHT_RSI)
    elif rsi < RSI_OVERBOUGHT:
        acc.weighted(WEIGHT_RSI, (rsi - RSI_OVERSOLD) / (RSI_OVERBOUGHT - RSI_OVERSOLD))

    if indicators.macd.crossover == "bullish":
        acc.weighted(WEIGHT_MACD)
    elif indicators.macd.histogram > 0:
        acc.weighted(WEIGHT_MACD, 0.5)

    stochastic = indicators.stochastic
    if stochastic.oversold:
        acc.weighted(WEIGHT_STOCHASTIC)
    elif STOCHASTIC_OVERSOLD < stochastic.k < STOCHASTIC_OVERBOUGHT:
        acc.weighted(WEIGHT_STOCHASTIC, 0.5)

    profile = indicators.volume_profile
    if profile.volume_surge and profile.accumulation_distribution > 0:
        acc.weighted(WEIGHT_VOLUME)
    elif profile.accumulation_distribution > 0:
        acc.weighted(WEIGHT_VOLUME, 0.5)

    if indicators.candle_pattern == "bullish_engulfing":
        acc.weighted(WEIGHT_PATTERN)
    elif indicators.chart_pattern in ("triangle", "channel"):
        acc.weighted(WEIGHT_PATTERN, 0.5)

    return acc.ratio()


def calculate_bearish_score(indicators: Indicators) -> float:
    """Score bearish evidence from 0 to 100.

    The score is the share of the weight of opinionated factors, not of all
    factors. A single weak reading can therefore score high on its own:
    ``Indicators(rsi=51.0)`` scores about 95 because RSI is the only factor
    with a bearish reading. Read the score together with the bullish score
    and the signal confidence rather than as standalone strength.
    """
    acc = ScoreAccumulator()

    if indicators.trend == "bearish":
        acc.weighted(WEIGHT_TREND, indicators.trend_strength / 100)

    rsi = indicators.rsi
    if rsi > RSI_OVERBOUGHT:
        acc.weighted(WEIGHT_RSI)
    elif NEUTRAL_SCORE < rsi <= RSI_OVERBOUGHT:
        acc.weighted(WEIGHT_RSI, (RSI_OVERBOUGHT - rsi) / (RSI_OVERBOUGHT - NEUTRAL_SCORE))

    if indicators.macd.crossover == "bearish":
        acc.weighted(WEIGHT_MACD)
    elif indicators.macd.histogram < 0:
        acc.weighted(WEIGHT_MACD, 0.5)

    stochastic = indicators.stochastic
    if stochastic.overbought:
        acc.weighted(WEIGHT_STOCHASTIC)
    elif stochastic.k > NEUTRAL_SCORE:
        acc.weighted(WEIGHT_STOCHASTIC, 0.5)

    profile = indicators.volume_profile
    if profile.volume_surge and profile.accumulation_distribution < 0:
        acc.weighted(WEIGHT_VOLUME)
    elif profile.accumulation_distribution < 0:
        acc.weighted(WEIGHT_VOLUME, 0.5)

    if indicators.candle_pattern == "bearish_engulfing":
        acc.weighted(WEIGHT_PATTERN)
    elif indicators.candle_pattern == "doji" and indicators.trend == "bearish":
        acc.weighted(WEIGHT_PATTERN, 0.5)

    return acc.ratio()
