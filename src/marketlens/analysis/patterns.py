"""Pattern detection on closing prices.

Two coarse classifiers: a candlestick label from the last three closes and a
chart-pattern label from the last fifty closes split into five-bar segments.
Both return "none" when there is not enough history.
"""

from typing import Sequence

import numpy as np

from marketlens.analysis.indicators import CandlePattern, ChartPattern

CANDLE_LOOKBACK = 3
ENGULFING_STEP = 0.01
DOJI_TOLERANCE = 0.001

CHART_LOOKBACK = 50
SEGMENT_SIZE = 5


def detect_candle_pattern(prices: Sequence[float]) -> CandlePattern:
    """Classify the last three closes.

    Returns:
        "bullish_engulfing" for two rising steps with the last one above 1%,
        "bearish_engulfing" for the mirror, "doji" when the last two closes
        differ by less than 0.1%, otherwise "none"
    """
    closes = np.asarray(prices, dtype=float).ravel()
    if len(closes) < CANDLE_LOOKBACK:
        return "none"

    first, middle, last = closes[-CANDLE_LOOKBACK:]

    if first < middle < last and last > middle * (1 + ENGULFING_STEP):
        return "bullish_engulfing"
    if first > middle > last and last < middle * (1 - ENGULFING_STEP):
        return "bearish_engulfing"
    if abs(last - middle) < abs(middle) * DOJI_TOLERANCE:
        return "doji"
    return "none"


def detect_chart_pattern(prices: Sequence[float]) -> ChartPattern:
    """Classify the shape of the last fifty closes.

    The window is split into ten segments; the first and last segment's
    high/low are compared. Falling highs with rising lows is a triangle,
    neither falling highs nor rising lows is a channel.
    """
    closes = np.asarray(prices, dtype=float).ravel()
    if len(closes) < CHART_LOOKBACK:
        return "none"

    segments = closes[-CHART_LOOKBACK:].reshape(-1, SEGMENT_SIZE)
    highs = segments.max(axis=1)
    lows = segments.min(axis=1)

    highs_descending = highs[0] > highs[-1]
    lows_ascending = lows[0] < lows[-1]

    if highs_descending and lows_ascending:
        return "triangle"
    if not highs_descending and not lows_ascending:
        return "channel"
    return "none"
