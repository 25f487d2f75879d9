"""Technical Analysis Indicators Module.

This module provides the primitive indicators used by the marketlens analysis
pipeline. Every function is pure: it takes a sequence of closing prices (and,
where relevant, an aligned sequence of volumes) and returns plain numbers or
frozen value objects. Calculations are vectorized with numpy/pandas where the
formula allows it.

Only closing prices are available to this library, so range-based indicators
(ATR, stochastic) work from closes. ATR synthesizes each bar's low as
``SYNTHETIC_LOW_RATIO`` of the close.

Indicators:
    - SMA / EMA (Simple and Exponential Moving Averages)
    - RSI (Relative Strength Index) and a simple bullish divergence flag
    - MACD (Moving Average Convergence Divergence)
    - Stochastic Oscillator
    - Bollinger Bands
    - ATR (Average True Range)
    - VWAP (Volume Weighted Average Price)
    - Support / Resistance levels
    - Volume Profile
"""

from dataclasses import asdict, dataclass
from typing import Literal, Sequence

import numpy as np
import pandas as pd

from marketlens.config.constants import (
    MACD_CROSSOVER_THRESHOLD,
    MAX_LEVELS,
    STOCHASTIC_OVERBOUGHT,
    STOCHASTIC_OVERSOLD,
    SUPPORT_RESISTANCE_MARGIN,
    SUPPORT_RESISTANCE_WINDOW,
    SYNTHETIC_LOW_RATIO,
    VALUE_AREA_PCT,
    VOLUME_BUCKET_SIZE,
    VOLUME_SURGE_RATIO,
)

TrendLabel = Literal["bullish", "bearish", "neutral"]
CrossoverLabel = Literal["bullish", "bearish", "none"]
CandlePattern = Literal["bullish_engulfing", "bearish_engulfing", "doji", "none"]
ChartPattern = Literal["triangle", "channel", "none"]


@dataclass(frozen=True)
class MACDValues:
    """MACD line, signal line, histogram and crossover label."""

    macd: float = 0.0
    signal: float = 0.0
    histogram: float = 0.0
    crossover: CrossoverLabel = "none"


@dataclass(frozen=True)
class StochasticValues:
    """Stochastic oscillator reading.

    Attributes:
        k: %K, position of the close within the 14-bar range (0-100)
        d: %D, 3-period average of %K
        oversold: %K below 20
        overbought: %K above 80
    """

    k: float = 0.0
    d: float = 0.0
    oversold: bool = False
    overbought: bool = False


@dataclass(frozen=True)
class BollingerBands:
    """Bollinger bands; width is the band spread as a percentage of the middle."""

    upper: float = 0.0
    middle: float = 0.0
    lower: float = 0.0
    width: float = 0.0


@dataclass(frozen=True)
class VolumeProfile:
    """Volume profile summary.

    Attributes:
        point_of_control: Price bucket with the highest traded volume
        value_area_high: Upper edge of the value area
        value_area_low: Lower edge of the value area
        volume_surge: Recent 10-bar volume exceeds the prior 10 bars by 20%
        accumulation_distribution: Last-bar return weighted by its share of volume
    """

    point_of_control: float = 0.0
    value_area_high: float = 0.0
    value_area_low: float = 0.0
    volume_surge: bool = False
    accumulation_distribution: float = 0.0


@dataclass(frozen=True)
class Indicators:
    """Immutable snapshot of every indicator computed for one request.

    A snapshot equal to ``Indicators.empty()`` means there was not enough
    usable history; callers must check ``is_empty`` before trusting any
    field.
    """

    sma_20: float = 0.0
    sma_50: float = 0.0
    sma_200: float = 0.0
    ema_12: float = 0.0
    ema_26: float = 0.0
    vwap: float = 0.0
    rsi: float = 0.0
    rsi_divergence: bool = False
    macd: MACDValues = MACDValues()
    stochastic: StochasticValues = StochasticValues()
    bollinger: BollingerBands = BollingerBands()
    atr: float = 0.0
    support: tuple[float, ...] = ()
    resistance: tuple[float, ...] = ()
    trend: TrendLabel = "neutral"
    trend_strength: float = 0.0
    candle_pattern: CandlePattern = "none"
    chart_pattern: ChartPattern = "none"
    volume_profile: VolumeProfile = VolumeProfile()
    bullish_score: float = 0.0
    bearish_score: float = 0.0

    @classmethod
    def empty(cls) -> "Indicators":
        """Neutral snapshot returned when history is insufficient."""
        return cls()

    @property
    def is_empty(self) -> bool:
        return self == Indicators.empty()

    def to_dict(self) -> dict:
        """Convert to a plain dictionary for serialization."""
        data = asdict(self)
        data["support"] = list(self.support)
        data["resistance"] = list(self.resistance)
        return data


def _as_array(values: Sequence[float]) -> np.ndarray:
    return np.asarray(values, dtype=float).ravel()


# ==================== Moving Averages ====================


def calculate_sma(prices: Sequence[float], period: int) -> float:
    """Calculate the simple moving average of the last ``period`` closes.

    Args:
        prices: Closing prices, oldest first
        period: Window length

    Returns:
        Mean of the last ``period`` closes, or 0.0 with fewer points
    """
    closes = _as_array(prices)
    if period <= 0 or len(closes) < period:
        return 0.0
    return float(closes[-period:].mean())


def ema_series(prices: Sequence[float], period: int) -> np.ndarray:
    """Calculate the running EMA over a series.

    The first value is the SMA of the first ``period`` points; each later
    point applies the multiplier 2/(period+1). Element ``j`` of the result
    corresponds to input index ``j + period - 1``.

    Args:
        prices: Input values, oldest first
        period: EMA period

    Returns:
        Array of EMA values (empty if fewer than ``period`` points)
    """
    values = _as_array(prices)
    if period <= 0 or len(values) < period:
        return np.array([], dtype=float)

    multiplier = 2.0 / (period + 1)
    result = np.empty(len(values) - period + 1, dtype=float)
    result[0] = values[:period].mean()
    for j, value in enumerate(values[period:], start=1):
        result[j] = (value - result[j - 1]) * multiplier + result[j - 1]
    return result


def calculate_ema(prices: Sequence[float], period: int) -> float:
    """Calculate the latest exponential moving average value.

    Args:
        prices: Closing prices, oldest first
        period: EMA period

    Returns:
        Latest EMA value, or 0.0 with fewer than ``period`` points
    """
    series = ema_series(prices, period)
    return float(series[-1]) if len(series) else 0.0


# ==================== Oscillators ====================


def calculate_rsi(prices: Sequence[float], period: int = 14) -> float:
    """Calculate the Relative Strength Index over the last ``period`` deltas.

    Gains and losses are simple averages of the last ``period`` price
    changes (no Wilder smoothing).

    Args:
        prices: Closing prices, oldest first
        period: Lookback period (default: 14)

    Returns:
        RSI in [0, 100]; 50 with too little history or a perfectly flat
        window, 100 when there were no losses
    """
    closes = _as_array(prices)
    if len(closes) < period + 1:
        return 50.0

    deltas = np.diff(closes[-(period + 1):])
    avg_gain = deltas[deltas > 0].sum() / period
    avg_loss = -deltas[deltas < 0].sum() / period

    if avg_loss == 0:
        return 50.0 if avg_gain == 0 else 100.0

    rs = avg_gain / avg_loss
    return float(100 - (100 / (1 + rs)))


def detect_rsi_divergence(prices: Sequence[float], rsi: float, lookback: int = 20) -> bool:
    """Flag a potential bullish divergence.

    True when the lowest close of the last ``lookback`` bars falls in the
    latter half of that window while RSI is below 40.
    """
    closes = _as_array(prices)
    if len(closes) < lookback:
        return False

    window = closes[-lookback:]
    low_index = int(np.argmin(window))
    return low_index > lookback // 2 and rsi < 40


def calculate_macd(
    prices: Sequence[float], fast: int = 12, slow: int = 26, signal: int = 9
) -> MACDValues:
    """Calculate MACD from the full rolling MACD-line history.

    The MACD line is EMA(fast) - EMA(slow) at every bar where both exist;
    the signal line is an EMA(signal) of that line. A crossover is reported
    when the histogram has the right sign and exceeds 1% of the signal value.

    Args:
        prices: Closing prices, oldest first
        fast: Fast EMA period (default: 12)
        slow: Slow EMA period (default: 26)
        signal: Signal line period (default: 9)

    Returns:
        MACDValues; all zero with fewer than ``slow`` points
    """
    closes = _as_array(prices)
    if len(closes) < slow:
        return MACDValues()

    fast_ema = ema_series(closes, fast)
    slow_ema = ema_series(closes, slow)
    macd_line = fast_ema[slow - fast:] - slow_ema

    signal_line = ema_series(macd_line, signal)
    macd_value = float(macd_line[-1])
    signal_value = float(signal_line[-1]) if len(signal_line) else 0.0
    histogram = macd_value - signal_value

    crossover: CrossoverLabel = "none"
    if histogram > 0 and histogram > signal_value * MACD_CROSSOVER_THRESHOLD:
        crossover = "bullish"
    elif histogram < 0 and histogram < -signal_value * MACD_CROSSOVER_THRESHOLD:
        crossover = "bearish"

    return MACDValues(
        macd=macd_value,
        signal=signal_value,
        histogram=histogram,
        crossover=crossover,
    )


def calculate_stochastic(
    prices: Sequence[float], period: int = 14, d_period: int = 3
) -> StochasticValues:
    """Calculate the stochastic oscillator from closes.

    %K compares the close with the lowest/highest close of the last
    ``period`` bars; a flat window reads 50. %D is the mean of the last
    ``d_period`` %K values (or %K itself when fewer are available).

    Args:
        prices: Closing prices, oldest first
        period: %K lookback (default: 14)
        d_period: %D smoothing (default: 3)

    Returns:
        StochasticValues; all zero with fewer than ``period`` points
    """
    closes = pd.Series(_as_array(prices))
    if len(closes) < period:
        return StochasticValues()

    lowest = closes.rolling(window=period).min()
    highest = closes.rolling(window=period).max()
    span = highest - lowest

    k_series = (100 * (closes - lowest) / span.where(span > 0)).fillna(50.0)
    k_series = k_series.iloc[period - 1:]

    k = float(k_series.iloc[-1])
    d = float(k_series.iloc[-d_period:].mean()) if len(k_series) >= d_period else k

    return StochasticValues(
        k=k,
        d=d,
        oversold=k < STOCHASTIC_OVERSOLD,
        overbought=k > STOCHASTIC_OVERBOUGHT,
    )


# ==================== Volatility ====================


def calculate_bollinger_bands(
    prices: Sequence[float], period: int = 20, std_dev: float = 2.0
) -> BollingerBands:
    """Calculate Bollinger Bands using the population standard deviation.

    Args:
        prices: Closing prices, oldest first
        period: Moving average period (default: 20)
        std_dev: Standard deviation multiplier (default: 2.0)

    Returns:
        BollingerBands; all zero with fewer than ``period`` points
    """
    closes = _as_array(prices)
    if len(closes) < period:
        return BollingerBands()

    window = closes[-period:]
    middle = float(window.mean())
    band = float(window.std(ddof=0)) * std_dev
    width = (band * 2) / middle * 100 if middle != 0 else 0.0

    return BollingerBands(
        upper=middle + band,
        middle=middle,
        lower=middle - band,
        width=width,
    )


def calculate_atr(prices: Sequence[float], period: int = 14) -> float:
    """Calculate Average True Range from closes.

    Each bar's high is its close and its low is ``SYNTHETIC_LOW_RATIO`` of the
    close; the previous close completes the true-range triple.

    Args:
        prices: Closing prices, oldest first
        period: Number of true-range values averaged (default: 14)

    Returns:
        ATR, or 0.0 with fewer than ``period + 1`` points
    """
    closes = _as_array(prices)
    if len(closes) < period + 1:
        return 0.0

    high = closes[-period:]
    low = high * SYNTHETIC_LOW_RATIO
    prev_close = closes[-(period + 1):-1]

    true_range = np.maximum(
        high - low,
        np.maximum(np.abs(high - prev_close), np.abs(low - prev_close)),
    )
    return float(true_range.mean())


# ==================== Volume ====================


def volumes_valid(prices: Sequence[float], volumes: Sequence[float]) -> bool:
    """Whether volumes are aligned with prices and usable for weighting."""
    vols = _as_array(volumes)
    if len(vols) == 0 or len(vols) != len(_as_array(prices)):
        return False
    return bool(np.all(np.isfinite(vols)) and np.all(vols >= 0))


def calculate_vwap(prices: Sequence[float], volumes: Sequence[float]) -> float:
    """Calculate VWAP over the full supplied series.

    Returns:
        VWAP, or 0.0 when volumes are misaligned/invalid or sum to zero
    """
    if not volumes_valid(prices, volumes):
        return 0.0

    closes = _as_array(prices)
    vols = _as_array(volumes)
    total_volume = vols.sum()
    if total_volume == 0:
        return 0.0
    return float((closes * vols).sum() / total_volume)


def calculate_volume_profile(
    prices: Sequence[float], volumes: Sequence[float]
) -> VolumeProfile:
    """Build a volume profile summary.

    Prices are bucketed to the nearest ``VOLUME_BUCKET_SIZE``; the point of
    control is the bucket with the most volume (lowest price wins ties). The
    value area is a fixed band of ``VALUE_AREA_PCT`` around it.

    Args:
        prices: Closing prices, oldest first
        volumes: Volumes aligned with prices

    Returns:
        VolumeProfile; all zero when volumes are misaligned or invalid
    """
    if not volumes_valid(prices, volumes):
        return VolumeProfile()

    closes = _as_array(prices)
    vols = _as_array(volumes)

    buckets = np.round(closes / VOLUME_BUCKET_SIZE) * VOLUME_BUCKET_SIZE
    by_bucket = pd.Series(vols).groupby(buckets).sum()
    point_of_control = float(by_bucket.idxmax()) if by_bucket.max() > 0 else 0.0

    volume_surge = False
    if len(vols) >= 20:
        recent = vols[-10:].mean()
        prior = vols[-20:-10].mean()
        volume_surge = bool(recent > prior * VOLUME_SURGE_RATIO)

    accumulation = 0.0
    total_volume = vols.sum()
    if len(closes) > 1 and closes[-2] != 0 and total_volume > 0:
        money_flow = (closes[-1] - closes[-2]) / closes[-2] * vols[-1]
        accumulation = float(money_flow / total_volume * 100)

    return VolumeProfile(
        point_of_control=point_of_control,
        value_area_high=point_of_control * (1 + VALUE_AREA_PCT),
        value_area_low=point_of_control * (1 - VALUE_AREA_PCT),
        volume_surge=volume_surge,
        accumulation_distribution=accumulation,
    )


# ==================== Levels ====================


def find_support_resistance(
    prices: Sequence[float],
) -> tuple[tuple[float, ...], tuple[float, ...]]:
    """Find up to three support and three resistance levels.

    Interior bars (excluding the first/last ``SUPPORT_RESISTANCE_MARGIN``)
    are scanned oldest first. A bar is support when no neighbour within
    ``SUPPORT_RESISTANCE_WINDOW`` positions is lower, resistance when none is
    higher. The first three of each are kept and returned ascending.

    Returns:
        (support, resistance) tuples, ascending
    """
    closes = _as_array(prices)
    margin = SUPPORT_RESISTANCE_MARGIN
    window = SUPPORT_RESISTANCE_WINDOW
    if len(closes) < 2 * margin:
        return (), ()

    support: list[float] = []
    resistance: list[float] = []

    for i in range(margin, len(closes) - margin):
        neighbourhood = closes[i - window:i + window + 1]
        price = closes[i]
        if len(support) < MAX_LEVELS and not (neighbourhood < price).any():
            support.append(float(price))
        if len(resistance) < MAX_LEVELS and not (neighbourhood > price).any():
            resistance.append(float(price))
        if len(support) == MAX_LEVELS and len(resistance) == MAX_LEVELS:
            break

    return tuple(sorted(support)), tuple(sorted(resistance))
