"""
Analysis Constants for marketlens.

This module defines the fixed parameters of the indicator library, the
composite scorer and the signal generator. Tunable risk and scanner
parameters live in ``marketlens.config.settings`` instead.

All constants are immutable (Final) to prevent accidental modification during runtime.
"""

from typing import Final


# =============================================================================
# History Requirements
# =============================================================================

MIN_HISTORY: Final[int] = 200
"""
Minimum number of closes required for full indicator computation.
Shorter series produce the neutral Indicators snapshot.
"""

SUPPORT_RESISTANCE_MARGIN: Final[int] = 10
"""
Number of bars excluded at each end of the series when scanning for levels.
"""

SUPPORT_RESISTANCE_WINDOW: Final[int] = 5
"""
Neighbours checked on each side of a candidate support/resistance bar.
"""

MAX_LEVELS: Final[int] = 3
"""
Maximum number of support and of resistance levels reported.
"""


# =============================================================================
# Indicator Parameters
# =============================================================================

SYNTHETIC_LOW_RATIO: Final[float] = 0.98
"""
Approximate bar low as this fraction of the close for ATR.
Only closes are available, so the true high/low/close triple is synthesized.
"""

VOLUME_BUCKET_SIZE: Final[float] = 0.5
"""
Price bucket width used to build the volume profile.
"""

VALUE_AREA_PCT: Final[float] = 0.01
"""
Value area half-width around the point of control (1%).
"""

VOLUME_SURGE_RATIO: Final[float] = 1.2
"""
Recent 10-bar mean volume must exceed the prior 10-bar mean by this factor.
"""

MACD_CROSSOVER_THRESHOLD: Final[float] = 0.01
"""
Histogram must exceed this fraction of the signal line to label a crossover.
"""

STOCHASTIC_OVERSOLD: Final[float] = 20.0
STOCHASTIC_OVERBOUGHT: Final[float] = 80.0

RSI_OVERSOLD: Final[float] = 30.0
RSI_OVERBOUGHT: Final[float] = 70.0


# =============================================================================
# Composite Score Weights
# =============================================================================

WEIGHT_TREND: Final[float] = 25.0
WEIGHT_RSI: Final[float] = 15.0
WEIGHT_MACD: Final[float] = 20.0
WEIGHT_STOCHASTIC: Final[float] = 10.0
WEIGHT_VOLUME: Final[float] = 15.0
WEIGHT_PATTERN: Final[float] = 15.0

NEUTRAL_SCORE: Final[float] = 50.0
"""
Score reported when no factor expressed an opinion.
"""


# =============================================================================
# Signal Generation
# =============================================================================

BASE_CONFIDENCE: Final[float] = 50.0
BASE_PRIORITY: Final[int] = 5
MIN_PRIORITY: Final[int] = 1
MAX_PRIORITY: Final[int] = 10

HIGH_VOLATILITY_WIDTH: Final[float] = 5.0
"""
Bollinger width (percent of price) above which a volatility warning is raised.
"""

MIN_RISK_REWARD: Final[float] = 2.0
"""
Risk-reward ratio below which a warning is raised.
"""

HOLDING_PERIODS: Final[dict[str, str]] = {
    "intraday": "1-2 days",
    "swing": "3-10 days",
    "positional": "2-4 weeks",
}
