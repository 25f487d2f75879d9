"""Indicator library, pattern detection, composite scoring and scanners."""

from marketlens.analysis.analyzer import TechnicalAnalyzer, compute_indicators
from marketlens.analysis.indicators import (
    BollingerBands,
    Indicators,
    MACDValues,
    StochasticValues,
    VolumeProfile,
)
from marketlens.analysis.scanners import (
    MomentumCandidate,
    SectorRotation,
    SectorStrength,
    analyze_sector,
    calculate_momentum_score,
    identify_sector_rotation,
    rank,
    round_to_tick,
    top_sectors,
    weak_sectors,
)
from marketlens.analysis.scoring import (
    ScoreAccumulator,
    calculate_bearish_score,
    calculate_bullish_score,
    determine_trend,
)

__all__ = [
    "BollingerBands",
    "Indicators",
    "MACDValues",
    "MomentumCandidate",
    "ScoreAccumulator",
    "SectorRotation",
    "SectorStrength",
    "StochasticValues",
    "TechnicalAnalyzer",
    "VolumeProfile",
    "analyze_sector",
    "calculate_bearish_score",
    "calculate_bullish_score",
    "calculate_momentum_score",
    "compute_indicators",
    "determine_trend",
    "identify_sector_rotation",
    "rank",
    "round_to_tick",
    "top_sectors",
    "weak_sectors",
]
