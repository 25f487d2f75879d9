"""Indicator snapshot assembly.

``TechnicalAnalyzer`` runs the indicator library, the pattern detector and
the composite scorer over one price/volume history and returns a single
immutable ``Indicators`` snapshot.
"""

from dataclasses import replace
from typing import Sequence

from marketlens.analysis.indicators import (
    Indicators,
    VolumeProfile,
    calculate_atr,
    calculate_bollinger_bands,
    calculate_ema,
    calculate_macd,
    calculate_rsi,
    calculate_sma,
    calculate_stochastic,
    calculate_volume_profile,
    calculate_vwap,
    detect_rsi_divergence,
    find_support_resistance,
)
from marketlens.analysis.patterns import detect_candle_pattern, detect_chart_pattern
from marketlens.analysis.scoring import (
    calculate_bearish_score,
    calculate_bullish_score,
    determine_trend,
)
from marketlens.data.validation import SeriesQualityReport, SeriesValidator
from marketlens.utils import get_logger

logger = get_logger(__name__)


class TechnicalAnalyzer:
    """Computes the full Indicators snapshot for a price/volume history.

    Histories that are too short, or contain non-finite/non-positive closes,
    produce ``Indicators.empty()``. Misaligned or invalid volumes only zero
    the volume-derived fields.
    """

    def __init__(self, validator: SeriesValidator | None = None):
        self.validator = validator or SeriesValidator()

    def analyze(
        self, prices: Sequence[float], volumes: Sequence[float]
    ) -> Indicators:
        """Compute indicators, patterns, trend and composite scores.

        Args:
            prices: Closing prices, oldest first
            volumes: Volumes aligned with prices

        Returns:
            Immutable Indicators snapshot
        """
        report = self.validator.validate(prices, volumes)
        return self.analyze_validated(prices, volumes, report)

    def analyze_validated(
        self,
        prices: Sequence[float],
        volumes: Sequence[float],
        report: SeriesQualityReport,
    ) -> Indicators:
        """Compute the snapshot for a series pair that was already validated."""
        if not report.prices_usable:
            logger.info(
                "indicators_degraded",
                points=report.total_points,
                issues=report.issues,
            )
            return Indicators.empty()

        sma_20 = calculate_sma(prices, 20)
        sma_50 = calculate_sma(prices, 50)
        sma_200 = calculate_sma(prices, 200)
        rsi = calculate_rsi(prices, 14)
        macd = calculate_macd(prices)
        support, resistance = find_support_resistance(prices)
        trend, trend_strength = determine_trend(
            prices, sma_20, sma_50, sma_200, macd.histogram
        )

        if report.volumes_usable:
            vwap = calculate_vwap(prices, volumes)
            volume_profile = calculate_volume_profile(prices, volumes)
        else:
            logger.debug("volume_fields_zeroed", volume_points=report.volume_points)
            vwap = 0.0
            volume_profile = VolumeProfile()

        snapshot = Indicators(
            sma_20=sma_20,
            sma_50=sma_50,
            sma_200=sma_200,
            ema_12=calculate_ema(prices, 12),
            ema_26=calculate_ema(prices, 26),
            vwap=vwap,
            rsi=rsi,
            rsi_divergence=detect_rsi_divergence(prices, rsi),
            macd=macd,
            stochastic=calculate_stochastic(prices, 14, 3),
            bollinger=calculate_bollinger_bands(prices, 20, 2.0),
            atr=calculate_atr(prices, 14),
            support=support,
            resistance=resistance,
            trend=trend,
            trend_strength=trend_strength,
            candle_pattern=detect_candle_pattern(prices),
            chart_pattern=detect_chart_pattern(prices),
            volume_profile=volume_profile,
        )

        snapshot = replace(
            snapshot,
            bullish_score=calculate_bullish_score(snapshot),
            bearish_score=calculate_bearish_score(snapshot),
        )

        logger.debug(
            "indicators_computed",
            points=report.total_points,
            rsi=snapshot.rsi,
            trend=snapshot.trend,
            trend_strength=snapshot.trend_strength,
            bullish_score=snapshot.bullish_score,
            bearish_score=snapshot.bearish_score,
        )
        return snapshot


def compute_indicators(
    prices: Sequence[float], volumes: Sequence[float]
) -> Indicators:
    """Convenience wrapper around ``TechnicalAnalyzer().analyze``."""
    return TechnicalAnalyzer().analyze(prices, volumes)
