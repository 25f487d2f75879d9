"""
Data validation module for price/volume series quality checks.

Series handed to the analysis engine come straight from a caller-supplied
market data provider, so nothing about them can be trusted: they may be short,
misaligned, contain NaN/inf values, non-positive prices or negative volumes.
This module inspects a series pair and reports what it found. It never raises;
the engine decides how to degrade from the report.
"""

from dataclasses import dataclass, field
from typing import Sequence

import numpy as np
from scipy import stats

from marketlens.config.constants import MIN_HISTORY
from marketlens.utils import get_logger

logger = get_logger(__name__)


@dataclass
class SeriesQualityReport:
    """
    Report containing quality metrics for one price/volume series pair.

    Attributes:
        total_points: Number of closes supplied
        volume_points: Number of volumes supplied
        non_finite_prices: Count of NaN/inf closes
        non_positive_prices: Count of closes <= 0
        non_finite_volumes: Count of NaN/inf volumes
        negative_volumes: Count of volumes < 0
        outliers_detected: Count of bar returns beyond the z-score threshold
        quality_score: Overall quality score from 0-100 (100 = perfect)
        issues: List of human-readable issue descriptions
    """
    total_points: int
    volume_points: int
    non_finite_prices: int = 0
    non_positive_prices: int = 0
    non_finite_volumes: int = 0
    negative_volumes: int = 0
    outliers_detected: int = 0
    quality_score: float = 100.0
    issues: list[str] = field(default_factory=list)

    @property
    def is_aligned(self) -> bool:
        """Whether volumes line up index-for-index with closes."""
        return self.total_points == self.volume_points

    @property
    def has_sufficient_history(self) -> bool:
        return self.total_points >= MIN_HISTORY

    @property
    def prices_usable(self) -> bool:
        """Whether closes can feed the indicator library."""
        return (
            self.has_sufficient_history
            and self.non_finite_prices == 0
            and self.non_positive_prices == 0
        )

    @property
    def volumes_usable(self) -> bool:
        """Whether volumes can feed the volume-weighted calculations."""
        return (
            self.is_aligned
            and self.volume_points > 0
            and self.non_finite_volumes == 0
            and self.negative_volumes == 0
        )

    def __str__(self) -> str:
        """Generate a human-readable summary of the quality report."""
        return (
            f"Series Quality Report:\n"
            f"  Points: {self.total_points} (volumes: {self.volume_points})\n"
            f"  Quality Score: {self.quality_score:.2f}%\n"
            f"  Non-finite Prices: {self.non_finite_prices}\n"
            f"  Non-positive Prices: {self.non_positive_prices}\n"
            f"  Negative Volumes: {self.negative_volumes}\n"
            f"  Outliers: {self.outliers_detected}\n"
            f"  Status: {'USABLE' if self.prices_usable else 'DEGRADED'}\n"
            f"  Issues: {len(self.issues)}"
        )


class SeriesValidator:
    """
    Validator for close/volume series handed to the analysis engine.

    Checks performed:
    - History length against the minimum needed for full indicators
    - Price/volume alignment
    - Non-finite and non-positive closes
    - Non-finite and negative volumes
    - Statistical outliers in bar-to-bar returns (z-score)

    Attributes:
        outlier_zscore_threshold: Z-score above which a return counts as an outlier
    """

    def __init__(self, outlier_zscore_threshold: float = 4.0):
        self.outlier_zscore_threshold = outlier_zscore_threshold

    def validate(
        self, prices: Sequence[float], volumes: Sequence[float]
    ) -> SeriesQualityReport:
        """
        Inspect a close/volume series pair.

        Args:
            prices: Closing prices, oldest first
            volumes: Volumes aligned with prices

        Returns:
            SeriesQualityReport describing every problem found
        """
        closes = np.asarray(prices, dtype=float).ravel()
        vols = np.asarray(volumes, dtype=float).ravel()

        report = SeriesQualityReport(total_points=len(closes), volume_points=len(vols))
        issues = report.issues

        if not report.has_sufficient_history:
            issues.append(
                f"Only {report.total_points} closes supplied, {MIN_HISTORY} required"
            )
        if not report.is_aligned:
            issues.append(
                f"Volume length {report.volume_points} does not match price length "
                f"{report.total_points}"
            )

        finite = np.isfinite(closes)
        report.non_finite_prices = int((~finite).sum())
        report.non_positive_prices = int((closes[finite] <= 0).sum())
        if report.non_finite_prices:
            issues.append(f"Found {report.non_finite_prices} non-finite closes")
        if report.non_positive_prices:
            issues.append(f"Found {report.non_positive_prices} non-positive closes")

        finite_vols = np.isfinite(vols)
        report.non_finite_volumes = int((~finite_vols).sum())
        report.negative_volumes = int((vols[finite_vols] < 0).sum())
        if report.non_finite_volumes:
            issues.append(f"Found {report.non_finite_volumes} non-finite volumes")
        if report.negative_volumes:
            issues.append(f"Found {report.negative_volumes} negative volumes")

        report.outliers_detected = self._detect_outliers(closes)
        if report.outliers_detected:
            issues.append(f"Found {report.outliers_detected} return outliers")

        report.quality_score = self._score(report)

        if issues:
            logger.debug(
                "series_validation_issues",
                points=report.total_points,
                quality_score=report.quality_score,
                issues=issues,
            )

        return report

    def _detect_outliers(self, closes: np.ndarray) -> int:
        """
        Count bar returns whose z-score exceeds the threshold.

        Args:
            closes: Closing prices

        Returns:
            Number of outlier returns
        """
        usable = closes[np.isfinite(closes) & (closes > 0)]
        if len(usable) < 3:
            return 0

        returns = np.diff(usable) / usable[:-1]
        # Constant-rate series give a float-noise std; treat them as outlier free.
        if np.std(returns) <= 1e-12:
            return 0

        z_scores = np.abs(stats.zscore(returns))
        return int((z_scores > self.outlier_zscore_threshold).sum())

    @staticmethod
    def _score(report: SeriesQualityReport) -> float:
        total = max(report.total_points, 1)
        bad = report.non_finite_prices + report.non_positive_prices
        score = (1 - bad / total) * 100
        score -= (report.outliers_detected / total) * 10
        if not report.volumes_usable:
            score -= 10
        if not report.has_sufficient_history:
            score -= 20
        return float(max(0.0, min(100.0, score)))
