"""Unit tests for series quality validation."""

import math

import numpy as np
import pytest

from marketlens.data.validation import SeriesQualityReport, SeriesValidator


@pytest.fixture
def validator():
    return SeriesValidator()


@pytest.mark.unit
class TestSeriesValidator:
    """Test suite for SeriesValidator."""

    def test_clean_series(self, validator, flat_series):
        report = validator.validate(*flat_series)

        assert report.issues == []
        assert report.quality_score == 100.0
        assert report.prices_usable
        assert report.volumes_usable

    def test_short_history(self, validator):
        report = validator.validate([100.0] * 100, [1.0] * 100)

        assert not report.has_sufficient_history
        assert not report.prices_usable
        assert report.volumes_usable
        assert report.quality_score == pytest.approx(80.0)
        assert "200 required" in report.issues[0]

    def test_non_finite_price(self, validator):
        prices = [100.0] * 250
        prices[10] = math.nan
        report = validator.validate(prices, [1.0] * 250)

        assert report.non_finite_prices == 1
        assert not report.prices_usable
        assert report.quality_score == pytest.approx(99.6)

    def test_non_positive_price(self, validator):
        prices = [100.0] * 250
        prices[-1] = 0.0
        report = validator.validate(prices, [1.0] * 250)

        assert report.non_positive_prices == 1
        assert not report.prices_usable

    def test_negative_volume(self, validator):
        volumes = [1.0] * 250
        volumes[5] = -1.0
        report = validator.validate([100.0] * 250, volumes)

        assert report.negative_volumes == 1
        assert report.prices_usable
        assert not report.volumes_usable
        assert report.quality_score == pytest.approx(90.0)

    def test_misaligned_volumes(self, validator):
        report = validator.validate([100.0] * 250, [1.0] * 249)

        assert not report.is_aligned
        assert not report.volumes_usable
        assert any("does not match" in issue for issue in report.issues)

    def test_zero_volume_is_usable(self, validator):
        report = validator.validate([100.0] * 250, [0.0] * 250)
        assert report.volumes_usable

    def test_return_outliers(self, validator):
        rng = np.random.default_rng(1)
        prices = 100.0 * np.cumprod(1 + rng.normal(0, 0.001, 250))
        prices[150] *= 1.5
        report = validator.validate(prices, np.ones(250))

        # The spike and the fall back both stand out
        assert report.outliers_detected == 2
        assert report.quality_score == pytest.approx(100 - 2 / 250 * 10)

    def test_constant_growth_has_no_outliers(self, validator, rising_series):
        assert validator.validate(*rising_series).outliers_detected == 0

    def test_empty_series(self, validator):
        report = validator.validate([], [])

        assert report.total_points == 0
        assert not report.prices_usable
        assert not report.volumes_usable
        assert report.quality_score == pytest.approx(70.0)

    def test_report_summary(self):
        report = SeriesQualityReport(total_points=10, volume_points=10)
        summary = str(report)
        assert "Points: 10" in summary
        assert "DEGRADED" in summary
