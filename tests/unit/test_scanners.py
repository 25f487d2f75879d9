"""Unit tests for single-snapshot scanners and ranking."""

from dataclasses import replace

import pytest

from marketlens.analysis.scanners import (
    SectorStrength,
    analyze_sector,
    calculate_momentum_score,
    identify_sector_rotation,
    institutional_flow_score,
    rank,
    relative_strength_score,
    round_to_tick,
    sector_breakout_score,
    sector_momentum_score,
    sector_recommendation,
    top_sectors,
    weak_sectors,
)
from marketlens.config.settings import ScannerSettings
from marketlens.data.models import InputValidationError, Quote


@pytest.fixture
def quiet_quote() -> Quote:
    """Slightly down, light volume, off the high."""
    return Quote(
        symbol="ITC",
        last_price=100.0,
        open=102.0,
        high=105.0,
        low=99.0,
        average_price=101.0,
        volume=500,
        net_change=-1.0,
        reference_volume=1_000,
    )


def sector(name: str, score: float) -> SectorStrength:
    return SectorStrength(
        sector=name,
        method="relative_strength",
        price_change_pct=0.0,
        strength_score=score,
        recommendation=sector_recommendation(score),
    )


@pytest.mark.unit
class TestRoundToTick:
    """Test suite for tick-size rounding."""

    @pytest.mark.parametrize(
        "price,expected",
        [
            (0.555, 0.56),
            (5.03, 5.05),
            (12.34, 12.3),
            (123.37, 123.25),
            (1234.24, 1234.0),
            (1234.26, 1234.5),
        ],
    )
    def test_price_bands(self, price, expected):
        assert round_to_tick(price) == pytest.approx(expected)


@pytest.mark.unit
class TestMomentumScore:
    """Test suite for the quote momentum scanner."""

    def test_strong_quote_saturates(self, sample_quote):
        candidate = calculate_momentum_score(sample_quote)

        assert candidate.score == 100.0
        assert candidate.volume_multiple == pytest.approx(2.0)
        assert candidate.entry_level == pytest.approx(1_507.5)
        assert candidate.stop_loss == pytest.approx(1_425.5)
        assert candidate.target == pytest.approx(1_575.0)
        for level in (candidate.entry_level, candidate.stop_loss, candidate.target):
            assert round_to_tick(level) == level
        assert candidate.signals == [
            "Price surge: +4.00%",
            "Volume surge: 2.0x average",
            "Near day's high",
            "Strong buying pressure",
        ]

    def test_quiet_quote_is_neutral(self, quiet_quote):
        candidate = calculate_momentum_score(quiet_quote)
        assert candidate.score == 50.0
        assert candidate.signals == []

    def test_thresholds_from_settings(self, sample_quote):
        strict = ScannerSettings(min_price_change_pct=5.0, min_volume_surge_pct=300.0)
        candidate = calculate_momentum_score(sample_quote, strict)
        # Only the near-high (+15) and buying-pressure (+10) checks pass
        assert candidate.score == pytest.approx(75.0)

    def test_to_dict(self, sample_quote):
        data = calculate_momentum_score(sample_quote).to_dict()
        assert data["symbol"] == "INFY"
        assert len(data["signals"]) == 4


@pytest.mark.unit
class TestSectorScores:
    """Test suite for the sector strength methods."""

    def test_relative_strength(self, sample_quote, quiet_quote):
        assert relative_strength_score(sample_quote) == 100.0
        assert relative_strength_score(quiet_quote) == 50.0
        assert relative_strength_score(replace(quiet_quote, net_change=-3.0)) == 30.0

    def test_momentum(self, sample_quote):
        assert sector_momentum_score(sample_quote) == pytest.approx(70.0)
        at_high = replace(sample_quote, last_price=1_505.0, net_change=120.0)
        assert sector_momentum_score(at_high) == 100.0

    def test_institutional_flow(self, sample_quote):
        assert institutional_flow_score(sample_quote) == 80.0
        tight = replace(sample_quote, high=1_510.0, low=1_495.0)
        assert institutional_flow_score(tight) == 100.0

    def test_breakout(self, sample_quote):
        assert sector_breakout_score(sample_quote) == 50.0
        assert sector_breakout_score(replace(sample_quote, last_price=1_505.0)) == 100.0

    def test_unknown_reference_volume_never_counts(self, sample_quote):
        no_reference = replace(sample_quote, reference_volume=0.0)
        assert institutional_flow_score(no_reference) == 50.0
        assert sector_breakout_score(no_reference) == 20.0

    def test_analyze_sector(self, sample_quote):
        result = analyze_sector("NIFTY IT", sample_quote, "institutional_flow")
        assert result.sector == "NIFTY IT"
        assert result.strength_score == 80.0
        assert result.price_change_pct == pytest.approx(4.0)
        assert result.recommendation.startswith("Strong BUY")

    def test_unknown_method(self, sample_quote):
        with pytest.raises(InputValidationError, match="Unknown sector method"):
            analyze_sector("NIFTY IT", sample_quote, "astrology")

    @pytest.mark.parametrize(
        "score,prefix",
        [(71, "Strong BUY"), (65, "BUY"), (50, "HOLD"), (40, "AVOID")],
    )
    def test_recommendation_bands(self, score, prefix):
        assert sector_recommendation(score).startswith(prefix)


@pytest.mark.unit
class TestSectorRotation:
    """Test suite for rotation and sector ranking."""

    def test_strong_rotation(self):
        rotation = identify_sector_rotation([sector("BANK", 40), sector("IT", 85), sector("AUTO", 60)])
        assert rotation.rotating_from == "BANK"
        assert rotation.rotating_to == "IT"
        assert rotation.strength == "strong"

    @pytest.mark.parametrize("spread,expected", [(31, "strong"), (30, "moderate"), (10, "moderate"), (9, "weak")])
    def test_rotation_bands(self, spread, expected):
        rotation = identify_sector_rotation([sector("A", 50), sector("B", 50 + spread)])
        assert rotation.strength == expected

    def test_single_sector_has_no_rotation(self):
        rotation = identify_sector_rotation([sector("IT", 80)])
        assert (rotation.rotating_from, rotation.rotating_to, rotation.strength) == ("none", "none", "weak")

    def test_top_and_weak(self):
        sectors = [sector(name, score) for name, score in [("A", 10), ("B", 90), ("C", 50), ("D", 70)]]
        assert [s.sector for s in top_sectors(sectors, 2)] == ["B", "D"]
        assert [s.sector for s in weak_sectors(sectors, 2)] == ["C", "A"]
        assert weak_sectors(sectors, 0) == []


@pytest.mark.unit
class TestRank:
    """Test suite for threshold/sort/truncate."""

    def test_threshold_is_exclusive(self):
        assert rank([60, 61, 59, 80], key=float, threshold=60) == [80, 61]

    def test_stable_for_equal_keys(self):
        items = [("a", 5), ("b", 7), ("c", 5), ("d", 7)]
        ranked = rank(items, key=lambda item: item[1])
        assert [name for name, _ in ranked] == ["b", "d", "a", "c"]

    def test_limit(self):
        assert rank(range(10), key=float, limit=3) == [9, 8, 7]

    def test_invalid_limit(self):
        with pytest.raises(InputValidationError):
            rank([1, 2], key=float, limit=0)
