"""
Unit tests for the async screener.

Quotes come from an in-memory provider; symbols configured to fail must be
skipped and reported without failing the scan.
"""

from dataclasses import replace

import pytest

from marketlens.data.models import InputValidationError, MarketDataProvider, Quote
from marketlens.trading.screener import Screener


@pytest.fixture
def quiet_quote() -> Quote:
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


@pytest.fixture
def provider(provider_factory, sample_quote, quiet_quote):
    """INFY is strong, ITC is quiet, TCS always fails."""
    return provider_factory(
        quotes={
            "INFY": sample_quote,
            "ITC": quiet_quote,
            "WIPRO": replace(sample_quote, symbol="WIPRO", net_change=30.0),
            "NIFTYIT": sample_quote,
            "NIFTYFMCG": quiet_quote,
        },
        failing={"TCS", "BANKNIFTY"},
    )


@pytest.mark.unit
class TestScreener:
    """Test suite for concurrent quote scans."""

    def test_provider_satisfies_protocol(self, provider):
        assert isinstance(provider, MarketDataProvider)

    @pytest.mark.asyncio
    async def test_momentum_scan_skips_failures(self, provider):
        screener = Screener(provider)
        report = await screener.scan_momentum(["INFY", "ITC", "TCS", "INFY"])

        assert [c.symbol for c in report.candidates] == ["INFY"]
        assert report.scanned == 2
        assert report.failed == ["TCS"]
        assert provider.quote_calls == ["INFY", "ITC", "TCS"]

    @pytest.mark.asyncio
    async def test_momentum_scan_limit(self, provider):
        report = await Screener(provider).scan_momentum(["WIPRO", "INFY", "ITC"], max_results=1)
        assert [c.symbol for c in report.candidates] == ["INFY"]
        assert report.to_dict()["total_found"] == 1

    @pytest.mark.asyncio
    async def test_momentum_scan_threshold(self, provider):
        report = await Screener(provider).scan_momentum(["INFY", "ITC"], min_score=100)
        assert report.candidates == []

    @pytest.mark.asyncio
    async def test_momentum_scan_invalid_limit(self, provider):
        with pytest.raises(InputValidationError):
            await Screener(provider).scan_momentum(["INFY"], max_results=0)

    @pytest.mark.asyncio
    async def test_all_symbols_failing(self, provider):
        report = await Screener(provider).scan_momentum(["TCS"])
        assert report.candidates == []
        assert report.scanned == 0
        assert report.failed == ["TCS"]

    @pytest.mark.asyncio
    async def test_sector_scan(self, provider):
        sectors = {"IT": "NIFTYIT", "FMCG": "NIFTYFMCG", "BANK": "BANKNIFTY"}
        report = await Screener(provider).scan_sectors(sectors, method="relative_strength", count=1)

        assert [s.sector for s in report.sectors] == ["IT", "FMCG"]
        assert report.rotation.rotating_from == "FMCG"
        assert report.rotation.rotating_to == "IT"
        assert report.rotation.strength == "strong"
        assert [s.sector for s in report.top] == ["IT"]
        assert [s.sector for s in report.weak] == ["FMCG"]
        assert report.failed == ["BANK"]
        assert report.to_dict()["rotation"]["strength"] == "strong"

    @pytest.mark.asyncio
    async def test_sector_scan_unknown_method(self, provider):
        with pytest.raises(InputValidationError):
            await Screener(provider).scan_sectors({"IT": "NIFTYIT"}, method="astrology")

    @pytest.mark.asyncio
    async def test_sector_scan_unknown_method_when_all_fetches_fail(self, provider):
        with pytest.raises(InputValidationError, match="Unknown sector method"):
            await Screener(provider).scan_sectors({"BANK": "BANKNIFTY"}, method="astrology")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("count", [0, -1])
    async def test_sector_scan_invalid_count(self, provider, count):
        with pytest.raises(InputValidationError, match="count must be positive"):
            await Screener(provider).scan_sectors({"IT": "NIFTYIT"}, count=count)

    @pytest.mark.asyncio
    async def test_quick_signals(self, provider):
        signals = await Screener(provider).scan_quick_signals(["INFY", "ITC", "TCS"], "momentum")
        assert [s.symbol for s in signals] == ["INFY"]
        assert signals[0].signal.action == "BUY"
        assert signals[0].to_dict()["symbol"] == "INFY"

    @pytest.mark.asyncio
    async def test_quick_signals_min_return(self, provider):
        signals = await Screener(provider).scan_quick_signals(
            ["INFY"], "momentum", min_expected_return=16.0
        )
        assert signals == []

    @pytest.mark.asyncio
    async def test_quick_signals_validation(self, provider):
        screener = Screener(provider)
        with pytest.raises(InputValidationError):
            await screener.scan_quick_signals(["INFY"], "gap_up")
        with pytest.raises(InputValidationError):
            await screener.scan_quick_signals(["INFY"], "momentum", max_signals=0)
