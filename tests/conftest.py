"""
Shared pytest fixtures for the marketlens test suite.

This module provides fixtures for:
- Canonical price/volume series (flat, steadily rising, seeded random walk)
- Capital configuration and settings
- Sample quotes
- An in-memory market data provider
"""

import numpy as np
import pandas as pd
import pytest

from marketlens.config.settings import LoggingSettings, RiskSettings, ScannerSettings, Settings
from marketlens.data.models import CapitalConfig, Quote, RiskTier

# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow-running tests")


# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture
def test_settings() -> Settings:
    """Default settings, independent of the environment."""
    return Settings(
        risk=RiskSettings(),
        scanner=ScannerSettings(),
        logging=LoggingSettings(level="DEBUG"),
    )


@pytest.fixture
def capital_config() -> CapitalConfig:
    """Moderate-risk configuration with 100k capital."""
    return CapitalConfig(capital=100_000, risk_tier=RiskTier.MODERATE)


# ============================================================================
# Series Fixtures
# ============================================================================


@pytest.fixture
def flat_series() -> tuple[list[float], list[float]]:
    """Constant price and constant volume, 250 bars."""
    return [100.0] * 250, [1_000.0] * 250


@pytest.fixture
def rising_series() -> tuple[list[float], list[float]]:
    """200 bars rising 0.5% per bar with volume tripling over the final 10."""
    prices = [100.0 * 1.005**i for i in range(200)]
    volumes = [1_000.0] * 190 + [3_000.0] * 10
    return prices, volumes


@pytest.fixture
def random_walk_series() -> tuple[np.ndarray, np.ndarray]:
    """Seeded geometric random walk, 300 bars."""
    rng = np.random.default_rng(42)
    prices = 100.0 * np.exp(np.cumsum(rng.normal(0, 0.01, 300)))
    volumes = rng.uniform(1_000, 5_000, 300)
    return prices, volumes


@pytest.fixture
def sample_ohlcv_dataframe(random_walk_series) -> pd.DataFrame:
    """Random walk as an OHLCV DataFrame, rows shuffled by timestamp."""
    prices, volumes = random_walk_series
    timestamps = pd.date_range("2024-01-01", periods=len(prices), freq="D")
    df = pd.DataFrame(
        {
            "timestamp": timestamps,
            "open": prices,
            "high": prices * 1.01,
            "low": prices * 0.99,
            "close": prices,
            "volume": volumes,
        }
    )
    return df.sample(frac=1.0, random_state=7)


# ============================================================================
# Quote Fixtures
# ============================================================================


@pytest.fixture
def sample_quote() -> Quote:
    """Strong intraday quote: up 4%, heavy volume, trading at the high."""
    return Quote(
        symbol="INFY",
        last_price=1_500.0,
        open=1_450.0,
        high=1_505.0,
        low=1_440.0,
        average_price=1_480.0,
        volume=2_000_000,
        net_change=60.0,
        reference_volume=1_000_000,
        upper_circuit=1_650.0,
        lower_circuit=1_350.0,
    )


# ============================================================================
# Provider Fixtures
# ============================================================================


class InMemoryProvider:
    """MarketDataProvider backed by dictionaries; listed symbols raise."""

    def __init__(self, quotes=None, history=None, failing=()):
        self.quotes = quotes or {}
        self.history = history or {}
        self.failing = set(failing)
        self.quote_calls: list[str] = []

    async def get_quote(self, symbol: str) -> Quote:
        self.quote_calls.append(symbol)
        if symbol in self.failing:
            raise ConnectionError(f"quote unavailable for {symbol}")
        return self.quotes[symbol]

    async def get_history(self, symbol: str, lookback_days: int):
        if symbol in self.failing:
            raise ConnectionError(f"history unavailable for {symbol}")
        return self.history[symbol]


@pytest.fixture
def provider_factory():
    """Build an InMemoryProvider."""
    return InMemoryProvider
