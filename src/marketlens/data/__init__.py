"""Boundary value types and input validation for marketlens."""

from marketlens.data.models import (
    CapitalConfig,
    FundamentalData,
    DataUnavailableError,
    InputValidationError,
    MarketDataProvider,
    Quote,
    RiskTier,
    SentimentData,
)
from marketlens.data.validation import SeriesQualityReport, SeriesValidator

__all__ = [
    "CapitalConfig",
    "DataUnavailableError",
    "FundamentalData",
    "InputValidationError",
    "MarketDataProvider",
    "Quote",
    "RiskTier",
    "SentimentData",
    "SeriesQualityReport",
    "SeriesValidator",
]
