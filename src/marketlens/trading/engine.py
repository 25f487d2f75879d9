"""
Analysis pipeline for marketlens.

Runs one instrument through the full pipeline:

    price/volume history -> indicators/patterns -> composite scores
        -> risk-reward plan -> confidence -> trade signal

and returns an immutable ``Analysis`` aggregate. The pipeline is a pure
function of its inputs; engines hold only configuration and can be shared
across concurrent requests.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
import math
from typing import Optional, Sequence

import pandas as pd

from marketlens.analysis.analyzer import TechnicalAnalyzer
from marketlens.analysis.indicators import Indicators
from marketlens.config.settings import Settings, get_settings
from marketlens.data.models import (
    CapitalConfig,
    FundamentalData,
    DataUnavailableError,
    InputValidationError,
    MarketDataProvider,
    Quote,
    SentimentData,
)
from marketlens.data.validation import SeriesValidator
from marketlens.trading.risk import RiskRewardEngine, RiskRewardPlan
from marketlens.trading.signals import SignalGenerator, TradeSignal, calculate_confidence
from marketlens.utils import add_context, get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Analysis:
    """
    Complete analysis of one instrument for one request.

    Attributes:
        symbol: Instrument identifier
        indicators: Indicator snapshot (``is_empty`` when history was unusable)
        risk_reward: Stop, targets and sizing
        signal: Trade recommendation
        fundamental: Caller-supplied fundamental snapshot
        sentiment: Caller-supplied sentiment snapshot
        confidence: Overall confidence (0-100)
        kelly_pct: Fractional Kelly sizing suggestion (% of capital)
        quality_score: Input series quality score (0-100)
        timestamp: When the analysis was produced (UTC)
    """
    symbol: str
    indicators: Indicators
    risk_reward: RiskRewardPlan
    signal: TradeSignal
    fundamental: FundamentalData
    sentiment: SentimentData
    confidence: float
    kelly_pct: float
    quality_score: float
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        """Convert analysis to a plain dictionary for callers."""
        return {
            "symbol": self.symbol,
            "indicators": self.indicators.to_dict(),
            "risk_reward": self.risk_reward.to_dict(),
            "signal": self.signal.to_dict(),
            "fundamental_score": self.fundamental.score,
            "sentiment_score": self.sentiment.score,
            "confidence": round(self.confidence, 2),
            "kelly_pct": round(self.kelly_pct, 2),
            "quality_score": round(self.quality_score, 2),
            "timestamp": self.timestamp.isoformat(),
        }

    def __repr__(self) -> str:
        return (
            f"Analysis({self.symbol}, {self.signal.action} {self.signal.strength}, "
            f"confidence={self.confidence:.1f}, priority={self.signal.priority})"
        )


class AnalysisEngine:
    """
    Stateless analysis pipeline.

    Combines:
    - Series validation and indicator snapshot
    - Risk-reward plan with position sizing
    - Overall confidence
    - Trade signal
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        analyzer: Optional[TechnicalAnalyzer] = None,
        signal_generator: Optional[SignalGenerator] = None,
    ):
        """
        Initialize the engine.

        Args:
            settings: Configuration (cached environment settings when omitted)
            analyzer: Indicator snapshot builder
            signal_generator: Decision function
        """
        self.settings = settings or get_settings()
        self.validator = SeriesValidator()
        self.analyzer = analyzer or TechnicalAnalyzer(self.validator)
        self.risk_engine = RiskRewardEngine(self.settings.risk)
        self.signal_generator = signal_generator or SignalGenerator()

    def analyze(
        self,
        symbol: str,
        prices: Sequence[float],
        volumes: Sequence[float],
        capital_config: CapitalConfig,
        quote: Optional[Quote] = None,
        entry_price: Optional[float] = None,
        fundamental: Optional[FundamentalData] = None,
        sentiment: Optional[SentimentData] = None,
    ) -> Analysis:
        """
        Analyze one instrument.

        The entry price is the quote's last price when it is positive,
        otherwise ``entry_price``, otherwise the last close. A quote without a
        usable price is logged and skipped.

        Args:
            symbol: Instrument identifier
            prices: Closing prices, oldest first
            volumes: Volumes aligned with prices
            capital_config: Capital and risk configuration
            quote: Current quote snapshot
            entry_price: Explicit entry price
            fundamental: Fundamental snapshot (zero score when omitted)
            sentiment: Sentiment snapshot (zero score when omitted)

        Returns:
            Analysis aggregate

        Raises:
            InputValidationError: If ``entry_price`` is not positive, or no
                source yields a positive entry price
        """
        fundamental = fundamental or FundamentalData()
        sentiment = sentiment or SentimentData()

        with add_context(symbol=symbol):
            entry = self._resolve_entry(prices, quote, entry_price)

            report = self.validator.validate(prices, volumes)
            if report.issues:
                logger.info(
                    "series_quality_degraded",
                    quality_score=report.quality_score,
                    issues=report.issues,
                )

            indicators = self.analyzer.analyze_validated(prices, volumes, report)
            plan = self.risk_engine.build_plan(entry, indicators, capital_config)
            confidence = calculate_confidence(indicators, plan, fundamental, sentiment)
            signal = self.signal_generator.generate(indicators, plan, confidence)
            kelly_pct = self.risk_engine.kelly(confidence, plan)

            analysis = Analysis(
                symbol=symbol,
                indicators=indicators,
                risk_reward=plan,
                signal=signal,
                fundamental=fundamental,
                sentiment=sentiment,
                confidence=confidence,
                kelly_pct=kelly_pct,
                quality_score=report.quality_score,
            )

            logger.info(
                "analysis_completed",
                action=signal.action,
                strength=signal.strength,
                confidence=confidence,
                priority=signal.priority,
                degraded=indicators.is_empty,
            )
            return analysis

    def analyze_ohlcv(
        self,
        symbol: str,
        df: pd.DataFrame,
        capital_config: CapitalConfig,
        **kwargs,
    ) -> Analysis:
        """
        Analyze an OHLCV DataFrame.

        Args:
            symbol: Instrument identifier
            df: DataFrame with at least ``close`` and ``volume`` columns,
                oldest row first (sorted by ``timestamp`` when present)
            capital_config: Capital and risk configuration
            **kwargs: Passed through to ``analyze``

        Returns:
            Analysis aggregate

        Raises:
            InputValidationError: If required columns are missing
        """
        missing = [col for col in ("close", "volume") if col not in df.columns]
        if missing:
            raise InputValidationError(f"Missing required columns: {missing}")

        if "timestamp" in df.columns:
            df = df.sort_values("timestamp")

        return self.analyze(
            symbol,
            df["close"].to_numpy(dtype=float),
            df["volume"].to_numpy(dtype=float),
            capital_config,
            **kwargs,
        )

    async def analyze_from_provider(
        self,
        provider: MarketDataProvider,
        symbol: str,
        capital_config: CapitalConfig,
        lookback_days: int = 180,
        fundamental: Optional[FundamentalData] = None,
        sentiment: Optional[SentimentData] = None,
    ) -> Analysis:
        """
        Fetch history and quote concurrently, then analyze.

        A failed history fetch degrades to an empty series; a failed or
        priceless quote falls back to the last close as entry.

        Raises:
            DataUnavailableError: If neither fetch yields an entry price
        """
        history, quote = await asyncio.gather(
            provider.get_history(symbol, lookback_days),
            provider.get_quote(symbol),
            return_exceptions=True,
        )

        prices: Sequence[float] = ()
        volumes: Sequence[float] = ()
        if isinstance(history, BaseException):
            logger.warning("history_fetch_failed", symbol=symbol, error=str(history))
        else:
            prices, volumes = history

        if isinstance(quote, BaseException):
            logger.warning("quote_fetch_failed", symbol=symbol, error=str(quote))
            quote = None

        has_quote_price = quote is not None and math.isfinite(quote.last_price) and quote.last_price > 0
        has_close = len(prices) > 0 and math.isfinite(prices[-1]) and prices[-1] > 0
        if not (has_quote_price or has_close):
            raise DataUnavailableError(f"No usable history or quote for {symbol}")

        return self.analyze(
            symbol,
            prices,
            volumes,
            capital_config,
            quote=quote,
            fundamental=fundamental,
            sentiment=sentiment,
        )

    @staticmethod
    def _resolve_entry(
        prices: Sequence[float], quote: Optional[Quote], entry_price: Optional[float]
    ) -> float:
        if quote is not None:
            if math.isfinite(quote.last_price) and quote.last_price > 0:
                return float(quote.last_price)
            logger.warning("quote_price_unusable", last_price=quote.last_price)

        if entry_price is not None:
            if not math.isfinite(entry_price) or entry_price <= 0:
                raise InputValidationError(f"Entry price must be positive, got {entry_price}")
            return float(entry_price)

        if len(prices) > 0:
            last_close = float(prices[-1])
            if math.isfinite(last_close) and last_close > 0:
                return last_close

        raise InputValidationError("No entry price: supply a quote, entry_price or price history")
