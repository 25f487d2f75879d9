"""
Signal Generator for marketlens.

Maps composite scores, the risk-reward plan and an overall confidence into a
structured trade recommendation. Also provides ``calculate_confidence`` (the
confidence that feeds the decision table) and ``generate_quick_signal`` for
single-quote scans.

Decision table (first match wins):
    bullish > 70 and confidence > 75  -> BUY, strong
    bullish > 60 and confidence > 65  -> BUY, moderate
    bearish > 70 and confidence > 75  -> SELL, strong
    otherwise                         -> HOLD, weak
"""

from dataclasses import dataclass
from typing import Literal, Optional

from marketlens.analysis.indicators import Indicators
from marketlens.config.constants import (
    BASE_CONFIDENCE,
    BASE_PRIORITY,
    HIGH_VOLATILITY_WIDTH,
    HOLDING_PERIODS,
    MAX_PRIORITY,
    MIN_PRIORITY,
    MIN_RISK_REWARD,
)
from marketlens.data.models import (
    FundamentalData,
    InputValidationError,
    Quote,
    SentimentData,
    require_score,
)
from marketlens.trading.risk import RiskRewardPlan
from marketlens.utils import get_logger

logger = get_logger(__name__)

Action = Literal["BUY", "SELL", "HOLD"]
Strength = Literal["strong", "moderate", "weak"]
Timeframe = Literal["intraday", "swing", "positional"]
ScanType = Literal["momentum", "oversold_bounce", "breakout"]

SCAN_TYPES: tuple[str, ...] = ("momentum", "oversold_bounce", "breakout")


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class TradeSignal:
    """
    Structured trade recommendation.

    Attributes:
        action: BUY, SELL or HOLD
        strength: strong, moderate or weak
        timeframe: intraday, swing or positional
        strategy: Short strategy label
        reasons: Supporting evidence, in the order it was found
        warnings: Risk factors, in the order they were found
        expected_return: Percentage return to target 1 (BUY only)
        holding_period: Holding-period estimate for the timeframe
        priority: Ranking priority from 1 to 10
    """
    action: Action
    strength: Strength
    timeframe: Timeframe
    strategy: str
    reasons: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    expected_return: float = 0.0
    holding_period: str = ""
    priority: int = MIN_PRIORITY

    def to_dict(self) -> dict:
        """Convert signal to dictionary for logging/serialization."""
        return {
            "action": self.action,
            "strength": self.strength,
            "timeframe": self.timeframe,
            "strategy": self.strategy,
            "reasons": list(self.reasons),
            "warnings": list(self.warnings),
            "expected_return": round(self.expected_return, 2),
            "holding_period": self.holding_period,
            "priority": self.priority,
        }

    def __repr__(self) -> str:
        if self.action == "HOLD":
            return f"TradeSignal(HOLD, priority={self.priority})"
        return (
            f"TradeSignal({self.action} {self.strength}, {self.timeframe}, "
            f"expected_return={self.expected_return:.2f}%, priority={self.priority})"
        )


# =============================================================================
# Confidence
# =============================================================================


def calculate_confidence(
    indicators: Indicators,
    plan: RiskRewardPlan,
    fundamental: Optional[FundamentalData] = None,
    sentiment: Optional[SentimentData] = None,
) -> float:
    """
    Calculate the overall confidence that feeds the decision table.

    Starts at 50 and adds for bullish score (+15 above 70, +10 above 60), a
    strong bullish trend (+10), risk-reward (+10 above 3, +5 above 2), a
    fundamental score above 70 (+10) and a sentiment score above 70 (+5).

    Args:
        indicators: Indicator snapshot
        plan: Risk-reward plan
        fundamental: Externally supplied fundamental snapshot
        sentiment: Externally supplied sentiment snapshot

    Returns:
        Confidence clamped to [0, 100]
    """
    confidence = BASE_CONFIDENCE

    if indicators.bullish_score > 70:
        confidence += 15
    elif indicators.bullish_score > 60:
        confidence += 10

    if indicators.trend == "bullish" and indicators.trend_strength > 60:
        confidence += 10

    if plan.risk_reward_ratio > 3:
        confidence += 10
    elif plan.risk_reward_ratio > 2:
        confidence += 5

    if fundamental is not None and fundamental.score > 70:
        confidence += 10

    if sentiment is not None and sentiment.score > 70:
        confidence += 5

    return float(max(0.0, min(100.0, confidence)))


# =============================================================================
# Signal Generator
# =============================================================================


class SignalGenerator:
    """
    Deterministic decision function over scores, plan and confidence.

    The generator is stateless; one instance can serve concurrent analyses.
    """

    def generate(
        self,
        indicators: Indicators,
        plan: RiskRewardPlan,
        confidence: float,
    ) -> TradeSignal:
        """
        Generate a trade signal.

        Args:
            indicators: Indicator snapshot
            plan: Risk-reward plan for the entry
            confidence: Overall confidence (0-100)

        Returns:
            TradeSignal

        Raises:
            InputValidationError: If confidence is outside [0, 100]
        """
        require_score("Confidence", confidence)

        bullish = indicators.bullish_score
        bearish = indicators.bearish_score
        reasons: list[str] = []
        warnings: list[str] = []

        action: Action = "HOLD"
        strength: Strength = "weak"

        if bullish > 70 and confidence > 75:
            action, strength = "BUY", "strong"
            reasons.append(f"Strong bullish score: {bullish:.1f}%")
        elif bullish > 60 and confidence > 65:
            action, strength = "BUY", "moderate"
            reasons.append(f"Moderate bullish score: {bullish:.1f}%")
        elif bearish > 70 and confidence > 75:
            action, strength = "SELL", "strong"
            reasons.append(f"Strong bearish score: {bearish:.1f}%")

        if action == "BUY":
            if indicators.rsi < 40:
                reasons.append("RSI oversold - good entry point")
            if indicators.macd.crossover == "bullish":
                reasons.append("MACD bullish crossover")
            if indicators.trend == "bullish":
                reasons.append(f"Bullish trend with {indicators.trend_strength:.1f}% strength")

        if action == "SELL" and indicators.rsi > 70:
            warnings.append("RSI overbought - potential reversal")
        if indicators.bollinger.width > HIGH_VOLATILITY_WIDTH:
            warnings.append("High volatility detected")
        if plan.risk_reward_ratio < MIN_RISK_REWARD:
            warnings.append("Risk-reward ratio below optimal (< 1:2)")

        timeframe = self.determine_timeframe(indicators, plan)
        expected_return = 0.0
        if action == "BUY":
            expected_return = (plan.target_1 - plan.entry_price) / plan.entry_price * 100

        priority = self.calculate_priority(strength, confidence, plan, len(warnings))

        signal = TradeSignal(
            action=action,
            strength=strength,
            timeframe=timeframe,
            strategy=self.determine_strategy(action, indicators, plan),
            reasons=tuple(reasons),
            warnings=tuple(warnings),
            expected_return=expected_return,
            holding_period=HOLDING_PERIODS[timeframe],
            priority=priority,
        )

        logger.debug(
            "signal_generated",
            action=action,
            strength=strength,
            confidence=confidence,
            priority=priority,
            warnings=len(warnings),
        )
        return signal

    @staticmethod
    def determine_timeframe(indicators: Indicators, plan: RiskRewardPlan) -> Timeframe:
        """Intraday for low ATR, positional for strong trends, otherwise swing."""
        if indicators.atr < plan.entry_price * 0.01:
            return "intraday"
        if indicators.trend_strength > 70:
            return "positional"
        return "swing"

    @staticmethod
    def determine_strategy(
        action: Action, indicators: Indicators, plan: RiskRewardPlan
    ) -> str:
        """Pick the primary strategy label for a signal."""
        if action != "BUY":
            return "Wait for better entry"

        if indicators.rsi < 30:
            return "Oversold bounce play"
        if indicators.macd.crossover == "bullish":
            return "MACD momentum trade"
        if indicators.trend == "bullish" and indicators.trend_strength > 60:
            return "Trend following"
        for level in indicators.support:
            if level > 0 and abs(plan.entry_price - level) / level < 0.02:
                return "Support level bounce"
        if indicators.chart_pattern == "triangle":
            return "Triangle breakout"
        return "General momentum trade"

    @staticmethod
    def calculate_priority(
        strength: Strength, confidence: float, plan: RiskRewardPlan, warning_count: int
    ) -> int:
        """
        Calculate signal priority.

        Base 5; +2/+1 for strong/moderate strength, +2/+1 for confidence
        above 80/70, +1 for risk-reward above 3, -1 for one or two warnings
        and -2 for more than two. Clamped to [1, 10].
        """
        priority = BASE_PRIORITY

        if strength == "strong":
            priority += 2
        elif strength == "moderate":
            priority += 1

        if confidence > 80:
            priority += 2
        elif confidence > 70:
            priority += 1

        if plan.risk_reward_ratio > 3:
            priority += 1

        if warning_count > 2:
            priority -= 2
        elif warning_count > 0:
            priority -= 1

        return max(MIN_PRIORITY, min(MAX_PRIORITY, priority))


# =============================================================================
# Quick Scan Signals
# =============================================================================


def generate_quick_signal(quote: Quote, scan_type: str = "momentum") -> TradeSignal:
    """
    Generate a lightweight signal from a single quote.

    Scan types:
        momentum: up more than 2% on above-reference volume
        oversold_bounce: down more than 3%
        breakout: above the day's high on 1.5x reference volume

    Args:
        quote: Quote snapshot
        scan_type: One of ``SCAN_TYPES``

    Returns:
        TradeSignal with a fixed expected return for the scan type

    Raises:
        InputValidationError: If ``scan_type`` is unknown
    """
    if scan_type not in SCAN_TYPES:
        raise InputValidationError(f"Unknown scan type {scan_type!r}, expected one of {SCAN_TYPES}")

    change_pct = quote.change_pct
    has_reference = quote.reference_volume > 0

    action: Action = "HOLD"
    strength: Strength = "weak"
    expected_return = 0.0
    priority = MIN_PRIORITY
    reasons: list[str] = []
    warnings: list[str] = []

    if scan_type == "momentum":
        if change_pct > 2 and has_reference and quote.volume > quote.reference_volume:
            action, strength, expected_return, priority = "BUY", "moderate", 15.0, 7
            reasons.append(f"Strong momentum: +{change_pct:.2f}%")
            reasons.append("Volume above average")
    elif scan_type == "oversold_bounce":
        if change_pct < -3:
            action, strength, expected_return, priority = "BUY", "moderate", 12.0, 6
            reasons.append("Oversold condition for potential bounce")
    elif scan_type == "breakout":
        if (
            quote.high > 0
            and quote.last_price > quote.high
            and has_reference
            and quote.volume > quote.reference_volume * 1.5
        ):
            action, strength, expected_return, priority = "BUY", "strong", 20.0, 8
            reasons.append("Breaking previous high")
            reasons.append("High volume confirmation")

    if quote.upper_circuit > 0 and quote.last_price > quote.upper_circuit * 0.95:
        warnings.append("Near upper circuit")
    if has_reference and quote.volume < quote.reference_volume * 0.5:
        warnings.append("Low volume - poor liquidity")

    return TradeSignal(
        action=action,
        strength=strength,
        timeframe="swing",
        strategy=f"{scan_type} strategy",
        reasons=tuple(reasons),
        warnings=tuple(warnings),
        expected_return=expected_return,
        holding_period="3-5 days",
        priority=priority,
    )
