"""
Risk-Reward Engine for marketlens.

Derives a stop-loss, three profit targets and a position size for a long
entry from the computed indicators, available capital and a max-risk
percentage, plus a fractional Kelly sizing suggestion.

Key Rules:
- Stop sits just below the lowest support (or a fixed distance below entry);
  an ATR stop replaces it when tighter
- Targets are R-multiples of the risk, capped below matching resistance
- Position value never exceeds ``max_position_pct`` of capital
- Kelly suggestion uses a quarter-Kelly fraction

All parameters come from an explicit ``RiskSettings`` value passed to the
engine; nothing here reads process-wide state.
"""

import math
from dataclasses import dataclass
from typing import Literal, Optional, Sequence

from marketlens.analysis.indicators import Indicators
from marketlens.config.settings import RiskSettings
from marketlens.data.models import CapitalConfig, InputValidationError, RiskTier, require_score
from marketlens.utils import get_logger

logger = get_logger(__name__)

TradingStyle = Literal["scalping", "intraday", "swing", "positional"]

STYLE_RISK_PCT: dict[str, float] = {
    "scalping": 0.5,
    "intraday": 1.0,
    "swing": 2.0,
    "positional": 3.0,
}

MAX_STYLE_RISK_PCT = 5.0


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class RiskRewardPlan:
    """
    Stop, targets and sizing for one long entry.

    Attributes:
        entry_price: Planned entry price
        stop_loss: Stop-loss price (below entry)
        target_1: First profit target
        target_2: Second profit target
        target_3: Third profit target
        risk_per_unit: Entry minus stop
        reward_per_unit: Target 1 minus entry
        risk_reward_ratio: Reward per unit over risk per unit
        position_size: Units to buy
        max_loss: Loss if the stop is hit with the full position
        max_profit: Profit if target 3 is hit with the full position
        capital_at_risk: Risk budget after any position-size cap
        risk_pct: Max-risk percentage the plan was sized with
    """
    entry_price: float
    stop_loss: float
    target_1: float
    target_2: float
    target_3: float
    risk_per_unit: float
    reward_per_unit: float
    risk_reward_ratio: float
    position_size: int
    max_loss: float
    max_profit: float
    capital_at_risk: float
    risk_pct: float

    @property
    def targets(self) -> tuple[float, float, float]:
        return self.target_1, self.target_2, self.target_3

    def to_dict(self) -> dict:
        """Convert plan to dictionary for logging/serialization."""
        return {
            "entry_price": round(self.entry_price, 2),
            "stop_loss": round(self.stop_loss, 2),
            "targets": [round(t, 2) for t in self.targets],
            "risk_per_unit": round(self.risk_per_unit, 4),
            "reward_per_unit": round(self.reward_per_unit, 4),
            "risk_reward_ratio": round(self.risk_reward_ratio, 2),
            "position_size": self.position_size,
            "max_loss": round(self.max_loss, 2),
            "max_profit": round(self.max_profit, 2),
            "capital_at_risk": round(self.capital_at_risk, 2),
            "risk_pct": self.risk_pct,
        }

    def __repr__(self) -> str:
        return (
            f"RiskRewardPlan(entry={self.entry_price:.2f}, SL={self.stop_loss:.2f}, "
            f"targets=({self.target_1:.2f}, {self.target_2:.2f}, {self.target_3:.2f}), "
            f"size={self.position_size}, RR={self.risk_reward_ratio:.2f})"
        )


@dataclass(frozen=True)
class PositionTarget:
    """One R-multiple target with its profit for a sized position."""
    price: float
    profit: float
    return_pct: float


@dataclass(frozen=True)
class OptimalPosition:
    """
    Strategy-based position sizing result.

    Attributes:
        style: Trading style the base risk came from
        risk_pct: Final risk percentage after adjustments and cap
        position_size: Units to buy
        investment: Position value at entry
        capital_at_risk: Risk budget after any position-size cap
        position_pct: Investment as a percentage of capital
        targets: Targets at 2R, 3R and 5R with profits
        kelly_pct: Quarter-Kelly sizing suggestion (% of capital)
        aggressive: Whether aggressive mode adjusted the risk
        recommendation: Plain-language sizing summary
    """
    style: str
    risk_pct: float
    position_size: int
    investment: float
    capital_at_risk: float
    position_pct: float
    targets: tuple[PositionTarget, ...]
    kelly_pct: float
    aggressive: bool
    recommendation: str

    def to_dict(self) -> dict:
        return {
            "style": self.style,
            "risk_pct": round(self.risk_pct, 2),
            "position_size": self.position_size,
            "investment": round(self.investment, 2),
            "capital_at_risk": round(self.capital_at_risk, 2),
            "position_pct": round(self.position_pct, 1),
            "targets": [
                {"price": round(t.price, 2), "profit": round(t.profit, 2), "return_pct": round(t.return_pct, 1)}
                for t in self.targets
            ],
            "kelly_pct": round(self.kelly_pct, 1),
            "aggressive": self.aggressive,
            "recommendation": self.recommendation,
        }


# =============================================================================
# Helpers
# =============================================================================


def _require_positive_entry(entry_price: float) -> None:
    if not math.isfinite(entry_price) or entry_price <= 0:
        raise InputValidationError(f"Entry price must be positive, got {entry_price}")


def _require_capital(capital: float) -> None:
    if not math.isfinite(capital) or capital < 0:
        raise InputValidationError(f"Capital must not be negative, got {capital}")


def kelly_suggestion(
    confidence: float,
    entry_price: float,
    stop_loss: float,
    target: float,
    fraction: float = 0.25,
) -> float:
    """
    Calculate a fractional Kelly sizing suggestion.

    Formula: k = (p * win - (1 - p) * loss) / win * 100 * fraction
    Where:
        p = confidence / 100
        win = (target - entry) / entry
        loss = (entry - stop) / entry

    Args:
        confidence: Win probability as a 0-100 score
        entry_price: Entry price
        stop_loss: Stop-loss price
        target: Target used for the average win (target 2)
        fraction: Fraction of full Kelly (default: quarter-Kelly)

    Returns:
        Suggested percentage of capital; 0.0 when there is no upside
    """
    if entry_price <= 0:
        return 0.0

    win_rate = confidence / 100
    avg_win = (target - entry_price) / entry_price
    avg_loss = (entry_price - stop_loss) / entry_price

    if avg_win <= 0:
        return 0.0

    kelly = ((win_rate * avg_win) - ((1 - win_rate) * avg_loss)) / avg_win
    return kelly * 100 * fraction


# =============================================================================
# Risk-Reward Engine
# =============================================================================


class RiskRewardEngine:
    """
    Builds risk-reward plans and position sizes.

    Handles:
    - Support/ATR based stop-loss
    - Resistance-capped R-multiple targets
    - Risk-percentage position sizing with a capital cap
    - Fractional Kelly suggestion
    """

    def __init__(self, settings: Optional[RiskSettings] = None):
        """
        Initialize the engine.

        Args:
            settings: Risk parameters (defaults used when omitted)
        """
        self.settings = settings or RiskSettings()

    def risk_pct_for(self, config: CapitalConfig) -> float:
        """Resolve the max-risk percentage for a capital configuration."""
        if config.max_risk_pct is not None:
            return config.max_risk_pct

        tier_pct = {
            RiskTier.CONSERVATIVE: self.settings.conservative_risk_pct,
            RiskTier.MODERATE: self.settings.moderate_risk_pct,
            RiskTier.AGGRESSIVE: self.settings.aggressive_risk_pct,
            RiskTier.MAXIMUM: self.settings.maximum_risk_pct,
        }
        return tier_pct[config.risk_tier]

    def calculate_stop_loss(
        self, entry_price: float, support: Sequence[float], atr: float
    ) -> float:
        """
        Calculate the stop-loss for a long entry.

        The stop sits ``support_buffer_pct`` below the lowest support level,
        or ``default_stop_pct`` below entry when there is no support below
        entry. An ATR stop (entry - multiplier * ATR) replaces it when higher.

        Args:
            entry_price: Entry price
            support: Support levels, ascending
            atr: Average True Range

        Returns:
            Stop-loss price, strictly below entry
        """
        _require_positive_entry(entry_price)
        settings = self.settings

        stop_loss = entry_price * (1 - settings.default_stop_pct / 100)
        if support:
            support_stop = min(support) * (1 - settings.support_buffer_pct / 100)
            if 0 < support_stop < entry_price:
                stop_loss = support_stop

        if atr > 0:
            atr_stop = entry_price - atr * settings.atr_stop_multiplier
            if stop_loss < atr_stop < entry_price:
                stop_loss = atr_stop

        logger.debug(
            "stop_loss_calculated",
            entry=entry_price,
            atr=atr,
            support_levels=len(support),
            stop_loss=stop_loss,
        )
        return stop_loss

    def calculate_targets(
        self, entry_price: float, stop_loss: float, resistance: Sequence[float] = ()
    ) -> tuple[float, float, float]:
        """
        Calculate three R-multiple targets.

        Each raw target is entry + risk * multiple. Target ``i`` is capped to
        ``resistance_buffer`` of resistance ``i`` when that resistance is below
        the raw target and the capped value still clears entry. Targets stay
        strictly increasing.

        Args:
            entry_price: Entry price
            stop_loss: Stop-loss price
            resistance: Resistance levels, ascending

        Returns:
            Tuple of (target_1, target_2, target_3)
        """
        risk = entry_price - stop_loss
        targets: list[float] = []

        for i, multiple in enumerate(self.settings.target_multiples):
            target = entry_price + risk * multiple
            if i < len(resistance) and resistance[i] < target:
                capped = resistance[i] * self.settings.resistance_buffer
                floor = targets[-1] if targets else entry_price
                if capped > floor:
                    target = capped
            targets.append(target)

        return targets[0], targets[1], targets[2]

    def calculate_position_size(
        self,
        capital: float,
        entry_price: float,
        risk_per_unit: float,
        risk_pct: float,
    ) -> tuple[int, float]:
        """
        Size a position from a risk budget.

        units = floor(capital * risk_pct / 100 / risk_per_unit). When the
        position value exceeds ``max_position_pct`` of capital, units shrink
        to fit and the risk budget is recomputed from the smaller size.

        Args:
            capital: Available capital
            entry_price: Entry price
            risk_per_unit: Entry minus stop
            risk_pct: Max risk percentage

        Returns:
            Tuple of (units, capital at risk)
        """
        _require_capital(capital)
        _require_positive_entry(entry_price)
        if not 0 < risk_pct <= 100:
            raise InputValidationError(f"Risk percentage must be within (0, 100], got {risk_pct}")

        capital_at_risk = capital * risk_pct / 100
        if risk_per_unit <= 0:
            logger.warning("zero_risk_per_unit", entry=entry_price, risk_per_unit=risk_per_unit)
            return 0, 0.0

        units = math.floor(capital_at_risk / risk_per_unit)

        max_investment = capital * self.settings.max_position_pct
        if units * entry_price > max_investment:
            capped_units = math.floor(max_investment / entry_price)
            logger.debug(
                "position_capped",
                raw_units=units,
                capped_units=capped_units,
                max_investment=max_investment,
            )
            units = capped_units
            capital_at_risk = units * risk_per_unit

        return max(units, 0), capital_at_risk

    def build_plan(
        self,
        entry_price: float,
        indicators: Indicators,
        capital_config: CapitalConfig,
    ) -> RiskRewardPlan:
        """
        Build the full risk-reward plan for a long entry.

        Args:
            entry_price: Entry price
            indicators: Indicator snapshot supplying support, resistance and ATR
            capital_config: Capital and risk configuration

        Returns:
            Immutable RiskRewardPlan
        """
        _require_positive_entry(entry_price)
        risk_pct = self.risk_pct_for(capital_config)

        stop_loss = self.calculate_stop_loss(entry_price, indicators.support, indicators.atr)
        target_1, target_2, target_3 = self.calculate_targets(
            entry_price, stop_loss, indicators.resistance
        )

        risk_per_unit = entry_price - stop_loss
        first_multiple = self.settings.target_multiples[0]
        raw_target_1 = entry_price + risk_per_unit * first_multiple
        # Uncapped target: take the reward straight from the multiple.
        reward_per_unit = (
            risk_per_unit * first_multiple if target_1 == raw_target_1 else target_1 - entry_price
        )
        risk_reward_ratio = reward_per_unit / risk_per_unit if risk_per_unit > 0 else 0.0

        units, capital_at_risk = self.calculate_position_size(
            capital_config.capital, entry_price, risk_per_unit, risk_pct
        )

        plan = RiskRewardPlan(
            entry_price=entry_price,
            stop_loss=stop_loss,
            target_1=target_1,
            target_2=target_2,
            target_3=target_3,
            risk_per_unit=risk_per_unit,
            reward_per_unit=reward_per_unit,
            risk_reward_ratio=risk_reward_ratio,
            position_size=units,
            max_loss=risk_per_unit * units,
            max_profit=(target_3 - entry_price) * units,
            capital_at_risk=capital_at_risk,
            risk_pct=risk_pct,
        )

        logger.debug(
            "risk_reward_plan_built",
            entry=entry_price,
            stop_loss=stop_loss,
            target_1=target_1,
            risk_reward=risk_reward_ratio,
            position_size=units,
        )
        return plan

    def kelly(self, confidence: float, plan: RiskRewardPlan) -> float:
        """Fractional Kelly suggestion for a plan, using target 2 as the win."""
        return kelly_suggestion(
            confidence,
            plan.entry_price,
            plan.stop_loss,
            plan.target_2,
            self.settings.kelly_fraction,
        )

    def calculate_optimal_position(
        self,
        capital: float,
        entry_price: float,
        stop_loss: float,
        style: str = "swing",
        confidence: float = 50.0,
        aggressive: bool = False,
    ) -> OptimalPosition:
        """
        Size a position from a trading style rather than a risk tier.

        Base risk by style: scalping 0.5%, intraday 1%, swing 2%, positional
        3%. Aggressive mode doubles it under 50k capital (x1.5 under 100k),
        then scales by confidence (x1.2 above 80, x0.8 below 60). Risk is
        capped at 5% and the position at ``max_position_pct`` of capital.

        Args:
            capital: Available capital
            entry_price: Entry price
            stop_loss: Stop-loss price
            style: Trading style
            confidence: Confidence score (0-100)
            aggressive: Enable the small-account aggressive adjustments

        Returns:
            OptimalPosition

        Raises:
            InputValidationError: On negative capital, non-positive entry,
                unknown style or out-of-range confidence
        """
        _require_capital(capital)
        _require_positive_entry(entry_price)
        require_score("Confidence", confidence)
        if style not in STYLE_RISK_PCT:
            raise InputValidationError(
                f"Unknown trading style {style!r}, expected one of {tuple(STYLE_RISK_PCT)}"
            )

        risk_pct = STYLE_RISK_PCT[style]
        if aggressive:
            if capital < 50_000:
                risk_pct *= 2.0
            elif capital < 100_000:
                risk_pct *= 1.5

            if confidence > 80:
                risk_pct *= 1.2
            elif confidence < 60:
                risk_pct *= 0.8

        risk_pct = min(risk_pct, MAX_STYLE_RISK_PCT)

        risk_per_unit = abs(entry_price - stop_loss)
        units, capital_at_risk = self.calculate_position_size(
            capital, entry_price, risk_per_unit, risk_pct
        )
        investment = units * entry_price

        targets = []
        for multiple in self.settings.target_multiples:
            price = entry_price + risk_per_unit * multiple
            profit = units * (price - entry_price)
            return_pct = profit / investment * 100 if investment > 0 else 0.0
            targets.append(PositionTarget(price=price, profit=profit, return_pct=return_pct))

        kelly_pct = 0.0
        if entry_price - stop_loss > 0:
            kelly_pct = kelly_suggestion(
                confidence, entry_price, stop_loss, targets[1].price, self.settings.kelly_fraction
            )

        position = OptimalPosition(
            style=style,
            risk_pct=risk_pct,
            position_size=units,
            investment=investment,
            capital_at_risk=capital_at_risk,
            position_pct=investment / capital * 100 if capital > 0 else 0.0,
            targets=tuple(targets),
            kelly_pct=kelly_pct,
            aggressive=aggressive,
            recommendation=_position_recommendation(units, risk_pct, aggressive),
        )

        logger.debug(
            "optimal_position_calculated",
            style=style,
            risk_pct=risk_pct,
            position_size=units,
            kelly_pct=kelly_pct,
        )
        return position


def _position_recommendation(units: int, risk_pct: float, aggressive: bool) -> str:
    if aggressive and risk_pct >= 4:
        return (
            f"AGGRESSIVE POSITION: {units} units. High-conviction trade with "
            f"{risk_pct:.1f}% capital at risk. Only proceed if analysis strongly supports entry."
        )
    if aggressive and risk_pct >= 2:
        return (
            f"MODERATE POSITION: {units} units. Balanced risk-reward with "
            f"{risk_pct:.1f}% capital at risk."
        )
    return f"CONSERVATIVE POSITION: {units} units. Low risk approach with {risk_pct:.1f}% capital at risk."
