"""
Boundary value types for marketlens.

Quotes, capital configuration and externally supplied fundamental/sentiment
snapshots are constructed once at the system boundary and passed into the
analysis core as typed, immutable values. The MarketDataProvider protocol
describes what a caller must supply; the core itself never performs I/O.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, Sequence, runtime_checkable


class InputValidationError(ValueError):
    """Raised when a caller violates the analysis input contract.

    Data-availability problems never raise; only programmer-error inputs such
    as negative capital or a non-positive entry price do.
    """


class DataUnavailableError(RuntimeError):
    """Raised when a provider returns neither usable history nor a usable quote."""


def require_score(name: str, value: float) -> float:
    """Validate a 0-100 score supplied by the caller."""
    if not 0 <= value <= 100:
        raise InputValidationError(f"{name} must be within 0-100, got {value}")
    return float(value)


class RiskTier(str, Enum):
    """Risk appetite tiers, each mapping to a default max-risk percentage."""

    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"
    MAXIMUM = "maximum"


@dataclass(frozen=True)
class Quote:
    """
    Single market quote snapshot.

    Attributes:
        symbol: Instrument identifier (e.g., "INFY")
        last_price: Last traded price
        open: Day's open price
        high: Day's high price
        low: Day's low price
        average_price: Volume-weighted average traded price for the day
        volume: Volume traded so far today
        net_change: Absolute change versus the previous close
        reference_volume: Typical daily volume to compare against (0 if unknown)
        upper_circuit: Upper circuit limit (0 if not applicable)
        lower_circuit: Lower circuit limit (0 if not applicable)
        open_interest: Open interest for derivatives (0 otherwise)
    """
    symbol: str
    last_price: float
    open: float = 0.0
    high: float = 0.0
    low: float = 0.0
    average_price: float = 0.0
    volume: float = 0.0
    net_change: float = 0.0
    reference_volume: float = 0.0
    upper_circuit: float = 0.0
    lower_circuit: float = 0.0
    open_interest: float = 0.0

    @property
    def change_pct(self) -> float:
        """Net change as a percentage of the last price."""
        if self.last_price <= 0:
            return 0.0
        return self.net_change / self.last_price * 100

    @property
    def volume_ratio(self) -> float:
        """Volume as a multiple of the reference volume (0 when unknown)."""
        if self.reference_volume <= 0:
            return 0.0
        return self.volume / self.reference_volume

    @classmethod
    def from_dict(cls, symbol: str, data: dict[str, Any]) -> "Quote":
        """
        Create a Quote from a loosely-typed broker payload.

        Missing numeric fields default to zero. Nested ``ohlc`` blocks are
        flattened.

        Args:
            symbol: Instrument identifier
            data: Quote dictionary

        Returns:
            Quote instance
        """
        ohlc = data.get("ohlc") or {}

        def number(key: str, fallback: Any = 0) -> float:
            value = data.get(key, fallback)
            return float(value) if value is not None else 0.0

        return cls(
            symbol=symbol,
            last_price=number("last_price"),
            open=float(ohlc.get("open", data.get("open", 0)) or 0),
            high=float(ohlc.get("high", data.get("high", 0)) or 0),
            low=float(ohlc.get("low", data.get("low", 0)) or 0),
            average_price=number("average_price"),
            volume=number("volume"),
            net_change=number("net_change"),
            reference_volume=number("reference_volume"),
            upper_circuit=number("upper_circuit_limit"),
            lower_circuit=number("lower_circuit_limit"),
            open_interest=number("oi"),
        )


@dataclass(frozen=True)
class CapitalConfig:
    """
    Capital and risk configuration for one analysis request.

    Attributes:
        capital: Capital available for the trade
        risk_tier: Risk appetite tier
        max_risk_pct: Explicit max-risk percentage overriding the tier default
    """
    capital: float
    risk_tier: RiskTier = RiskTier.MODERATE
    max_risk_pct: float | None = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.capital < 0:
            raise InputValidationError(f"Capital must not be negative, got {self.capital}")
        if not isinstance(self.risk_tier, RiskTier):
            try:
                object.__setattr__(self, "risk_tier", RiskTier(self.risk_tier))
            except ValueError as e:
                raise InputValidationError(f"Unknown risk tier: {self.risk_tier!r}") from e
        if self.max_risk_pct is not None and not 0 < self.max_risk_pct <= 100:
            raise InputValidationError(
                f"max_risk_pct must be within (0, 100], got {self.max_risk_pct}"
            )


@dataclass(frozen=True)
class FundamentalData:
    """Externally supplied fundamental snapshot; only ``score`` feeds confidence."""
    pe: float = 0.0
    pb: float = 0.0
    debt_to_equity: float = 0.0
    roe: float = 0.0
    quarterly_growth: float = 0.0
    industry_pe: float = 0.0
    relative_strength: float = 0.0
    score: float = 0.0

    def __post_init__(self) -> None:
        require_score("Fundamental score", self.score)


@dataclass(frozen=True)
class SentimentData:
    """Externally supplied sentiment snapshot; only ``score`` feeds confidence."""
    delivery_pct: float = 0.0
    bulk_deals: int = 0
    fii_activity: str = "neutral"
    options_pcr: float = 0.0
    open_interest: float = 0.0
    score: float = 0.0

    def __post_init__(self) -> None:
        require_score("Sentiment score", self.score)


@runtime_checkable
class MarketDataProvider(Protocol):
    """
    Market data capability supplied by the caller.

    Implementations wrap a broker or data vendor. Either method may raise;
    scan runners treat a failure as a missing symbol.
    """

    async def get_history(
        self, symbol: str, lookback_days: int
    ) -> tuple[Sequence[float], Sequence[float]]:
        """Return (closes, volumes), oldest first."""
        ...

    async def get_quote(self, symbol: str) -> Quote:
        """Return the current quote snapshot."""
        ...
