"""Single-snapshot scanners for cross-sectional screening.

These scorers look at one ``Quote`` at a time rather than a full history.
They share the additive ``ScoreAccumulator`` with the composite scorer: a
base value plus fixed points per condition, clamped to [0, 100].

Aggregation across many symbols (threshold, sort, truncate) is done with
``rank``; the async runners that fetch quotes live in
``marketlens.trading.screener``.
"""

from dataclasses import asdict, dataclass, field
import math
from typing import Callable, Iterable, Literal, Optional, TypeVar

from marketlens.analysis.scoring import ScoreAccumulator
from marketlens.config.settings import ScannerSettings
from marketlens.data.models import InputValidationError, Quote

SectorMethod = Literal["relative_strength", "momentum", "institutional_flow", "breakout"]
RotationStrength = Literal["strong", "moderate", "weak"]

SECTOR_METHODS: tuple[str, ...] = ("relative_strength", "momentum", "institutional_flow", "breakout")

NEAR_HIGH_RATIO = 0.98
ENTRY_PREMIUM = 1.005
STOP_BELOW_LOW = 0.99
MOMENTUM_TARGET = 1.05
HEAVY_VOLUME_RATIO = 1.5
TIGHT_RANGE_PCT = 0.02

T = TypeVar("T")


def round_to_tick(price: float) -> float:
    """
    Round a price to the exchange tick size for its price band.

    Tick sizes: 0.01 below 1, 0.05 below 10, 0.10 below 100, 0.25 below
    1000, otherwise 0.50. Halves round away from zero.
    """
    if price < 1:
        steps = 100
    elif price < 10:
        steps = 20
    elif price < 100:
        steps = 10
    elif price < 1000:
        steps = 4
    else:
        steps = 2
    return math.copysign(math.floor(abs(price) * steps + 0.5), price) / steps


@dataclass
class MomentumCandidate:
    """Momentum score and trade levels for one quote.

    Attributes:
        symbol: Instrument identifier
        last_price: Last traded price
        price_change_pct: Net change as a percentage of last price
        volume_multiple: Volume relative to the reference volume
        score: Momentum score (0-100)
        entry_level: Suggested entry slightly above the last price, tick-rounded
        stop_loss: Stop below the day's low, tick-rounded
        target: Fixed percentage target, tick-rounded
        signals: Human-readable conditions that added to the score
    """
    symbol: str
    last_price: float
    price_change_pct: float
    volume_multiple: float
    score: float
    entry_level: float
    stop_loss: float
    target: float
    signals: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SectorStrength:
    """Strength reading for one sector index."""
    sector: str
    method: str
    price_change_pct: float
    strength_score: float
    recommendation: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class SectorRotation:
    """Money moving from the weakest sector toward the strongest."""
    rotating_from: str
    rotating_to: str
    strength: RotationStrength

    def to_dict(self) -> dict:
        return asdict(self)


# ==================== Momentum ====================


def calculate_momentum_score(
    quote: Quote, settings: Optional[ScannerSettings] = None
) -> MomentumCandidate:
    """Score intraday momentum from a single quote.

    Base 50; adds twice the percentage change when it beats the configured
    minimum, 20 for a volume surge, 15 when trading within 2% of the day's
    high and 10 when price > average price > open.

    Args:
        quote: Quote snapshot
        settings: Scanner thresholds (defaults used when omitted)

    Returns:
        MomentumCandidate with score, levels and signal strings
    """
    settings = settings or ScannerSettings()
    acc = ScoreAccumulator(base=50.0)
    signals: list[str] = []

    change_pct = quote.change_pct
    volume_multiple = quote.volume_ratio

    if change_pct > settings.min_price_change_pct:
        acc.add(change_pct * 2)
        signals.append(f"Price surge: +{change_pct:.2f}%")

    if volume_multiple > settings.min_volume_surge_pct / 100:
        acc.add(20)
        signals.append(f"Volume surge: {volume_multiple:.1f}x average")

    if quote.high > 0 and quote.last_price >= quote.high * NEAR_HIGH_RATIO:
        acc.add(15)
        signals.append("Near day's high")

    if quote.last_price > quote.average_price > quote.open:
        acc.add(10)
        signals.append("Strong buying pressure")

    return MomentumCandidate(
        symbol=quote.symbol,
        last_price=quote.last_price,
        price_change_pct=change_pct,
        volume_multiple=volume_multiple,
        score=acc.total(),
        entry_level=round_to_tick(quote.last_price * ENTRY_PREMIUM),
        stop_loss=round_to_tick(quote.low * STOP_BELOW_LOW),
        target=round_to_tick(quote.last_price * MOMENTUM_TARGET),
        signals=signals,
    )


# ==================== Sector Strength ====================


def _heavier_than_reference(quote: Quote, ratio: float = 1.0) -> bool:
    return quote.reference_volume > 0 and quote.volume > quote.reference_volume * ratio


def relative_strength_score(quote: Quote) -> float:
    """Relative strength: change bands, price vs average, volume vs reference."""
    acc = ScoreAccumulator(base=50.0)
    change_pct = quote.change_pct

    if change_pct > 2:
        acc.add(20)
    elif change_pct > 0:
        acc.add(10)
    elif change_pct < -2:
        acc.add(-20)

    if quote.last_price > quote.average_price:
        acc.add(15)
    if _heavier_than_reference(quote):
        acc.add(15)

    return acc.total()


def sector_momentum_score(quote: Quote) -> float:
    acc = ScoreAccumulator(base=50.0)
    acc.add(quote.change_pct * 5)
    if quote.high > 0 and quote.last_price >= quote.high:
        acc.add(20)
    return acc.total()


def institutional_flow_score(quote: Quote) -> float:
    """Estimate institutional participation from volume and range."""
    acc = ScoreAccumulator(base=50.0)

    if _heavier_than_reference(quote, HEAVY_VOLUME_RATIO) and quote.net_change > 0:
        acc.add(30)

    # Tight range on heavy volume suggests large block trades.
    if quote.high - quote.low < quote.last_price * TIGHT_RANGE_PCT and _heavier_than_reference(quote):
        acc.add(20)

    return acc.total()


def sector_breakout_score(quote: Quote) -> float:
    acc = ScoreAccumulator(base=0.0)

    if quote.high > 0 and quote.last_price >= quote.high:
        acc.add(50)
    if _heavier_than_reference(quote, HEAVY_VOLUME_RATIO):
        acc.add(30)
    if quote.last_price > quote.open and quote.last_price > quote.average_price:
        acc.add(20)

    return acc.total()


_SECTOR_SCORERS: dict[str, Callable[[Quote], float]] = {
    "relative_strength": relative_strength_score,
    "momentum": sector_momentum_score,
    "institutional_flow": institutional_flow_score,
    "breakout": sector_breakout_score,
}


def sector_recommendation(strength: float) -> str:
    if strength > 70:
        return "Strong BUY - Sector showing excellent strength"
    if strength > 60:
        return "BUY - Positive sector momentum"
    if strength > 40:
        return "HOLD - Neutral sector performance"
    return "AVOID - Weak sector, look elsewhere"


def analyze_sector(name: str, quote: Quote, method: str = "relative_strength") -> SectorStrength:
    """Score one sector index with the chosen method.

    Raises:
        InputValidationError: If ``method`` is not a known scoring method
    """
    scorer = _SECTOR_SCORERS.get(method)
    if scorer is None:
        raise InputValidationError(
            f"Unknown sector method {method!r}, expected one of {SECTOR_METHODS}"
        )

    strength = scorer(quote)
    return SectorStrength(
        sector=name,
        method=method,
        price_change_pct=quote.change_pct,
        strength_score=strength,
        recommendation=sector_recommendation(strength),
    )


def _by_strength(sectors: Iterable[SectorStrength]) -> list[SectorStrength]:
    return sorted(sectors, key=lambda s: s.strength_score, reverse=True)


def identify_sector_rotation(sectors: Iterable[SectorStrength]) -> SectorRotation:
    """Summarize rotation from the weakest sector to the strongest.

    The rotation is "strong" when the strength spread exceeds 30 points,
    "weak" when it is under 10, "moderate" otherwise. Fewer than two
    sectors yields no rotation.
    """
    ranked = _by_strength(sectors)
    if len(ranked) < 2:
        return SectorRotation(rotating_from="none", rotating_to="none", strength="weak")

    strongest, weakest = ranked[0], ranked[-1]
    spread = strongest.strength_score - weakest.strength_score

    strength: RotationStrength = "moderate"
    if spread > 30:
        strength = "strong"
    elif spread < 10:
        strength = "weak"

    return SectorRotation(
        rotating_from=weakest.sector,
        rotating_to=strongest.sector,
        strength=strength,
    )


def top_sectors(sectors: Iterable[SectorStrength], count: int = 3) -> list[SectorStrength]:
    return _by_strength(sectors)[:max(count, 0)]


def weak_sectors(sectors: Iterable[SectorStrength], count: int = 3) -> list[SectorStrength]:
    """Return the ``count`` weakest sectors, strongest of them first."""
    ranked = _by_strength(sectors)
    if count <= 0:
        return []
    return ranked[-count:]


# ==================== Ranking ====================


def rank(
    items: Iterable[T],
    key: Callable[[T], float],
    threshold: Optional[float] = None,
    limit: Optional[int] = None,
) -> list[T]:
    """Threshold, sort descending and truncate scan results.

    Items whose key does not exceed ``threshold`` are dropped. Sorting is
    stable, so equal keys keep their input order.

    Args:
        items: Scored results
        key: Score or priority accessor
        threshold: Exclusive minimum key value
        limit: Maximum number of results

    Returns:
        Ranked list

    Raises:
        InputValidationError: If ``limit`` is not positive
    """
    if limit is not None and limit <= 0:
        raise InputValidationError(f"Result limit must be positive, got {limit}")

    kept = [item for item in items if threshold is None or key(item) > threshold]
    kept.sort(key=key, reverse=True)
    return kept[:limit] if limit is not None else kept
