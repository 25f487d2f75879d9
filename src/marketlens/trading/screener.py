"""
Async multi-symbol screening for marketlens.

Fetches quotes for many symbols concurrently from a ``MarketDataProvider``,
scores each one independently with the single-snapshot scanners, and merges
the results (threshold, sort, truncate). A symbol whose quote cannot be
fetched is skipped and reported in ``failed``; it never fails the scan.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional

from marketlens.analysis.scanners import (
    SECTOR_METHODS,
    MomentumCandidate,
    SectorRotation,
    SectorStrength,
    analyze_sector,
    calculate_momentum_score,
    identify_sector_rotation,
    rank,
    top_sectors,
    weak_sectors,
)
from marketlens.config.settings import ScannerSettings
from marketlens.data.models import InputValidationError, MarketDataProvider, Quote
from marketlens.trading.signals import SCAN_TYPES, TradeSignal, generate_quick_signal
from marketlens.utils import get_logger

logger = get_logger(__name__)


@dataclass
class MomentumScanReport:
    """Ranked momentum candidates plus the symbols that could not be scanned."""
    candidates: list[MomentumCandidate]
    scanned: int
    failed: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "candidates": [c.to_dict() for c in self.candidates],
            "total_found": len(self.candidates),
            "scanned": self.scanned,
            "failed": list(self.failed),
        }


@dataclass
class SectorScanReport:
    """
    Sector strength ranking.

    Attributes:
        method: Strength scoring method used
        sectors: All scored sectors, strongest first
        rotation: Rotation from weakest to strongest sector
        top: Strongest sectors
        weak: Weakest sectors
        failed: Sectors whose quote could not be fetched
    """
    method: str
    sectors: list[SectorStrength]
    rotation: SectorRotation
    top: list[SectorStrength]
    weak: list[SectorStrength]
    failed: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "method": self.method,
            "sectors": [s.to_dict() for s in self.sectors],
            "rotation": self.rotation.to_dict(),
            "top_sectors": [s.to_dict() for s in self.top],
            "weak_sectors": [s.to_dict() for s in self.weak],
            "failed": list(self.failed),
        }


@dataclass(frozen=True)
class QuickSignal:
    """Quick scan signal for one symbol."""
    symbol: str
    signal: TradeSignal

    def to_dict(self) -> dict:
        return {"symbol": self.symbol, **self.signal.to_dict()}


class Screener:
    """
    Concurrent quote screener.

    Each symbol is scored independently; only the final merge looks at
    more than one result.
    """

    def __init__(
        self,
        provider: MarketDataProvider,
        settings: Optional[ScannerSettings] = None,
    ):
        """
        Initialize the screener.

        Args:
            provider: Market data capability supplying quotes
            settings: Scanner thresholds (defaults used when omitted)
        """
        self.provider = provider
        self.settings = settings or ScannerSettings()

    async def _gather_quotes(
        self, symbols: Iterable[str]
    ) -> tuple[dict[str, Quote], list[str]]:
        """Fetch quotes concurrently, separating successes from failures."""
        symbols = list(dict.fromkeys(symbols))
        results = await asyncio.gather(
            *(self.provider.get_quote(symbol) for symbol in symbols),
            return_exceptions=True,
        )

        quotes: dict[str, Quote] = {}
        failed: list[str] = []
        for symbol, result in zip(symbols, results):
            if isinstance(result, BaseException):
                logger.warning(
                    "scan_symbol_failed",
                    symbol=symbol,
                    error=str(result),
                    error_type=type(result).__name__,
                )
                failed.append(symbol)
            else:
                quotes[symbol] = result

        return quotes, failed

    async def scan_momentum(
        self,
        symbols: Iterable[str],
        min_score: Optional[float] = None,
        max_results: Optional[int] = None,
    ) -> MomentumScanReport:
        """
        Score momentum for each symbol and keep the best.

        Args:
            symbols: Symbols to scan
            min_score: Exclusive score threshold (settings default)
            max_results: Result limit (settings default)

        Returns:
            MomentumScanReport, highest score first
        """
        min_score = self.settings.min_momentum_score if min_score is None else min_score
        max_results = self.settings.max_results if max_results is None else max_results
        if max_results <= 0:
            raise InputValidationError(f"max_results must be positive, got {max_results}")

        quotes, failed = await self._gather_quotes(symbols)
        scored = [calculate_momentum_score(quote, self.settings) for quote in quotes.values()]
        candidates = rank(scored, key=lambda c: c.score, threshold=min_score, limit=max_results)

        logger.info(
            "momentum_scan_completed",
            scanned=len(quotes),
            failed=len(failed),
            found=len(candidates),
        )
        return MomentumScanReport(candidates=candidates, scanned=len(quotes), failed=failed)

    async def scan_sectors(
        self,
        sectors: Mapping[str, str],
        method: str = "relative_strength",
        count: int = 3,
    ) -> SectorScanReport:
        """
        Score sector indices and summarize rotation.

        Args:
            sectors: Sector name to index symbol
            method: Sector strength scoring method
            count: Number of top and weak sectors to report

        Returns:
            SectorScanReport

        Raises:
            InputValidationError: If ``method`` is unknown or ``count`` is not positive
        """
        if method not in SECTOR_METHODS:
            raise InputValidationError(
                f"Unknown sector method {method!r}, expected one of {SECTOR_METHODS}"
            )
        if count <= 0:
            raise InputValidationError(f"count must be positive, got {count}")

        names_by_symbol = {symbol: name for name, symbol in sectors.items()}
        quotes, failed_symbols = await self._gather_quotes(sectors.values())

        scored = [
            analyze_sector(names_by_symbol[symbol], quote, method)
            for symbol, quote in quotes.items()
        ]
        ranked = rank(scored, key=lambda s: s.strength_score)

        report = SectorScanReport(
            method=method,
            sectors=ranked,
            rotation=identify_sector_rotation(ranked),
            top=top_sectors(ranked, count),
            weak=weak_sectors(ranked, count),
            failed=[names_by_symbol[symbol] for symbol in failed_symbols],
        )

        logger.info(
            "sector_scan_completed",
            method=method,
            scanned=len(ranked),
            failed=len(report.failed),
            rotating_to=report.rotation.rotating_to,
        )
        return report

    async def scan_quick_signals(
        self,
        symbols: Iterable[str],
        scan_type: str = "momentum",
        min_expected_return: float = 10.0,
        max_signals: int = 5,
    ) -> list[QuickSignal]:
        """
        Generate quick BUY signals from quotes.

        Keeps BUY signals whose expected return reaches ``min_expected_return``,
        highest priority first, at most ``max_signals``.
        """
        if scan_type not in SCAN_TYPES:
            raise InputValidationError(f"Unknown scan type {scan_type!r}, expected one of {SCAN_TYPES}")
        if max_signals <= 0:
            raise InputValidationError(f"max_signals must be positive, got {max_signals}")

        quotes, failed = await self._gather_quotes(symbols)
        signals = [
            QuickSignal(symbol=symbol, signal=generate_quick_signal(quote, scan_type))
            for symbol, quote in quotes.items()
        ]
        buys = [
            s for s in signals
            if s.signal.action == "BUY" and s.signal.expected_return >= min_expected_return
        ]
        ranked = rank(buys, key=lambda s: s.signal.priority, limit=max_signals)

        logger.info(
            "quick_signal_scan_completed",
            scan_type=scan_type,
            scanned=len(quotes),
            failed=len(failed),
            found=len(ranked),
        )
        return ranked
