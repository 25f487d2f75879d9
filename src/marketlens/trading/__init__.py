"""Risk-reward planning, signal generation and the analysis pipeline."""

from marketlens.trading.engine import Analysis, AnalysisEngine
from marketlens.trading.risk import (
    OptimalPosition,
    PositionTarget,
    RiskRewardEngine,
    RiskRewardPlan,
    kelly_suggestion,
)
from marketlens.trading.screener import (
    MomentumScanReport,
    QuickSignal,
    Screener,
    SectorScanReport,
)
from marketlens.trading.signals import (
    SignalGenerator,
    TradeSignal,
    calculate_confidence,
    generate_quick_signal,
)

__all__ = [
    "Analysis",
    "AnalysisEngine",
    "MomentumScanReport",
    "OptimalPosition",
    "PositionTarget",
    "QuickSignal",
    "RiskRewardEngine",
    "RiskRewardPlan",
    "Screener",
    "SectorScanReport",
    "SignalGenerator",
    "TradeSignal",
    "calculate_confidence",
    "generate_quick_signal",
    "kelly_suggestion",
]
