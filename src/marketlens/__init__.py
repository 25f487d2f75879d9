"""marketlens: market time-series analysis and trade-signal engine."""

__version__ = "0.1.0"
