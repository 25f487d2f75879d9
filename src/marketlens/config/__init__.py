"""
Configuration module for marketlens.

Exports the Settings classes and get_settings function for configuration
management.
"""

from .settings import LoggingSettings, RiskSettings, ScannerSettings, Settings, get_settings

__all__ = ["Settings", "RiskSettings", "ScannerSettings", "LoggingSettings", "get_settings"]
