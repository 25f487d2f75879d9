"""Tests for configuration loading."""

import pytest
from pydantic import ValidationError

from marketlens.config import (
    LoggingSettings,
    RiskSettings,
    ScannerSettings,
    Settings,
    get_settings,
)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestRiskSettings:
    """Tests for risk engine configuration."""

    def test_defaults(self):
        risk = RiskSettings()
        assert risk.moderate_risk_pct == 2.0
        assert risk.max_position_pct == 0.33
        assert risk.kelly_fraction == 0.25
        assert risk.target_multiples == (2.0, 3.0, 5.0)

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("RISK_MODERATE_RISK_PCT", "1.5")
        monkeypatch.setenv("RISK_MAX_POSITION_PCT", "0.25")
        risk = RiskSettings()
        assert risk.moderate_risk_pct == 1.5
        assert risk.max_position_pct == 0.25

    def test_custom_multiples(self):
        assert RiskSettings(target_multiples="1.5, 2.5, 4").target_multiples == (1.5, 2.5, 4.0)

    @pytest.mark.parametrize("raw", ["3,2,1", "1,2", "0,1,2", "1,1,2"])
    def test_invalid_multiples(self, raw):
        with pytest.raises(ValidationError):
            RiskSettings(target_multiples=raw)

    def test_out_of_range_values(self):
        with pytest.raises(ValidationError):
            RiskSettings(max_position_pct=1.5)
        with pytest.raises(ValidationError):
            RiskSettings(moderate_risk_pct=0)

    def test_frozen(self):
        risk = RiskSettings()
        with pytest.raises(ValidationError):
            risk.moderate_risk_pct = 3.0


class TestSettings:
    """Tests for the combined settings object."""

    def test_nested_defaults(self):
        settings = Settings()
        assert isinstance(settings.risk, RiskSettings)
        assert isinstance(settings.scanner, ScannerSettings)
        assert isinstance(settings.logging, LoggingSettings)
        assert settings.scanner.min_momentum_score == 60.0
        assert settings.scanner.max_results == 10

    def test_nested_environment(self, monkeypatch):
        monkeypatch.setenv("SCANNER_MAX_RESULTS", "25")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        settings = Settings()
        assert settings.scanner.max_results == 25
        assert settings.logging.level == "DEBUG"

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()
