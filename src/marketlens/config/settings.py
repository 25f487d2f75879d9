"""
Configuration settings for marketlens.

Uses pydantic-settings for environment variable management with nested models
for the risk engine, the auxiliary scanners and logging. All settings models
are frozen so a loaded configuration can be shared between concurrent
analyses without coordination.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RiskSettings(BaseSettings):
    """Risk-reward engine configuration settings."""

    conservative_risk_pct: float = Field(
        default=1.0, gt=0, le=100, description="Max risk per trade for the conservative tier (%)"
    )
    moderate_risk_pct: float = Field(
        default=2.0, gt=0, le=100, description="Max risk per trade for the moderate tier (%)"
    )
    aggressive_risk_pct: float = Field(
        default=3.0, gt=0, le=100, description="Max risk per trade for the aggressive tier (%)"
    )
    maximum_risk_pct: float = Field(
        default=4.0, gt=0, le=100, description="Max risk per trade for the highest-aggression tier (%)"
    )
    max_position_pct: float = Field(
        default=0.33, gt=0, le=1, description="Largest share of capital in one position"
    )
    kelly_fraction: float = Field(
        default=0.25, gt=0, le=1, description="Fraction of full Kelly to suggest"
    )
    atr_stop_multiplier: float = Field(
        default=1.5, gt=0, description="ATR multiple used for the volatility stop"
    )
    default_stop_pct: float = Field(
        default=2.0, gt=0, lt=100, description="Stop distance below entry without support (%)"
    )
    support_buffer_pct: float = Field(
        default=1.0, ge=0, lt=100, description="Stop distance below the support level (%)"
    )
    resistance_buffer: float = Field(
        default=0.995, gt=0, le=1, description="Targets are capped to this fraction of resistance"
    )
    target_multiples_raw: str = Field(
        default="2,3,5", alias="target_multiples",
        description="Risk multiples for the three targets (comma-separated)",
    )

    @field_validator("target_multiples_raw")
    @classmethod
    def _validate_multiples(cls, value: str) -> str:
        multiples = [float(x) for x in value.split(",") if x.strip()]
        if len(multiples) != 3 or any(m <= 0 for m in multiples):
            raise ValueError("target_multiples needs three positive values")
        if not multiples[0] < multiples[1] < multiples[2]:
            raise ValueError("target_multiples must be strictly increasing")
        return value

    @property
    def target_multiples(self) -> tuple[float, float, float]:
        """Parse comma-separated string to a tuple of three floats."""
        first, second, third = (float(x) for x in self.target_multiples_raw.split(",") if x.strip())
        return first, second, third

    model_config = SettingsConfigDict(
        env_prefix="RISK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
        frozen=True,
    )


class ScannerSettings(BaseSettings):
    """Auxiliary scanner configuration settings."""

    min_price_change_pct: float = Field(
        default=2.0, description="Price change (%) required before it adds to momentum"
    )
    min_volume_surge_pct: float = Field(
        default=150.0, ge=0, description="Volume as % of reference volume counted as a surge"
    )
    min_momentum_score: float = Field(
        default=60.0, ge=0, le=100, description="Momentum score a candidate must exceed"
    )
    max_results: int = Field(default=10, gt=0, description="Maximum candidates returned by a scan")

    model_config = SettingsConfigDict(
        env_prefix="SCANNER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    level: str = Field(default="INFO", description="Logging level")
    format: Literal["json", "pretty"] = Field(default="pretty", description="Log renderer")
    file_path: Optional[str] = Field(
        default=None, description="Optional log file path"
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )


class Settings(BaseSettings):
    """
    Main settings class combining all configuration domains.

    Loads configuration from environment variables and .env file.
    """

    risk: RiskSettings = Field(default_factory=RiskSettings)
    scanner: ScannerSettings = Field(default_factory=ScannerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Shared, frozen Settings instance
    """
    return Settings()
