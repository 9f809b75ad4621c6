"""Configuration system using pydantic-settings with environment variable loading."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ReconcilerSettings(BaseSettings):
    """Position reconciliation parameters."""

    model_config = SettingsConfigDict(env_prefix="RECONCILER_")

    version_grace_seconds: int = Field(default=60, ge=0)  # pending order may lag the oracle this long
    insufficient_margin_error: str = "MarketInsufficientMarginError"


class RiskSettings(BaseSettings):
    """Leverage quantization applied by calc_max_leverage."""

    model_config = SettingsConfigDict(env_prefix="RISK_")

    max_leverage: int = Field(default=100, ge=1)  # whole-number cap, e.g. 100x
    leverage_step: int = Field(default=5, ge=1)  # round down to multiples of this at or above the step
    default_max_leverage: int = Field(default=10, ge=1)  # returned when the market margin is unknown


class OracleSettings(BaseSettings):
    """Stale-price advisory thresholds.

    None disables the corresponding pending-order count check.
    """

    model_config = SettingsConfigDict(env_prefix="ORACLE_")

    max_pending_global: int | None = Field(default=None, ge=1)
    max_pending_local: int | None = Field(default=None, ge=1)


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    reconciler: ReconcilerSettings = ReconcilerSettings()
    risk: RiskSettings = RiskSettings()
    oracle: OracleSettings = OracleSettings()
