"""Configuration system using pydantic-settings with environment variable loading.

Protocol constants are injected into the calculators instead of living as
module globals, so several parameterizations (testnet, mainnet) can be used
side by side. All settings are frozen once loaded.
"""

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProtocolSettings(BaseSettings):
    """On-chain protocol constants mirrored by the off-chain formulas."""

    model_config = SettingsConfigDict(env_prefix="PROTOCOL_", frozen=True)

    liq_margin_p: int = 25  # % of collateral at max leverage
    max_profit_p: int = 900_000_000  # 900% (PRECISION_6)
    min_loss_p: int = -100_000_000  # -100% (PRECISION_6)
    max_price_impact_p: int = 100  # floor reported when measured impact is smaller
    max_lock_duration: int = 31_536_000  # 365 days in seconds

    @model_validator(mode="after")
    def _check_bounds(self) -> "ProtocolSettings":
        if self.max_profit_p <= 0:
            raise ValueError("max_profit_p must be positive")
        if self.min_loss_p > 0:
            raise ValueError("min_loss_p must not be positive")
        if self.max_lock_duration <= 0:
            raise ValueError("max_lock_duration must be positive")
        return self


class SolverSettings(BaseSettings):
    """Defaults for the collateral-from-notional fixed-point solver."""

    model_config = SettingsConfigDict(env_prefix="SOLVER_", frozen=True)

    max_iterations: int = 10
    tolerance_p: int = 10**16  # 0.01% (PRECISION_18 percent)


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        frozen=True,
    )

    log_level: str = "INFO"
    log_format: str = "console"  # "console" or "json"
    protocol: ProtocolSettings = ProtocolSettings()
    solver: SolverSettings = SolverSettings()
