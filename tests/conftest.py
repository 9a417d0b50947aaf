"""Shared test fixtures for the perpcalc pricing engine.

Amount conventions used throughout the tests:
  - 1 USDC = 1_000_000 (PRECISION_6)
  - 10x leverage = 1000 (PRECISION_2)
  - $2,000 = 2000 * 10**18 (PRECISION_18)
"""

import logging

import pytest
import structlog

from perpcalc.config import ProtocolSettings, SolverSettings
from perpcalc.models import PairFeeConfig
from perpcalc.position.collateral import CollateralAdjuster
from perpcalc.position.valuation import PositionValuator
from perpcalc.vault.shares import VaultPricer

USDC = 10**6
E18 = 10**18


@pytest.fixture
def protocol() -> ProtocolSettings:
    """Mainnet protocol constants."""
    return ProtocolSettings()


@pytest.fixture
def solver_settings() -> SolverSettings:
    return SolverSettings()


@pytest.fixture
def valuator(protocol: ProtocolSettings) -> PositionValuator:
    return PositionValuator(protocol)


@pytest.fixture
def adjuster(protocol: ProtocolSettings) -> CollateralAdjuster:
    return CollateralAdjuster(protocol)


@pytest.fixture
def vault_pricer(protocol: ProtocolSettings) -> VaultPricer:
    return VaultPricer(protocol)


@pytest.fixture
def balanced_pair() -> PairFeeConfig:
    """Maker 1 bp, taker 5 bp, 50x maker leverage, no open interest."""
    return PairFeeConfig(
        maker_fee_p=10_000,
        taker_fee_p=50_000,
        maker_max_leverage=5000,
        oi_long=0,
        oi_short=0,
        max_oi=1_000_000 * USDC,
    )


@pytest.fixture
def restore_logging():
    """Undo setup_logging side effects on the root logger and structlog."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)
