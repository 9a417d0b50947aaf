"""Fixed-point pricing engine for a leveraged-trading protocol.

Reproduces the on-chain contract's integer arithmetic off-chain: opening
fees, funding and rollover accrual, liquidation, profit and leverage,
collateral adjustments, price impact and vault share pricing. Pure
functions and stateless calculators over int amounts; no I/O.
"""

from perpcalc.config import AppSettings, ProtocolSettings, SolverSettings
from perpcalc.engine import Engine, build_engine
from perpcalc.exceptions import (
    AboveMaxDepositError,
    CalculationError,
    ComputationError,
    InvalidInputError,
)
from perpcalc.fees import (
    CollateralSolver,
    get_current_rollover_fee,
    get_opening_fee,
    get_trade_funding_fee,
    get_trade_rollover_fee,
)
from perpcalc.fixed_point import MAX_UINT256, ScaledInt, approx_exp
from perpcalc.funding import get_funding_rate, get_target_funding_rate
from perpcalc.models import (
    FundingCurveConfig,
    MarketPrice,
    PairFeeConfig,
    PositionSnapshot,
    VaultState,
)
from perpcalc.position import (
    CollateralAdjuster,
    PositionValuator,
    get_price_impact,
    get_price_impact_parsed,
)
from perpcalc.risk import (
    is_day_trade_closed,
    pair_within_exposure_limit,
    within_exposure_limit,
)
from perpcalc.vault import VaultPricer

__all__ = [
    "MAX_UINT256",
    "AboveMaxDepositError",
    "AppSettings",
    "CalculationError",
    "CollateralAdjuster",
    "CollateralSolver",
    "ComputationError",
    "Engine",
    "FundingCurveConfig",
    "InvalidInputError",
    "MarketPrice",
    "PairFeeConfig",
    "PositionSnapshot",
    "PositionValuator",
    "ProtocolSettings",
    "ScaledInt",
    "SolverSettings",
    "VaultPricer",
    "VaultState",
    "approx_exp",
    "build_engine",
    "get_current_rollover_fee",
    "get_funding_rate",
    "get_opening_fee",
    "get_price_impact",
    "get_price_impact_parsed",
    "get_target_funding_rate",
    "get_trade_funding_fee",
    "get_trade_rollover_fee",
    "is_day_trade_closed",
    "pair_within_exposure_limit",
    "within_exposure_limit",
]
