"""Opening, rollover and funding fee computation."""

from perpcalc.fees.opening import CollateralSolver, base_opening_fee, get_opening_fee
from perpcalc.fees.rollover import (
    get_current_rollover_fee,
    get_trade_funding_fee,
    get_trade_rollover_fee,
)
from perpcalc.fees.skew import split_maker_taker

__all__ = [
    "CollateralSolver",
    "base_opening_fee",
    "get_current_rollover_fee",
    "get_opening_fee",
    "get_trade_funding_fee",
    "get_trade_rollover_fee",
    "split_maker_taker",
]
