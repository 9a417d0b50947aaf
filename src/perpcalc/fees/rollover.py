"""Rollover accrual and per-trade holding fees.

Pair-level accumulators grow per block; a trade owes the difference between
the current accumulator and the value recorded when it opened, scaled by its
leveraged size.
"""

from perpcalc.exceptions import formula
from perpcalc.fixed_point import PRECISION_2, PRECISION_18, tdiv, to_int


@formula("Current Rollover Fee")
def get_current_rollover_fee(
    acc_rollover: int,
    last_rollover_block: int,
    rollover_fee_per_block: int,
    latest_block: int,
) -> int:
    """Pair rollover accumulator advanced to ``latest_block`` (PRECISION_18)."""
    acc_rollover = to_int(acc_rollover, "acc_rollover")
    elapsed = to_int(latest_block, "latest_block") - to_int(
        last_rollover_block, "last_rollover_block"
    )
    return acc_rollover + elapsed * to_int(rollover_fee_per_block, "rollover_fee_per_block")


def _accumulated_fee(trade_acc: int, current_acc: int, collateral: int, leverage: int) -> int:
    return tdiv(
        tdiv(
            (to_int(current_acc, "current_acc") - to_int(trade_acc, "trade_acc"))
            * to_int(collateral, "collateral")
            * to_int(leverage, "leverage"),
            PRECISION_18,
        ),
        PRECISION_2,
    )


@formula("Trade Rollover Fee")
def get_trade_rollover_fee(
    trade_rollover: int,
    current_rollover: int,
    collateral: int,
    leverage: int,
) -> int:
    """Rollover owed by a trade (PRECISION_6)."""
    return _accumulated_fee(trade_rollover, current_rollover, collateral, leverage)


@formula("Trade Funding Fee")
def get_trade_funding_fee(
    trade_funding: int,
    current_funding: int,
    collateral: int,
    leverage: int,
) -> int:
    """Funding owed by a trade (PRECISION_6); negative when the trade is paid."""
    return _accumulated_fee(trade_funding, current_funding, collateral, leverage)
