"""Pre-trade exposure gates: open-interest and collateral caps, day-trade limits."""

from perpcalc.exceptions import formula
from perpcalc.fixed_point import PRECISION_2, tdiv, to_int
from perpcalc.models import PairFeeConfig


@formula("Exposure Limit")
def within_exposure_limit(
    oi: int,
    max_oi: int,
    group_collateral: int,
    max_collateral_p: int,
    vault_balance: int,
    collateral: int,
    leverage: int,
) -> bool:
    """Check that a new trade keeps both the pair OI and group collateral under their caps.

    Args:
        oi: Current pair open interest (PRECISION_6).
        max_oi: Pair OI cap (PRECISION_6).
        group_collateral: Collateral already committed to the group (PRECISION_6).
        max_collateral_p: Group share of the vault balance, PRECISION_2 percent.
        vault_balance: Vault assets (PRECISION_6).
        collateral: New trade collateral (PRECISION_6).
        leverage: New trade leverage (PRECISION_2).

    Returns:
        True only when both caps hold.
    """
    collateral = to_int(collateral, "collateral")
    max_collateral = tdiv(
        tdiv(
            to_int(vault_balance, "vault_balance") * to_int(max_collateral_p, "max_collateral_p"),
            100,
        ),
        PRECISION_2,
    )
    new_oi = to_int(oi, "oi") + tdiv(collateral * to_int(leverage, "leverage"), PRECISION_2)

    oi_within_limit = new_oi <= to_int(max_oi, "max_oi")
    collateral_within_limit = (
        to_int(group_collateral, "group_collateral") + collateral <= max_collateral
    )
    return oi_within_limit and collateral_within_limit


@formula("Pair Exposure Limit")
def pair_within_exposure_limit(
    pair: PairFeeConfig,
    is_long: bool,
    group_collateral: int,
    max_collateral_p: int,
    vault_balance: int,
    collateral: int,
    leverage: int,
) -> bool:
    """Exposure check against the pair's own OI cap, on the side the trade opens.

    A pair with ``max_oi == 0`` has no OI headroom and rejects every trade.
    """
    return within_exposure_limit(
        pair.oi_long if is_long else pair.oi_short,
        pair.max_oi,
        group_collateral,
        max_collateral_p,
        vault_balance,
        collateral,
        leverage,
    )


@formula("Day Trade Closed")
def is_day_trade_closed(
    leverage: int,
    overnight_max_leverage: int,
    is_day_trading_closed: bool,
) -> bool:
    """True when day trading is closed and ``leverage`` exceeds the overnight maximum.

    An overnight maximum of zero means the pair has no overnight limit.
    """
    if not is_day_trading_closed:
        return False
    overnight = to_int(overnight_max_leverage, "overnight_max_leverage")
    return overnight > 0 and to_int(leverage, "leverage") > overnight
