"""Maker/taker split of a trade's notional based on open-interest skew.

A trade that moves open interest toward balance is charged the maker fee,
up to the point where long and short OI are equal. Anything past that point,
or any trade that widens the imbalance, pays the taker fee.
"""


def split_maker_taker(
    maker_max_leverage: int,
    trade_size: int,
    leverage: int,
    oi_delta: int,
) -> tuple[int, int]:
    """Split a signed trade size into (maker_amount, taker_amount).

    Args:
        maker_max_leverage: Highest leverage eligible for maker pricing (PRECISION_2).
        trade_size: Signed notional; positive adds long OI (PRECISION_6).
        leverage: Requested leverage (PRECISION_2).
        oi_delta: Long OI minus short OI (PRECISION_6).

    Returns:
        Tuple of unsigned (maker_amount, taker_amount).
    """
    if oi_delta * trade_size < 0 and leverage <= maker_max_leverage:
        if oi_delta * (oi_delta + trade_size) >= 0:
            return abs(trade_size), 0
        # Overshoots balance: maker up to zero, taker for the rest
        return abs(oi_delta), abs(oi_delta + trade_size)
    return 0, abs(trade_size)
