"""Price impact estimation from the live bid/mid/ask quote.

Opening a long or closing a short executes at the ask; the opposite
executes at the bid. Impact is the execution side's distance from mid,
as a PRECISION_18 percentage.
"""

from decimal import Decimal

from perpcalc.config import ProtocolSettings
from perpcalc.exceptions import formula
from perpcalc.fixed_point import PRECISION_18, ScaledInt, tdiv, to_int
from perpcalc.models import MarketPrice, PriceImpact


@formula("Price Impact")
def get_price_impact(
    mid_price: int,
    bid_price: int,
    ask_price: int,
    is_open: bool,
    is_long: bool,
    protocol: ProtocolSettings | None = None,
) -> PriceImpact:
    """Price impact and execution price for a trade.

    Returns the measured impact only when it exceeds max_price_impact_p
    (a raw percentage); otherwise the floor ``max_price_impact_p * 1e18``
    is reported.

    Args:
        mid_price: Mid price, PRECISION_18.
        bid_price: Bid price, PRECISION_18.
        ask_price: Ask price, PRECISION_18.
        is_open: True when opening a position.
        is_long: Trade direction.
        protocol: Protocol constants; defaults apply when omitted.

    Returns:
        PriceImpact with impact percentage and price after impact.
    """
    protocol = protocol or ProtocolSettings()
    mid = to_int(mid_price, "mid_price")
    above_spot = is_open == is_long
    execution = to_int(ask_price if above_spot else bid_price, "execution_price")

    impact_p = tdiv(abs(mid - execution) * PRECISION_18, mid) * 100
    if impact_p <= protocol.max_price_impact_p:
        impact_p = protocol.max_price_impact_p * PRECISION_18

    return PriceImpact(price_impact_p=impact_p, price_after_impact=execution)


def get_price_impact_parsed(
    market: MarketPrice,
    is_buy: bool,
    is_open: bool = False,
    protocol: ProtocolSettings | None = None,
) -> Decimal:
    """Execution price in human units for a market-data quote.

    Returns Decimal("0") when the quote has no mid price.
    """
    if not market.mid:
        return Decimal("0")
    impact = get_price_impact(
        ScaledInt.from_decimal(market.mid, 18).value,
        ScaledInt.from_decimal(market.bid, 18).value,
        ScaledInt.from_decimal(market.ask, 18).value,
        is_open,
        is_buy,
        protocol,
    )
    return ScaledInt(impact.price_after_impact, 18).to_decimal()
