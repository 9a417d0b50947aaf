"""Collateral top-up and withdrawal, framed either as an amount or a target leverage.

Each pair of formulas inverts ``leverage = notional / collateral`` with the
notional held fixed. Leverage is PRECISION_2, collateral PRECISION_6.
"""

from perpcalc.config import ProtocolSettings
from perpcalc.exceptions import formula
from perpcalc.fixed_point import PRECISION_2, PRECISION_6, tdiv, to_int
from perpcalc.position.valuation import PositionValuator


class CollateralAdjuster:
    """Converts between collateral changes and resulting leverage.

    Args:
        protocol: Protocol constants (liquidation margin, profit cap).
    """

    def __init__(self, protocol: ProtocolSettings | None = None) -> None:
        self._protocol = protocol or ProtocolSettings()
        self._valuator = PositionValuator(self._protocol)

    @formula("Top Up With Collateral")
    def top_up_with_collateral(self, leverage: int, collateral: int, added_collateral: int) -> int:
        """New leverage after adding ``added_collateral``."""
        collateral = to_int(collateral, "collateral")
        return tdiv(
            collateral * to_int(leverage, "leverage"),
            collateral + to_int(added_collateral, "added_collateral"),
        )

    @formula("Top Up With Leverage")
    def top_up_with_leverage(self, leverage: int, desired_leverage: int, collateral: int) -> int:
        """Collateral to add to bring ``leverage`` down to ``desired_leverage``."""
        collateral = to_int(collateral, "collateral")
        return (
            tdiv(collateral * to_int(leverage, "leverage"), to_int(desired_leverage, "desired_leverage"))
            - collateral
        )

    @formula("Remove Collateral With Collateral")
    def remove_collateral_with_collateral(
        self, leverage: int, collateral: int, removed_collateral: int
    ) -> int:
        """New leverage after removing ``removed_collateral``."""
        collateral = to_int(collateral, "collateral")
        return tdiv(
            collateral * to_int(leverage, "leverage"),
            collateral - to_int(removed_collateral, "removed_collateral"),
        )

    @formula("Remove Collateral From Leverage")
    def remove_collateral_from_leverage(
        self, leverage: int, desired_leverage: int, collateral: int
    ) -> int:
        """Collateral to remove to raise ``leverage`` to ``desired_leverage``."""
        collateral = to_int(collateral, "collateral")
        return collateral - tdiv(
            collateral * to_int(leverage, "leverage"),
            to_int(desired_leverage, "desired_leverage"),
        )

    @formula("Remove Collateral For Liquidation")
    def remove_collateral_for_liquidation(
        self,
        collateral: int,
        rollover_fee: int,
        funding_fee: int,
        profit: int,
        leverage: int,
        max_leverage: int,
    ) -> int:
        """Most collateral withdrawable while staying above the liquidation margin.

        Unrealized losses (net of fees) reduce the available collateral;
        gains do not add to it.
        """
        collateral = to_int(collateral, "collateral")
        total_profit = (
            to_int(profit, "profit")
            - to_int(rollover_fee, "rollover_fee")
            - to_int(funding_fee, "funding_fee")
        )
        margin = self._valuator.liquidation_margin(collateral, leverage, max_leverage)
        available = collateral + total_profit if total_profit < 0 else collateral
        return available - margin if available > margin else 0

    @formula("Remove Collateral For Profit Protection")
    def remove_collateral_for_profit_protection(
        self,
        open_price: int,
        current_price: int,
        trade_size: int,
        leverage: int,
        highest_leverage: int,
        is_long: bool,
    ) -> int:
        """Collateral removable without pushing unrealized profit past the cap.

        The leverage at which the current move would hit max_profit_p is
        floored at ``highest_leverage``; the collateral that leverage implies
        is compared with the current collateral.
        """
        open_price = to_int(open_price, "open_price")
        current_price = to_int(current_price, "current_price")
        trade_size = to_int(trade_size, "trade_size")
        highest_leverage = to_int(highest_leverage, "highest_leverage")

        delta = current_price - open_price if is_long else open_price - current_price
        if delta == 0:
            new_leverage = 0
        else:
            new_leverage = tdiv(tdiv(self._protocol.max_profit_p, PRECISION_6) * open_price, delta)
        new_leverage = max(new_leverage, highest_leverage)

        new_collateral = tdiv(trade_size, new_leverage) * PRECISION_2
        old_collateral = tdiv(trade_size, to_int(leverage, "leverage")) * PRECISION_2

        if new_collateral < old_collateral:
            return old_collateral - new_collateral
        return old_collateral
