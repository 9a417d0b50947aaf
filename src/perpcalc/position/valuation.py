"""Profit, leverage, liquidation and target-price valuation of a position.

All formulas reproduce the contract's integer arithmetic step by step;
every intermediate division truncates toward zero. Floors and caps
(profit capped at max_profit_p, loss floored at min_loss_p, prices floored
at zero) are protocol policy, not error handling.
"""

from perpcalc.config import ProtocolSettings
from perpcalc.exceptions import formula
from perpcalc.fees.rollover import get_trade_funding_fee, get_trade_rollover_fee
from perpcalc.fixed_point import PRECISION_2, PRECISION_6, tdiv, to_int
from perpcalc.models import PositionSnapshot, PositionValuation, TradeValue


class PositionValuator:
    """Values open positions under one set of protocol constants.

    Args:
        protocol: Protocol constants (liquidation margin, profit cap, loss floor).
    """

    def __init__(self, protocol: ProtocolSettings | None = None) -> None:
        self._protocol = protocol or ProtocolSettings()

    @formula("Trade Profit Percentage")
    def trade_profit_p(
        self,
        open_price: int,
        current_price: int,
        is_long: bool,
        leverage: int,
        highest_leverage: int,
    ) -> int:
        """Price-move profit percentage (PRECISION_6 percent).

        The leverage used is min(leverage, highest_leverage); the result is
        capped at max_profit_p and then rescaled back to ``leverage``.
        """
        open_price = to_int(open_price, "open_price")
        current_price = to_int(current_price, "current_price")
        leverage = to_int(leverage, "leverage")
        leverage_used = min(leverage, to_int(highest_leverage, "highest_leverage"))

        delta = current_price - open_price if is_long else open_price - current_price
        profit_p = tdiv(
            tdiv(delta * PRECISION_6 * 100 * leverage_used, PRECISION_2), open_price
        )
        profit_p = min(profit_p, self._protocol.max_profit_p)

        return tdiv(profit_p * leverage, leverage_used)

    @formula("Trade Profit")
    def trade_profit(self, profit_p: int, collateral: int) -> int:
        """Profit amount (PRECISION_6) for a profit percentage on ``collateral``."""
        return tdiv(
            tdiv(to_int(collateral, "collateral") * to_int(profit_p, "profit_p"), PRECISION_6),
            100,
        )

    def trade_profit_raw(
        self,
        open_price: int,
        current_price: int,
        is_long: bool,
        leverage: int,
        highest_leverage: int,
        collateral: int,
    ) -> int:
        profit_p = self.trade_profit_p(
            open_price, current_price, is_long, leverage, highest_leverage
        )
        return self.trade_profit(profit_p, collateral)

    @formula("Total Profit")
    def total_profit(self, trade_profit: int, rollover_fee: int, funding_fee: int) -> int:
        """Trade profit net of rollover and funding fees."""
        return (
            to_int(trade_profit, "trade_profit")
            - to_int(rollover_fee, "rollover_fee")
            - to_int(funding_fee, "funding_fee")
        )

    def total_profit_raw(
        self,
        open_price: int,
        current_price: int,
        is_long: bool,
        leverage: int,
        highest_leverage: int,
        collateral: int,
        rollover_fee: int,
        funding_fee: int,
    ) -> int:
        trade_profit = self.trade_profit_raw(
            open_price, current_price, is_long, leverage, highest_leverage, collateral
        )
        return self.total_profit(trade_profit, rollover_fee, funding_fee)

    @formula("Total Profit Percentage")
    def total_profit_p(self, total_profit: int, collateral: int) -> int:
        """Total profit as a percentage of collateral, floored at min_loss_p."""
        profit_p = tdiv(
            to_int(total_profit, "total_profit") * PRECISION_6 * 100,
            to_int(collateral, "collateral"),
        )
        return max(profit_p, self._protocol.min_loss_p)

    @formula("Current Leverage")
    def current_leverage(self, total_profit: int, leverage: int, collateral: int) -> int:
        """Effective leverage once profit is added to collateral, floored at zero."""
        collateral = to_int(collateral, "collateral")
        total_profit = to_int(total_profit, "total_profit")
        current = tdiv(
            (tdiv(collateral * to_int(leverage, "leverage"), PRECISION_2) + total_profit)
            * PRECISION_2,
            collateral + total_profit,
        )
        return max(current, 0)

    def current_leverage_raw(
        self,
        open_price: int,
        current_price: int,
        is_long: bool,
        leverage: int,
        highest_leverage: int,
        collateral: int,
        rollover_fee: int,
        funding_fee: int,
    ) -> int:
        total_profit = self.total_profit_raw(
            open_price,
            current_price,
            is_long,
            leverage,
            highest_leverage,
            collateral,
            rollover_fee,
            funding_fee,
        )
        return self.current_leverage(total_profit, leverage, collateral)

    @formula("Trade Liquidation Margin")
    def liquidation_margin(self, collateral: int, leverage: int, max_leverage: int) -> int:
        """Collateral that must remain before liquidation (PRECISION_6).

        liq_margin_p of collateral at max leverage, proportionally less below it.
        """
        threshold = tdiv(
            self._protocol.liq_margin_p * to_int(leverage, "leverage") * PRECISION_6,
            to_int(max_leverage, "max_leverage"),
        )
        return tdiv(
            tdiv(to_int(collateral, "collateral") * threshold, PRECISION_6), PRECISION_2
        )

    @formula("Liquidation Price")
    def liquidation_price(
        self,
        open_price: int,
        is_long: bool,
        collateral: int,
        leverage: int,
        rollover_fee: int,
        funding_fee: int,
        max_leverage: int,
    ) -> int:
        """Price at which collateral minus margin and fees reaches zero, floored at zero."""
        open_price = to_int(open_price, "open_price")
        collateral = to_int(collateral, "collateral")
        leverage = to_int(leverage, "leverage")

        margin = self.liquidation_margin(collateral, leverage, max_leverage)
        remaining = (
            collateral
            - margin
            - to_int(rollover_fee, "rollover_fee")
            - to_int(funding_fee, "funding_fee")
        )
        distance = tdiv(tdiv(open_price * remaining, collateral) * PRECISION_2, leverage)

        price = open_price - distance if is_long else open_price + distance
        return max(price, 0)

    @formula("Trade Value")
    def trade_value(
        self,
        open_price: int,
        current_price: int,
        is_long: bool,
        leverage: int,
        highest_leverage: int,
        max_leverage: int,
        collateral: int,
        rollover_fee: int,
        funding_fee: int,
    ) -> TradeValue:
        total_profit = self.total_profit_raw(
            open_price,
            current_price,
            is_long,
            leverage,
            highest_leverage,
            collateral,
            rollover_fee,
            funding_fee,
        )
        return TradeValue(
            trade_value=to_int(collateral, "collateral") + total_profit,
            liquidation_margin=self.liquidation_margin(collateral, leverage, max_leverage),
        )

    @formula("Take Profit Price")
    def take_profit_price(
        self, open_price: int, profit_p: int, leverage: int, is_long: bool
    ) -> int:
        """Price at which the trade shows ``profit_p`` (PRECISION_6 percent)."""
        open_price = to_int(open_price, "open_price")
        diff = self._price_diff(open_price, to_int(profit_p, "profit_p"), leverage)
        return max(open_price + diff if is_long else open_price - diff, 0)

    @formula("Stop Loss Price")
    def stop_loss_price(self, open_price: int, loss_p: int, leverage: int, is_long: bool) -> int:
        """Price at which the trade shows a loss of ``loss_p`` (PRECISION_6 percent)."""
        open_price = to_int(open_price, "open_price")
        diff = self._price_diff(open_price, to_int(loss_p, "loss_p"), leverage)
        return max(open_price - diff if is_long else open_price + diff, 0)

    @staticmethod
    def _price_diff(open_price: int, percent: int, leverage: int) -> int:
        diff = tdiv(tdiv(open_price * percent, to_int(leverage, "leverage")), PRECISION_6)
        return tdiv(diff * PRECISION_2, 100)

    def evaluate(
        self,
        position: PositionSnapshot,
        current_price: int,
        max_leverage: int,
    ) -> PositionValuation:
        """Value a stored position at ``current_price`` in one pass.

        Rollover and funding fees are derived from the snapshot's accumulators.
        """
        rollover_fee = get_trade_rollover_fee(
            position.trade_rollover,
            position.current_rollover,
            position.collateral,
            position.leverage,
        )
        funding_fee = get_trade_funding_fee(
            position.trade_funding,
            position.current_funding,
            position.collateral,
            position.leverage,
        )
        profit_p = self.trade_profit_p(
            position.open_price,
            current_price,
            position.is_long,
            position.leverage,
            position.highest_leverage,
        )
        total_profit = self.total_profit(
            self.trade_profit(profit_p, position.collateral), rollover_fee, funding_fee
        )
        return PositionValuation(
            rollover_fee=rollover_fee,
            funding_fee=funding_fee,
            profit_p=profit_p,
            total_profit=total_profit,
            total_profit_p=self.total_profit_p(total_profit, position.collateral),
            current_leverage=self.current_leverage(
                total_profit, position.leverage, position.collateral
            ),
            liquidation_price=self.liquidation_price(
                position.open_price,
                position.is_long,
                position.collateral,
                position.leverage,
                rollover_fee,
                funding_fee,
                max_leverage,
            ),
            trade_value=position.collateral + total_profit,
            liquidation_margin=self.liquidation_margin(
                position.collateral, position.leverage, max_leverage
            ),
        )
