"""Opening fee computation and collateral-from-notional solving.

Opening fee = maker_fee_p * maker_amount + taker_fee_p * taker_amount,
divided by PRECISION_6 then PRECISION_2 (in that order, each step truncating).

Fee percentages are PRECISION_6 percent: 50_000 is 0.05% (5 bps).
"""

from perpcalc.config import SolverSettings
from perpcalc.exceptions import formula
from perpcalc.fees.skew import split_maker_taker
from perpcalc.fixed_point import PRECISION_2, PRECISION_6, PRECISION_12, PRECISION_18, tdiv, to_int
from perpcalc.logging import get_logger
from perpcalc.models import CollateralSolution, OpeningFee, PairFeeConfig

logger = get_logger(__name__)


def base_opening_fee(
    maker_max_leverage: int,
    trade_size: int,
    leverage: int,
    oi_delta: int,
    maker_fee_p: int,
    taker_fee_p: int,
) -> OpeningFee:
    """Compute the opening fee for a signed trade size against the current skew."""
    maker_amount, taker_amount = split_maker_taker(
        maker_max_leverage, trade_size, leverage, oi_delta
    )
    fee = tdiv(
        tdiv(maker_fee_p * maker_amount + taker_fee_p * taker_amount, PRECISION_6),
        PRECISION_2,
    )
    return OpeningFee(base_fee=fee, maker_amount=maker_amount, taker_amount=taker_amount)


@formula("Opening Fee")
def get_opening_fee(pair: PairFeeConfig, position_size: object, leverage: object) -> OpeningFee:
    """Opening fee for a new position on ``pair``.

    Args:
        pair: Pair fee rates and open interest.
        position_size: Signed leveraged position size (PRECISION_6);
            positive for a long.
        leverage: Requested leverage (PRECISION_2).

    Returns:
        OpeningFee with the base fee and its maker/taker breakdown.
    """
    return base_opening_fee(
        pair.maker_max_leverage,
        to_int(position_size, "position_size"),
        to_int(leverage, "leverage"),
        pair.oi_delta,
        pair.maker_fee_p,
        pair.taker_fee_p,
    )


class CollateralSolver:
    """Finds the collateral input that yields a target notional after fees.

    The opening fee depends on the trade size, which depends on the
    collateral left after the fee, so the answer is found by fixed-point
    iteration. Hitting the iteration cap is not an error: the last estimate
    is returned with ``converged=False``.

    Args:
        settings: Default iteration cap and tolerance.
    """

    def __init__(self, settings: SolverSettings | None = None) -> None:
        self._settings = settings or SolverSettings()

    @formula("Collateral Input From Notional")
    def solve(
        self,
        notional: int,
        is_open: bool,
        is_long: bool,
        leverage: int,
        price: int,
        pair: PairFeeConfig,
        tolerance_p: int | None = None,
        max_iterations: int | None = None,
    ) -> CollateralSolution:
        """Solve for the collateral needed to open ``notional`` at ``price``.

        Args:
            notional: Target position size in asset units (PRECISION_18).
            is_open: True when opening, False when closing.
            is_long: Trade direction.
            leverage: Requested leverage (PRECISION_2).
            price: Execution price (PRECISION_18).
            pair: Pair fee rates and open interest.
            tolerance_p: Max relative deviation, PRECISION_18 percent.
            max_iterations: Iteration cap.

        Returns:
            CollateralSolution with the collateral estimate (PRECISION_6),
            the notional it realizes, the iteration count and convergence flag.
        """
        notional = to_int(notional, "notional")
        leverage = to_int(leverage, "leverage")
        price = to_int(price, "price")
        if tolerance_p is None:
            tolerance_p = self._settings.tolerance_p
        if max_iterations is None:
            max_iterations = self._settings.max_iterations

        sign = 1 if is_open == is_long else -1

        trade_size = tdiv(tdiv(notional * price, PRECISION_18), PRECISION_12)
        collateral = tdiv(trade_size * PRECISION_2, leverage)

        initial_fee = tdiv(
            tdiv(min(pair.taker_fee_p, pair.maker_fee_p) * trade_size, PRECISION_6),
            PRECISION_2,
        )
        estimate = collateral + initial_fee
        realized = notional
        deviation_p = 0

        iteration = 0
        while iteration < max_iterations:
            fee = base_opening_fee(
                pair.maker_max_leverage,
                trade_size * sign,
                leverage,
                pair.oi_delta,
                pair.maker_fee_p,
                pair.taker_fee_p,
            ).base_fee
            realized = tdiv(
                tdiv((estimate - fee) * leverage, PRECISION_2) * PRECISION_18 * PRECISION_12,
                price,
            )
            deviation_p = tdiv(abs(realized - notional) * 100 * PRECISION_18, notional)
            if deviation_p <= tolerance_p:
                logger.debug(
                    "collateral_solver_converged",
                    iterations=iteration,
                    collateral=estimate,
                )
                return CollateralSolution(
                    collateral=estimate,
                    notional=realized,
                    iterations=iteration,
                    converged=True,
                )

            estimate = collateral + fee
            trade_size = tdiv(estimate * leverage, PRECISION_2)
            iteration += 1

        logger.warning(
            "collateral_solver_not_converged",
            iterations=iteration,
            deviation_p=deviation_p,
            tolerance_p=tolerance_p,
        )
        return CollateralSolution(
            collateral=estimate,
            notional=realized,
            iterations=iteration,
            converged=False,
        )
