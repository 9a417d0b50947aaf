"""Tests for opening fees and the collateral-from-notional solver.

Fee percentages are PRECISION_6 percent: 10_000 = 1 bp, 50_000 = 5 bps.
"""

import pytest

from perpcalc.config import SolverSettings
from perpcalc.exceptions import ComputationError, InvalidInputError
from perpcalc.fees.opening import CollateralSolver, base_opening_fee, get_opening_fee
from perpcalc.models import PairFeeConfig

USDC = 10**6
E18 = 10**18


class TestOpeningFee:
    """get_opening_fee: maker/taker weighted fee against pair skew."""

    def test_balanced_book_charges_taker_only(self, balanced_pair: PairFeeConfig) -> None:
        """10x long of 10,000 USDC on a balanced book pays 5 bps taker."""
        fee = get_opening_fee(balanced_pair, 10_000 * USDC, 1000)
        # 50_000 * 10_000_000_000 / 1e6 / 1e2 = 5_000_000
        assert fee.base_fee == 5 * USDC
        assert fee.maker_amount == 0
        assert fee.taker_amount == 10_000 * USDC

    def test_skew_reducing_trade_splits_fee(self) -> None:
        pair = PairFeeConfig(
            maker_fee_p=10_000,
            taker_fee_p=50_000,
            maker_max_leverage=5000,
            oi_long=8_000 * USDC,
            oi_short=2_000 * USDC,
        )
        fee = get_opening_fee(pair, -10_000 * USDC, 1000)
        # maker 6,000 at 1 bp = 0.6, taker 4,000 at 5 bps = 2.0
        assert fee.maker_amount == 6_000 * USDC
        assert fee.taker_amount == 4_000 * USDC
        assert fee.base_fee == 2_600_000

    def test_fee_truncates(self) -> None:
        # 50_000 * 19_999 / 1e8 = 9.9995
        fee = base_opening_fee(5000, 19_999, 1000, 0, 10_000, 50_000)
        assert fee.base_fee == 9

    def test_accepts_string_inputs(self) -> None:
        pair = PairFeeConfig("10000", "50000", "5000", "0", "0")
        fee = get_opening_fee(pair, "10000000000", "1000")
        assert fee.base_fee == 5 * USDC

    def test_rejects_non_integer_size(self, balanced_pair: PairFeeConfig) -> None:
        with pytest.raises(InvalidInputError, match="position_size"):
            get_opening_fee(balanced_pair, "10.5", 1000)


class TestCollateralSolver:
    """Fixed-point iteration for collateral behind a target notional.

    Scenario: 5 ETH at $2,000, 10x, balanced book, taker 5 bps.
    Fee-free collateral is 1,000 USDC; the 5 USDC fee must be added on top.
    """

    NOTIONAL = 5 * E18
    PRICE = 2000 * E18

    def test_converges_within_tolerance(self, balanced_pair: PairFeeConfig) -> None:
        solver = CollateralSolver(SolverSettings())
        result = solver.solve(self.NOTIONAL, True, True, 1000, self.PRICE, balanced_pair)
        # iteration 0: estimate 1,001 USDC realizes 4.98 ETH (0.4% off)
        # iteration 1: estimate 1,005 USDC realizes 4.999875 ETH (0.0025% off)
        assert result.converged is True
        assert result.iterations == 1
        assert result.collateral == 1_005_000_000
        assert result.notional == 4_999_875_000_000_000_000

    def test_cap_exhaustion_returns_last_estimate(self, balanced_pair: PairFeeConfig) -> None:
        solver = CollateralSolver(SolverSettings(tolerance_p=0, max_iterations=3))
        result = solver.solve(self.NOTIONAL, True, True, 1000, self.PRICE, balanced_pair)
        assert result.converged is False
        assert result.iterations == 3
        assert result.collateral == 1_005_025_125
        assert result.notional == 4_999_999_375_000_000_000

    def test_call_arguments_override_settings(self, balanced_pair: PairFeeConfig) -> None:
        solver = CollateralSolver(SolverSettings(tolerance_p=0, max_iterations=3))
        result = solver.solve(
            self.NOTIONAL,
            True,
            True,
            1000,
            self.PRICE,
            balanced_pair,
            tolerance_p=10**16,
            max_iterations=10,
        )
        assert result.converged is True
        assert result.iterations == 1

    def test_zero_iterations_returns_initial_estimate(
        self, balanced_pair: PairFeeConfig
    ) -> None:
        result = CollateralSolver().solve(
            self.NOTIONAL, True, True, 1000, self.PRICE, balanced_pair, max_iterations=0
        )
        # 1,000 USDC plus the cheaper (maker) fee as a first guess
        assert result.collateral == 1_001_000_000
        assert result.notional == self.NOTIONAL
        assert result.converged is False

    def test_zero_leverage_is_computation_error(self, balanced_pair: PairFeeConfig) -> None:
        with pytest.raises(ComputationError) as exc_info:
            CollateralSolver().solve(self.NOTIONAL, True, True, 0, self.PRICE, balanced_pair)
        assert exc_info.value.formula == "Collateral Input From Notional"
        assert exc_info.value.inputs["leverage"] == 0
        assert isinstance(exc_info.value.__cause__, ZeroDivisionError)


class TestCollateralSolverSkewedBook:
    """Same 5 ETH at $2,000, 10x, on a long-heavy book (8,000 long / 2,000 short).

    A trade that adds short OI is priced at maker up to the 6,000 USDC skew
    and taker beyond it; one that adds long OI pays taker on everything.
    """

    NOTIONAL = 5 * E18
    PRICE = 2000 * E18

    @pytest.fixture
    def long_heavy_pair(self) -> PairFeeConfig:
        return PairFeeConfig(
            maker_fee_p=10_000,
            taker_fee_p=50_000,
            maker_max_leverage=5000,
            oi_long=8_000 * USDC,
            oi_short=2_000 * USDC,
        )

    @pytest.mark.parametrize(
        ("is_open", "is_long"),
        [(True, False), (False, True)],  # open short, close long
    )
    def test_skew_reducing_side_refines_split(
        self, long_heavy_pair: PairFeeConfig, is_open: bool, is_long: bool
    ) -> None:
        result = CollateralSolver().solve(
            self.NOTIONAL, is_open, is_long, 1000, self.PRICE, long_heavy_pair
        )
        # iteration 0: size 10,000 -> maker 6,000 + taker 4,000, fee 2.6 USDC;
        #   1,001 - 2.6 realizes 4.992 ETH (0.16% off)
        # iteration 1: size 10,026 -> taker grows to 4,026, fee 2.613 USDC;
        #   1,002.6 - 2.613 realizes 4.999935 ETH (0.0013% off)
        assert result.converged is True
        assert result.iterations == 1
        assert result.collateral == 1_002_600_000
        assert result.notional == 4_999_935_000_000_000_000

    def test_skew_increasing_side_pays_taker(self, long_heavy_pair: PairFeeConfig) -> None:
        result = CollateralSolver().solve(
            self.NOTIONAL, True, True, 1000, self.PRICE, long_heavy_pair
        )
        assert result.collateral == 1_005_000_000
        assert result.notional == 4_999_875_000_000_000_000

    def test_closing_on_balanced_book_matches_opening(self, balanced_pair: PairFeeConfig) -> None:
        opened = CollateralSolver().solve(
            self.NOTIONAL, True, True, 1000, self.PRICE, balanced_pair
        )
        closed = CollateralSolver().solve(
            self.NOTIONAL, False, True, 1000, self.PRICE, balanced_pair
        )
        assert closed == opened
