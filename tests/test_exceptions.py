"""Tests for the error taxonomy and the formula decorator."""

import pytest

from perpcalc.exceptions import (
    AboveMaxDepositError,
    CalculationError,
    ComputationError,
    InvalidInputError,
    formula,
)
from perpcalc.fixed_point import tdiv, to_int


@formula("Inner Ratio")
def _inner_ratio(numerator: int, denominator: int) -> int:
    return tdiv(to_int(numerator, "numerator"), to_int(denominator, "denominator"))


@formula("Outer Ratio")
def _outer_ratio(amount: int, divisor: int) -> int:
    return _inner_ratio(to_int(amount, "amount"), divisor)


@formula("Rejecting Policy")
def _rejecting_policy(assets: int) -> int:
    raise AboveMaxDepositError(assets, 0)


class TestHierarchy:
    @pytest.mark.parametrize(
        "error",
        [
            InvalidInputError("collateral", "x", "bad"),
            ComputationError("Ratio", {}, ZeroDivisionError()),
            AboveMaxDepositError(2, 1),
        ],
    )
    def test_all_errors_share_base(self, error: Exception) -> None:
        assert isinstance(error, CalculationError)

    def test_input_error_outside_formula_has_no_formula(self) -> None:
        error = InvalidInputError("collateral", "x", "bad")
        assert error.formula is None
        assert error.inputs is None
        assert str(error) == "Invalid collateral='x': bad"


class TestFormulaDecorator:
    """Formula name and raw inputs are attached to failures."""

    def test_zero_division_becomes_computation_error(self) -> None:
        with pytest.raises(ComputationError, match="Unable to compute Inner Ratio") as exc_info:
            _inner_ratio(10, 0)
        assert exc_info.value.inputs == {"numerator": 10, "denominator": 0}
        assert isinstance(exc_info.value.__cause__, ZeroDivisionError)

    def test_invalid_input_carries_formula_and_inputs(self) -> None:
        with pytest.raises(InvalidInputError, match=r"\(in Inner Ratio\)") as exc_info:
            _inner_ratio("ten", denominator=2)
        error = exc_info.value
        assert error.field == "numerator"
        assert error.value == "ten"
        assert error.formula == "Inner Ratio"
        assert error.inputs == {"numerator": "ten", "denominator": 2}
        assert isinstance(error.__cause__, InvalidInputError)
        assert error.__cause__.formula is None

    def test_innermost_formula_claims_the_input_error(self) -> None:
        with pytest.raises(InvalidInputError) as exc_info:
            _outer_ratio(10, "two")
        assert exc_info.value.formula == "Inner Ratio"
        assert exc_info.value.field == "denominator"

    def test_outer_formula_claims_its_own_input_error(self) -> None:
        with pytest.raises(InvalidInputError) as exc_info:
            _outer_ratio("ten", 2)
        assert exc_info.value.formula == "Outer Ratio"
        assert exc_info.value.inputs == {"amount": "ten", "divisor": 2}

    def test_policy_errors_pass_through(self) -> None:
        with pytest.raises(AboveMaxDepositError):
            _rejecting_policy(5)

    def test_wrapped_function_keeps_name(self) -> None:
        assert _inner_ratio.__name__ == "_inner_ratio"
        assert _inner_ratio(7, -2) == -3
