"""Custom exceptions for the perpcalc pricing engine.

All exceptions live here to avoid circular imports between the fixed-point
core and the calculation modules.
"""

from __future__ import annotations

import functools
import inspect
from collections.abc import Callable
from typing import Any, TypeVar

from perpcalc.logging import get_logger

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class CalculationError(Exception):
    """Base exception for all perpcalc errors."""


class InvalidInputError(CalculationError):
    """Raised when a value cannot be read as an integer of the expected scale.

    Also raised when an input snapshot breaks one of its invariants,
    e.g. a funding curve whose latest block precedes its last update.
    When raised from inside a formula, ``formula`` and ``inputs`` name the
    formula and the raw arguments it was called with.
    """

    def __init__(
        self,
        field: str,
        value: object,
        reason: str,
        formula: str | None = None,
        inputs: dict[str, Any] | None = None,
    ) -> None:
        self.field = field
        self.value = value
        self.reason = reason
        self.formula = formula
        self.inputs = inputs
        message = f"Invalid {field}={value!r}: {reason}"
        if formula is not None:
            message = f"{message} (in {formula})"
        super().__init__(message)


class ComputationError(CalculationError):
    """Raised when a formula cannot produce a result (e.g. zero denominator).

    Carries the formula name and the raw arguments it was called with.
    """

    def __init__(self, formula: str, inputs: dict[str, Any], cause: Exception) -> None:
        self.formula = formula
        self.inputs = inputs
        super().__init__(f"Unable to compute {formula}: {cause}")


class AboveMaxDepositError(CalculationError):
    """Raised when a discounted vault deposit exceeds the max-deposit ceiling."""

    def __init__(self, assets: int, max_deposit: int) -> None:
        self.assets = assets
        self.max_deposit = max_deposit
        super().__init__(f"AboveMaxDeposit: {assets} > {max_deposit}")


def formula(name: str) -> Callable[[F], F]:
    """Attach the formula name and raw inputs to calculation failures.

    ZeroDivisionError becomes ComputationError. An InvalidInputError is
    re-raised with ``formula`` and ``inputs`` filled in, unless a nested
    formula already claimed it. Policy errors pass through unchanged.
    """

    def decorator(func: F) -> F:
        signature = inspect.signature(func)

        def bound_inputs(args: tuple[Any, ...], kwargs: dict[str, Any]) -> dict[str, Any]:
            bound = signature.bind_partial(*args, **kwargs).arguments
            return {k: v for k, v in bound.items() if k != "self"}

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return func(*args, **kwargs)
            except ZeroDivisionError as exc:
                logger.debug("formula_failed", formula=name, error=str(exc))
                raise ComputationError(name, bound_inputs(args, kwargs), exc) from exc
            except InvalidInputError as exc:
                if exc.formula is not None:
                    raise
                logger.debug("formula_rejected_input", formula=name, field=exc.field)
                raise InvalidInputError(
                    exc.field,
                    exc.value,
                    exc.reason,
                    formula=name,
                    inputs=bound_inputs(args, kwargs),
                ) from exc

        return wrapper  # type: ignore[return-value]

    return decorator
