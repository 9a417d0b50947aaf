"""Fixed-point primitives shared by every calculation module.

All amounts are plain Python ints carrying an implicit power-of-ten scale.
Division truncates toward zero (EVM big-number semantics), which is NOT what
Python's ``//`` does for negative operands. Every formula goes through
``tdiv`` so that results match the on-chain contract to the last unit.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from perpcalc.exceptions import InvalidInputError

PRECISION_2 = 10**2
PRECISION_6 = 10**6
PRECISION_12 = 10**12
PRECISION_16 = 10**16
PRECISION_18 = 10**18

MAX_UINT256 = 2**256 - 1

#: Below this magnitude the rational approximation is used.
EXP_APPROX_THRESHOLD = 793_231_258_909_201_900

#: From this integer part on, 2^n * 1e18 exceeds 1e36 / 1e15 and the result truncates to 0.
_EXP_UNDERFLOW_INTEGER_PART = 10

#: e^(1/2^i) for i = 1..10 at scale 6, used for the binary fraction reduction.
_EXP_REFINEMENT = (
    1648721,
    1284025,
    1133148,
    1064494,
    1031743,
    1015748,
    1007843,
    1003915,
    1001955,
    1000977,
)


def tdiv(a: int, b: int) -> int:
    """Integer division truncating toward zero.

    Raises:
        ZeroDivisionError: If ``b`` is zero.
    """
    q = abs(a) // abs(b)
    return -q if (a < 0) != (b < 0) else q


def _scale_group(decimals: int, *names: str) -> dict[str, int]:
    return dict.fromkeys(names, decimals)


#: Decimal scale of every named formula input. Names not listed are plain
#: counts (blocks, seconds) at scale 0.
FIELD_SCALES: dict[str, int] = {
    **_scale_group(
        2,
        "leverage",
        "highest_leverage",
        "desired_leverage",
        "max_leverage",
        "maker_max_leverage",
        "overnight_max_leverage",
        "max_collateral_p",
        "max_discount_p",
        "max_discount_threshold_p",
        "hill_pos_scale",
        "hill_neg_scale",
        "s_factor_up_scale_p",
        "s_factor_down_scale_p",
    ),
    **_scale_group(
        6,
        "collateral",
        "added_collateral",
        "removed_collateral",
        "group_collateral",
        "vault_balance",
        "position_size",
        "trade_size",
        "profit",
        "trade_profit",
        "total_profit",
        "rollover_fee",
        "funding_fee",
        "profit_p",
        "loss_p",
        "maker_fee_p",
        "taker_fee_p",
        "oi",
        "oi_long",
        "oi_short",
        "oi_cap",
        "max_oi",
        "normalized_oi_delta",
        "assets",
        "shares",
        "current_max_supply",
        "total_supply",
    ),
    **_scale_group(
        18,
        "open_price",
        "current_price",
        "price",
        "mid_price",
        "bid_price",
        "ask_price",
        "execution_price",
        "notional",
        "share_price",
        "rewards_per_token",
        "acc_pnl_per_token_used",
        "acc_rollover",
        "rollover_fee_per_block",
        "trade_acc",
        "current_acc",
        "trade_rollover",
        "current_rollover",
        "trade_funding",
        "current_funding",
        "acc_funding_long",
        "acc_funding_short",
        "hill_inflection_point",
        "max_fr",
        "max_funding_fee_per_block",
        "spring_factor",
        "last_funding_rate",
    ),
}


def to_int(value: object, field: str = "value", decimals: int | None = None) -> int:
    """Coerce a caller-supplied numeric value into an int.

    Accepts ints, decimal-integer strings (the indexer's encoding) and
    ScaledInt. Floats and bools are rejected: a float has already lost the
    precision the caller is trying to express.

    A ScaledInt must already be at the field's scale: ``decimals`` when
    given, otherwise the scale registered for ``field`` in FIELD_SCALES.
    Use ``ScaledInt.rescale`` to convert first.

    Raises:
        InvalidInputError: If the value is not an integer, or is a ScaledInt
            at the wrong scale.
    """
    if isinstance(value, bool):
        raise InvalidInputError(field, value, "booleans are not amounts")
    if isinstance(value, int):
        return value
    if isinstance(value, ScaledInt):
        expected = FIELD_SCALES.get(field, 0) if decimals is None else decimals
        if value.decimals != expected:
            raise InvalidInputError(
                field, value, f"expected scale {expected}, got {value.decimals}"
            )
        return value.value
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text, 16) if text.lower().startswith("0x") else int(text)
        except ValueError:
            raise InvalidInputError(field, value, "not an integer string") from None
    if isinstance(value, Decimal) and value == value.to_integral_value():
        return int(value)
    raise InvalidInputError(field, value, f"unsupported type {type(value).__name__}")


@dataclass(frozen=True)
class ScaledInt:
    """An integer tagged with its decimal scale.

    ``ScaledInt(1_500_000, 6)`` is 1.5. Conversions between scales are
    explicit: widening is exact, narrowing truncates toward zero.
    """

    value: int
    decimals: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise InvalidInputError("value", self.value, "must be an int")
        if self.decimals < 0:
            raise InvalidInputError("decimals", self.decimals, "must be >= 0")

    @classmethod
    def from_decimal(cls, amount: Decimal | str | int, decimals: int) -> ScaledInt:
        """Parse a human-readable amount, rejecting excess fractional digits."""
        try:
            dec = Decimal(str(amount))
        except InvalidOperation:
            raise InvalidInputError("amount", amount, "not a decimal number") from None
        if not dec.is_finite():
            raise InvalidInputError("amount", amount, "not a finite number")
        scaled = dec.scaleb(decimals)
        if scaled != scaled.to_integral_value():
            raise InvalidInputError(
                "amount", amount, f"more than {decimals} fractional digits"
            )
        return cls(int(scaled), decimals)

    @classmethod
    def parse(cls, raw: object, decimals: int, field: str = "value") -> ScaledInt:
        """Build a ScaledInt from raw caller input at a known scale.

        A ScaledInt of a different scale is rejected rather than silently
        reinterpreted.
        """
        return cls(to_int(raw, field, decimals), decimals)

    def rescale(self, decimals: int) -> ScaledInt:
        if decimals >= self.decimals:
            return ScaledInt(self.value * 10 ** (decimals - self.decimals), decimals)
        return ScaledInt(tdiv(self.value, 10 ** (self.decimals - decimals)), decimals)

    def to_decimal(self) -> Decimal:
        return Decimal(self.value).scaleb(-self.decimals)

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.to_decimal())


def approx_exp(x: int) -> int:
    """Approximate ``e^x`` at scale 18 for a scale-18 exponent.

    Small exponents use the rational approximation
    ``((x+3)^2 + 3) / ((x-3)^2 + 3)``. Larger ones split ``|x|`` into an
    integer part and a binary fraction; the fraction is reduced with a
    10-entry table of ``e^(1/2^i)`` and the result is
    ``1 / (2^n * e^fraction)``, truncated to three significant digits at
    scale 15. The integer part is divided out as a power of two, exactly as
    the contract does, so for ``|x| >= 1`` this decays faster than ``e^-|x|``.

    The sign of ``x`` is not re-applied on the large branch; callers only
    pass non-positive exponents.
    """
    if abs(x) < EXP_APPROX_THRESHOLD:
        three = 3 * PRECISION_18
        numerator = x + three
        numerator = tdiv(numerator * numerator, PRECISION_18) + three
        denominator = x - three
        denominator = tdiv(denominator * denominator, PRECISION_18) + three
        return tdiv(numerator * PRECISION_18, denominator)

    integer_part = abs(x) // PRECISION_18
    if integer_part >= _EXP_UNDERFLOW_INTEGER_PART:
        return 0
    fraction = abs(x) - integer_part * PRECISION_18

    approx = PRECISION_6
    for factor in _EXP_REFINEMENT:
        fraction *= 2
        if fraction >= PRECISION_18:
            approx = approx * factor // PRECISION_6
            fraction -= PRECISION_18
        if fraction == 0:
            break

    divisor = 2**integer_part * (approx // 10**3 * 10**15)
    return PRECISION_18 * PRECISION_18 // divisor // 10**15 * 10**15
