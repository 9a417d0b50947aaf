"""Dynamic funding rate: hill target curve plus spring convergence.

The target rate is a hill function of the normalized OI imbalance,
scaled separately for long-heavy and short-heavy books and offset by the
inflection point. The live rate then decays toward the target
exponentially, with a spring factor that depends on whether the target is
pulling the rate further out, back in, or across zero.

Rates and accumulators are PRECISION_18; normalized OI delta is PRECISION_6.
"""

from perpcalc.exceptions import formula
from perpcalc.fixed_point import (
    PRECISION_2,
    PRECISION_6,
    PRECISION_16,
    PRECISION_18,
    approx_exp,
    tdiv,
    to_int,
)
from perpcalc.logging import get_logger
from perpcalc.models import FundingCurveConfig, FundingState, SpringRegime

logger = get_logger(__name__)

#: Hill curve steepness (applied to the normalized delta, PRECISION_2).
HILL_A = 184
#: Hill curve half-saturation constant (PRECISION_16).
HILL_K = 16

#: Spring scale percentages are PRECISION_2 percent (100e2 = 100%).
_SCALE_P_BASE = 100 * PRECISION_2


@formula("Target Funding Rate")
def get_target_funding_rate(
    normalized_oi_delta: int,
    hill_inflection_point: int,
    max_fr: int,
    hill_pos_scale: int,
    hill_neg_scale: int,
) -> int:
    """Target funding rate per block for a normalized OI imbalance.

    Args:
        normalized_oi_delta: (long - short) / max(cap, OI), PRECISION_6.
        hill_inflection_point: Curve offset, PRECISION_18.
        max_fr: Max funding fee per block, PRECISION_18.
        hill_pos_scale: Scale for long-heavy books, PRECISION_2.
        hill_neg_scale: Scale for short-heavy books, PRECISION_2.

    Returns:
        Target funding rate per block (PRECISION_18), within [-max_fr, max_fr].
    """
    delta = to_int(normalized_oi_delta, "normalized_oi_delta")
    inflection = to_int(hill_inflection_point, "hill_inflection_point")

    x = tdiv(HILL_A * delta, PRECISION_2)
    x2 = x * x * PRECISION_6  # to PRECISION_18
    hill = tdiv(x2 * PRECISION_18, HILL_K * PRECISION_16 + x2)

    if delta >= 0:
        target = tdiv(to_int(hill_pos_scale, "hill_pos_scale") * hill, PRECISION_2) + inflection
    else:
        target = tdiv(-to_int(hill_neg_scale, "hill_neg_scale") * hill, PRECISION_2) + inflection

    target = max(-PRECISION_18, min(PRECISION_18, target))
    return tdiv(target * to_int(max_fr, "max_fr"), PRECISION_18)


def select_spring_factor(
    last_funding_rate: int,
    target_funding_rate: int,
    spring_factor: int,
    up_scale_p: int,
    down_scale_p: int,
) -> tuple[int, SpringRegime]:
    """Pick the spring factor for the current move toward the target.

    Same sign (zero counts as either) and |target| beyond the last rate uses
    the full factor; same sign otherwise is down-scaled; a sign reversal is
    up-scaled. Scale percentages are PRECISION_2 percent.
    """
    if last_funding_rate * target_funding_rate >= 0:
        if abs(target_funding_rate) > last_funding_rate:
            return spring_factor, SpringRegime.FULL
        return tdiv(down_scale_p * spring_factor, _SCALE_P_BASE), SpringRegime.DOWN_SCALED
    return tdiv(up_scale_p * spring_factor, _SCALE_P_BASE), SpringRegime.UP_SCALED


@formula("Funding Rate")
def get_funding_rate(
    curve: FundingCurveConfig,
    acc_funding_long: int,
    acc_funding_short: int,
    oi_long: int,
    oi_short: int,
    oi_cap: int,
) -> FundingState:
    """Advance funding accumulators and rate from the last update to the latest block.

    The accrued rate is credited to the side with open interest and the
    mirrored amount, weighted by the OI ratio, is debited from the other side
    (nothing when that side is empty).

    Args:
        curve: Funding curve parameters and last recorded state.
        acc_funding_long: Long accumulator per OI, PRECISION_18.
        acc_funding_short: Short accumulator per OI, PRECISION_18.
        oi_long: Long open interest.
        oi_short: Short open interest.
        oi_cap: Pair OI cap, same unit as OI.

    Returns:
        FundingState with updated accumulators, latest and target rates.
    """
    acc_long = to_int(acc_funding_long, "acc_funding_long")
    acc_short = to_int(acc_funding_short, "acc_funding_short")
    oi_long = to_int(oi_long, "oi_long")
    oi_short = to_int(oi_short, "oi_short")
    oi_cap = to_int(oi_cap, "oi_cap")

    oi_max = max(oi_long, oi_short)
    normalized_delta = tdiv((oi_long - oi_short) * PRECISION_6, max(oi_cap, oi_max))

    target = get_target_funding_rate(
        normalized_delta,
        curve.hill_inflection_point,
        curve.max_funding_fee_per_block,
        curve.hill_pos_scale,
        curve.hill_neg_scale,
    )

    last = curve.last_funding_rate
    s_factor, regime = select_spring_factor(
        last,
        target,
        curve.spring_factor,
        curve.s_factor_up_scale_p,
        curve.s_factor_down_scale_p,
    )

    blocks = curve.elapsed_blocks
    exp = approx_exp(-s_factor * blocks)

    acc_rate = target * blocks + tdiv((PRECISION_18 - exp) * (last - target), s_factor)
    latest = target + tdiv((last - target) * exp, PRECISION_18)

    if acc_rate > 0:
        if oi_long > 0:
            acc_long += acc_rate
            acc_short -= tdiv(acc_rate * oi_long, oi_short) if oi_short > 0 else 0
    elif oi_short > 0:
        acc_short -= acc_rate
        acc_long += tdiv(acc_rate * oi_short, oi_long) if oi_long > 0 else 0

    logger.debug(
        "funding_rate_advanced",
        regime=regime.value,
        blocks=blocks,
        target_fr=target,
        latest_fr=latest,
    )

    return FundingState(
        acc_funding_long=acc_long,
        acc_funding_short=acc_short,
        latest_funding_rate=latest,
        target_funding_rate=target,
        regime=regime,
    )
