"""Pre-trade exposure and day-trading gates."""

from perpcalc.risk.exposure import (
    is_day_trade_closed,
    pair_within_exposure_limit,
    within_exposure_limit,
)

__all__ = ["is_day_trade_closed", "pair_within_exposure_limit", "within_exposure_limit"]
