"""Input snapshots and result types for the pricing engine.

CRITICAL: Every amount is an int at a fixed scale. Never use float.
Snapshots accept decimal-integer strings (the indexer's encoding) and coerce
them to int on construction, so a bad value fails here rather than deep
inside a formula.

Scales:
  - leverage: PRECISION_2 (1000 = 10x)
  - collateral, fees, profits: PRECISION_6 (USDC)
  - fee / profit percentages: PRECISION_6 percent
  - prices, funding rates, accumulators: PRECISION_18
"""

from dataclasses import dataclass, fields
from decimal import Decimal
from enum import Enum

from perpcalc.exceptions import InvalidInputError
from perpcalc.fixed_point import to_int


def _coerce_ints(instance: object, skip: tuple[str, ...] = ()) -> None:
    for f in fields(instance):  # type: ignore[arg-type]
        if f.name in skip:
            continue
        object.__setattr__(instance, f.name, to_int(getattr(instance, f.name), f.name))


class SpringRegime(str, Enum):
    """Which spring factor drove the funding rate toward its target."""

    FULL = "full"  # same sign, target beyond last rate
    DOWN_SCALED = "down_scaled"  # same sign, target behind last rate
    UP_SCALED = "up_scaled"  # sign reversal


@dataclass(frozen=True)
class PairFeeConfig:
    """Fee and open-interest configuration for a single pair."""

    maker_fee_p: int
    taker_fee_p: int
    maker_max_leverage: int
    oi_long: int
    oi_short: int
    max_oi: int = 0

    def __post_init__(self) -> None:
        _coerce_ints(self)
        for name in ("maker_fee_p", "taker_fee_p", "maker_max_leverage"):
            if getattr(self, name) < 0:
                raise InvalidInputError(name, getattr(self, name), "must be >= 0")

    @property
    def oi_delta(self) -> int:
        return self.oi_long - self.oi_short


@dataclass(frozen=True)
class FundingCurveConfig:
    """Funding curve parameters plus the last recorded funding state."""

    hill_inflection_point: int
    hill_pos_scale: int
    hill_neg_scale: int
    max_funding_fee_per_block: int
    spring_factor: int
    s_factor_up_scale_p: int
    s_factor_down_scale_p: int
    last_funding_rate: int
    last_update_block: int
    latest_block: int

    def __post_init__(self) -> None:
        _coerce_ints(self)
        if self.latest_block < self.last_update_block:
            raise InvalidInputError(
                "latest_block",
                self.latest_block,
                f"precedes last_update_block {self.last_update_block}",
            )

    @property
    def elapsed_blocks(self) -> int:
        return self.latest_block - self.last_update_block


@dataclass(frozen=True)
class PositionSnapshot:
    """Stored fields of an open trade, as read from the indexer.

    ``leverage`` may exceed ``highest_leverage`` after collateral removal;
    profit capping uses the smaller of the two.
    """

    open_price: int
    collateral: int
    leverage: int
    highest_leverage: int
    is_long: bool
    trade_rollover: int = 0
    trade_funding: int = 0
    current_rollover: int = 0
    current_funding: int = 0

    def __post_init__(self) -> None:
        _coerce_ints(self, skip=("is_long",))
        if not isinstance(self.is_long, bool):
            raise InvalidInputError("is_long", self.is_long, "must be a bool")


@dataclass(frozen=True)
class VaultState:
    """Vault accounting figures used for share pricing."""

    rewards_per_token: int
    acc_pnl_per_token_used: int
    current_max_supply: int
    total_supply: int
    share_price: int  # assets per share, PRECISION_18

    def __post_init__(self) -> None:
        _coerce_ints(self)


@dataclass(frozen=True)
class MarketPrice:
    """Live quote from the price feed, in human units."""

    mid: Decimal
    bid: Decimal
    ask: Decimal


@dataclass(frozen=True)
class OpeningFee:
    """Opening fee split into its maker and taker notional portions."""

    base_fee: int
    maker_amount: int
    taker_amount: int


@dataclass(frozen=True)
class CollateralSolution:
    """Result of solving for the collateral input behind a target notional.

    ``converged`` is False when the iteration cap was reached; the estimate
    is still the best one available.
    """

    collateral: int
    notional: int
    iterations: int
    converged: bool


@dataclass(frozen=True)
class FundingState:
    """Funding accumulators and rate after advancing to the latest block."""

    acc_funding_long: int
    acc_funding_short: int
    latest_funding_rate: int
    target_funding_rate: int
    regime: SpringRegime


@dataclass(frozen=True)
class PriceImpact:
    """Reported price impact (PRECISION_18 percent) and execution price."""

    price_impact_p: int
    price_after_impact: int


@dataclass(frozen=True)
class TradeValue:
    """Collateral plus total profit, alongside the liquidation margin."""

    trade_value: int
    liquidation_margin: int


@dataclass(frozen=True)
class PositionValuation:
    """Everything a trade-preparation step needs about an open position."""

    rollover_fee: int
    funding_fee: int
    profit_p: int
    total_profit: int
    total_profit_p: int
    current_leverage: int
    liquidation_price: int
    trade_value: int
    liquidation_margin: int
