"""Vault share pricing: deposit/mint ceilings and lock-duration discounts.

ERC-4626 style conversions at a PRECISION_18 share price. When the vault
carries accumulated trader profit (positive acc PnL per token), minting is
capped at the remaining max-supply headroom; otherwise it is unlimited
(MAX_UINT256).

Collateralization and discount percentages are PRECISION_2 percent
(100e2 = 100%).
"""

from perpcalc.config import ProtocolSettings
from perpcalc.exceptions import AboveMaxDepositError, formula
from perpcalc.fixed_point import MAX_UINT256, PRECISION_2, PRECISION_18, tdiv, to_int
from perpcalc.logging import get_logger
from perpcalc.models import VaultState

logger = get_logger(__name__)

_HUNDRED_P = 100 * PRECISION_2


class VaultPricer:
    """Prices vault deposits under one set of protocol constants.

    Args:
        protocol: Protocol constants (max lock duration).
    """

    def __init__(self, protocol: ProtocolSettings | None = None) -> None:
        self._protocol = protocol or ProtocolSettings()

    @formula("Max Mint")
    def max_mint(self, acc_pnl_per_token_used: int, current_max_supply: int, total_supply: int) -> int:
        """Shares that can still be minted; MAX_UINT256 when the vault is not in profit overhang."""
        if to_int(acc_pnl_per_token_used, "acc_pnl_per_token_used") <= 0:
            return MAX_UINT256
        max_supply = to_int(current_max_supply, "current_max_supply")
        return max_supply - min(max_supply, to_int(total_supply, "total_supply"))

    @formula("Max Deposit")
    def max_deposit(
        self,
        acc_pnl_per_token_used: int,
        current_max_supply: int,
        total_supply: int,
        share_price: int,
    ) -> int:
        return self.convert_to_assets(
            self.max_mint(acc_pnl_per_token_used, current_max_supply, total_supply),
            share_price,
        )

    @staticmethod
    @formula("Convert To Assets")
    def convert_to_assets(shares: int, share_price: int) -> int:
        shares = to_int(shares, "shares")
        share_price = to_int(share_price, "share_price")
        # Unlimited stays unlimited unless the price would shrink it
        if shares == MAX_UINT256 and share_price >= PRECISION_18:
            return shares
        return tdiv(shares * share_price, PRECISION_18)

    @staticmethod
    @formula("Convert To Shares")
    def convert_to_shares(assets: int, share_price: int) -> int:
        return tdiv(to_int(assets, "assets") * PRECISION_18, to_int(share_price, "share_price"))

    def preview_deposit(self, assets: int, share_price: int) -> int:
        """Shares minted for ``assets`` at ``share_price``."""
        return self.convert_to_shares(assets, share_price)

    @staticmethod
    @formula("Max Acc PnL Per Token")
    def max_acc_pnl_per_token(rewards_per_token: int) -> int:
        return to_int(rewards_per_token, "rewards_per_token") + PRECISION_18

    @formula("Collateralization Percentage")
    def collateralization_p(self, rewards_per_token: int, acc_pnl_per_token_used: int) -> int:
        """Vault collateralization, PRECISION_2 percent.

        Trader profit (positive acc PnL) lowers it; trader losses raise it.
        """
        max_acc = self.max_acc_pnl_per_token(rewards_per_token)
        acc_pnl = to_int(acc_pnl_per_token_used, "acc_pnl_per_token_used")
        adjusted = max_acc - acc_pnl if acc_pnl > 0 else max_acc + abs(acc_pnl)
        return tdiv(adjusted * 100 * PRECISION_2, max_acc)

    @formula("Lock Discount Percentage")
    def lock_discount_p(
        self,
        rewards_per_token: int,
        acc_pnl_per_token_used: int,
        lock_duration: int,
        max_discount_p: int,
        max_discount_threshold_p: int,
    ) -> int:
        """Deposit discount for locking funds, PRECISION_2 percent.

        Full discount at or below 100% collateralization, linear down to zero
        at ``max_discount_threshold_p``, none above it; then prorated by
        lock_duration / max_lock_duration.
        """
        collateralization = self.collateralization_p(rewards_per_token, acc_pnl_per_token_used)
        max_discount_p = to_int(max_discount_p, "max_discount_p")
        threshold = to_int(max_discount_threshold_p, "max_discount_threshold_p")

        if collateralization <= _HUNDRED_P:
            discount = max_discount_p
        elif collateralization <= threshold:
            discount = tdiv(
                max_discount_p * (threshold - collateralization), threshold - _HUNDRED_P
            )
        else:
            discount = 0

        return tdiv(
            discount * to_int(lock_duration, "lock_duration"),
            self._protocol.max_lock_duration,
        )

    @formula("Simulated Assets")
    def simulated_assets(
        self,
        assets: int,
        lock_duration: int,
        vault: VaultState,
        max_discount_p: int,
        max_discount_threshold_p: int,
    ) -> int:
        """Discounted deposit value of ``assets`` locked for ``lock_duration``.

        Raises:
            AboveMaxDepositError: If the discounted amount exceeds the vault's max deposit.
        """
        discount = self.lock_discount_p(
            vault.rewards_per_token,
            vault.acc_pnl_per_token_used,
            lock_duration,
            max_discount_p,
            max_discount_threshold_p,
        )
        simulated = tdiv(to_int(assets, "assets") * (_HUNDRED_P + discount), _HUNDRED_P)

        ceiling = self.max_deposit(
            vault.acc_pnl_per_token_used,
            vault.current_max_supply,
            vault.total_supply,
            vault.share_price,
        )
        if simulated > ceiling:
            logger.info("deposit_rejected", simulated_assets=simulated, max_deposit=ceiling)
            raise AboveMaxDepositError(simulated, ceiling)
        return simulated
