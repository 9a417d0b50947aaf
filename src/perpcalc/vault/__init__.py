"""Vault share pricing."""

from perpcalc.vault.shares import VaultPricer

__all__ = ["VaultPricer"]
