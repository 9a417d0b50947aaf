"""Position valuation, price impact and collateral adjustment."""

from perpcalc.position.collateral import CollateralAdjuster
from perpcalc.position.price_impact import get_price_impact, get_price_impact_parsed
from perpcalc.position.valuation import PositionValuator

__all__ = [
    "CollateralAdjuster",
    "PositionValuator",
    "get_price_impact",
    "get_price_impact_parsed",
]
