"""Funding rate target curve and spring convergence."""

from perpcalc.funding.rate import get_funding_rate, get_target_funding_rate, select_spring_factor

__all__ = ["get_funding_rate", "get_target_funding_rate", "select_spring_factor"]
