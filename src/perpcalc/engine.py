"""Entry point for embedding applications.

``build_engine`` loads settings, installs logging and constructs every
calculator against one set of protocol constants:

1. AppSettings (environment / .env)
2. Logging setup
3. PositionValuator, CollateralAdjuster, VaultPricer (ProtocolSettings)
4. CollateralSolver (SolverSettings)

Stateless formulas (fees, funding, price impact, exposure) are plain
functions and need no wiring.
"""

from dataclasses import dataclass

from perpcalc.config import AppSettings
from perpcalc.fees.opening import CollateralSolver
from perpcalc.logging import get_logger, setup_logging
from perpcalc.position.collateral import CollateralAdjuster
from perpcalc.position.valuation import PositionValuator
from perpcalc.vault.shares import VaultPricer

logger = get_logger(__name__)


@dataclass(frozen=True)
class Engine:
    """Calculators sharing one settings instance."""

    settings: AppSettings
    valuator: PositionValuator
    adjuster: CollateralAdjuster
    vault: VaultPricer
    solver: CollateralSolver


def build_engine(settings: AppSettings | None = None, configure_logging: bool = True) -> Engine:
    """Build the calculators from ``settings``.

    Args:
        settings: Application settings; loaded from the environment when omitted.
        configure_logging: Install structlog handlers from ``settings``. Pass
            False when the host application owns logging.

    Returns:
        Engine bundling the configured calculators.
    """
    settings = settings or AppSettings()
    if configure_logging:
        setup_logging(settings)

    engine = Engine(
        settings=settings,
        valuator=PositionValuator(settings.protocol),
        adjuster=CollateralAdjuster(settings.protocol),
        vault=VaultPricer(settings.protocol),
        solver=CollateralSolver(settings.solver),
    )
    logger.debug(
        "engine_built",
        max_profit_p=settings.protocol.max_profit_p,
        liq_margin_p=settings.protocol.liq_margin_p,
        solver_max_iterations=settings.solver.max_iterations,
    )
    return engine
