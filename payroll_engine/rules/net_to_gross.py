"""Recherche du brut correspondant a un net cible (Netto-Brutto-Rechnung)."""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from payroll_engine.config.rate_tables import RateTable
from payroll_engine.core.exceptions import InvalidSalaryError
from payroll_engine.models.employee import Employee
from payroll_engine.rules.gross_to_net import GrossToNetCalculator
from payroll_engine.utils.number_utils import ZERO, round_currency, to_decimal

logger = logging.getLogger("payroll_engine.net_to_gross")

TOLERANCE = Decimal("0.01")
MAX_ITERATIONS = 50
UPPER_FACTOR = Decimal("3")


@dataclass
class NetToGrossResult:
    target_net: Decimal
    required_gross: Decimal
    achieved_net: Decimal
    difference: Decimal
    iterations: int
    converged: bool


def calculate_net_to_gross(
    target_net: Decimal,
    employee: Employee,
    rates: RateTable,
    reference: Optional[date] = None,
) -> NetToGrossResult:
    """Dichotomie sur [net, 3 x net] jusqu'a 1 centime, 50 iterations au plus."""
    cible = to_decimal(target_net)
    if cible < 0:
        raise InvalidSalaryError(f"Net cible negatif : {cible}")

    calculateur = GrossToNetCalculator(rates)
    bas, haut = cible, cible * UPPER_FACTOR
    brut, net = cible, cible
    iterations = 0
    converge = cible == 0

    while not converge and iterations < MAX_ITERATIONS:
        iterations += 1
        brut = (bas + haut) / 2
        net = calculateur.calculate(employee, brut, reference=reference).net_salary
        ecart = net - cible
        if abs(ecart) <= TOLERANCE:
            converge = True
        elif ecart < 0:
            bas = brut
        else:
            haut = brut

    if not converge:
        logger.warning(
            "Net cible %s non atteint apres %d iterations (ecart %s)",
            cible, iterations, net - cible,
        )
    return NetToGrossResult(
        target_net=cible,
        required_gross=round_currency(brut),
        achieved_net=round_currency(net),
        difference=round_currency(net - cible) if iterations else ZERO,
        iterations=iterations,
        converged=converge,
    )
