"""Projection pluriannuelle des salaires.

Le taux de croissance combine le taux de la branche et la tendance
observee dans l'historique ; l'inflation est ajoutee chaque annee.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from payroll_engine.config.constants import Industry
from payroll_engine.config.rate_tables import RateTable
from payroll_engine.config.settings import ForecastConfig
from payroll_engine.models.anomalies import SalaryForecast, SalaryProjection
from payroll_engine.models.employee import Employee
from payroll_engine.models.payroll import HistoricalPayrollData
from payroll_engine.rules.gross_to_net import GrossToNetCalculator
from payroll_engine.utils.number_utils import ZERO, round_currency

logger = logging.getLogger("payroll_engine.forecast")

INDUSTRY_GROWTH_RATES = {
    "IT": Decimal("0.045"),
    "Finance": Decimal("0.035"),
    "Healthcare": Decimal("0.03"),
    "Manufacturing": Decimal("0.025"),
    "Retail": Decimal("0.02"),
    "Construction": Decimal("0.028"),
    "Hospitality": Decimal("0.015"),
}
DEFAULT_GROWTH_RATE = Decimal("0.025")

INDUSTRY_SECTORS = {
    Industry.CONSTRUCTION: "Construction",
    Industry.GASTRONOMY: "Hospitality",
    Industry.NURSING: "Healthcare",
}

# Mots-cles du departement -> secteur
DEPARTMENT_KEYWORDS = {
    "it": "IT",
    "software": "IT",
    "entwicklung": "IT",
    "finanz": "Finance",
    "finance": "Finance",
    "buchhaltung": "Finance",
    "pflege": "Healthcare",
    "produktion": "Manufacturing",
    "fertigung": "Manufacturing",
    "vertrieb": "Retail",
    "verkauf": "Retail",
    "bau": "Construction",
    "kueche": "Hospitality",
    "service": "Hospitality",
}

MIN_CONFIDENCE = 30
BASE_CONFIDENCE = 95
CONFIDENCE_DECAY = 6


def sector_for(employee: Employee) -> Optional[str]:
    if employee.industry in INDUSTRY_SECTORS:
        return INDUSTRY_SECTORS[employee.industry]
    mots = employee.department.lower().replace("-", " ").split()
    for mot in mots:
        if mot in DEPARTMENT_KEYWORDS:
            return DEPARTMENT_KEYWORDS[mot]
    return None


def industry_growth_rate(employee: Employee) -> Decimal:
    secteur = sector_for(employee)
    return INDUSTRY_GROWTH_RATES.get(secteur, DEFAULT_GROWTH_RATE)


def historical_trend(history: Iterable[HistoricalPayrollData]) -> Optional[Decimal]:
    """Variation mensuelle moyenne annualisee, None sans historique exploitable."""
    points = sorted(history, key=lambda h: h.period.key)
    variations = [
        (cour.gross_salary - prec.gross_salary) / prec.gross_salary
        for prec, cour in zip(points, points[1:])
        if prec.gross_salary > 0
    ]
    if not variations:
        return None
    return sum(variations, ZERO) / len(variations) * 12


def confidence_for(annee_index: int) -> int:
    return max(MIN_CONFIDENCE, BASE_CONFIDENCE - CONFIDENCE_DECAY * annee_index)


def generate_salary_forecast(
    employee: Employee,
    history: Iterable[HistoricalPayrollData],
    years: Optional[int] = None,
    config: Optional[ForecastConfig] = None,
    base_year: Optional[int] = None,
    rates: Optional[RateTable] = None,
) -> SalaryForecast:
    """Projette brut et net sur `years` annees."""
    config = config or ForecastConfig()
    years = config.years if years is None else years
    base_year = base_year or date.today().year
    history = list(history)

    taux_branche = industry_growth_rate(employee)
    tendance = historical_trend(history)
    if config.annual_growth_override is not None:
        croissance = config.annual_growth_override
        source = "taux configure"
    elif tendance is None:
        croissance = taux_branche
        source = "taux de branche"
    else:
        croissance = config.industry_weight * taux_branche + config.trend_weight * tendance
        source = "branche et tendance historique"

    actuel = employee.gross_salary
    if actuel <= 0 and history:
        actuel = max(history, key=lambda h: h.period.key).gross_salary

    calculateur = GrossToNetCalculator(rates) if rates is not None else None
    facteur = 1 + croissance + config.inflation_rate
    projections = []
    for i in range(1, years + 1):
        brut = actuel * facteur ** i
        if calculateur is not None:
            net = calculateur.calculate(
                employee, brut, reference=date(base_year + i, 6, 30),
            ).net_salary
        else:
            net = ZERO
        projections.append(SalaryProjection(
            year=base_year + i,
            projected_gross=round_currency(brut),
            projected_net=round_currency(net),
            confidence=confidence_for(i),
            assumptions=[
                f"Croissance {round_currency(croissance * 100)}% ({source})",
                f"Inflation {round_currency(config.inflation_rate * 100)}%",
            ],
        ))

    logger.info(
        "Projection %s sur %d ans : croissance %s, brut final %s",
        employee.id, years, croissance,
        projections[-1].projected_gross if projections else actuel,
    )
    return SalaryForecast(
        employee_id=employee.id,
        current_salary=actuel,
        annual_growth_rate=croissance,
        projections=projections,
    )
