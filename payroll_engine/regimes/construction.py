"""Baulohn : supplements du Bauhauptgewerbe.

Couvre :
- SOKA-BAU (Urlaubs- und Lohnausgleichskasse), prelevement employeur
- Wintergeld (Mehraufwands-Wintergeld, decembre a mars)
- Erschwerniszuschlaege (Schmutz, Hoehe, Gefahr)
- Tarifloehne Ost / West et compte de conges (30 jours)

Ref :
- BRTV Bau, TV Mindestlohn Bau
- VTV (Sozialkassenverfahren)
- § 102 SGB III (Wintergeld)
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from payroll_engine.config.constants import Industry
from payroll_engine.models.industry import (
    ConstructionRegion, IndustryConfig, IndustryPayrollInput, IndustryPayrollResult,
    TradeGroup,
)
from payroll_engine.regimes.base import IndustryModule
from payroll_engine.utils.number_utils import ZERO, round_currency

logger = logging.getLogger("payroll_engine.regimes.construction")

SOKA_RATE = Decimal("0.152")
WINTER_MONTHS = frozenset({12, 1, 2, 3})
WINTER_ALLOWANCE_PER_HOUR = Decimal("1.00")

HARDSHIP_ALLOWANCES = {
    "dirty": Decimal("0.75"),
    "height": Decimal("1.50"),
    "danger": Decimal("2.00"),
}

# EUR / heure
TARIFF_HOURLY_RATES = {
    ConstructionRegion.WEST: {
        TradeGroup.WORKER: Decimal("16.50"),
        TradeGroup.SKILLED: Decimal("19.50"),
        TradeGroup.FOREMAN: Decimal("22.50"),
        TradeGroup.MASTER: Decimal("26.00"),
    },
    ConstructionRegion.EAST: {
        TradeGroup.WORKER: Decimal("15.50"),
        TradeGroup.SKILLED: Decimal("18.00"),
        TradeGroup.FOREMAN: Decimal("21.00"),
        TradeGroup.MASTER: Decimal("24.00"),
    },
}

VACATION_ENTITLEMENT_DAYS = Decimal("30")
VACATION_DIVISOR = Decimal("21.75")       # jours ouvres moyens par mois
VACATION_BONUS_RATE = Decimal("0.145")    # zusaetzliches Urlaubsgeld


@dataclass
class VacationAccount:
    entitlement_days: Decimal
    carried_over_days: Decimal
    taken_days: Decimal
    remaining_days: Decimal
    daily_rate: Decimal
    vacation_pay: Decimal
    vacation_bonus: Decimal


def tariff_hourly_rate(config: IndustryConfig) -> Decimal:
    return TARIFF_HOURLY_RATES[config.construction_region][config.construction_trade_group]


def calculate_vacation_account(
    gross_monthly: Decimal, days_taken: Decimal, carried_over: Decimal = ZERO,
) -> VacationAccount:
    """Compte de conges Bau : droit annuel, indemnite journaliere et prime."""
    taux_jour = gross_monthly / VACATION_DIVISOR
    indemnite = taux_jour * days_taken
    return VacationAccount(
        entitlement_days=VACATION_ENTITLEMENT_DAYS,
        carried_over_days=carried_over,
        taken_days=days_taken,
        remaining_days=VACATION_ENTITLEMENT_DAYS + carried_over - days_taken,
        daily_rate=taux_jour,
        vacation_pay=indemnite,
        vacation_bonus=indemnite * VACATION_BONUS_RATE,
    )


class ConstructionModule(IndustryModule):

    @property
    def industry(self) -> Industry:
        return Industry.CONSTRUCTION

    def calculate(
        self,
        config: IndustryConfig,
        payroll_input: IndustryPayrollInput,
        month: int,
        year: int,
    ) -> IndustryPayrollResult:
        result = IndustryPayrollResult(industry=Industry.CONSTRUCTION)
        entree = payroll_input

        soka = entree.gross_monthly * SOKA_RATE
        result.employer_additional_costs += soka
        result.details.append(f"SOKA-BAU 15,2% : {round_currency(soka)} EUR (employeur)")

        if month in WINTER_MONTHS:
            if entree.winter_hours > 0:
                wintergeld = entree.winter_hours * WINTER_ALLOWANCE_PER_HOUR
                result.taxable_additions += wintergeld
                result.details.append(
                    f"Wintergeld {entree.winter_hours} h : {round_currency(wintergeld)} EUR"
                )
            else:
                result.warnings.append(
                    "Periode hivernale : aucune heure d'hiver saisie (Wintergeld possible)"
                )
        elif entree.winter_hours > 0:
            result.warnings.append(
                f"{entree.winter_hours} h d'hiver ignorees hors periode decembre-mars"
            )
            logger.warning("Heures d'hiver saisies en %04d-%02d, ignorees", year, month)

        for nom, heures in (
            ("dirty", entree.dirty_work_hours),
            ("height", entree.height_work_hours),
            ("danger", entree.danger_work_hours),
        ):
            if heures > 0:
                montant = heures * HARDSHIP_ALLOWANCES[nom]
                result.taxable_additions += montant
                result.details.append(
                    f"Erschwerniszuschlag {nom} {heures} h : {round_currency(montant)} EUR"
                )

        taux_tarif = tariff_hourly_rate(config)
        result.details.append(
            f"Tariflohn {config.construction_region.value}/"
            f"{config.construction_trade_group.value} : {taux_tarif} EUR/h"
        )
        if entree.hours_worked > 0:
            taux_effectif = entree.gross_monthly / entree.hours_worked
            if taux_effectif < taux_tarif:
                result.warnings.append(
                    f"Taux horaire {round_currency(taux_effectif)} EUR inferieur au "
                    f"Tariflohn {taux_tarif} EUR"
                )

        if entree.vacation_days_taken > 0 or entree.previous_year_vacation_days > 0:
            conges = calculate_vacation_account(
                entree.gross_monthly, entree.vacation_days_taken,
                entree.previous_year_vacation_days,
            )
            result.details.append(
                f"Conges : {conges.remaining_days} jours restants, indemnite "
                f"{round_currency(conges.vacation_pay)} EUR, prime "
                f"{round_currency(conges.vacation_bonus)} EUR"
            )
        return result
