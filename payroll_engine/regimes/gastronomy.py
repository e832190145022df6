"""Gastronomie : Sachbezuege repas, pourboires et SFN-Zuschlaege.

Ref :
- SvEV § 2 (Sachbezugswerte 2025 : petit-dejeuner 2,17 EUR, repas 4,13 EUR)
- § 3 Nr. 51 EStG (Trinkgeld de clients exonere)
- § 3b EStG (Sonntags-, Feiertags- und Nachtzuschlaege)
"""

import logging
from decimal import Decimal

from payroll_engine.config.constants import Industry
from payroll_engine.models.industry import (
    IndustryConfig, IndustryPayrollInput, IndustryPayrollResult,
)
from payroll_engine.regimes.base import IndustryModule, split_sfn_supplement
from payroll_engine.utils.number_utils import ZERO, round_currency

logger = logging.getLogger("payroll_engine.regimes.gastronomy")

MEAL_VALUES = {
    "breakfast": Decimal("2.17"),
    "lunch": Decimal("4.13"),
    "dinner": Decimal("4.13"),
}

SFN_RATES = {
    "night": Decimal("0.25"),
    "sunday": Decimal("0.50"),
    "holiday": Decimal("1.25"),
}

# Limite minijob retenue pour le controle repas compris
MINIJOB_LIMIT = Decimal("556")


def meal_benefit_value(payroll_input: IndustryPayrollInput) -> Decimal:
    return (
        payroll_input.breakfasts_provided * MEAL_VALUES["breakfast"]
        + payroll_input.lunches_provided * MEAL_VALUES["lunch"]
        + payroll_input.dinners_provided * MEAL_VALUES["dinner"]
    )


class GastronomyModule(IndustryModule):

    @property
    def industry(self) -> Industry:
        return Industry.GASTRONOMY

    def calculate(
        self,
        config: IndustryConfig,
        payroll_input: IndustryPayrollInput,
        month: int,
        year: int,
    ) -> IndustryPayrollResult:
        result = IndustryPayrollResult(industry=Industry.GASTRONOMY)
        entree = payroll_input

        repas = meal_benefit_value(entree)
        if repas > 0:
            result.taxable_additions += repas
            result.benefits_in_kind += repas
            result.employer_additional_costs += repas
            result.details.append(f"Sachbezug repas : {round_currency(repas)} EUR")

        if entree.monthly_tips > 0:
            if config.tips_from_employer:
                result.taxable_additions += entree.monthly_tips
                result.details.append(
                    f"Trinkgeld verse par l'employeur (imposable) : {entree.monthly_tips} EUR"
                )
            else:
                result.tax_free_additions += entree.monthly_tips
                result.details.append(
                    f"Trinkgeld de clients (exonere) : {entree.monthly_tips} EUR"
                )

        taux_horaire = entree.gross_monthly / entree.hours_worked \
            if entree.hours_worked > 0 else ZERO
        if taux_horaire == 0 and (entree.night_hours or entree.sunday_hours or entree.holiday_hours):
            result.warnings.append("Heures travaillees absentes : SFN-Zuschlaege non calcules")

        for nom, heures in (
            ("night", entree.night_hours),
            ("sunday", entree.sunday_hours),
            ("holiday", entree.holiday_hours),
        ):
            exonere, imposable = split_sfn_supplement(taux_horaire, heures, SFN_RATES[nom])
            if exonere or imposable:
                result.tax_free_additions += exonere
                result.taxable_additions += imposable
                result.details.append(
                    f"Zuschlag {nom} {heures} h : {round_currency(exonere)} EUR exonere, "
                    f"{round_currency(imposable)} EUR imposable"
                )

        if entree.gross_monthly <= MINIJOB_LIMIT < entree.gross_monthly + repas:
            result.warnings.append(
                f"Brut avec repas {round_currency(entree.gross_monthly + repas)} EUR "
                f"superieur a la limite minijob {MINIJOB_LIMIT} EUR"
            )
            logger.warning("Limite minijob depassee par les Sachbezuege")
        return result
