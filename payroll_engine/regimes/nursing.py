"""Pflege : supplements de services (TVoeD-P / AVR).

Couvre les SFN-Zuschlaege (dont Noel, Silvester et 1er mai), les Schichtzulagen et la
Rufbereitschaft. La base horaire depend du niveau de qualification.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from payroll_engine.config.constants import Industry
from payroll_engine.models.industry import (
    CareLevel, IndustryConfig, IndustryPayrollInput, IndustryPayrollResult,
    ShiftEntry, ShiftType,
)
from payroll_engine.regimes.base import IndustryModule, split_sfn_supplement
from payroll_engine.utils.number_utils import ZERO, round_currency

logger = logging.getLogger("payroll_engine.regimes.nursing")

CARE_LEVEL_RATES = {
    CareLevel.ASSISTANT: Decimal("16.00"),
    CareLevel.NURSE: Decimal("19.50"),
    CareLevel.SPECIALIST: Decimal("22.00"),
    CareLevel.LEAD: Decimal("25.00"),
}

SFN_RATES = {
    "night": Decimal("0.30"),       # moyenne 25% / 40%
    "sunday": Decimal("0.50"),
    "holiday": Decimal("1.25"),
    "christmas": Decimal("1.50"),
    "new_years_eve": Decimal("1.50"),
    "may_first": Decimal("1.50"),
}

# Feries majores a 150% (24.12. ab 14 Uhr, 25./26.12., 31.12. ab 14 Uhr, 1. Mai)
SPECIAL_HOLIDAYS = {
    (12, 24): "christmas",
    (12, 25): "christmas",
    (12, 26): "christmas",
    (12, 31): "new_years_eve",
    (5, 1): "may_first",
}

SHIFT_ALLOWANCES = {
    ShiftType.EARLY: Decimal("0"),
    ShiftType.LATE: Decimal("1.50"),
    ShiftType.NIGHT: Decimal("3.00"),
    ShiftType.SPLIT: Decimal("2.00"),
}

ON_CALL_RATE = Decimal("0.25")


def holiday_rate_key(shift_date: Optional[date]) -> str:
    """Taux SFN des heures feriees d'un service selon sa date."""
    if shift_date is None:
        return "holiday"
    return SPECIAL_HOLIDAYS.get((shift_date.month, shift_date.day), "holiday")


def default_shifts(payroll_input: IndustryPayrollInput) -> list[ShiftEntry]:
    """Services deduits des heures de nuit, dimanche et ferie saisies."""
    services = []
    if payroll_input.night_hours > 0:
        services.append(ShiftEntry(
            type=ShiftType.NIGHT,
            hours=payroll_input.night_hours,
            night_hours=payroll_input.night_hours,
        ))
    if payroll_input.sunday_hours > 0:
        services.append(ShiftEntry(
            type=ShiftType.EARLY,
            hours=payroll_input.sunday_hours,
            sunday_hours=payroll_input.sunday_hours,
        ))
    if payroll_input.holiday_hours > 0 or payroll_input.christmas_hours > 0:
        services.append(ShiftEntry(
            type=ShiftType.EARLY,
            hours=payroll_input.holiday_hours + payroll_input.christmas_hours,
            holiday_hours=payroll_input.holiday_hours,
            christmas_hours=payroll_input.christmas_hours,
        ))
    return services


class NursingModule(IndustryModule):

    @property
    def industry(self) -> Industry:
        return Industry.NURSING

    def calculate(
        self,
        config: IndustryConfig,
        payroll_input: IndustryPayrollInput,
        month: int,
        year: int,
    ) -> IndustryPayrollResult:
        result = IndustryPayrollResult(industry=Industry.NURSING)
        taux_horaire = CARE_LEVEL_RATES[config.care_level]
        services = payroll_input.shifts if payroll_input.shifts is not None \
            else default_shifts(payroll_input)

        exonere_total = ZERO
        imposable_total = ZERO
        zulagen = ZERO
        for service in services:
            for nom, heures in (
                ("night", service.night_hours),
                ("sunday", service.sunday_hours),
                (holiday_rate_key(service.shift_date), service.holiday_hours),
                ("christmas", service.christmas_hours),
            ):
                exonere, imposable = split_sfn_supplement(taux_horaire, heures, SFN_RATES[nom])
                exonere_total += exonere
                imposable_total += imposable
            zulagen += service.hours * SHIFT_ALLOWANCES[service.type]

        result.tax_free_additions += exonere_total
        result.taxable_additions += imposable_total + zulagen
        if exonere_total or imposable_total:
            result.details.append(
                f"SFN-Zuschlaege ({config.care_level.value}, {taux_horaire} EUR/h) : "
                f"{round_currency(exonere_total)} EUR exonere"
            )
        if zulagen:
            result.details.append(f"Schichtzulagen : {round_currency(zulagen)} EUR")

        if payroll_input.on_call_hours > 0:
            bereitschaft = payroll_input.on_call_hours * taux_horaire * ON_CALL_RATE
            result.taxable_additions += bereitschaft
            result.details.append(
                f"Rufbereitschaft {payroll_input.on_call_hours} h : "
                f"{round_currency(bereitschaft)} EUR"
            )

        if not services and payroll_input.on_call_hours == 0:
            logger.debug("Aucun service ni astreinte pour %04d-%02d", year, month)
        return result
