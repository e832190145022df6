"""Controles de conformite : Mindestlohn, Arbeitszeitgesetz, coherence.

Les violations sont retournees comme donnees, jamais levees.
"""

import logging
from decimal import Decimal
from typing import Optional

from payroll_engine.config.constants import (
    MAX_DAILY_HOURS, MAX_DAILY_OVERTIME, MAX_WEEKLY_HOURS, SalaryType,
    WEEKS_PER_MONTH, minimum_wage_for,
)
from payroll_engine.config.settings import ComplianceConfig
from payroll_engine.models.employee import Employee, WorkingTimeData
from payroll_engine.models.payroll import (
    ComplianceValidationResult, MinimumWageValidation, OvertimeValidation, PayrollEntry,
)
from payroll_engine.utils.number_utils import ZERO, round_currency, to_decimal

logger = logging.getLogger("payroll_engine.compliance")


def monthly_hours(employee: Employee, working_data: WorkingTimeData) -> tuple[Decimal, bool]:
    """Heures du mois, a defaut les heures contractuelles (weekly x 4.33)."""
    heures = working_data.total_hours
    if heures > 0:
        return heures, False
    return employee.weekly_hours * WEEKS_PER_MONTH, True


def validate_minimum_wage(
    employee: Employee, working_data: WorkingTimeData, year: int,
) -> MinimumWageValidation:
    """Compare le taux horaire effectif au Mindestlohn de l'annee."""
    minimum = minimum_wage_for(year)
    heures, heures_contrat = monthly_hours(employee, working_data)

    if employee.salary_type == SalaryType.HOURLY and employee.hourly_wage is not None:
        taux = to_decimal(employee.hourly_wage)
    elif heures > 0:
        taux = employee.gross_salary / heures
    else:
        taux = ZERO

    manque = max(minimum - taux, ZERO)
    valide = manque == 0
    if valide:
        message = f"Taux horaire {round_currency(taux)} EUR conforme au Mindestlohn {minimum} EUR"
    else:
        message = (
            f"Taux horaire {round_currency(taux)} EUR inferieur au Mindestlohn "
            f"{minimum} EUR ({year})"
        )
    if heures_contrat:
        message += " (heures contractuelles utilisees, aucune heure saisie)"
        logger.warning("Mindestlohn %s : aucune heure saisie, heures contractuelles utilisees",
                       employee.id)

    return MinimumWageValidation(
        is_valid=valide,
        current_hourly_wage=round_currency(taux),
        minimum_hourly_wage=minimum,
        shortfall=round_currency(manque),
        required_adjustment=round_currency(manque * heures),
        used_contract_hours=heures_contrat,
        message=message,
    )


def validate_overtime_compliance(
    working_data: WorkingTimeData,
    contractual_daily_hours: Decimal = Decimal("8"),
    max_daily_overtime: Decimal = MAX_DAILY_OVERTIME,
    max_daily_hours: Decimal = MAX_DAILY_HOURS,
) -> OvertimeValidation:
    """Heures supplementaires moyennes par jour (§ 3 ArbZG)."""
    jours = working_data.actual_working_days
    if jours <= 0:
        if working_data.overtime_hours > 0:
            return OvertimeValidation(
                is_valid=False,
                message="Heures supplementaires saisies sans jour travaille",
            )
        return OvertimeValidation(is_valid=True, message="Aucun jour travaille")

    par_jour = working_data.overtime_hours / jours
    if par_jour > max_daily_overtime:
        return OvertimeValidation(
            is_valid=False,
            message=(f"{round_currency(par_jour)} h supplementaires par jour "
                     f"(maximum {max_daily_overtime} h)"),
        )
    if to_decimal(contractual_daily_hours) + par_jour > max_daily_hours:
        return OvertimeValidation(
            is_valid=False,
            message=f"Duree quotidienne superieure a {max_daily_hours} h",
        )
    return OvertimeValidation(is_valid=True, message="Heures supplementaires conformes")


def validate_payroll_compliance(
    employee: Employee,
    working_data: WorkingTimeData,
    year: int,
    config: Optional[ComplianceConfig] = None,
) -> ComplianceValidationResult:
    config = config or ComplianceConfig()
    mindestlohn = validate_minimum_wage(employee, working_data, year)
    heures_sup = validate_overtime_compliance(
        working_data,
        contractual_daily_hours=config.contractual_daily_hours,
        max_daily_overtime=config.max_daily_overtime,
        max_daily_hours=config.max_daily_hours,
    )
    hebdo = working_data.total_hours / WEEKS_PER_MONTH

    violations = []
    if not mindestlohn.is_valid:
        violations.append(mindestlohn.message)
    if not heures_sup.is_valid:
        violations.append(heures_sup.message)
    if hebdo > min(config.max_weekly_hours, MAX_WEEKLY_HOURS):
        violations.append(
            f"Duree hebdomadaire moyenne {round_currency(hebdo)} h superieure a "
            f"{config.max_weekly_hours} h"
        )

    return ComplianceValidationResult(
        minimum_wage=mindestlohn,
        overtime=heures_sup,
        weekly_hours=round_currency(hebdo),
        violations=violations,
    )


def check_entry_consistency(
    entry: PayrollEntry, tolerance: Decimal = Decimal("0.02"),
) -> list[str]:
    """Verifie l'identite du net et la coherence des sous-totaux."""
    erreurs = []
    salaire = entry.salary
    cotisations = salaire.social_security

    somme_salarie = sum((b.employee for b in cotisations.branches.values()), ZERO)
    somme_employeur = sum((b.employer for b in cotisations.branches.values()), ZERO)
    if abs(somme_salarie - cotisations.total.employee) > tolerance:
        erreurs.append("Somme des cotisations salariales incoherente")
    if abs(somme_employeur - cotisations.total.employer) > tolerance:
        erreurs.append("Somme des cotisations patronales incoherente")

    for nom, montant in (
        ("income_tax", salaire.taxes.income_tax),
        ("solidarity_tax", salaire.taxes.solidarity_tax),
        ("church_tax", salaire.taxes.church_tax),
    ):
        if montant < 0:
            erreurs.append(f"Impot negatif : {nom}")

    gauche = (
        entry.final_net_salary + salaire.taxes.total + cotisations.total.employee
        - salaire.tax_free_additions
    )
    droite = salaire.gross_salary - entry.deductions.total
    if abs(gauche - droite) > tolerance:
        erreurs.append(
            f"Identite du net non respectee : {round_currency(gauche)} != {round_currency(droite)}"
        )

    if salaire.employer_costs < salaire.gross_salary:
        erreurs.append("Cout employeur inferieur au brut")
    return erreurs
