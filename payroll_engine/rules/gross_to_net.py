"""Passage du brut mensuel au net (Brutto-Netto-Rechnung)."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from payroll_engine.config.rate_tables import RateTable
from payroll_engine.models.employee import Employee
from payroll_engine.models.payroll import SalaryCalculation, SocialSecurityContributions, Taxes
from payroll_engine.rules.social_insurance import SocialInsuranceCalculator
from payroll_engine.rules.tax_rules import TaxCalculator
from payroll_engine.utils.number_utils import ZERO, to_decimal

logger = logging.getLogger("payroll_engine.gross_to_net")


class GrossToNetCalculator:
    """Combine impots et cotisations pour un brut mensuel imposable.

    Les impots sont calcules sur le brut annualise (x12) puis ramenes au
    mois ; aucun arrondi n'est applique ici.
    """

    def __init__(self, rates: RateTable):
        self.rates = rates
        self.tax = TaxCalculator(rates)
        self.social = SocialInsuranceCalculator(rates)

    def monthly_taxes(self, employee: Employee, gross_monthly: Decimal) -> Taxes:
        brut = to_decimal(gross_monthly)
        if self.social.is_minijob(brut, employee.employment_type):
            # Pauschsteuer 2% a la charge de l'employeur, pas de Lohnsteuer
            return Taxes(employer_flat_tax=brut * self.rates.minijob_flat_tax_rate)

        zve = self.tax.taxable_income(brut * 12)
        annuels = self.tax.calculate(
            zve,
            tax_class=employee.tax_class,
            child_allowances=employee.child_allowances,
            church_tax=employee.church_tax,
            state=employee.state,
            church_tax_rate=employee.church_tax_rate,
        )
        return annuels.per_month()

    def social_security(
        self, employee: Employee, gross_monthly: Decimal, reference: date,
    ) -> SocialSecurityContributions:
        return self.social.calculate(
            gross_monthly,
            age=employee.age(reference),
            childless=employee.is_childless,
            east=employee.is_east,
            employment_type=employee.employment_type,
            health_additional_rate=employee.health_additional_rate,
        )

    def calculate(
        self,
        employee: Employee,
        gross_monthly: Decimal,
        tax_free_additions: Decimal = ZERO,
        reference: Optional[date] = None,
        employer_additional_costs: Decimal = ZERO,
    ) -> SalaryCalculation:
        brut = to_decimal(gross_monthly)
        exonere = to_decimal(tax_free_additions)
        reference = reference or date.today()

        taxes = self.monthly_taxes(employee, brut)
        cotisations = self.social_security(employee, brut, reference)

        cout_employeur = (
            brut + exonere + cotisations.total.employer + taxes.employer_flat_tax
            + to_decimal(employer_additional_costs)
        )
        calcul = SalaryCalculation(
            gross_salary=brut,
            tax_free_additions=exonere,
            social_security=cotisations,
            taxes=taxes,
            employer_costs=cout_employeur,
        )
        logger.debug(
            "Brut %s -> net %s (impots %s, cotisations %s)",
            brut, calcul.net_salary, taxes.total, cotisations.total.employee,
        )
        return calcul
