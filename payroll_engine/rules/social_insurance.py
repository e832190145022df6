"""Cotisations de securite sociale (Sozialversicherungsbeitraege).

Quatre branches : Krankenversicherung, Rentenversicherung,
Arbeitslosenversicherung, Pflegeversicherung.

Regimes particuliers :
- Minijob (§ 8 SGB IV) : le salarie ne cotise pas, forfaits employeur.
- Uebergangsbereich / Midijob (§ 20 Abs. 2 SGB IV) : assiette salariale reduite.
"""

import logging
from decimal import Decimal
from typing import Optional

from payroll_engine.config.constants import EmploymentType
from payroll_engine.config.rate_tables import ContributionRate, RateTable
from payroll_engine.core.exceptions import InvalidSalaryError, UnsupportedEmploymentTypeError
from payroll_engine.models.payroll import ContributionSplit, SocialSecurityContributions
from payroll_engine.utils.number_utils import to_decimal

logger = logging.getLogger("payroll_engine.social_insurance")

CENT_POUR_CENT = Decimal("100")


def coerce_employment_type(valeur) -> EmploymentType:
    if isinstance(valeur, EmploymentType):
        return valeur
    try:
        return EmploymentType(str(valeur).strip().lower())
    except ValueError:
        raise UnsupportedEmploymentTypeError(
            f"Type d'emploi non supporte : {valeur!r}"
        ) from None


class SocialInsuranceCalculator:
    """Calcul mensuel des cotisations salarie et employeur."""

    def __init__(self, rates: RateTable):
        self.rates = rates

    def is_minijob(self, gross: Decimal, employment_type) -> bool:
        return (
            coerce_employment_type(employment_type) == EmploymentType.MINIJOB
            and to_decimal(gross) <= self.rates.minijob_max_earnings
        )

    def is_midijob(self, gross: Decimal, employment_type) -> bool:
        brut = to_decimal(gross)
        if self.is_minijob(brut, employment_type):
            return False
        return self.rates.midijob_min_earnings <= brut <= self.rates.midijob_max_earnings

    def midijob_base(self, gross: Decimal) -> Decimal:
        """Beitragspflichtige Einnahme reduite dans l'Uebergangsbereich."""
        f = self.rates.midijob_reduction_factor
        g = self.rates.minijob_max_earnings
        o = self.rates.midijob_max_earnings
        return f * g + (o / (o - g) - g / (o - g) * f) * (to_decimal(gross) - g)

    @staticmethod
    def _split(
        base_salarie: Decimal, base_employeur: Decimal,
        salarie_pct: Decimal, employeur_pct: Decimal,
    ) -> ContributionSplit:
        return ContributionSplit(
            employee=base_salarie * salarie_pct / CENT_POUR_CENT,
            employer=base_employeur * employeur_pct / CENT_POUR_CENT,
        )

    def _minijob(self, gross: Decimal) -> SocialSecurityContributions:
        r = self.rates
        logger.debug("Regime minijob pour brut=%s", gross)
        return SocialSecurityContributions(
            health=ContributionSplit(employer=gross * r.minijob_employer_health_rate),
            pension=ContributionSplit(employer=gross * r.minijob_employer_pension_rate),
        )

    def care_rate(self, age: int, childless: bool) -> ContributionRate:
        if childless and age > self.rates.care_childless_min_age:
            return self.rates.care_childless
        return self.rates.care

    def calculate(
        self,
        gross_monthly: Decimal,
        age: int = 0,
        childless: bool = False,
        east: bool = False,
        employment_type=EmploymentType.FULLTIME,
        health_additional_rate: Optional[Decimal] = None,
    ) -> SocialSecurityContributions:
        """Cotisations mensuelles pour un brut soumis a cotisations."""
        brut = to_decimal(gross_monthly)
        if brut < 0:
            raise InvalidSalaryError(f"Salaire brut negatif : {brut}")
        type_emploi = coerce_employment_type(employment_type)

        if self.is_minijob(brut, type_emploi):
            return self._minijob(brut)

        r = self.rates
        assiette_rv = min(brut, r.pension_ceiling(east))
        assiette_kv = min(brut, r.bbg_monthly.health)

        # Dans l'Uebergangsbereich seule la part salariale est reduite
        assiette_rv_salarie = assiette_rv
        assiette_kv_salarie = assiette_kv
        if self.is_midijob(brut, type_emploi):
            reduite = self.midijob_base(brut)
            assiette_rv_salarie = min(reduite, assiette_rv)
            assiette_kv_salarie = min(reduite, assiette_kv)
            logger.debug("Regime midijob : assiette salariale %s pour brut=%s", reduite, brut)

        supplement = r.health_average_additional if health_additional_rate is None \
            else to_decimal(health_additional_rate)
        demi_supplement = supplement / 2
        soins = self.care_rate(age, childless)

        return SocialSecurityContributions(
            health=self._split(
                assiette_kv_salarie, assiette_kv,
                r.health.employee + demi_supplement, r.health.employer + demi_supplement,
            ),
            pension=self._split(
                assiette_rv_salarie, assiette_rv, r.pension.employee, r.pension.employer,
            ),
            unemployment=self._split(
                assiette_rv_salarie, assiette_rv,
                r.unemployment.employee, r.unemployment.employer,
            ),
            care=self._split(
                assiette_kv_salarie, assiette_kv, soins.employee, soins.employer,
            ),
        )
