"""Calcul de la Lohnsteuer, du Solidaritaetszuschlag et de la Kirchensteuer.

Bases sur :
- § 32a EStG (tarif a quatre zones, arrondis a l'euro inferieur)
- § 32 Abs. 6 EStG (Kinderfreibetrag), § 24b EStG (Entlastungsbetrag)
- § 32a Abs. 5 EStG (Splittingverfahren, classe III)
- § 4 SolZG (Freigrenze et Milderungszone)
"""

import logging
from decimal import Decimal
from typing import Optional

from payroll_engine.config.constants import TaxClass
from payroll_engine.config.rate_tables import RateTable, TaxTariff
from payroll_engine.core.exceptions import InvalidIncomeError
from payroll_engine.models.payroll import Taxes
from payroll_engine.utils.number_utils import ZERO, floor_cent, floor_euro, to_decimal

logger = logging.getLogger("payroll_engine.tax")

ZONES = (0, 1, 2, 3, 4)


def _coerce_tax_class(classe) -> TaxClass:
    if isinstance(classe, TaxClass):
        return classe
    try:
        return TaxClass(str(classe).strip().upper())
    except ValueError:
        logger.debug("Classe d'impot inconnue %r, classe I appliquee", classe)
        return TaxClass.I


def tariff_for_zone(zve: Decimal, zone: int, tariff: TaxTariff) -> Decimal:
    """Formule brute d'une zone du tarif, sans arrondi ni controle de borne."""
    zve = to_decimal(zve)
    if zone == 0:
        return ZERO
    if zone == 1:
        y = (zve - tariff.basic_allowance) / Decimal("10000")
        a, b = tariff.zone1_coefficients
        return (a * y + b) * y
    if zone == 2:
        z = (zve - tariff.zone1_upper) / Decimal("10000")
        a, b = tariff.zone2_coefficients
        return (a * z + b) * z + tariff.zone2_constant
    if zone == 3:
        return tariff.zone3_rate * zve - tariff.zone3_constant
    if zone == 4:
        return tariff.zone4_rate * zve - tariff.zone4_constant
    raise ValueError(f"Zone de tarif inconnue : {zone}")


def zone_of(zve: Decimal, tariff: TaxTariff) -> int:
    """Zone applicable ; une valeur sur une borne reste dans la zone inferieure."""
    for zone, borne in enumerate(tariff.boundaries):
        if zve <= borne:
            return zone
    return 4


def income_tax_tariff(zve: Decimal, tariff: TaxTariff) -> Decimal:
    """Tarif de base § 32a EStG, resultat arrondi a l'euro inferieur."""
    zve = floor_euro(max(to_decimal(zve), ZERO))
    zone = zone_of(zve, tariff)
    impot = tariff_for_zone(zve, zone, tariff)
    logger.debug("Tarif zone %d pour zvE=%s -> %s", zone, zve, impot)
    return max(floor_euro(impot), ZERO)


class TaxCalculator:
    """Impots annuels a partir du revenu imposable."""

    def __init__(self, rates: RateTable):
        self.rates = rates

    def taxable_income(self, gross_yearly: Decimal) -> Decimal:
        """zvE simplifie : brut annuel moins forfaits et Vorsorgepauschale."""
        brut = to_decimal(gross_yearly)
        r = self.rates
        vorsorge = min(brut * r.retirement_provision_rate, r.retirement_provision_cap)
        zve = brut - r.work_related_expenses - r.special_expenses - vorsorge
        return max(floor_euro(zve), ZERO)

    def income_tax(self, zve: Decimal, tax_class: TaxClass) -> Decimal:
        # Classes IV, V et VI : tarif de base de la classe I. Simplification
        # retenue, sans la formule de V/VI (§ 39b Abs. 2 Satz 7 EStG) ni le facteur de IV.
        tariff = self.rates.tariff
        if tax_class == TaxClass.III:
            moitie = floor_euro(zve / 2)
            return income_tax_tariff(moitie, tariff) * 2
        if tax_class == TaxClass.II:
            zve = max(zve - self.rates.single_parent_relief, ZERO)
        return income_tax_tariff(zve, tariff)

    def solidarity_tax(self, income_tax: Decimal, tax_class: TaxClass = TaxClass.I) -> Decimal:
        """SolZ avec Freigrenze et zone de lissage continue."""
        r = self.rates
        facteur = 2 if tax_class == TaxClass.III else 1
        franchise = r.solidarity_allowance * facteur
        limite = r.solidarity_mitigation_limit * facteur

        if income_tax <= franchise:
            return ZERO
        if income_tax <= limite:
            taux_lissage = r.solidarity_rate * limite / (limite - franchise)
            return floor_cent(taux_lissage * (income_tax - franchise))
        return floor_cent(income_tax * r.solidarity_rate)

    def church_tax(
        self,
        income_tax: Decimal,
        church_tax: bool,
        state: Optional[str],
        church_tax_rate: Optional[Decimal] = None,
    ) -> Decimal:
        if not church_tax:
            return ZERO
        taux = to_decimal(church_tax_rate) if church_tax_rate is not None \
            else self.rates.church_tax_rate(state)
        return floor_cent(income_tax * taux / 100)

    def calculate(
        self,
        taxable_income: Decimal,
        tax_class=TaxClass.I,
        child_allowances: Decimal = ZERO,
        church_tax: bool = False,
        state: Optional[str] = None,
        church_tax_rate: Optional[Decimal] = None,
    ) -> Taxes:
        """Impots annuels. Leve InvalidIncomeError si le revenu est negatif."""
        revenu = to_decimal(taxable_income)
        if revenu < 0:
            raise InvalidIncomeError(f"Revenu imposable negatif : {revenu}")

        classe = _coerce_tax_class(tax_class)
        enfants = max(to_decimal(child_allowances), ZERO)
        zve = max(floor_euro(revenu - enfants * self.rates.child_allowance), ZERO)

        lohnsteuer = self.income_tax(zve, classe)
        soli = self.solidarity_tax(lohnsteuer, classe)
        kist = self.church_tax(lohnsteuer, church_tax, state, church_tax_rate)

        logger.debug(
            "Impots classe %s zvE=%s : ESt=%s SolZ=%s KiSt=%s",
            classe.value, zve, lohnsteuer, soli, kist,
        )
        return Taxes(income_tax=lohnsteuer, solidarity_tax=soli, church_tax=kist)
