"""
Tables de taux versionnees par annee (Rechengroessen).

Une table par annee supportee, jamais modifiee pendant un calcul : elle est
passee explicitement a chaque calculateur.

Ref :
- § 32a EStG (Einkommensteuertarif 2025)
- § 4 SolZG 1995 (Solidaritaetszuschlag, Freigrenze et Milderungszone)
- Sozialversicherungs-Rechengroessenverordnung (BBG)
- § 8 SGB IV (Minijob), § 20 Abs. 2 SGB IV (Uebergangsbereich / Midijob)
- § 55 SGB XI (Beitragszuschlag fuer Kinderlose)
"""

from dataclasses import dataclass
from decimal import Decimal
from types import MappingProxyType
from typing import Mapping

from payroll_engine.config.constants import normalize_state
from payroll_engine.core.exceptions import UnsupportedTaxYearError


@dataclass(frozen=True)
class ContributionRate:
    """Taux d'une branche en pourcentage (part salarie / part employeur)."""
    employee: Decimal
    employer: Decimal

    @property
    def total(self) -> Decimal:
        return self.employee + self.employer


@dataclass(frozen=True)
class AssessmentCeilings:
    """Beitragsbemessungsgrenzen mensuelles."""
    pension_west: Decimal
    pension_east: Decimal
    health: Decimal

    def yearly(self) -> "AssessmentCeilings":
        return AssessmentCeilings(
            pension_west=self.pension_west * 12,
            pension_east=self.pension_east * 12,
            health=self.health * 12,
        )


@dataclass(frozen=True)
class TaxTariff:
    """Tarif a quatre zones (plus la zone exoneree du Grundfreibetrag).

    Bornes superieures incluses : une valeur sur une borne utilise la
    formule de la zone inferieure.
    """
    basic_allowance: Decimal
    zone1_upper: Decimal
    zone1_coefficients: tuple[Decimal, Decimal]
    zone2_upper: Decimal
    zone2_coefficients: tuple[Decimal, Decimal]
    zone2_constant: Decimal
    zone3_upper: Decimal
    zone3_rate: Decimal
    zone3_constant: Decimal
    zone4_rate: Decimal
    zone4_constant: Decimal

    @property
    def boundaries(self) -> tuple[Decimal, Decimal, Decimal, Decimal]:
        return (self.basic_allowance, self.zone1_upper, self.zone2_upper, self.zone3_upper)


@dataclass(frozen=True)
class RateTable:
    """Constantes de paie d'une annee civile. Montants en EUR."""
    year: int

    # Sozialversicherung
    bbg_monthly: AssessmentCeilings
    pension: ContributionRate
    unemployment: ContributionRate
    health: ContributionRate
    health_average_additional: Decimal
    care: ContributionRate
    care_childless: ContributionRate
    care_childless_min_age: int

    # Minijob / Midijob
    minijob_max_earnings: Decimal
    minijob_flat_tax_rate: Decimal
    minijob_employer_health_rate: Decimal
    minijob_employer_pension_rate: Decimal
    midijob_min_earnings: Decimal
    midijob_max_earnings: Decimal
    midijob_reduction_factor: Decimal

    # Lohnsteuer
    tariff: TaxTariff
    child_allowance: Decimal
    work_related_expenses: Decimal
    special_expenses: Decimal
    retirement_provision_rate: Decimal
    retirement_provision_cap: Decimal
    single_parent_relief: Decimal

    # Solidaritaetszuschlag
    solidarity_rate: Decimal
    solidarity_allowance: Decimal
    solidarity_mitigation_limit: Decimal

    # Kirchensteuer (en pourcentage de la Lohnsteuer)
    church_tax_rates: Mapping[str, Decimal]
    church_tax_default_rate: Decimal

    minimum_wage: Decimal

    @property
    def bbg_yearly(self) -> AssessmentCeilings:
        return self.bbg_monthly.yearly()

    def pension_ceiling(self, east: bool) -> Decimal:
        return self.bbg_monthly.pension_east if east else self.bbg_monthly.pension_west

    def church_tax_rate(self, etat: str | None) -> Decimal:
        return self.church_tax_rates.get(normalize_state(etat), self.church_tax_default_rate)


RATE_TABLE_2025 = RateTable(
    year=2025,
    bbg_monthly=AssessmentCeilings(
        pension_west=Decimal("7550.00"),   # 90.600 / an
        pension_east=Decimal("7450.00"),   # 89.400 / an
        health=Decimal("5175.00"),         # 62.100 / an
    ),
    pension=ContributionRate(Decimal("9.3"), Decimal("9.3")),        # 18,6%
    unemployment=ContributionRate(Decimal("1.3"), Decimal("1.3")),   # 2,6%
    health=ContributionRate(Decimal("7.3"), Decimal("7.3")),         # 14,6% sans Zusatzbeitrag
    health_average_additional=Decimal("1.7"),
    care=ContributionRate(Decimal("1.7"), Decimal("1.7")),           # 3,4%
    care_childless=ContributionRate(Decimal("2.0"), Decimal("1.7")), # part AG inchangee
    care_childless_min_age=23,

    minijob_max_earnings=Decimal("538.00"),
    minijob_flat_tax_rate=Decimal("0.02"),           # 2% Pauschsteuer
    minijob_employer_health_rate=Decimal("0.13"),    # 13% KV pauschal
    minijob_employer_pension_rate=Decimal("0.15"),   # 15% RV pauschal
    midijob_min_earnings=Decimal("538.01"),
    midijob_max_earnings=Decimal("2000.00"),
    midijob_reduction_factor=Decimal("0.7"),

    tariff=TaxTariff(
        basic_allowance=Decimal("12096"),
        zone1_upper=Decimal("17443"),
        zone1_coefficients=(Decimal("932.30"), Decimal("1400")),
        zone2_upper=Decimal("68480"),
        zone2_coefficients=(Decimal("176.64"), Decimal("2397")),
        zone2_constant=Decimal("1015.13"),
        zone3_upper=Decimal("277825"),
        zone3_rate=Decimal("0.42"),
        zone3_constant=Decimal("10911.92"),
        zone4_rate=Decimal("0.45"),            # Reichensteuer
        zone4_constant=Decimal("19246.67"),
    ),
    child_allowance=Decimal("6612"),
    work_related_expenses=Decimal("1230"),    # Arbeitnehmer-Pauschbetrag
    special_expenses=Decimal("36"),           # Sonderausgaben-Pauschbetrag
    retirement_provision_rate=Decimal("0.12"),
    retirement_provision_cap=Decimal("3000"),
    single_parent_relief=Decimal("4260"),     # Entlastungsbetrag § 24b EStG

    solidarity_rate=Decimal("0.055"),
    solidarity_allowance=Decimal("1036.76"),
    solidarity_mitigation_limit=Decimal("1340.06"),

    church_tax_rates=MappingProxyType({
        "BW": Decimal("8"),
        "BY": Decimal("8"),
    }),
    church_tax_default_rate=Decimal("9"),

    minimum_wage=Decimal("12.82"),
)


RATE_TABLES: Mapping[int, RateTable] = MappingProxyType({
    2025: RATE_TABLE_2025,
})


def get_rate_table(annee: int) -> RateTable:
    """Retourne la table de l'annee ou leve UnsupportedTaxYearError."""
    try:
        return RATE_TABLES[annee]
    except KeyError:
        raise UnsupportedTaxYearError(
            f"Aucune table de taux pour {annee} (annees supportees : "
            f"{', '.join(str(a) for a in sorted(RATE_TABLES))})"
        ) from None


def supported_years() -> list[int]:
    return sorted(RATE_TABLES)
