"""Modeles salarie, periode de paie et temps de travail."""

from __future__ import annotations

import calendar
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from payroll_engine.config.constants import (
    EmploymentType, Industry, SalaryType, TaxClass, TimeEntryType,
    is_east_german_state,
)
from payroll_engine.core.exceptions import InvalidInputError, InvalidPeriodError
from payroll_engine.models.industry import IndustryConfig
from payroll_engine.utils.date_utils import age_on, parse_period_key, period_key
from payroll_engine.utils.number_utils import negative_fields


@dataclass
class Employee:
    """Donnees d'un salarie utilisees par le moteur."""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    first_name: str = ""
    last_name: str = ""
    birth_date: Optional[date] = None
    state: str = ""                        # Bundesland (code ou nom)
    church_tax: bool = False
    church_tax_rate: Optional[Decimal] = None
    tax_class: TaxClass = TaxClass.I
    child_allowances: Decimal = Decimal("0")  # Kinderfreibetraege (0.5 par parent possible)
    weekly_hours: Decimal = Decimal("40")
    gross_salary: Decimal = Decimal("0")      # brut mensuel contractuel
    hourly_wage: Optional[Decimal] = None
    salary_type: SalaryType = SalaryType.FIXED
    employment_type: EmploymentType = EmploymentType.FULLTIME
    industry: Industry = Industry.STANDARD
    industry_config: IndustryConfig = field(default_factory=IndustryConfig)
    health_additional_rate: Optional[Decimal] = None  # Zusatzbeitrag individuel, en %
    department: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_childless(self) -> bool:
        return self.child_allowances <= 0

    @property
    def is_east(self) -> bool:
        return is_east_german_state(self.state)

    def age(self, reference: date) -> int:
        """Age a la date de reference, 0 si la date de naissance est inconnue."""
        if self.birth_date is None:
            return 0
        return age_on(self.birth_date, reference)


@dataclass(frozen=True)
class PayrollPeriod:
    """Periode de paie mensuelle (mois 1-12)."""
    year: int
    month: int

    def __post_init__(self):
        if not 1 <= self.month <= 12:
            raise InvalidPeriodError(f"Mois invalide : {self.month} (attendu 1-12)")
        if self.year < 1:
            raise InvalidPeriodError(f"Annee invalide : {self.year}")

    @property
    def key(self) -> str:
        return period_key(self.year, self.month)

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def last_day(self) -> date:
        return date(self.year, self.month, calendar.monthrange(self.year, self.month)[1])

    @classmethod
    def from_key(cls, cle: str) -> "PayrollPeriod":
        try:
            annee, mois = parse_period_key(cle)
        except ValueError:
            raise InvalidPeriodError(f"Periode invalide : {cle!r} (attendu YYYY-MM)") from None
        return cls(annee, mois)

    def __str__(self) -> str:
        return self.key


@dataclass
class WorkingTimeData:
    """Temps de travail d'une periode (heures et jours)."""
    regular_hours: Decimal = Decimal("0")
    overtime_hours: Decimal = Decimal("0")
    night_hours: Decimal = Decimal("0")
    sunday_hours: Decimal = Decimal("0")
    holiday_hours: Decimal = Decimal("0")
    vacation_days: Decimal = Decimal("0")
    sick_days: Decimal = Decimal("0")
    actual_working_days: Decimal = Decimal("0")
    expected_working_days: Decimal = Decimal("0")

    @property
    def total_hours(self) -> Decimal:
        return self.regular_hours + self.overtime_hours

    def validate(self) -> None:
        """Leve InvalidInputError si une valeur est negative."""
        negatifs = negative_fields(self)
        if negatifs:
            raise InvalidInputError(
                f"Valeurs de temps negatives : {', '.join(negatifs)}"
            )

    def exceeds_expected_days(self, tolerance: int = 0) -> bool:
        return self.actual_working_days > self.expected_working_days + tolerance


@dataclass
class TimeEntry:
    """Saisie de temps brute (collaborateur de pointage)."""
    employee_id: str
    entry_date: datetime
    type: TimeEntryType = TimeEntryType.WORK
    hours_worked: Optional[Decimal] = None
    start_time: Optional[str] = None       # "HH:MM"
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
