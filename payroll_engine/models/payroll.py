"""Modeles de resultat de paie : cotisations, impots, decompte, ecriture."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from payroll_engine.core.exceptions import InvalidInputError
from payroll_engine.models.employee import Employee, PayrollPeriod, WorkingTimeData
from payroll_engine.models.industry import IndustryPayrollInput, IndustryPayrollResult
from payroll_engine.utils.number_utils import negative_fields


@dataclass
class ContributionSplit:
    """Repartition d'une cotisation entre salarie et employeur."""
    employee: Decimal = Decimal("0")
    employer: Decimal = Decimal("0")

    @property
    def total(self) -> Decimal:
        return self.employee + self.employer

    def __add__(self, autre: "ContributionSplit") -> "ContributionSplit":
        return ContributionSplit(
            employee=self.employee + autre.employee,
            employer=self.employer + autre.employer,
        )


@dataclass
class SocialSecurityContributions:
    """Cotisations des quatre branches (mensuelles)."""
    health: ContributionSplit = field(default_factory=ContributionSplit)
    pension: ContributionSplit = field(default_factory=ContributionSplit)
    unemployment: ContributionSplit = field(default_factory=ContributionSplit)
    care: ContributionSplit = field(default_factory=ContributionSplit)

    @property
    def total(self) -> ContributionSplit:
        return self.health + self.pension + self.unemployment + self.care

    @property
    def branches(self) -> dict[str, ContributionSplit]:
        return {
            "health": self.health,
            "pension": self.pension,
            "unemployment": self.unemployment,
            "care": self.care,
        }


@dataclass
class Taxes:
    """Impots retenus. `employer_flat_tax` est a la charge de l'employeur."""
    income_tax: Decimal = Decimal("0")
    solidarity_tax: Decimal = Decimal("0")
    church_tax: Decimal = Decimal("0")
    employer_flat_tax: Decimal = Decimal("0")

    @property
    def total(self) -> Decimal:
        return self.income_tax + self.solidarity_tax + self.church_tax

    def per_month(self) -> "Taxes":
        """Impots annuels ramenes au mois (sans arrondi)."""
        return Taxes(
            income_tax=self.income_tax / 12,
            solidarity_tax=self.solidarity_tax / 12,
            church_tax=self.church_tax / 12,
            employer_flat_tax=self.employer_flat_tax / 12,
        )


@dataclass
class SalaryCalculation:
    """Decompte brut/net d'un mois."""
    gross_salary: Decimal = Decimal("0")
    tax_free_additions: Decimal = Decimal("0")
    social_security: SocialSecurityContributions = field(
        default_factory=SocialSecurityContributions
    )
    taxes: Taxes = field(default_factory=Taxes)
    employer_costs: Decimal = Decimal("0")

    @property
    def net_salary(self) -> Decimal:
        return self.gross_salary - self.social_security.total.employee - self.taxes.total


@dataclass
class Additions:
    """Elements variables ajoutes au brut."""
    overtime_pay: Decimal = Decimal("0")
    night_shift_bonus: Decimal = Decimal("0")
    sunday_bonus: Decimal = Decimal("0")
    holiday_bonus: Decimal = Decimal("0")
    bonuses: Decimal = Decimal("0")
    one_time_payments: Decimal = Decimal("0")
    expense_reimbursements: Decimal = Decimal("0")

    @property
    def premiums(self) -> Decimal:
        return self.overtime_pay + self.night_shift_bonus + self.sunday_bonus + self.holiday_bonus

    @property
    def total(self) -> Decimal:
        return (
            self.premiums + self.bonuses + self.one_time_payments
            + self.expense_reimbursements
        )

    def validate(self) -> None:
        negatifs = negative_fields(self)
        if negatifs:
            raise InvalidInputError(f"Elements variables negatifs : {', '.join(negatifs)}")


@dataclass
class Deductions:
    """Retenues sur le net verse."""
    unpaid_leave: Decimal = Decimal("0")
    advance_payments: Decimal = Decimal("0")
    other_deductions: Decimal = Decimal("0")
    benefits_in_kind: Decimal = Decimal("0")   # Sachbezug deja compris dans le brut

    @property
    def total(self) -> Decimal:
        return (
            self.unpaid_leave + self.advance_payments + self.other_deductions
            + self.benefits_in_kind
        )

    def validate(self) -> None:
        negatifs = negative_fields(self)
        if negatifs:
            raise InvalidInputError(f"Retenues negatives : {', '.join(negatifs)}")


@dataclass
class MinimumWageValidation:
    is_valid: bool
    current_hourly_wage: Decimal
    minimum_hourly_wage: Decimal
    shortfall: Decimal = Decimal("0")
    required_adjustment: Decimal = Decimal("0")
    used_contract_hours: bool = False
    message: str = ""


@dataclass
class OvertimeValidation:
    is_valid: bool
    message: str = ""


@dataclass
class ComplianceValidationResult:
    """Synthese des controles de conformite d'une paie."""
    minimum_wage: MinimumWageValidation
    overtime: OvertimeValidation
    weekly_hours: Decimal = Decimal("0")
    violations: list[str] = field(default_factory=list)

    @property
    def is_compliant(self) -> bool:
        return not self.violations


@dataclass
class PayrollEntry:
    """Paie calculee d'un salarie pour une periode."""
    employee_id: str
    period: PayrollPeriod
    working_data: WorkingTimeData
    salary: SalaryCalculation
    deductions: Deductions = field(default_factory=Deductions)
    additions: Additions = field(default_factory=Additions)
    industry_result: Optional[IndustryPayrollResult] = None
    compliance: Optional[ComplianceValidationResult] = None
    warnings: list[str] = field(default_factory=list)
    final_net_salary: Decimal = Decimal("0")
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=datetime.now)


@dataclass
class HistoricalPayrollData:
    """Point d'historique utilise par la detection et la projection."""
    employee_id: str
    period: PayrollPeriod
    gross_salary: Decimal
    net_salary: Decimal
    overtime_hours: Decimal = Decimal("0")
    bonuses: Decimal = Decimal("0")
    deductions: Decimal = Decimal("0")

    @classmethod
    def from_entry(cls, entry: PayrollEntry) -> "HistoricalPayrollData":
        return cls(
            employee_id=entry.employee_id,
            period=entry.period,
            gross_salary=entry.salary.gross_salary,
            net_salary=entry.final_net_salary,
            overtime_hours=entry.working_data.overtime_hours,
            bonuses=entry.additions.bonuses + entry.additions.one_time_payments,
            deductions=entry.deductions.total,
        )


@dataclass
class PayrollJob:
    """Une paie a calculer dans un lot."""
    employee: Employee
    working_data: WorkingTimeData = field(default_factory=WorkingTimeData)
    additions: Optional[Additions] = None
    deductions: Optional[Deductions] = None
    industry_input: Optional[IndustryPayrollInput] = None
