"""Modeles des supplements de branche (Bau, Gastronomie, Pflege)."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from payroll_engine.config.constants import Industry
from payroll_engine.core.exceptions import InvalidInputError
from payroll_engine.utils.number_utils import negative_fields


class ConstructionRegion(str, Enum):
    WEST = "west"
    EAST = "east"


class TradeGroup(str, Enum):
    """Lohngruppe Bauhauptgewerbe."""
    WORKER = "worker"        # Bauhelfer/Werker
    SKILLED = "skilled"      # Facharbeiter
    FOREMAN = "foreman"      # Vorarbeiter/Polier
    MASTER = "master"        # Baumeister


class CareLevel(str, Enum):
    ASSISTANT = "assistant"      # Pflegehilfskraft
    NURSE = "nurse"              # Pflegefachkraft
    SPECIALIST = "specialist"    # Fachpfleger/in
    LEAD = "lead"                # Stationsleitung


class ShiftType(str, Enum):
    EARLY = "early"
    LATE = "late"
    NIGHT = "night"
    SPLIT = "split"


@dataclass
class IndustryConfig:
    """Parametres propres a la branche du salarie."""
    construction_region: ConstructionRegion = ConstructionRegion.WEST
    construction_trade_group: TradeGroup = TradeGroup.SKILLED
    tips_from_employer: bool = False
    care_level: CareLevel = CareLevel.NURSE


@dataclass
class ShiftEntry:
    """Un service (Pflege)."""
    type: ShiftType
    hours: Decimal
    night_hours: Decimal = Decimal("0")
    sunday_hours: Decimal = Decimal("0")
    holiday_hours: Decimal = Decimal("0")
    christmas_hours: Decimal = Decimal("0")
    shift_date: Optional[date] = None


@dataclass
class IndustryPayrollInput:
    """Donnees de la periode necessaires aux modules de branche."""
    gross_monthly: Decimal = Decimal("0")
    hours_worked: Decimal = Decimal("0")
    night_hours: Decimal = Decimal("0")
    sunday_hours: Decimal = Decimal("0")
    holiday_hours: Decimal = Decimal("0")

    # Bau
    winter_hours: Decimal = Decimal("0")
    dirty_work_hours: Decimal = Decimal("0")
    height_work_hours: Decimal = Decimal("0")
    danger_work_hours: Decimal = Decimal("0")
    vacation_days_taken: Decimal = Decimal("0")
    previous_year_vacation_days: Decimal = Decimal("0")

    # Gastronomie
    breakfasts_provided: int = 0
    lunches_provided: int = 0
    dinners_provided: int = 0
    monthly_tips: Decimal = Decimal("0")

    # Pflege
    shifts: Optional[list[ShiftEntry]] = None
    on_call_hours: Decimal = Decimal("0")
    christmas_hours: Decimal = Decimal("0")

    def validate(self) -> None:
        """Leve InvalidInputError si une heure, un montant ou un nombre de repas est negatif."""
        negatifs = negative_fields(self)
        for i, service in enumerate(self.shifts or []):
            negatifs.extend(f"shifts[{i}].{nom}" for nom in negative_fields(service))
        if negatifs:
            raise InvalidInputError(
                f"Donnees de branche negatives : {', '.join(negatifs)}"
            )


@dataclass
class IndustryPayrollResult:
    """Resultat d'un module de branche.

    `benefits_in_kind` est la part non monetaire (repas) deja comprise dans
    `taxable_additions` ; elle n'est pas versee en especes.
    """
    industry: Industry = Industry.STANDARD
    taxable_additions: Decimal = Decimal("0")
    tax_free_additions: Decimal = Decimal("0")
    employer_additional_costs: Decimal = Decimal("0")
    benefits_in_kind: Decimal = Decimal("0")
    details: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def additional_gross(self) -> Decimal:
        return self.taxable_additions + self.tax_free_additions
