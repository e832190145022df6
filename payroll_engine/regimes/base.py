"""Classe de base des modules de branche et decoupage des SFN-Zuschlaege."""

from abc import ABC, abstractmethod
from decimal import Decimal

from payroll_engine.config.constants import Industry
from payroll_engine.models.industry import (
    IndustryConfig, IndustryPayrollInput, IndustryPayrollResult,
)
from payroll_engine.utils.number_utils import ZERO

# § 3b Abs. 2 EStG : Grundlohn retenu au plus a 50 EUR/h pour l'exoneration
SFN_HOURLY_CAP = Decimal("50")


def split_sfn_supplement(
    hourly_rate: Decimal, hours: Decimal, rate: Decimal,
    cap: Decimal = SFN_HOURLY_CAP,
) -> tuple[Decimal, Decimal]:
    """Retourne (part exoneree, part imposable) d'un supplement SFN."""
    if hours <= 0 or rate <= 0 or hourly_rate <= 0:
        return ZERO, ZERO
    total = hours * hourly_rate * rate
    exonere = hours * min(hourly_rate, cap) * rate
    return exonere, total - exonere


class IndustryModule(ABC):
    """Interface commune des modules de supplements de branche."""

    @property
    @abstractmethod
    def industry(self) -> Industry:
        """Branche traitee par le module."""

    @abstractmethod
    def calculate(
        self,
        config: IndustryConfig,
        payroll_input: IndustryPayrollInput,
        month: int,
        year: int,
    ) -> IndustryPayrollResult:
        """Calcule les supplements de la periode."""


class StandardModule(IndustryModule):
    """Aucune regle de branche : resultat nul."""

    @property
    def industry(self) -> Industry:
        return Industry.STANDARD

    def calculate(self, config, payroll_input, month, year) -> IndustryPayrollResult:
        return IndustryPayrollResult(industry=Industry.STANDARD)
