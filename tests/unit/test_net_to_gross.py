"""Tests de la recherche du brut pour un net cible."""

import sys
from datetime import date
from decimal import Decimal
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import pytest

from payroll_engine.config.constants import TaxClass
from payroll_engine.config.rate_tables import RATE_TABLE_2025
from payroll_engine.core.exceptions import InvalidSalaryError
from payroll_engine.models.employee import Employee
from payroll_engine.rules.gross_to_net import GrossToNetCalculator
from payroll_engine.rules.net_to_gross import calculate_net_to_gross

REFERENCE = date(2025, 6, 30)


class TestNetToGross:

    def setup_method(self):
        self.employe = Employee(
            id="emp-1", birth_date=date(1995, 1, 1), state="NW", gross_salary=Decimal("3500"),
        )

    def test_cas_reference(self):
        result = calculate_net_to_gross(
            Decimal("2192.97"), self.employe, RATE_TABLE_2025, reference=REFERENCE,
        )
        assert result.converged
        assert abs(result.required_gross - Decimal("3500")) <= Decimal("0.25")
        assert abs(result.achieved_net - Decimal("2192.97")) <= Decimal("0.02")
        assert result.iterations <= 50

    def test_aller_retour(self):
        result = calculate_net_to_gross(
            Decimal("1800"), self.employe, RATE_TABLE_2025, reference=REFERENCE,
        )
        net = GrossToNetCalculator(RATE_TABLE_2025).calculate(
            self.employe, result.required_gross, reference=REFERENCE,
        ).net_salary
        assert abs(net - Decimal("1800")) <= Decimal("0.02")

    def test_classe_3_brut_plus_faible(self):
        marie = Employee(birth_date=date(1995, 1, 1), state="NW", tax_class=TaxClass.III)
        classe_1 = calculate_net_to_gross(Decimal("2500"), self.employe, RATE_TABLE_2025, REFERENCE)
        classe_3 = calculate_net_to_gross(Decimal("2500"), marie, RATE_TABLE_2025, REFERENCE)
        assert classe_3.required_gross < classe_1.required_gross

    def test_net_cible_nul(self):
        result = calculate_net_to_gross(Decimal("0"), self.employe, RATE_TABLE_2025)
        assert result.converged
        assert result.iterations == 0
        assert result.required_gross == 0

    def test_net_cible_negatif(self):
        with pytest.raises(InvalidSalaryError):
            calculate_net_to_gross(Decimal("-100"), self.employe, RATE_TABLE_2025)

    def test_net_cible_en_float(self):
        result = calculate_net_to_gross(1500.5, self.employe, RATE_TABLE_2025, REFERENCE)
        assert result.target_net == Decimal("1500.5")
        assert result.converged
