"""Tests des cotisations de securite sociale."""

import sys
from decimal import Decimal
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import pytest

from payroll_engine.config.constants import EmploymentType
from payroll_engine.config.rate_tables import RATE_TABLE_2025
from payroll_engine.core.exceptions import InvalidSalaryError, UnsupportedEmploymentTypeError
from payroll_engine.rules.social_insurance import SocialInsuranceCalculator

PLAFOND_RV = Decimal("7550")
PLAFOND_KV = Decimal("5175")

# (part salarie %, part employeur %, plafond) ; KV avec Zusatzbeitrag moyen 1,7%,
# PV avec Zuschlag Kinderlose
TAUX_ATTENDUS = {
    "health": (Decimal("8.15"), Decimal("8.15"), PLAFOND_KV),
    "pension": (Decimal("9.3"), Decimal("9.3"), PLAFOND_RV),
    "unemployment": (Decimal("1.3"), Decimal("1.3"), PLAFOND_RV),
    "care": (Decimal("2.0"), Decimal("1.7"), PLAFOND_KV),
}

# Hors Uebergangsbereich (538,01 - 2 000 inclus) : de 0 a 10 x BBG RV
BRUTS_JUSQU_A_10_BBG = [Decimal("0"), Decimal("500"), Decimal("2000.01"), Decimal("6000")] + [
    PLAFOND_RV * 10 * i / 20 for i in range(1, 21)
]


class TestCotisationsStandard:

    def setup_method(self):
        self.calc = SocialInsuranceCalculator(RATE_TABLE_2025)

    def test_cas_reference_3500(self):
        sv = self.calc.calculate(Decimal("3500"), age=30, childless=True)
        assert sv.pension.employee == Decimal("325.50")
        assert sv.unemployment.employee == Decimal("45.50")
        assert sv.health.employee == Decimal("285.25")
        assert sv.care.employee == Decimal("70.00")
        assert sv.total.employee == Decimal("726.25")

    def test_part_employeur(self):
        sv = self.calc.calculate(Decimal("3500"), age=30, childless=True)
        assert sv.pension.employer == Decimal("325.50")
        assert sv.health.employer == Decimal("285.25")
        # Zuschlag Kinderlose a la charge du seul salarie
        assert sv.care.employer == Decimal("59.50")

    def test_pflege_avec_enfants(self):
        sv = self.calc.calculate(Decimal("3500"), age=30, childless=False)
        assert sv.care.employee == Decimal("59.50")

    def test_pflege_sans_enfant_23_ans(self):
        sv = self.calc.calculate(Decimal("3500"), age=23, childless=True)
        assert sv.care.employee == Decimal("59.50")

    def test_zusatzbeitrag_individuel(self):
        sv = self.calc.calculate(Decimal("3500"), health_additional_rate=Decimal("2.5"))
        assert sv.health.employee == Decimal("299.25")

    def test_plafond_ouest(self):
        sv = self.calc.calculate(Decimal("10000"))
        assert sv.pension.employee == Decimal("702.15")
        assert sv.health.employee == Decimal("5175") * Decimal("8.15") / 100

    def test_plafond_est(self):
        sv = self.calc.calculate(Decimal("10000"), east=True)
        assert sv.pension.employee == Decimal("692.85")

    @pytest.mark.parametrize("brut", BRUTS_JUSQU_A_10_BBG)
    def test_chaque_branche_taux_fois_assiette_plafonnee(self, brut):
        sv = self.calc.calculate(brut, age=40, childless=True)
        for nom, (pct_salarie, pct_employeur, plafond) in TAUX_ATTENDUS.items():
            assiette = min(brut, plafond)
            branche = sv.branches[nom]
            assert branche.employee == assiette * pct_salarie / 100, nom
            assert branche.employer == assiette * pct_employeur / 100, nom

    def test_type_emploi_texte(self):
        sv = self.calc.calculate(Decimal("3500"), employment_type="fulltime")
        assert sv.pension.employee == Decimal("325.50")

    def test_brut_negatif(self):
        with pytest.raises(InvalidSalaryError):
            self.calc.calculate(Decimal("-1"))

    def test_type_emploi_inconnu(self):
        with pytest.raises(UnsupportedEmploymentTypeError):
            self.calc.calculate(Decimal("3500"), employment_type="freelance")


class TestMinijob:

    def setup_method(self):
        self.calc = SocialInsuranceCalculator(RATE_TABLE_2025)

    def test_minijob_a_la_limite(self):
        sv = self.calc.calculate(Decimal("538"), employment_type=EmploymentType.MINIJOB)
        assert sv.total.employee == 0
        assert sv.health.employer == Decimal("69.94")
        assert sv.pension.employer == Decimal("80.70")
        assert sv.unemployment.total == 0
        assert sv.care.total == 0

    def test_minijob_au_dessus_de_la_limite(self):
        assert not self.calc.is_minijob(Decimal("538.01"), EmploymentType.MINIJOB)
        sv = self.calc.calculate(Decimal("600"), employment_type=EmploymentType.MINIJOB)
        assert sv.total.employee > 0

    def test_temps_plein_faible_brut_pas_minijob(self):
        assert not self.calc.is_minijob(Decimal("400"), EmploymentType.FULLTIME)


class TestMidijob:

    def setup_method(self):
        self.calc = SocialInsuranceCalculator(RATE_TABLE_2025)

    def test_detection_bande(self):
        assert self.calc.is_midijob(Decimal("538.01"), EmploymentType.PARTTIME)
        assert self.calc.is_midijob(Decimal("2000"), EmploymentType.FULLTIME)
        assert not self.calc.is_midijob(Decimal("2000.01"), EmploymentType.FULLTIME)
        assert not self.calc.is_midijob(Decimal("538"), EmploymentType.MINIJOB)

    def test_assiette_reduite_au_bas_de_bande(self):
        assiette = self.calc.midijob_base(Decimal("538"))
        assert abs(assiette - Decimal("376.60")) < Decimal("0.0001")

    def test_assiette_egale_au_brut_au_plafond(self):
        assiette = self.calc.midijob_base(Decimal("2000"))
        assert abs(assiette - Decimal("2000")) < Decimal("0.0001")

    def test_glissement_croissant(self):
        precedent = Decimal("0")
        for brut in (Decimal("600"), Decimal("1000"), Decimal("1500"), Decimal("1999")):
            assiette = self.calc.midijob_base(brut)
            assert assiette < brut
            assert assiette > precedent
            precedent = assiette

    def test_part_salariale_reduite(self):
        sv = self.calc.calculate(Decimal("1200"), employment_type=EmploymentType.PARTTIME)
        assert sv.pension.employee < Decimal("1200") * Decimal("0.093")

    def test_part_employeur_sur_brut_reel(self):
        sv = self.calc.calculate(Decimal("1200"), employment_type=EmploymentType.PARTTIME)
        assert sv.pension.employer == Decimal("111.60")
