"""Tests de la detection d'anomalies et du cycle de vie."""

import sys
from dataclasses import replace
from datetime import date
from decimal import Decimal
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import pytest

from payroll_engine.analyzers.anomaly_detector import (
    AnomalyDetector, calculate_health_score, detect_anomalies, dismiss_anomaly,
    relabel_severity, resolve_anomaly,
)
from payroll_engine.config.constants import AnomalyStatus, AnomalyType, Severity
from payroll_engine.config.rate_tables import RATE_TABLE_2025
from payroll_engine.config.settings import AnomalyConfig
from payroll_engine.core.exceptions import AnomalyStateError
from payroll_engine.core.orchestrator import PayrollOrchestrator
from payroll_engine.models.anomalies import PayrollAnomaly
from payroll_engine.models.employee import Employee, PayrollPeriod, WorkingTimeData
from payroll_engine.models.payroll import (
    Additions, HistoricalPayrollData, PayrollEntry, SalaryCalculation,
)

AVRIL = PayrollPeriod(2025, 4)


def salarie(id_="emp-1", **kwargs) -> Employee:
    valeurs = dict(id=id_, first_name="Jonas", last_name="Weber",
                   birth_date=date(1988, 3, 12), state="HE", gross_salary=Decimal("3500"))
    valeurs.update(kwargs)
    return Employee(**valeurs)


def ecriture(
    employee_id="emp-1", periode=AVRIL, brut="3500", heures="160", heures_sup="0",
    jours="20", primes="0",
) -> PayrollEntry:
    return PayrollEntry(
        employee_id=employee_id,
        period=periode,
        working_data=WorkingTimeData(
            regular_hours=Decimal(heures),
            overtime_hours=Decimal(heures_sup),
            actual_working_days=Decimal(jours),
            expected_working_days=Decimal("20"),
        ),
        salary=SalaryCalculation(gross_salary=Decimal(brut)),
        additions=Additions(bonuses=Decimal(primes)),
    )


def historique(bruts, employee_id="emp-1", primes="0") -> list[HistoricalPayrollData]:
    return [
        HistoricalPayrollData(
            employee_id=employee_id,
            period=PayrollPeriod(2025, i + 1),
            gross_salary=Decimal(b),
            net_salary=Decimal(b) * Decimal("0.65"),
            bonuses=Decimal(primes),
        )
        for i, b in enumerate(bruts)
    ]


def du_type(anomalies, type_):
    return [a for a in anomalies if a.type == type_]


class TestVariationSalaire:

    def test_hausse_a_la_limite_non_signalee(self):
        result = detect_anomalies(
            [salarie()], [ecriture(brut="1150")], historique(["1000"] * 3),
        )
        assert result == []

    def test_hausse_juste_au_dessus(self):
        result = detect_anomalies(
            [salarie()], [ecriture(brut="1150.01")], historique(["1000"] * 3),
        )
        assert len(result) == 1
        assert result[0].type == AnomalyType.SALARY_SPIKE
        assert result[0].severity == Severity.MEDIUM
        assert result[0].expected_value == Decimal("1000")
        assert result[0].period == "2025-04"

    def test_forte_hausse(self):
        result = detect_anomalies(
            [salarie()], [ecriture(brut="1400")], historique(["1000"] * 3),
        )
        assert du_type(result, AnomalyType.SALARY_SPIKE)[0].severity == Severity.HIGH

    def test_forte_baisse_critique(self):
        result = detect_anomalies(
            [salarie()], [ecriture(brut="600")], historique(["1000"] * 3),
        )
        baisse = du_type(result, AnomalyType.SALARY_DROP)
        assert len(baisse) == 1
        assert baisse[0].severity == Severity.CRITICAL
        assert baisse[0].deviation == Decimal("-40.00")

    def test_baisse_moderee(self):
        result = detect_anomalies(
            [salarie()], [ecriture(brut="800")], historique(["1000"] * 3),
        )
        assert du_type(result, AnomalyType.SALARY_DROP)[0].severity == Severity.HIGH

    def test_historique_insuffisant(self):
        result = detect_anomalies(
            [salarie()], [ecriture(brut="2000")], historique(["1000"] * 2),
        )
        assert result == []

    def test_historique_posterieur_ignore(self):
        """Seules les periodes anterieures a la paie servent de reference."""
        histo = historique(["1000", "1000", "1000", "1500", "1500", "1500"])
        result = detect_anomalies([salarie()], [ecriture(brut="1500")], histo)
        assert len(du_type(result, AnomalyType.SALARY_SPIKE)) == 1


class TestHeuresEtPrimes:

    @pytest.mark.parametrize("heures,severite", [
        ("50", Severity.MEDIUM),
        ("70", Severity.HIGH),
        ("90", Severity.CRITICAL),
    ])
    def test_heures_supplementaires(self, heures, severite):
        result = detect_anomalies([salarie()], [ecriture(heures_sup=heures)], [])
        sup = du_type(result, AnomalyType.OVERTIME_EXCESSIVE)
        assert len(sup) == 1
        assert sup[0].severity == severite

    def test_heures_sup_au_seuil(self):
        result = detect_anomalies([salarie()], [ecriture(heures_sup="40")], [])
        assert du_type(result, AnomalyType.OVERTIME_EXCESSIVE) == []

    def test_prime_inhabituelle(self):
        result = detect_anomalies([salarie()], [ecriture(primes="6000")], [])
        prime = du_type(result, AnomalyType.BONUS_UNUSUAL)
        assert prime[0].severity == Severity.MEDIUM

    def test_tres_grosse_prime(self):
        result = detect_anomalies([salarie()], [ecriture(primes="12000")], [])
        assert du_type(result, AnomalyType.BONUS_UNUSUAL)[0].severity == Severity.HIGH

    def test_prime_habituelle(self):
        histo = historique(["3500"] * 3, primes="3000")
        result = detect_anomalies([salarie()], [ecriture(primes="6000")], histo)
        assert du_type(result, AnomalyType.BONUS_UNUSUAL) == []


class TestTempsEtMindestlohn:

    def test_duree_excessive(self):
        result = detect_anomalies([salarie()], [ecriture(heures="230")], [])
        duree = du_type(result, AnomalyType.WORKING_TIME_VIOLATION)
        assert duree[0].severity == Severity.HIGH
        assert duree[0].current_value == Decimal("11.50")

    def test_duree_critique(self):
        result = detect_anomalies([salarie()], [ecriture(heures="260")], [])
        assert du_type(result, AnomalyType.WORKING_TIME_VIOLATION)[0].severity == Severity.CRITICAL

    def test_mindestlohn(self):
        employe = salarie(gross_salary=Decimal("1500"))
        result = detect_anomalies([employe], [ecriture(brut="1500")], [])
        mindestlohn = du_type(result, AnomalyType.MINIMUM_WAGE_VIOLATION)
        assert mindestlohn[0].severity == Severity.CRITICAL
        assert mindestlohn[0].expected_value == Decimal("12.82")


class TestRuptureEtRecalcul:

    def test_rupture_de_tendance(self):
        histo = historique(["1000", "1100", "900", "1000"])
        result = detect_anomalies([salarie()], [ecriture(periode=PayrollPeriod(2025, 5), brut="1200")], histo)
        rupture = du_type(result, AnomalyType.PATTERN_BREAK)
        assert len(rupture) == 1
        assert rupture[0].severity == Severity.MEDIUM
        assert rupture[0].deviation == Decimal("2.83")

    def test_serie_constante_sans_rupture(self):
        histo = historique(["1000"] * 4)
        result = detect_anomalies([salarie()], [ecriture(periode=PayrollPeriod(2025, 5), brut="1100")], histo)
        assert du_type(result, AnomalyType.PATTERN_BREAK) == []

    def test_ecart_impots(self):
        employe = salarie()
        entry = PayrollOrchestrator(RATE_TABLE_2025).compute(
            employe, AVRIL,
            WorkingTimeData(regular_hours=Decimal("160"), actual_working_days=Decimal("20"),
                            expected_working_days=Decimal("20")),
        )
        assert detect_anomalies([employe], [entry], [], rates=RATE_TABLE_2025) == []

        entry.salary.taxes = replace(
            entry.salary.taxes, income_tax=entry.salary.taxes.income_tax + Decimal("50"),
        )
        result = detect_anomalies([employe], [entry], [], rates=RATE_TABLE_2025)
        assert [a.type for a in result] == [AnomalyType.TAX_DISCREPANCY]
        assert result[0].severity == Severity.HIGH
        assert result[0].deviation == Decimal("50.00")

    def test_sans_table_pas_de_recalcul(self):
        entry = ecriture()
        assert detect_anomalies([salarie()], [entry], []) == []


class TestManquantesEtDoublons:

    def test_paie_manquante(self):
        result = detect_anomalies(
            [salarie("a"), salarie("b")], [ecriture("a")], [], period=AVRIL,
        )
        assert len(result) == 1
        assert result[0].type == AnomalyType.MISSING_ENTRY
        assert result[0].employee_id == "b"
        assert result[0].period == "2025-04"

    def test_paie_en_double(self):
        result = detect_anomalies([salarie()], [ecriture(), ecriture()], [])
        doublon = du_type(result, AnomalyType.DUPLICATE_ENTRY)
        assert len(doublon) == 1
        assert doublon[0].severity == Severity.CRITICAL
        assert doublon[0].current_value == Decimal("2")

    def test_paie_refusee_au_stockage(self):
        # Paie stockee + paie refusee : doublon signale, aucune autre analyse
        result = detect_anomalies(
            [salarie()], [], historique(["1000"] * 3), period=AVRIL,
            duplicates=[ecriture(brut="5000"), ecriture(brut="5000")],
        )
        assert [a.type for a in result] == [AnomalyType.DUPLICATE_ENTRY]
        assert result[0].period == "2025-04"


class TestDeduplication:

    def setup_method(self):
        self.histo = historique(["1000"] * 3)
        self.entries = [ecriture(brut="1400", heures="110", heures_sup="50")]

    def test_reanalyse_idempotente(self):
        premiere = detect_anomalies([salarie()], self.entries, self.histo)
        assert len(premiere) == 2
        seconde = detect_anomalies(
            [salarie()], self.entries, self.histo, existing_anomalies=premiere,
        )
        assert seconde == []

    def test_resolution_libere_la_cle(self):
        premiere = detect_anomalies([salarie()], self.entries, self.histo)
        resolues = [resolve_anomaly(a, "corrige") for a in premiere]
        seconde = detect_anomalies(
            [salarie()], self.entries, self.histo, existing_anomalies=resolues,
        )
        assert len(seconde) == 2

    def test_controle_desactive(self):
        config = AnomalyConfig(
            enabled_checks=frozenset(AnomalyType) - {AnomalyType.SALARY_SPIKE},
        )
        result = detect_anomalies([salarie()], self.entries, self.histo, config=config)
        assert [a.type for a in result] == [AnomalyType.OVERTIME_EXCESSIVE]

    def test_tri_par_severite(self):
        entries = [ecriture(brut="600", heures="110", heures_sup="50")]
        result = AnomalyDetector().scan([salarie()], entries, self.histo)
        assert [a.severity for a in result] == [Severity.CRITICAL, Severity.MEDIUM]


class TestScoreEtCycleDeVie:

    def anomalie(self, severite=Severity.HIGH) -> PayrollAnomaly:
        return PayrollAnomaly(
            type=AnomalyType.SALARY_SPIKE, severity=severite, employee_id="emp-1",
            title="Hausse", description="Hausse de salaire", period="2025-04",
        )

    def test_score_sans_anomalie(self):
        assert calculate_health_score([]) == 100

    def test_score_ponderation(self):
        anomalies = [self.anomalie(Severity.CRITICAL), self.anomalie(Severity.HIGH)]
        assert calculate_health_score(anomalies) == 60

    def test_score_ignore_les_resolues(self):
        anomalies = [resolve_anomaly(self.anomalie(Severity.CRITICAL), "ok"), self.anomalie(Severity.LOW)]
        assert calculate_health_score(anomalies) == 97

    def test_score_borne_a_zero(self):
        assert calculate_health_score([self.anomalie(Severity.CRITICAL)] * 5) == 0

    def test_resolution(self):
        a = self.anomalie()
        resolue = resolve_anomaly(a, "Prime exceptionnelle validee")
        assert resolue.status == AnomalyStatus.RESOLVED
        assert resolue.resolution == "Prime exceptionnelle validee"
        assert resolue.id == a.id
        assert a.status == AnomalyStatus.DETECTED

    def test_ecartement(self):
        ecartee = dismiss_anomaly(self.anomalie(), "faux positif")
        assert ecartee.status == AnomalyStatus.DISMISSED
        assert ecartee.is_resolved

    def test_etats_terminaux(self):
        resolue = resolve_anomaly(self.anomalie(), "ok")
        with pytest.raises(AnomalyStateError):
            resolve_anomaly(resolue, "encore")
        with pytest.raises(AnomalyStateError):
            dismiss_anomaly(resolue)
        with pytest.raises(AnomalyStateError):
            relabel_severity(resolue, Severity.LOW)

    def test_changement_de_severite(self):
        a = relabel_severity(self.anomalie(Severity.HIGH), "low")
        assert a.severity == Severity.LOW
        assert a.status == AnomalyStatus.DETECTED
