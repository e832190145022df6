"""Test d'integration du workflow complet de paie."""

import json
import sys
from datetime import date
from decimal import Decimal
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from payroll_engine.config.constants import AnomalyStatus, AnomalyType
from payroll_engine.config.settings import AppConfig
from payroll_engine.core.orchestrator import PayrollService
from payroll_engine.main import main
from payroll_engine.models.employee import Employee, PayrollPeriod, WorkingTimeData
from payroll_engine.models.payroll import Additions, PayrollJob

EMPLOYE = Employee(
    id="emp-1", first_name="Anna", last_name="Schmidt",
    birth_date=date(1995, 1, 1), state="NW", gross_salary=Decimal("3500"),
)


def mois_complet() -> WorkingTimeData:
    return WorkingTimeData(
        regular_hours=Decimal("160"),
        actual_working_days=Decimal("20"),
        expected_working_days=Decimal("20"),
    )


def job(prime="0", employe=EMPLOYE) -> PayrollJob:
    return PayrollJob(
        employee=employe,
        working_data=mois_complet(),
        additions=Additions(bonuses=Decimal(prime)),
    )


class TestWorkflowComplet:
    """Calcul, stockage et surveillance sur plusieurs mois."""

    def service_pour(self, tmp_path) -> PayrollService:
        return PayrollService(AppConfig(base_dir=tmp_path))

    def test_plusieurs_mois_avec_hausse(self, tmp_path):
        service = self.service_pour(tmp_path)
        for mois in (1, 2, 3):
            result = service.run_period([job()], PayrollPeriod(2025, mois))
            assert result.errors == []
            assert result.anomalies == []
            assert result.health_score == 100
            assert result.entries[0].final_net_salary == Decimal("2192.97")

        avril = service.run_period([job("1500")], PayrollPeriod(2025, 4))
        assert [a.type for a in avril.anomalies] == [AnomalyType.SALARY_SPIKE]
        assert avril.health_score == 85

        ouvertes = service.repository.open_anomalies("emp-1")
        assert [a.id for a in ouvertes] == [avril.anomalies[0].id]
        assert len(service.repository.history_for("emp-1")) == 4

    def test_pas_de_doublon_d_anomalie(self, tmp_path):
        service = self.service_pour(tmp_path)
        for mois in (1, 2, 3):
            service.run_period([job()], PayrollPeriod(2025, mois))
        service.run_period([job("1500")], PayrollPeriod(2025, 4))

        mai = service.run_period([job("3000")], PayrollPeriod(2025, 5))
        types = [a.type for a in mai.anomalies]
        assert AnomalyType.SALARY_SPIKE not in types
        assert len(service.repository.open_anomalies()) == 1 + len(mai.anomalies)

    def test_resolution_et_journal(self, tmp_path):
        service = self.service_pour(tmp_path)
        for mois in (1, 2, 3):
            service.run_period([job()], PayrollPeriod(2025, mois))
        avril = service.run_period([job("1500")], PayrollPeriod(2025, 4))

        resolue = service.resolve_anomaly(avril.anomalies[0].id, "Prime annuelle validee")
        assert resolue.status == AnomalyStatus.RESOLVED
        assert service.repository.open_anomalies() == []
        assert service.health_score() == 100

        journal = service.audit.lire_journal()
        operations = [e["operation"] for e in journal]
        assert operations.count("calcul_paie") == 4
        assert operations.count("detection_anomalies") == 4
        assert operations[-1] == "transition_anomalie"

    def test_periode_deja_calculee(self, tmp_path):
        service = self.service_pour(tmp_path)
        service.run_period([job()], PayrollPeriod(2025, 1))
        rejeu = service.run_period([job()], PayrollPeriod(2025, 1))

        assert rejeu.entries == []
        assert len(rejeu.errors) == 1
        assert [(a.type, a.employee_id, a.period) for a in rejeu.anomalies] == [
            (AnomalyType.DUPLICATE_ENTRY, "emp-1", "2025-01"),
        ]
        assert rejeu.anomalies[0].current_value == Decimal("2")
        assert rejeu.health_score == 75
        assert len(service.repository.entries_for_period(PayrollPeriod(2025, 1))) == 1
        assert any(e["resultat"] == "echec" for e in service.audit.lire_journal())

    def test_rejeu_sans_doublon_d_anomalie(self, tmp_path):
        service = self.service_pour(tmp_path)
        service.run_period([job()], PayrollPeriod(2025, 1))
        service.run_period([job()], PayrollPeriod(2025, 1))
        troisieme = service.run_period([job()], PayrollPeriod(2025, 1))
        assert troisieme.anomalies == []
        assert len(service.repository.open_anomalies("emp-1")) == 1

    def test_salarie_manquant(self, tmp_path):
        service = self.service_pour(tmp_path)
        absent = Employee(id="emp-2", gross_salary=Decimal("3000"))
        result = service.run_period([job()], PayrollPeriod(2025, 1), roster=[EMPLOYE, absent])
        assert [(a.type, a.employee_id) for a in result.anomalies] == [
            (AnomalyType.MISSING_ENTRY, "emp-2"),
        ]

    def test_projection_depuis_l_historique(self, tmp_path):
        service = self.service_pour(tmp_path)
        for mois in (1, 2, 3):
            service.run_period([job()], PayrollPeriod(2025, mois))
        prevision = service.forecast(EMPLOYE, years=3)
        assert prevision.annual_growth_rate == Decimal("0.6") * Decimal("0.025")
        assert len(prevision.projections) == 3
        assert all(p.projected_net > 0 for p in prevision.projections)


class TestCli:
    """Commandes de la ligne de commande."""

    def ecrire(self, chemin: Path, donnees) -> Path:
        chemin.write_text(json.dumps(donnees), encoding="utf-8")
        return chemin

    def job_json(self) -> dict:
        return {
            "employee": {
                "id": "emp-1", "birth_date": "1995-01-01", "state": "NW",
                "gross_salary": "3500",
            },
            "working_data": {
                "regular_hours": "160", "actual_working_days": "20",
                "expected_working_days": "20",
            },
        }

    def test_calculate(self, tmp_path, capsys):
        fichier = self.ecrire(tmp_path / "job.json", self.job_json())
        code = main(["--data-dir", str(tmp_path), "calculate", str(fichier), "--period", "2025-06"])
        assert code == 0
        sortie = json.loads(capsys.readouterr().out)
        assert sortie["final_net_salary"] == "2192.97"
        assert sortie["employee_id"] == "emp-1"

    def test_donnees_invalides(self, tmp_path):
        fichier = self.ecrire(tmp_path / "job.json", {"employee": {"gross_salary": "beaucoup"}})
        code = main(["--data-dir", str(tmp_path), "calculate", str(fichier), "--period", "2025-06"])
        assert code == 1

    def test_periode_invalide(self, tmp_path):
        fichier = self.ecrire(tmp_path / "job.json", self.job_json())
        code = main(["--data-dir", str(tmp_path), "calculate", str(fichier), "--period", "2025-13"])
        assert code == 1

    def test_fichier_absent(self, tmp_path):
        code = main(["--data-dir", str(tmp_path), "calculate", str(tmp_path / "absent.json"),
                     "--period", "2025-06"])
        assert code == 1

    def test_annee_sans_table(self, tmp_path):
        fichier = self.ecrire(tmp_path / "job.json", self.job_json())
        code = main(["--data-dir", str(tmp_path), "--tax-year", "2019", "calculate",
                     str(fichier), "--period", "2025-06"])
        assert code == 1

    def test_run_period_puis_anomalies(self, tmp_path, capsys):
        fichier = self.ecrire(tmp_path / "jobs.json", [self.job_json()])
        code = main(["--data-dir", str(tmp_path), "run-period", str(fichier), "--period", "2025-06"])
        assert code == 0
        resume = json.loads(capsys.readouterr().out)
        assert resume["paies"] == [{"employee_id": "emp-1", "net_final": "2192.97"}]
        assert resume["score_sante"] == 100

        code = main(["--data-dir", str(tmp_path), "anomalies"])
        assert code == 0
        assert "Score de sante : 100/100" in capsys.readouterr().out

    def test_net_to_gross(self, tmp_path, capsys):
        fichier = self.ecrire(tmp_path / "employe.json", self.job_json()["employee"])
        code = main(["--data-dir", str(tmp_path), "net-to-gross", str(fichier), "--net", "2192.97"])
        assert code == 0
        result = json.loads(capsys.readouterr().out)
        assert result["converged"] is True

    def test_resolution_anomalie_inconnue(self, tmp_path):
        code = main(["--data-dir", str(tmp_path), "resolve", "inconnue", "--resolution", "ok"])
        assert code == 1
