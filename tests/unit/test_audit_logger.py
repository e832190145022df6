"""Tests du journal d'audit des calculs."""

import sys
from decimal import Decimal
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from payroll_engine.security.audit_logger import CalculationAuditLogger


class TestAuditLogger:

    def test_log_et_lecture(self, tmp_path):
        audit = CalculationAuditLogger(tmp_path / "audit.log")
        audit.log("calcul_paie", "session-1", details={"employee_id": "emp-1"})
        entries = audit.lire_journal()
        assert len(entries) == 1
        assert entries[0]["operation"] == "calcul_paie"
        assert entries[0]["session_id"] == "session-1"
        assert entries[0]["resultat"] == "succes"

    def test_log_calcul(self, tmp_path):
        audit = CalculationAuditLogger(tmp_path / "audit.log")
        audit.log_calcul("s", "emp-1", "2025-06", Decimal("3500"), Decimal("2192.97"), 2)
        details = audit.lire_journal()[0]["details"]
        assert details["brut"] == "3500"
        assert details["net_final"] == "2192.97"
        assert details["nb_avertissements"] == 2

    def test_log_transition(self, tmp_path):
        audit = CalculationAuditLogger(tmp_path / "audit.log")
        audit.log_transition("s", "anom-1", "resolved")
        entry = audit.lire_journal()[0]
        assert entry["operation"] == "transition_anomalie"
        assert entry["details"]["statut"] == "resolved"

    def test_log_erreur(self, tmp_path):
        audit = CalculationAuditLogger(tmp_path / "audit.log")
        audit.log_erreur("s", "enregistrement_paie", "doublon")
        entry = audit.lire_journal()[0]
        assert entry["resultat"] == "echec"
        assert entry["details"]["erreur"] == "doublon"

    def test_append_only(self, tmp_path):
        path = tmp_path / "audit.log"
        CalculationAuditLogger(path).log_anomalies("s1", "2025-05", 3)
        CalculationAuditLogger(path).log_anomalies("s2", "2025-06", 0)
        entries = CalculationAuditLogger(path).lire_journal()
        assert [e["session_id"] for e in entries] == ["s1", "s2"]

    def test_journal_vide(self, tmp_path):
        assert CalculationAuditLogger(tmp_path / "absent.log").lire_journal() == []

    def test_repertoire_cree(self, tmp_path):
        audit = CalculationAuditLogger(tmp_path / "sous" / "dossier" / "audit.log")
        audit.log("test", "s")
        assert audit.log_path.exists()
