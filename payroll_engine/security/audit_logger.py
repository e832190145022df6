"""Journal d'audit des calculs de paie (append-only, JSON lines)."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

logger = logging.getLogger("payroll_engine.audit")


class CalculationAuditLogger:
    """Journalise chaque calcul et chaque transition d'anomalie."""

    def __init__(self, log_path: Path):
        self.log_path = Path(log_path)
        self.log_path.parent.mkdir(parents=True, exist_ok=True)

    def log(
        self,
        operation: str,
        session_id: str,
        *,
        details: Optional[dict] = None,
        resultat: str = "succes",
    ) -> None:
        """Ajoute une entree au journal d'audit."""
        entry = {
            "timestamp": datetime.now().isoformat(),
            "session_id": session_id,
            "operation": operation,
            "resultat": resultat,
        }
        if details:
            entry["details"] = details

        line = json.dumps(entry, ensure_ascii=False, default=str)
        try:
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(line + "\n")
        except OSError as e:
            logger.error("Impossible d'ecrire dans le journal d'audit: %s", e)

    def log_calcul(
        self, session_id: str, employee_id: str, periode: str,
        brut, net_final, avertissements: int = 0,
    ) -> None:
        self.log(
            "calcul_paie",
            session_id,
            details={
                "employee_id": employee_id,
                "periode": periode,
                "brut": str(brut),
                "net_final": str(net_final),
                "nb_avertissements": avertissements,
            },
        )

    def log_anomalies(self, session_id: str, periode: str, nb_anomalies: int) -> None:
        self.log(
            "detection_anomalies",
            session_id,
            details={"periode": periode, "nb_anomalies": nb_anomalies},
        )

    def log_transition(self, session_id: str, anomaly_id: str, statut: str) -> None:
        self.log(
            "transition_anomalie",
            session_id,
            details={"anomaly_id": anomaly_id, "statut": statut},
        )

    def log_erreur(self, session_id: str, operation: str, erreur: str) -> None:
        self.log(operation, session_id, details={"erreur": erreur}, resultat="echec")

    def lire_journal(self) -> list[dict]:
        """Lit toutes les entrees du journal."""
        if not self.log_path.exists():
            return []
        entries = []
        with open(self.log_path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if line:
                    entries.append(json.loads(line))
        return entries
