"""Stockage SQLite des paies calculees et des anomalies.

Gere :
- Ecritures de paie (une par salarie et par periode)
- Historique pour la detection d'anomalies et les projections
- Anomalies et leur cycle de vie

Les enregistrements sont serialises en JSON via pydantic (TypeAdapter sur
les dataclasses du modele).
"""

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from pydantic import TypeAdapter

from payroll_engine.config.constants import AnomalyStatus
from payroll_engine.core.exceptions import DuplicateEntryError, InconsistentEntryError
from payroll_engine.models.anomalies import PayrollAnomaly
from payroll_engine.models.employee import PayrollPeriod
from payroll_engine.models.payroll import HistoricalPayrollData, PayrollEntry
from payroll_engine.rules.compliance_rules import check_entry_consistency

logger = logging.getLogger("payroll_engine.database")

SCHEMA_SQL = """
-- Paies calculees
CREATE TABLE IF NOT EXISTS payroll_entries (
    id TEXT PRIMARY KEY,
    employee_id TEXT NOT NULL,
    annee INTEGER NOT NULL,
    mois INTEGER NOT NULL,
    brut TEXT NOT NULL,
    net_final TEXT NOT NULL,
    payload TEXT NOT NULL,
    date_creation TEXT DEFAULT (datetime('now')),
    UNIQUE(employee_id, annee, mois)
);

CREATE INDEX IF NOT EXISTS idx_entries_employee ON payroll_entries(employee_id, annee, mois);

-- Anomalies detectees
CREATE TABLE IF NOT EXISTS anomalies (
    id TEXT PRIMARY KEY,
    employee_id TEXT NOT NULL,
    type TEXT NOT NULL,
    severite TEXT NOT NULL,
    statut TEXT NOT NULL DEFAULT 'detected',
    periode TEXT DEFAULT '',
    payload TEXT NOT NULL,
    date_detection TEXT DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_anomalies_statut ON anomalies(statut, employee_id);
"""

ENTRY_ADAPTER = TypeAdapter(PayrollEntry)
ANOMALY_ADAPTER = TypeAdapter(PayrollAnomaly)


class Database:
    """Gestionnaire de base de donnees SQLite."""

    def __init__(self, db_path: Path | str = "payroll.db"):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _init_schema(self):
        with self.connection() as conn:
            conn.executescript(SCHEMA_SQL)

    @contextmanager
    def connection(self):
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys=ON")
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def execute(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        with self.connection() as conn:
            cursor = conn.execute(sql, params)
            return cursor.fetchall()

    def execute_many(self, sql: str, params_list: list[tuple]) -> None:
        with self.connection() as conn:
            conn.executemany(sql, params_list)


class PayrollRepository:
    """Acces aux paies et anomalies persistees."""

    def __init__(self, db: Database, consistency_tolerance=None):
        self.db = db
        self.consistency_tolerance = consistency_tolerance

    # --- Paies ---

    def save_entry(self, entry: PayrollEntry) -> None:
        """Enregistre une paie en une transaction ; refuse doublons et incoherences."""
        if self.consistency_tolerance is not None:
            erreurs = check_entry_consistency(entry, self.consistency_tolerance)
        else:
            erreurs = check_entry_consistency(entry)
        if erreurs:
            raise InconsistentEntryError(
                f"Paie {entry.employee_id} {entry.period.key} incoherente : "
                + "; ".join(erreurs)
            )

        payload = ENTRY_ADAPTER.dump_json(entry).decode("utf-8")
        try:
            with self.db.connection() as conn:
                conn.execute(
                    """INSERT INTO payroll_entries
                       (id, employee_id, annee, mois, brut, net_final, payload)
                       VALUES (?, ?, ?, ?, ?, ?, ?)""",
                    (
                        entry.id, entry.employee_id, entry.period.year, entry.period.month,
                        str(entry.salary.gross_salary), str(entry.final_net_salary), payload,
                    ),
                )
        except sqlite3.IntegrityError as e:
            raise DuplicateEntryError(
                f"Une paie existe deja pour {entry.employee_id} en {entry.period.key}"
            ) from e
        logger.debug("Paie %s enregistree (%s, %s)", entry.id, entry.employee_id, entry.period.key)

    @staticmethod
    def _entry(row: sqlite3.Row) -> PayrollEntry:
        return ENTRY_ADAPTER.validate_json(row["payload"])

    def get_entry(self, employee_id: str, period: PayrollPeriod) -> Optional[PayrollEntry]:
        rows = self.db.execute(
            "SELECT payload FROM payroll_entries WHERE employee_id = ? AND annee = ? AND mois = ?",
            (employee_id, period.year, period.month),
        )
        return self._entry(rows[0]) if rows else None

    def entries_for_period(self, period: PayrollPeriod) -> list[PayrollEntry]:
        rows = self.db.execute(
            "SELECT payload FROM payroll_entries WHERE annee = ? AND mois = ? ORDER BY employee_id",
            (period.year, period.month),
        )
        return [self._entry(r) for r in rows]

    def history_for(self, employee_id: str) -> list[HistoricalPayrollData]:
        rows = self.db.execute(
            "SELECT payload FROM payroll_entries WHERE employee_id = ? ORDER BY annee, mois",
            (employee_id,),
        )
        return [HistoricalPayrollData.from_entry(self._entry(r)) for r in rows]

    def all_history(self) -> list[HistoricalPayrollData]:
        rows = self.db.execute(
            "SELECT payload FROM payroll_entries ORDER BY employee_id, annee, mois"
        )
        return [HistoricalPayrollData.from_entry(self._entry(r)) for r in rows]

    # --- Anomalies ---

    @staticmethod
    def _anomaly_params(a: PayrollAnomaly) -> tuple:
        return (
            a.employee_id, a.type.value, a.severity.value, a.status.value, a.period,
            ANOMALY_ADAPTER.dump_json(a).decode("utf-8"), a.id,
        )

    def save_anomalies(self, anomalies: list[PayrollAnomaly]) -> None:
        self.db.execute_many(
            """INSERT INTO anomalies (employee_id, type, severite, statut, periode, payload, id)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            [self._anomaly_params(a) for a in anomalies],
        )

    def update_anomaly(self, anomaly: PayrollAnomaly) -> None:
        self.db.execute(
            """UPDATE anomalies SET employee_id = ?, type = ?, severite = ?, statut = ?,
               periode = ?, payload = ? WHERE id = ?""",
            self._anomaly_params(anomaly),
        )

    def get_anomaly(self, anomaly_id: str) -> Optional[PayrollAnomaly]:
        rows = self.db.execute("SELECT payload FROM anomalies WHERE id = ?", (anomaly_id,))
        return ANOMALY_ADAPTER.validate_json(rows[0]["payload"]) if rows else None

    def open_anomalies(self, employee_id: Optional[str] = None) -> list[PayrollAnomaly]:
        sql = "SELECT payload FROM anomalies WHERE statut = ?"
        params: tuple = (AnomalyStatus.DETECTED.value,)
        if employee_id is not None:
            sql += " AND employee_id = ?"
            params += (employee_id,)
        rows = self.db.execute(sql + " ORDER BY date_detection", params)
        return [ANOMALY_ADAPTER.validate_json(r["payload"]) for r in rows]
