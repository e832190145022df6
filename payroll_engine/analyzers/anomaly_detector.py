"""Detection d'anomalies sur les paies d'une periode.

Detecte :
- Hausse ou baisse brutale du brut par rapport au mois precedent
- Heures supplementaires excessives, primes inhabituelles
- Mindestlohn non respecte, duree du travail excessive
- Ecarts d'impots ou de cotisations par rapport au recalcul
- Rupture de tendance (z-score), paie manquante ou en double

Cycle de vie : detected -> resolved | dismissed (etats terminaux).
"""

import logging
import statistics
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Iterable, Optional

from payroll_engine.config.constants import (
    AnomalyStatus, AnomalyType, CRITICAL_DAILY_HOURS, MAX_DAILY_HOURS,
    SEVERITY_ORDER, Severity,
)
from payroll_engine.config.rate_tables import RateTable
from payroll_engine.config.settings import AnomalyConfig
from payroll_engine.core.exceptions import AnomalyStateError
from payroll_engine.models.anomalies import PayrollAnomaly
from payroll_engine.models.employee import Employee, PayrollPeriod
from payroll_engine.models.payroll import HistoricalPayrollData, PayrollEntry
from payroll_engine.rules.compliance_rules import validate_minimum_wage
from payroll_engine.rules.gross_to_net import GrossToNetCalculator
from payroll_engine.utils.number_utils import ZERO, round_currency

logger = logging.getLogger("payroll_engine.anomalies")

# Seuil de variation au-dela duquel la severite est relevee
SEVERE_CHANGE = Decimal("0.3")

HEALTH_WEIGHTS = {
    Severity.CRITICAL: 25,
    Severity.HIGH: 15,
    Severity.MEDIUM: 8,
    Severity.LOW: 3,
}


@dataclass
class ScanContext:
    """Donnees d'un salarie pour une analyse."""
    employee: Employee
    entry: PayrollEntry
    history: list[HistoricalPayrollData]
    config: AnomalyConfig
    rates: Optional[RateTable] = None

    @property
    def period_key(self) -> str:
        return self.entry.period.key

    @property
    def gross(self) -> Decimal:
        return self.entry.salary.gross_salary

    def anomaly(self, type_, severity, title, description, **valeurs) -> PayrollAnomaly:
        return PayrollAnomaly(
            type=type_,
            severity=severity,
            employee_id=self.employee.id,
            title=title,
            description=description,
            period=self.period_key,
            **valeurs,
        )


class AnomalyCheck(ABC):
    """Interface commune des controles."""

    @property
    @abstractmethod
    def nom(self) -> str:
        """Nom du controle."""

    @property
    @abstractmethod
    def types(self) -> frozenset:
        """Types d'anomalies produits."""

    @abstractmethod
    def check(self, ctx: ScanContext) -> list[PayrollAnomaly]:
        """Analyse la paie du contexte."""


class SalaryChangeCheck(AnomalyCheck):
    """Variation du brut par rapport a la derniere periode connue."""

    nom = "Variation de salaire"
    types = frozenset({AnomalyType.SALARY_SPIKE, AnomalyType.SALARY_DROP})

    def check(self, ctx: ScanContext) -> list[PayrollAnomaly]:
        if len(ctx.history) < ctx.config.minimum_data_points:
            return []
        precedent = ctx.history[-1].gross_salary
        if precedent <= 0:
            return []

        variation = (ctx.gross - precedent) / precedent
        seuil = ctx.config.salary_deviation_threshold
        valeurs = dict(
            current_value=ctx.gross, expected_value=precedent,
            deviation=round_currency(variation * 100),
        )
        if variation > seuil:
            severite = Severity.HIGH if variation > SEVERE_CHANGE else Severity.MEDIUM
            return [ctx.anomaly(
                AnomalyType.SALARY_SPIKE, severite, "Hausse de salaire inhabituelle",
                f"Brut {ctx.gross} EUR contre {precedent} EUR le mois precedent "
                f"(+{round_currency(variation * 100)}%)",
                **valeurs,
            )]
        if -variation > seuil:
            severite = Severity.CRITICAL if -variation > SEVERE_CHANGE else Severity.HIGH
            return [ctx.anomaly(
                AnomalyType.SALARY_DROP, severite, "Baisse de salaire inhabituelle",
                f"Brut {ctx.gross} EUR contre {precedent} EUR le mois precedent "
                f"({round_currency(variation * 100)}%)",
                **valeurs,
            )]
        return []


class OvertimeCheck(AnomalyCheck):

    nom = "Heures supplementaires"
    types = frozenset({AnomalyType.OVERTIME_EXCESSIVE})

    def check(self, ctx: ScanContext) -> list[PayrollAnomaly]:
        heures = ctx.entry.working_data.overtime_hours
        seuil = ctx.config.overtime_threshold
        if heures <= seuil:
            return []
        if heures > seuil * 2:
            severite = Severity.CRITICAL
        elif heures > seuil * Decimal("1.5"):
            severite = Severity.HIGH
        else:
            severite = Severity.MEDIUM
        return [ctx.anomaly(
            AnomalyType.OVERTIME_EXCESSIVE, severite, "Heures supplementaires excessives",
            f"{heures} h supplementaires (seuil {seuil} h)",
            current_value=heures, expected_value=seuil,
        )]


class BonusCheck(AnomalyCheck):

    nom = "Primes inhabituelles"
    types = frozenset({AnomalyType.BONUS_UNUSUAL})

    def check(self, ctx: ScanContext) -> list[PayrollAnomaly]:
        additions = ctx.entry.additions
        primes = additions.bonuses + additions.one_time_payments
        seuil = ctx.config.bonus_threshold
        if primes <= seuil:
            return []

        moyenne = None
        if ctx.history:
            moyenne = sum((h.bonuses for h in ctx.history), ZERO) / len(ctx.history)
            if primes <= moyenne * 3:
                return []

        severite = Severity.HIGH if primes > seuil * 2 else Severity.MEDIUM
        return [ctx.anomaly(
            AnomalyType.BONUS_UNUSUAL, severite, "Prime inhabituelle",
            f"Primes de {primes} EUR (seuil {seuil} EUR)",
            current_value=primes,
            expected_value=round_currency(moyenne) if moyenne is not None else None,
        )]


class MinimumWageCheck(AnomalyCheck):

    nom = "Mindestlohn"
    types = frozenset({AnomalyType.MINIMUM_WAGE_VIOLATION})

    def check(self, ctx: ScanContext) -> list[PayrollAnomaly]:
        validation = validate_minimum_wage(
            ctx.employee, ctx.entry.working_data, ctx.entry.period.year,
        )
        if validation.is_valid:
            return []
        return [ctx.anomaly(
            AnomalyType.MINIMUM_WAGE_VIOLATION, Severity.CRITICAL,
            "Mindestlohn non respecte", validation.message,
            current_value=validation.current_hourly_wage,
            expected_value=validation.minimum_hourly_wage,
            deviation=validation.shortfall,
        )]


class WorkingTimeCheck(AnomalyCheck):
    """Duree quotidienne moyenne (§ 3 ArbZG)."""

    nom = "Duree du travail"
    types = frozenset({AnomalyType.WORKING_TIME_VIOLATION})

    def check(self, ctx: ScanContext) -> list[PayrollAnomaly]:
        wd = ctx.entry.working_data
        if wd.actual_working_days <= 0:
            return []
        moyenne = wd.total_hours / wd.actual_working_days
        if moyenne <= MAX_DAILY_HOURS:
            return []
        severite = Severity.CRITICAL if moyenne > CRITICAL_DAILY_HOURS else Severity.HIGH
        return [ctx.anomaly(
            AnomalyType.WORKING_TIME_VIOLATION, severite, "Duree du travail excessive",
            f"{round_currency(moyenne)} h par jour en moyenne (maximum {MAX_DAILY_HOURS} h)",
            current_value=round_currency(moyenne), expected_value=MAX_DAILY_HOURS,
        )]


class RecalculationCheck(AnomalyCheck):
    """Compare impots et cotisations stockes a un recalcul."""

    nom = "Recalcul impots et cotisations"
    types = frozenset({AnomalyType.TAX_DISCREPANCY, AnomalyType.SV_DISCREPANCY})

    def check(self, ctx: ScanContext) -> list[PayrollAnomaly]:
        if ctx.rates is None:
            return []
        salaire = ctx.entry.salary
        attendu = GrossToNetCalculator(ctx.rates).calculate(
            ctx.employee, salaire.gross_salary, reference=ctx.entry.period.last_day,
        )
        tolerance = ctx.config.discrepancy_tolerance
        anomalies = []

        ecart_impots = salaire.taxes.total - attendu.taxes.total
        if abs(ecart_impots) > tolerance:
            anomalies.append(ctx.anomaly(
                AnomalyType.TAX_DISCREPANCY, Severity.HIGH, "Ecart d'impots",
                f"Impots {round_currency(salaire.taxes.total)} EUR, recalcul "
                f"{round_currency(attendu.taxes.total)} EUR",
                current_value=round_currency(salaire.taxes.total),
                expected_value=round_currency(attendu.taxes.total),
                deviation=round_currency(ecart_impots),
            ))

        stocke = salaire.social_security.total.employee
        recalcule = attendu.social_security.total.employee
        if abs(stocke - recalcule) > tolerance:
            anomalies.append(ctx.anomaly(
                AnomalyType.SV_DISCREPANCY, Severity.HIGH, "Ecart de cotisations",
                f"Cotisations salariales {round_currency(stocke)} EUR, recalcul "
                f"{round_currency(recalcule)} EUR",
                current_value=round_currency(stocke),
                expected_value=round_currency(recalcule),
                deviation=round_currency(stocke - recalcule),
            ))
        return anomalies


class PatternBreakCheck(AnomalyCheck):
    """Ecart du brut a la moyenne historique en nombre d'ecarts-types."""

    nom = "Rupture de tendance"
    types = frozenset({AnomalyType.PATTERN_BREAK})

    def check(self, ctx: ScanContext) -> list[PayrollAnomaly]:
        if len(ctx.history) < max(ctx.config.minimum_data_points, 2):
            return []
        bruts = [h.gross_salary for h in ctx.history]
        ecart_type = statistics.pstdev(bruts)
        if ecart_type == 0:
            return []
        moyenne = statistics.mean(bruts)
        z = (ctx.gross - moyenne) / ecart_type
        if abs(z) <= ctx.config.pattern_z_score:
            return []
        severite = Severity.HIGH if abs(z) > 3 else Severity.MEDIUM
        return [ctx.anomaly(
            AnomalyType.PATTERN_BREAK, severite, "Rupture de tendance",
            f"Brut {ctx.gross} EUR a {round_currency(z)} ecarts-types de la moyenne "
            f"{round_currency(moyenne)} EUR",
            current_value=ctx.gross, expected_value=round_currency(moyenne),
            deviation=round_currency(z),
        )]


DEFAULT_CHECKS = (
    SalaryChangeCheck(),
    OvertimeCheck(),
    BonusCheck(),
    MinimumWageCheck(),
    WorkingTimeCheck(),
    RecalculationCheck(),
    PatternBreakCheck(),
)


@dataclass
class AnomalyDetector:
    """Coordonne les controles et deduplique les resultats."""
    config: AnomalyConfig = field(default_factory=AnomalyConfig)
    rates: Optional[RateTable] = None
    checks: tuple = DEFAULT_CHECKS

    def _enabled(self, type_: AnomalyType) -> bool:
        return type_ in self.config.enabled_checks

    def scan(
        self,
        employees: Iterable[Employee],
        new_entries: Iterable[PayrollEntry],
        history: Iterable[HistoricalPayrollData],
        existing_anomalies: Iterable[PayrollAnomaly] = (),
        period: Optional[PayrollPeriod] = None,
        duplicates: Iterable[PayrollEntry] = (),
    ) -> list[PayrollAnomaly]:
        """Analyse les nouvelles paies.

        `duplicates` contient les paies refusees au stockage et celles deja
        stockees pour la meme periode : elles comptent pour les doublons mais
        ne sont pas reanalysees.
        """
        entrees_par_salarie = defaultdict(list)
        for e in new_entries:
            entrees_par_salarie[e.employee_id].append(e)
        rejetees_par_salarie = defaultdict(list)
        for e in duplicates:
            rejetees_par_salarie[e.employee_id].append(e)
        historique = defaultdict(list)
        for h in history:
            historique[h.employee_id].append(h)

        deja_vues = {a.dedup_key for a in existing_anomalies if not a.is_resolved}
        cle_periode = period.key if period else ""
        resultats: list[PayrollAnomaly] = []

        def ajouter(anomalie: PayrollAnomaly) -> None:
            if not self._enabled(anomalie.type) or anomalie.dedup_key in deja_vues:
                return
            deja_vues.add(anomalie.dedup_key)
            resultats.append(anomalie)

        for salarie in employees:
            entrees = entrees_par_salarie.get(salarie.id, [])
            rejetees = rejetees_par_salarie.get(salarie.id, [])
            if not entrees and not rejetees:
                ajouter(PayrollAnomaly(
                    type=AnomalyType.MISSING_ENTRY, severity=Severity.HIGH,
                    employee_id=salarie.id, title="Paie manquante",
                    description=f"Aucune paie pour {salarie.full_name or salarie.id} "
                                f"sur la periode {cle_periode}",
                    period=cle_periode,
                ))
                continue

            par_periode = defaultdict(list)
            for e in entrees + rejetees:
                par_periode[e.period.key].append(e)
            for cle, doublons in par_periode.items():
                if len(doublons) > 1:
                    ajouter(PayrollAnomaly(
                        type=AnomalyType.DUPLICATE_ENTRY, severity=Severity.CRITICAL,
                        employee_id=salarie.id, title="Paie en double",
                        description=f"{len(doublons)} paies pour la periode {cle}",
                        current_value=Decimal(len(doublons)), expected_value=Decimal("1"),
                        period=cle,
                    ))

            for entree in entrees:
                anterieur = sorted(
                    (h for h in historique.get(salarie.id, [])
                     if h.period.key < entree.period.key),
                    key=lambda h: h.period.key,
                )
                ctx = ScanContext(salarie, entree, anterieur, self.config, self.rates)
                for controle in self.checks:
                    if not any(self._enabled(t) for t in controle.types):
                        continue
                    for anomalie in controle.check(ctx):
                        ajouter(anomalie)

        resultats.sort(key=lambda a: SEVERITY_ORDER[a.severity])
        logger.info("%d anomalie(s) detectee(s)", len(resultats))
        return resultats


def detect_anomalies(
    employees: Iterable[Employee],
    new_entries: Iterable[PayrollEntry],
    history: Iterable[HistoricalPayrollData],
    config: Optional[AnomalyConfig] = None,
    existing_anomalies: Iterable[PayrollAnomaly] = (),
    period: Optional[PayrollPeriod] = None,
    rates: Optional[RateTable] = None,
    duplicates: Iterable[PayrollEntry] = (),
) -> list[PayrollAnomaly]:
    detecteur = AnomalyDetector(config=config or AnomalyConfig(), rates=rates)
    return detecteur.scan(
        employees, new_entries, history, existing_anomalies, period, duplicates,
    )


def calculate_health_score(anomalies: Iterable[PayrollAnomaly]) -> int:
    """Score 0-100 : 100 moins le poids des anomalies non resolues."""
    penalite = sum(HEALTH_WEIGHTS[a.severity] for a in anomalies if not a.is_resolved)
    return max(0, min(100, 100 - penalite))


# --- Cycle de vie ---

def _ensure_open(anomaly: PayrollAnomaly) -> None:
    if anomaly.is_resolved:
        raise AnomalyStateError(
            f"Anomalie {anomaly.id} deja a l'etat {anomaly.status.value}"
        )


def resolve_anomaly(anomaly: PayrollAnomaly, resolution: str) -> PayrollAnomaly:
    _ensure_open(anomaly)
    return replace(anomaly, status=AnomalyStatus.RESOLVED, resolution=resolution)


def dismiss_anomaly(anomaly: PayrollAnomaly, reason: str = "") -> PayrollAnomaly:
    _ensure_open(anomaly)
    return replace(anomaly, status=AnomalyStatus.DISMISSED, resolution=reason)


def relabel_severity(anomaly: PayrollAnomaly, severity: Severity) -> PayrollAnomaly:
    _ensure_open(anomaly)
    return replace(anomaly, severity=Severity(severity))
