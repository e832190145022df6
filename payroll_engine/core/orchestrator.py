"""Orchestrateur principal du calcul de paie.

Coordonne le calcul d'une paie :
1. Brut de base (prorata des jours ou heures) et majorations
2. Supplements de branche (Bau, Gastronomie, Pflege)
3. Impots (brut annualise) et cotisations sociales
4. Retenues et net a payer (seul arrondi du calcul)
5. Controles de conformite et avertissements

PayrollService relie l'orchestrateur au stockage, au journal d'audit et a
la detection d'anomalies.
"""

import logging
import uuid
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Iterable, Optional

from payroll_engine.analyzers.anomaly_detector import (
    calculate_health_score, detect_anomalies, dismiss_anomaly, resolve_anomaly,
)
from payroll_engine.analyzers.forecast import generate_salary_forecast
from payroll_engine.config.constants import (
    EmploymentType, Industry, PREMIUM_RATES, SalaryType, WEEKS_PER_MONTH,
)
from payroll_engine.config.rate_tables import RateTable
from payroll_engine.config.settings import AppConfig, ComplianceConfig
from payroll_engine.core.exceptions import DuplicateEntryError, StorageError
from payroll_engine.database.db_manager import Database, PayrollRepository
from payroll_engine.models.anomalies import PayrollAnomaly, SalaryForecast
from payroll_engine.models.employee import Employee, PayrollPeriod, WorkingTimeData
from payroll_engine.models.industry import IndustryPayrollInput, IndustryPayrollResult
from payroll_engine.models.payroll import Additions, Deductions, PayrollEntry, PayrollJob
from payroll_engine.regimes.registry import calculate_industry_payroll
from payroll_engine.rules.compliance_rules import validate_payroll_compliance
from payroll_engine.rules.gross_to_net import GrossToNetCalculator
from payroll_engine.security.audit_logger import CalculationAuditLogger
from payroll_engine.utils.number_utils import ZERO, normalize_amount, round_currency

logger = logging.getLogger("payroll_engine")

# Branches dont le module verse lui-meme les supplements nuit/dimanche/ferie
SFN_INDUSTRIES = frozenset({Industry.GASTRONOMY, Industry.NURSING})


class PayrollOrchestrator:
    """Calcule les paies a partir d'une table de taux (sans effet de bord)."""

    def __init__(self, rates: RateTable, compliance: Optional[ComplianceConfig] = None):
        self.rates = rates
        self.compliance = compliance or ComplianceConfig()
        self.gross_to_net = GrossToNetCalculator(rates)

    # --- Brut ---

    @staticmethod
    def hourly_rate(employee: Employee) -> Decimal:
        if employee.salary_type == SalaryType.HOURLY and employee.hourly_wage is not None:
            return employee.hourly_wage
        heures_mois = employee.weekly_hours * WEEKS_PER_MONTH
        if heures_mois <= 0:
            return ZERO
        return employee.gross_salary / heures_mois

    @staticmethod
    def base_gross(employee: Employee, working_data: WorkingTimeData) -> Decimal:
        """Brut contractuel au prorata des jours, ou heures x taux horaire."""
        if employee.salary_type == SalaryType.HOURLY and employee.hourly_wage is not None:
            return employee.hourly_wage * working_data.total_hours
        attendus = working_data.expected_working_days
        if attendus <= 0:
            return employee.gross_salary
        jours = min(working_data.actual_working_days, attendus)
        return normalize_amount(employee.gross_salary * jours / attendus)

    def premiums(self, employee: Employee, working_data: WorkingTimeData) -> Additions:
        """Majorations derivees du temps de travail."""
        taux = self.hourly_rate(employee)
        majorations = Additions(
            overtime_pay=working_data.overtime_hours * taux * PREMIUM_RATES["overtime"],
        )
        if employee.industry not in SFN_INDUSTRIES:
            majorations.night_shift_bonus = working_data.night_hours * taux * PREMIUM_RATES["night"]
            majorations.sunday_bonus = working_data.sunday_hours * taux * PREMIUM_RATES["sunday"]
            majorations.holiday_bonus = working_data.holiday_hours * taux * PREMIUM_RATES["holiday"]
        return majorations

    # --- Calcul ---

    def compute(
        self,
        employee: Employee,
        period: PayrollPeriod,
        working_data: WorkingTimeData,
        additions: Optional[Additions] = None,
        deductions: Optional[Deductions] = None,
        industry_result: Optional[IndustryPayrollResult] = None,
    ) -> PayrollEntry:
        """Calcule la paie d'un salarie pour une periode.

        Leve InvalidInputError si un temps, un element variable ou une retenue
        est negatif.
        """
        working_data.validate()
        if additions is not None:
            additions.validate()
        if deductions is not None:
            deductions.validate()
        majorations = self.premiums(employee, working_data)
        additions = replace(additions) if additions is not None else Additions()
        additions.overtime_pay += majorations.overtime_pay
        additions.night_shift_bonus += majorations.night_shift_bonus
        additions.sunday_bonus += majorations.sunday_bonus
        additions.holiday_bonus += majorations.holiday_bonus
        deductions = replace(deductions) if deductions is not None else Deductions()

        # Frais rembourses : verses sans impot ni cotisation
        brut = (
            self.base_gross(employee, working_data)
            + additions.total - additions.expense_reimbursements
        )
        exonere = additions.expense_reimbursements
        couts_branche = ZERO
        if industry_result is not None and industry_result.industry != Industry.STANDARD:
            brut += industry_result.taxable_additions
            exonere += industry_result.tax_free_additions
            deductions.benefits_in_kind += industry_result.benefits_in_kind
            couts_branche = industry_result.employer_additional_costs

        salaire = self.gross_to_net.calculate(
            employee, brut,
            tax_free_additions=exonere,
            reference=period.last_day,
            employer_additional_costs=couts_branche,
        )
        net_final = round_currency(salaire.net_salary + exonere - deductions.total)

        conformite = validate_payroll_compliance(
            employee, working_data, period.year, self.compliance,
        )
        avertissements = self._warnings(
            employee, working_data, brut, net_final, conformite.violations, industry_result,
        )
        if conformite.minimum_wage.used_contract_hours:
            avertissements.append(conformite.minimum_wage.message)

        entry = PayrollEntry(
            employee_id=employee.id,
            period=period,
            working_data=working_data,
            salary=salaire,
            deductions=deductions,
            additions=additions,
            industry_result=industry_result,
            compliance=conformite,
            warnings=avertissements,
            final_net_salary=net_final,
        )
        logger.info(
            "Paie %s %s : brut %s, net %s (%d avertissement(s))",
            employee.id, period.key, round_currency(brut), net_final, len(avertissements),
        )
        return entry

    def _warnings(
        self, employee, working_data, brut, net_final, violations, industry_result,
    ) -> list[str]:
        avertissements = list(violations)
        if net_final < 0:
            avertissements.append(f"Net a payer negatif : {net_final} EUR")
        if (employee.employment_type == EmploymentType.MINIJOB
                and brut > self.rates.minijob_max_earnings):
            avertissements.append(
                f"Minijob : brut {round_currency(brut)} EUR superieur a la limite "
                f"{self.rates.minijob_max_earnings} EUR"
            )
        if working_data.exceeds_expected_days(self.compliance.working_days_tolerance):
            avertissements.append(
                f"Jours travailles ({working_data.actual_working_days}) superieurs aux "
                f"jours attendus ({working_data.expected_working_days})"
            )
        if industry_result is not None:
            avertissements.extend(industry_result.warnings)
        for a in avertissements:
            logger.warning("Paie %s : %s", employee.id, a)
        return avertissements

    def compute_with_industry(
        self,
        employee: Employee,
        period: PayrollPeriod,
        working_data: WorkingTimeData,
        industry_input: IndustryPayrollInput,
        additions: Optional[Additions] = None,
        deductions: Optional[Deductions] = None,
    ) -> PayrollEntry:
        """Execute le module de branche puis le calcul de paie.

        Brut, heures et heures de nuit/dimanche/ferie absents de
        `industry_input` sont repris de la paie de la periode.
        """
        working_data.validate()
        industry_input.validate()
        defauts = {
            "gross_monthly": self.base_gross(employee, working_data),
            "hours_worked": working_data.total_hours,
            "night_hours": working_data.night_hours,
            "sunday_hours": working_data.sunday_hours,
            "holiday_hours": working_data.holiday_hours,
        }
        manquants = {
            nom: valeur for nom, valeur in defauts.items()
            if getattr(industry_input, nom) <= 0
        }
        if manquants:
            industry_input = replace(industry_input, **manquants)
        resultat = calculate_industry_payroll(employee, industry_input, period.month, period.year)
        return self.compute(
            employee, period, working_data, additions, deductions, industry_result=resultat,
        )

    def compute_batch(self, jobs: Iterable[PayrollJob], period: PayrollPeriod) -> list[PayrollEntry]:
        entries = []
        for job in jobs:
            if job.industry_input is not None:
                entries.append(self.compute_with_industry(
                    job.employee, period, job.working_data, job.industry_input,
                    job.additions, job.deductions,
                ))
            else:
                entries.append(self.compute(
                    job.employee, period, job.working_data, job.additions, job.deductions,
                ))
        return entries


@dataclass
class PeriodRunResult:
    period: PayrollPeriod
    entries: list[PayrollEntry] = field(default_factory=list)
    anomalies: list[PayrollAnomaly] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    health_score: int = 100


class PayrollService:
    """Calcul, stockage et surveillance des paies d'une periode."""

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        repository: Optional[PayrollRepository] = None,
        audit: Optional[CalculationAuditLogger] = None,
    ):
        self.config = config or AppConfig()
        self.rates = self.config.rate_table()
        self.orchestrator = PayrollOrchestrator(self.rates, self.config.compliance)
        self.repository = repository or PayrollRepository(
            Database(self.config.db_path), self.config.compliance.consistency_tolerance,
        )
        self.audit = audit or CalculationAuditLogger(self.config.audit_log_path)
        self.session_id = str(uuid.uuid4())

    def run_period(
        self,
        jobs: list[PayrollJob],
        period: PayrollPeriod,
        roster: Optional[list[Employee]] = None,
    ) -> PeriodRunResult:
        """Calcule, enregistre puis analyse les paies de la periode."""
        logger.info("Demarrage de la periode %s - Session %s", period.key, self.session_id)
        result = PeriodRunResult(period=period)
        historique = self.repository.all_history()
        doublons: list[PayrollEntry] = []

        for entry in self.orchestrator.compute_batch(jobs, period):
            try:
                self.repository.save_entry(entry)
            except StorageError as e:
                if isinstance(e, DuplicateEntryError):
                    doublons.append(entry)
                    stockee = self.repository.get_entry(entry.employee_id, period)
                    if stockee is not None:
                        doublons.append(stockee)
                logger.warning("Paie %s non enregistree : %s", entry.employee_id, e)
                self.audit.log_erreur(self.session_id, "enregistrement_paie", str(e))
                result.errors.append(str(e))
                continue
            self.audit.log_calcul(
                self.session_id, entry.employee_id, period.key,
                entry.salary.gross_salary, entry.final_net_salary, len(entry.warnings),
            )
            result.entries.append(entry)

        existantes = self.repository.open_anomalies()
        salaries = roster if roster is not None else [j.employee for j in jobs]
        # Salaries deja payes lors d'un passage precedent : ni manquants ni reanalyses,
        # seule la paie refusee est signalee en doublon
        nouveaux = {e.employee_id for e in result.entries + doublons}
        persistes = {e.employee_id for e in self.repository.entries_for_period(period)}
        salaries = [s for s in salaries if s.id in nouveaux or s.id not in persistes]
        result.anomalies = detect_anomalies(
            salaries, result.entries, historique,
            config=self.config.anomaly,
            existing_anomalies=existantes,
            period=period,
            rates=self.rates,
            duplicates=doublons,
        )
        self.repository.save_anomalies(result.anomalies)
        self.audit.log_anomalies(self.session_id, period.key, len(result.anomalies))
        result.health_score = calculate_health_score(existantes + result.anomalies)

        logger.info(
            "Periode %s terminee : %d paie(s), %d anomalie(s), score %d",
            period.key, len(result.entries), len(result.anomalies), result.health_score,
        )
        return result

    def forecast(self, employee: Employee, years: Optional[int] = None) -> SalaryForecast:
        return generate_salary_forecast(
            employee,
            self.repository.history_for(employee.id),
            years=years,
            config=self.config.forecast,
            rates=self.rates,
        )

    def _load_anomaly(self, anomaly_id: str) -> PayrollAnomaly:
        anomalie = self.repository.get_anomaly(anomaly_id)
        if anomalie is None:
            raise StorageError(f"Anomalie introuvable : {anomaly_id}")
        return anomalie

    def resolve_anomaly(self, anomaly_id: str, resolution: str) -> PayrollAnomaly:
        anomalie = resolve_anomaly(self._load_anomaly(anomaly_id), resolution)
        self.repository.update_anomaly(anomalie)
        self.audit.log_transition(self.session_id, anomaly_id, anomalie.status.value)
        return anomalie

    def dismiss_anomaly(self, anomaly_id: str, reason: str = "") -> PayrollAnomaly:
        anomalie = dismiss_anomaly(self._load_anomaly(anomaly_id), reason)
        self.repository.update_anomaly(anomalie)
        self.audit.log_transition(self.session_id, anomaly_id, anomalie.status.value)
        return anomalie

    def health_score(self) -> int:
        return calculate_health_score(self.repository.open_anomalies())
