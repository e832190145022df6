"""Configuration globale de l'application."""

from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Optional

from payroll_engine.config.constants import AnomalyType
from payroll_engine.config.rate_tables import RateTable, get_rate_table
from payroll_engine.core.exceptions import ConfigError


@dataclass
class AnomalyConfig:
    """Configuration de la detection d'anomalies."""
    salary_deviation_threshold: Decimal = Decimal("0.15")
    overtime_threshold: Decimal = Decimal("40")
    bonus_threshold: Decimal = Decimal("5000")
    minimum_data_points: int = 3
    discrepancy_tolerance: Decimal = Decimal("1.00")
    pattern_z_score: Decimal = Decimal("2")
    enabled_checks: frozenset = field(default_factory=lambda: frozenset(AnomalyType))


@dataclass
class ForecastConfig:
    """Configuration des projections de salaire."""
    years: int = 10
    inflation_rate: Decimal = Decimal("0.02")
    industry_weight: Decimal = Decimal("0.6")
    trend_weight: Decimal = Decimal("0.4")
    annual_growth_override: Optional[Decimal] = None


@dataclass
class ComplianceConfig:
    """Configuration des controles de conformite."""
    max_daily_overtime: Decimal = Decimal("2")
    max_daily_hours: Decimal = Decimal("10")
    max_weekly_hours: Decimal = Decimal("48")
    contractual_daily_hours: Decimal = Decimal("8")
    consistency_tolerance: Decimal = Decimal("0.02")
    working_days_tolerance: int = 1


@dataclass
class AppConfig:
    """Configuration principale de l'application."""
    base_dir: Path = field(default_factory=lambda: Path.cwd())
    data_dir: Path = field(default=None)
    db_path: Path = field(default=None)
    audit_log_path: Path = field(default=None)
    tax_year: int = 2025

    anomaly: AnomalyConfig = field(default_factory=AnomalyConfig)
    forecast: ForecastConfig = field(default_factory=ForecastConfig)
    compliance: ComplianceConfig = field(default_factory=ComplianceConfig)

    def __post_init__(self):
        self._valider()
        if self.data_dir is None:
            self.data_dir = self.base_dir / "data"
        if self.db_path is None:
            self.db_path = self.data_dir / "payroll.db"
        if self.audit_log_path is None:
            self.audit_log_path = self.data_dir / "audit.log"

        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _valider(self) -> None:
        """Leve ConfigError pour des seuils incoherents."""
        erreurs = []
        if self.anomaly.salary_deviation_threshold <= 0:
            erreurs.append("salary_deviation_threshold doit etre positif")
        if self.anomaly.minimum_data_points < 1:
            erreurs.append("minimum_data_points doit etre au moins 1")
        if self.forecast.industry_weight + self.forecast.trend_weight != 1:
            erreurs.append("industry_weight + trend_weight doit valoir 1")
        if self.forecast.years < 0:
            erreurs.append("years ne peut pas etre negatif")
        if self.compliance.consistency_tolerance < 0:
            erreurs.append("consistency_tolerance ne peut pas etre negative")
        if erreurs:
            raise ConfigError("Configuration invalide : " + " ; ".join(erreurs))

    def rate_table(self) -> RateTable:
        """Table de taux de l'annee configuree."""
        return get_rate_table(self.tax_year)
