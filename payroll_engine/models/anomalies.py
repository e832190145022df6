"""Modeles d'anomalies de paie et de projections de salaire."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from payroll_engine.config.constants import AnomalyStatus, AnomalyType, Severity


@dataclass
class PayrollAnomaly:
    """Irregularite detectee sur une paie."""
    type: AnomalyType
    severity: Severity
    employee_id: str
    title: str
    description: str
    current_value: Decimal = Decimal("0")
    expected_value: Optional[Decimal] = None
    deviation: Optional[Decimal] = None
    period: str = ""                # "YYYY-MM"
    status: AnomalyStatus = AnomalyStatus.DETECTED
    resolution: str = ""
    detected_at: datetime = field(default_factory=datetime.now)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def is_resolved(self) -> bool:
        return self.status != AnomalyStatus.DETECTED

    @property
    def dedup_key(self) -> tuple[AnomalyType, str]:
        return (self.type, self.employee_id)


@dataclass
class SalaryProjection:
    year: int
    projected_gross: Decimal
    projected_net: Decimal
    confidence: int
    assumptions: list[str] = field(default_factory=list)


@dataclass
class SalaryForecast:
    """Projection pluriannuelle du salaire d'un salarie."""
    employee_id: str
    current_salary: Decimal
    annual_growth_rate: Decimal
    projections: list[SalaryProjection] = field(default_factory=list)
    generated_at: datetime = field(default_factory=datetime.now)
