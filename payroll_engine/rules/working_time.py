"""Integration des saisies de temps (Zeiterfassung) dans la paie.

Agrege les saisies brutes d'un mois en WorkingTimeData et releve les
ecarts a controler (jour sans saisie, depassement, travail le dimanche ou
un jour ferie).
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from payroll_engine.config.constants import (
    DEFAULT_HOURS_PER_WORK_ENTRY, MAX_DAILY_HOURS, Severity, TimeEntryType,
    WORKDAYS_PER_WEEK,
)
from payroll_engine.models.employee import Employee, TimeEntry, WorkingTimeData
from payroll_engine.utils.date_utils import german_holidays, is_weekend, month_days
from payroll_engine.utils.number_utils import ZERO, to_decimal

logger = logging.getLogger("payroll_engine.working_time")

# Part forfaitaire d'un service de nuit comptee en heures de nuit
NIGHT_SHARE = Decimal("0.3")
NIGHT_START_HOUR = 22
NIGHT_END_HOUR = 6

WORKED_TYPES = frozenset({TimeEntryType.WORK, TimeEntryType.TRAINING})
PAID_ABSENCE_TYPES = frozenset({TimeEntryType.VACATION, TimeEntryType.SICK})


@dataclass
class TimeDiscrepancy:
    day: date
    kind: str
    severity: Severity
    description: str


@dataclass
class TimeTrackingResult:
    employee_id: str
    working_data: WorkingTimeData
    discrepancies: list[TimeDiscrepancy] = field(default_factory=list)
    status: str = "complete"      # complete | incomplete | discrepancies


def _start_hour(entry: TimeEntry) -> Optional[int]:
    if not entry.start_time:
        return None
    try:
        return int(entry.start_time.split(":", 1)[0])
    except ValueError:
        logger.debug("Heure de debut illisible : %r", entry.start_time)
        return None


def _entry_hours(entry: TimeEntry) -> Decimal:
    if entry.hours_worked is None:
        return DEFAULT_HOURS_PER_WORK_ENTRY
    return to_decimal(entry.hours_worked)


def _entries_by_day(
    employee: Employee, entries: Iterable[TimeEntry], year: int, month: int,
) -> dict[date, list[TimeEntry]]:
    par_jour = defaultdict(list)
    for e in entries:
        jour = e.entry_date.date() if hasattr(e.entry_date, "date") else e.entry_date
        if e.employee_id == employee.id and jour.year == year and jour.month == month:
            par_jour[jour].append(e)
    return par_jour


def _worked_hours(journee: list[TimeEntry]) -> Decimal:
    return sum((_entry_hours(e) for e in journee if e.type in WORKED_TYPES), ZERO)


def working_time_from_entries(
    employee: Employee, entries: Iterable[TimeEntry], year: int, month: int,
) -> WorkingTimeData:
    """Agrege les saisies du mois (heures normales, sup, nuit, dimanche, ferie)."""
    feries = german_holidays(year)
    journalier = employee.weekly_hours / WORKDAYS_PER_WEEK
    par_jour = _entries_by_day(employee, entries, year, month)
    data = WorkingTimeData()

    for jour, journee in sorted(par_jour.items()):
        travail = ZERO
        for e in journee:
            if e.type in PAID_ABSENCE_TYPES:
                if e.type == TimeEntryType.VACATION:
                    data.vacation_days += 1
                else:
                    data.sick_days += 1
                data.regular_hours += journalier
                continue
            if e.type not in WORKED_TYPES:
                continue

            heures = _entry_hours(e)
            debut = _start_hour(e)
            if debut is not None and (debut >= NIGHT_START_HOUR or debut <= NIGHT_END_HOUR):
                data.night_hours += min(heures, journalier) * NIGHT_SHARE

            if jour in feries:
                data.holiday_hours += heures
            elif jour.weekday() == 6:
                data.sunday_hours += heures
            else:
                travail += heures

        data.regular_hours += min(travail, journalier)
        data.overtime_hours += max(travail - journalier, ZERO)

    jours_ouvres = [j for j in month_days(year, month) if not is_weekend(j) and j not in feries]
    data.expected_working_days = Decimal(len(jours_ouvres))
    data.actual_working_days = Decimal(sum(1 for j in jours_ouvres if j in par_jour))
    return data


def find_time_discrepancies(
    employee: Employee, entries: Iterable[TimeEntry], year: int, month: int,
) -> list[TimeDiscrepancy]:
    feries = german_holidays(year)
    par_jour = _entries_by_day(employee, entries, year, month)
    ecarts = []

    for jour in month_days(year, month):
        journee = par_jour.get(jour, [])
        if not journee:
            if not is_weekend(jour) and jour not in feries:
                ecarts.append(TimeDiscrepancy(
                    jour, "missing-entry", Severity.HIGH,
                    f"Aucune saisie le {jour.isoformat()}",
                ))
            continue

        heures = _worked_hours(journee)
        if heures > MAX_DAILY_HOURS:
            ecarts.append(TimeDiscrepancy(
                jour, "excessive-hours", Severity.HIGH,
                f"{heures} h saisies le {jour.isoformat()} (maximum {MAX_DAILY_HOURS} h)",
            ))
        if heures > 0 and is_weekend(jour):
            ecarts.append(TimeDiscrepancy(
                jour, "weekend-work", Severity.MEDIUM,
                f"Travail le week-end le {jour.isoformat()}",
            ))
        if heures > 0 and jour in feries:
            ecarts.append(TimeDiscrepancy(
                jour, "holiday-work", Severity.MEDIUM,
                f"Travail un jour ferie le {jour.isoformat()}",
            ))
    return ecarts


def integrate_time_tracking(
    employee: Employee, entries: Iterable[TimeEntry], year: int, month: int,
) -> TimeTrackingResult:
    entries = list(entries)
    data = working_time_from_entries(employee, entries, year, month)
    ecarts = find_time_discrepancies(employee, entries, year, month)

    if any(e.kind == "missing-entry" for e in ecarts):
        statut = "incomplete"
    elif ecarts:
        statut = "discrepancies"
    else:
        statut = "complete"
    logger.info(
        "Temps %s %04d-%02d : %s h, %d ecart(s), statut %s",
        employee.id, year, month, data.total_hours, len(ecarts), statut,
    )
    return TimeTrackingResult(
        employee_id=employee.id, working_data=data, discrepancies=ecarts, status=statut,
    )
