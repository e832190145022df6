"""
Constantes reglementaires et enumerations du moteur de paie.

Sources :
- MiLoG § 1 / Mindestlohnanpassungsverordnungen (Mindestlohn)
- ArbZG § 3 (Hoechstarbeitszeit)
- Tarifliche Zuschlagssaetze (Ueberstunden, Nacht, Sonntag, Feiertag)
"""

from decimal import Decimal
from enum import Enum


# --- Enumerations ---

class EmploymentType(str, Enum):
    """Type d'emploi."""
    MINIJOB = "minijob"
    MIDIJOB = "midijob"
    FULLTIME = "fulltime"
    PARTTIME = "parttime"


class Industry(str, Enum):
    """Branche (selectionne le module de supplements)."""
    STANDARD = "standard"
    CONSTRUCTION = "construction"
    GASTRONOMY = "gastronomy"
    NURSING = "nursing"


class TaxClass(str, Enum):
    """Steuerklasse."""
    I = "I"
    II = "II"
    III = "III"
    IV = "IV"
    V = "V"
    VI = "VI"


class SalaryType(str, Enum):
    FIXED = "fixed"
    HOURLY = "hourly"


class AnomalyType(str, Enum):
    """Types d'anomalies detectees sur une serie de paies."""
    SALARY_SPIKE = "salary-spike"
    SALARY_DROP = "salary-drop"
    OVERTIME_EXCESSIVE = "overtime-excessive"
    BONUS_UNUSUAL = "bonus-unusual"
    MISSING_ENTRY = "missing-entry"
    DUPLICATE_ENTRY = "duplicate-entry"
    TAX_DISCREPANCY = "tax-discrepancy"
    SV_DISCREPANCY = "sv-discrepancy"
    WORKING_TIME_VIOLATION = "working-time-violation"
    MINIMUM_WAGE_VIOLATION = "minimum-wage-violation"
    PATTERN_BREAK = "pattern-break"


class Severity(str, Enum):
    """Niveaux de severite."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AnomalyStatus(str, Enum):
    DETECTED = "detected"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"


class TimeEntryType(str, Enum):
    """Types de saisie de temps."""
    WORK = "work"
    VACATION = "vacation"
    SICK = "sick"
    PARENTAL_LEAVE = "parental-leave"
    UNPAID_LEAVE = "unpaid-leave"
    TRAINING = "training"
    HOLIDAY = "holiday"
    ABSENCE = "absence"


# Ordre de tri des anomalies (critique en premier)
SEVERITY_ORDER = {
    Severity.CRITICAL: 0,
    Severity.HIGH: 1,
    Severity.MEDIUM: 2,
    Severity.LOW: 3,
}


# --- Mindestlohn (EUR brut / heure) ---

MINIMUM_WAGES = {
    2020: Decimal("9.35"),
    2021: Decimal("9.60"),
    2022: Decimal("10.45"),
    2023: Decimal("12.00"),
    2024: Decimal("12.41"),
    2025: Decimal("12.82"),
}
LATEST_MINIMUM_WAGE_YEAR = max(MINIMUM_WAGES)


def minimum_wage_for(annee: int) -> Decimal:
    """Mindestlohn de l'annee, a defaut le plus recent connu."""
    return MINIMUM_WAGES.get(annee, MINIMUM_WAGES[LATEST_MINIMUM_WAGE_YEAR])


# --- Zuschlaege (fraction du taux horaire) ---

PREMIUM_RATES = {
    "overtime": Decimal("0.25"),   # 25% Ueberstundenzuschlag
    "night": Decimal("0.25"),      # 25% Nachtzuschlag
    "sunday": Decimal("0.50"),     # 50% Sonntagszuschlag
    "holiday": Decimal("1.00"),    # 100% Feiertagszuschlag
}

# Semaines moyennes par mois (52 / 12, arrondi usuel)
WEEKS_PER_MONTH = Decimal("4.33")
WORKDAYS_PER_WEEK = Decimal("5")
DEFAULT_HOURS_PER_WORK_ENTRY = Decimal("8")

# --- Arbeitszeitgesetz ---

MAX_DAILY_OVERTIME = Decimal("2")
MAX_DAILY_HOURS = Decimal("10")
MAX_WEEKLY_HOURS = Decimal("48")
CRITICAL_DAILY_HOURS = Decimal("12")

# --- Laender ---

# Rechtskreis Ost (BBG RV/AV Ost)
EAST_GERMAN_STATES = frozenset({"BB", "MV", "SN", "ST", "TH"})

STATE_CODES = {
    "baden-wuerttemberg": "BW",
    "bayern": "BY",
    "berlin": "BE",
    "brandenburg": "BB",
    "bremen": "HB",
    "hamburg": "HH",
    "hessen": "HE",
    "mecklenburg-vorpommern": "MV",
    "niedersachsen": "NI",
    "nordrhein-westfalen": "NW",
    "rheinland-pfalz": "RP",
    "saarland": "SL",
    "sachsen": "SN",
    "sachsen-anhalt": "ST",
    "schleswig-holstein": "SH",
    "thueringen": "TH",
}


def normalize_state(etat: str | None) -> str:
    """Retourne le code du Land ('bayern' -> 'BY'), '' si inconnu."""
    if not etat:
        return ""
    cle = etat.strip()
    if cle.upper() in STATE_CODES.values():
        return cle.upper()
    cle = cle.lower().replace("ü", "ue").replace(" ", "-")
    return STATE_CODES.get(cle, "")


def is_east_german_state(etat: str | None) -> bool:
    return normalize_state(etat) in EAST_GERMAN_STATES
