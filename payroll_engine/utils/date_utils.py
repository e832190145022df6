"""Utilitaires de dates : age, periodes de paie, jours feries."""

import calendar
from datetime import date, timedelta

from dateutil.easter import easter
from dateutil.relativedelta import relativedelta


def age_on(date_naissance: date, reference: date) -> int:
    """Age revolu a la date de reference."""
    return relativedelta(reference, date_naissance).years


def period_key(annee: int, mois: int) -> str:
    return f"{annee:04d}-{mois:02d}"


def parse_period_key(cle: str) -> tuple[int, int]:
    """'2025-03' -> (2025, 3). Leve ValueError si la cle est illisible."""
    annee, mois = cle.split("-", 1)
    return int(annee), int(mois)


def month_days(annee: int, mois: int) -> list[date]:
    """Tous les jours calendaires du mois."""
    nb_jours = calendar.monthrange(annee, mois)[1]
    return [date(annee, mois, j) for j in range(1, nb_jours + 1)]


def german_holidays(annee: int) -> set[date]:
    """Jours feries nationaux (bundeseinheitliche Feiertage).

    Les feries propres a un Land (Fronleichnam, Reformationstag, ...) ne
    sont pas inclus.
    """
    paques = easter(annee)
    return {
        date(annee, 1, 1),                 # Neujahr
        paques - timedelta(days=2),        # Karfreitag
        paques + timedelta(days=1),        # Ostermontag
        date(annee, 5, 1),                 # Tag der Arbeit
        paques + timedelta(days=39),       # Christi Himmelfahrt
        paques + timedelta(days=50),       # Pfingstmontag
        date(annee, 10, 3),                # Tag der Deutschen Einheit
        date(annee, 12, 25),               # 1. Weihnachtstag
        date(annee, 12, 26),               # 2. Weihnachtstag
    }


def is_weekend(jour: date) -> bool:
    return jour.weekday() >= 5
