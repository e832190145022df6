"""Utilitaires pour le traitement des montants en EUR."""

from dataclasses import fields
from decimal import Decimal, InvalidOperation, ROUND_DOWN, ROUND_HALF_UP, ROUND_FLOOR

CENT = Decimal("0.01")
EURO = Decimal("1")
ZERO = Decimal("0")


def parse_amount(valeur: str) -> Decimal:
    """Parse un montant depuis differents formats (1.234,56 ou 1234.56 etc.)."""
    if not valeur or not valeur.strip():
        return ZERO

    v = valeur.strip()
    v = v.replace("€", "").replace("EUR", "").strip()

    if "," in v and "." in v:
        # 1.234,56 -> format allemand
        if v.rindex(",") > v.rindex("."):
            v = v.replace(".", "").replace(",", ".")
        else:
            v = v.replace(",", "")
    elif "," in v:
        v = v.replace(" ", "").replace("\u00a0", "").replace(",", ".")
    else:
        v = v.replace(" ", "").replace("\u00a0", "")

    try:
        return Decimal(v)
    except InvalidOperation:
        return ZERO


def to_decimal(valeur) -> Decimal:
    """Convertit int/float/str/Decimal en Decimal sans artefact binaire."""
    if valeur is None:
        return ZERO
    if isinstance(valeur, Decimal):
        return valeur
    if isinstance(valeur, bool):
        raise TypeError("Un booleen n'est pas un montant")
    if isinstance(valeur, (int, float)):
        return Decimal(str(valeur))
    return parse_amount(str(valeur))


def round_currency(montant: Decimal) -> Decimal:
    """Arrondi commercial au centime (etape finale uniquement)."""
    return to_decimal(montant).quantize(CENT, rounding=ROUND_HALF_UP)


def floor_euro(montant: Decimal) -> Decimal:
    """Abrundung auf volle Euro (zvE et tarif, § 32a EStG)."""
    return to_decimal(montant).quantize(EURO, rounding=ROUND_FLOOR)


def floor_cent(montant: Decimal) -> Decimal:
    """Abrundung au centime (SolZ, KiSt)."""
    return to_decimal(montant).quantize(CENT, rounding=ROUND_DOWN)


def normalize_amount(montant: Decimal) -> Decimal:
    """Ramene a deux decimales un montant exact au centime, sans arrondir.

    1750.000000000000000000000000 -> 1750.00 ; 1166.666... reste inchange.
    """
    au_centime = montant.quantize(CENT)
    return au_centime if au_centime == montant else montant


def negative_fields(instance) -> list[str]:
    """Noms des champs numeriques negatifs d'une dataclass."""
    negatifs = []
    for f in fields(instance):
        valeur = getattr(instance, f.name)
        if isinstance(valeur, (int, Decimal)) and not isinstance(valeur, bool) and valeur < 0:
            negatifs.append(f.name)
    return negatifs
