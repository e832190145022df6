"""Exceptions personnalisees pour payroll_engine."""


class PayrollEngineError(Exception):
    """Exception de base."""


class InvalidInputError(PayrollEngineError):
    """Valeur monetaire ou temporelle negative ou hors bornes."""


class InvalidIncomeError(InvalidInputError):
    """Revenu imposable negatif."""


class InvalidSalaryError(InvalidInputError):
    """Salaire brut negatif."""


class InvalidPeriodError(InvalidInputError):
    """Periode de paie invalide (mois hors 1-12)."""


class UnsupportedConfigurationError(PayrollEngineError):
    """Configuration non supportee par le moteur."""


class UnsupportedEmploymentTypeError(UnsupportedConfigurationError):
    """Type d'emploi inconnu."""


class UnsupportedIndustryError(UnsupportedConfigurationError):
    """Branche inconnue."""


class UnsupportedTaxYearError(UnsupportedConfigurationError):
    """Annee sans table de taux."""


class AnomalyStateError(PayrollEngineError):
    """Transition interdite dans le cycle de vie d'une anomalie."""


class StorageError(PayrollEngineError):
    """Erreur de persistance."""


class DuplicateEntryError(StorageError):
    """Une paie existe deja pour ce salarie et cette periode."""


class InconsistentEntryError(StorageError):
    """Sous-totaux incoherents, ecriture refusee."""


class ConfigError(PayrollEngineError):
    """Erreur de configuration."""
