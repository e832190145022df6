"""Moteur de calcul de paie allemande."""

__version__ = "1.0.0"
