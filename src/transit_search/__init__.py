"""Scheduled-trip search and fare-matching engine for bus and train catalogs."""

__version__ = "0.1.0"
