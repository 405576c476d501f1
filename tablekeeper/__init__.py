"""Tablekeeper - restaurant reservations and staff dashboard."""

__version__ = "0.1.0"
