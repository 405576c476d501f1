"""Input guardrails for Tablekeeper."""

from tablekeeper.guardrails.input_validator import (
    CLOSED_DATE_MESSAGE,
    InputValidator,
    parse_iso_date,
)

__all__ = [
    "CLOSED_DATE_MESSAGE",
    "InputValidator",
    "parse_iso_date",
]
