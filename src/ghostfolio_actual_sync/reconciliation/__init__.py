"""Reconciliation engine and tagging helpers."""

from .notes import (
    RECONCILIATION_PAYEE,
    RECONCILIATION_TAG,
    build_reconciliation_note,
    end_of_month,
    is_reconciliation_note,
    to_minor_units,
)

__all__ = [
    "RECONCILIATION_PAYEE",
    "RECONCILIATION_TAG",
    "build_reconciliation_note",
    "end_of_month",
    "is_reconciliation_note",
    "to_minor_units",
]
