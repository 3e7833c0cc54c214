"""
Reconciliation tagging, dates, and amount conversion.

The note tag is the only thing that identifies a transaction as an
auto-generated reconciliation, so every reader and writer of that tag
goes through this module.
"""

from calendar import monthrange
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

RECONCILIATION_TAG = "#ghostfolio Reconciliation"
RECONCILIATION_PAYEE = "Reconciliation Balance Adjustment"

MINOR_UNITS_PER_MAJOR = Decimal("100")
CENT = Decimal("0.01")


def is_reconciliation_note(notes: Optional[str], tag: str = RECONCILIATION_TAG) -> bool:
    """True if a transaction note marks an auto-generated reconciliation."""
    return bool(notes) and notes.startswith(tag)


def build_reconciliation_note(
    source_account: str, as_of: datetime, tag: str = RECONCILIATION_TAG
) -> str:
    """Note text for a reconciliation transaction, stamped to the minute."""
    return f"{tag} - {source_account} - as of {as_of.strftime('%Y-%m-%d %H:%M')}"


def end_of_month(reference: date) -> date:
    """Last calendar day of the month containing ``reference``."""
    last_day = monthrange(reference.year, reference.month)[1]
    return date(reference.year, reference.month, last_day)


def round_currency(amount: Decimal) -> Decimal:
    """Round a major-unit amount to two places, halves away from zero."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def to_minor_units(amount: Decimal) -> int:
    """Convert a major-unit amount (pounds) to integer minor units (pence)."""
    return int((amount * MINOR_UNITS_PER_MAJOR).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_minor_units(amount_minor_units: int) -> Decimal:
    """Convert integer minor units back to a major-unit Decimal."""
    return (Decimal(amount_minor_units) / MINOR_UNITS_PER_MAJOR).quantize(CENT)
