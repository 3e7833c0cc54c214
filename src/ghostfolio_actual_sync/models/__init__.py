"""Data models for the sync."""

from .sync import (
    AccountMapping,
    AccountValuation,
    LedgerAccount,
    LedgerTransaction,
    OutcomeKind,
    ReconciliationOutcome,
    SyncMode,
    SyncReport,
)

__all__ = [
    "AccountMapping",
    "AccountValuation",
    "LedgerAccount",
    "LedgerTransaction",
    "OutcomeKind",
    "ReconciliationOutcome",
    "SyncMode",
    "SyncReport",
]
