"""Data models for valuations, ledger records, and sync outcomes."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional


class SyncMode(Enum):
    """Whether a run only reports planned changes or writes them."""

    PREVIEW = "preview"
    EXECUTE = "execute"


class OutcomeKind(Enum):
    """Result of reconciling one account mapping."""

    SKIPPED_NO_VALUE = "skipped_no_value"
    SKIPPED_ACCOUNT_NOT_FOUND = "skipped_account_not_found"
    CREATED = "created"
    UPDATED = "updated"
    FAILED = "failed"


@dataclass(frozen=True)
class AccountValuation:
    """A single Ghostfolio account value selected by the extractor."""

    account_name: str
    value: Decimal
    source_field_used: str


@dataclass(frozen=True)
class AccountMapping:
    """Ghostfolio account name paired with an Actual Budget account name."""

    source_account_name: str
    ledger_account_name: str


@dataclass(frozen=True)
class LedgerAccount:
    """Account as reported by Actual Budget."""

    id: str
    name: str
    closed: bool = False


@dataclass
class LedgerTransaction:
    """
    Transaction as reported by Actual Budget.

    Amounts are integer minor units (pence/cents), as stored by the ledger.
    """

    id: str
    date: Optional[date]
    amount_minor_units: int = 0
    notes: Optional[str] = None
    payee_id: Optional[str] = None
    raw_data: dict[str, Any] = field(default_factory=dict)


@dataclass
class ReconciliationOutcome:
    """Outcome of one reconciliation attempt for an account mapping."""

    kind: OutcomeKind
    source_account: str
    ledger_account: str
    mode: SyncMode

    # False in preview mode and for skipped/failed outcomes
    applied: bool = False

    target_value: Optional[Decimal] = None
    base_balance: Optional[Decimal] = None

    # New reconciliation amount (delta) for CREATED/UPDATED
    amount: Optional[Decimal] = None

    # Existing reconciliation amount for UPDATED
    previous_amount: Optional[Decimal] = None

    note: Optional[str] = None
    reason: Optional[str] = None

    @property
    def is_skipped(self) -> bool:
        return self.kind in (
            OutcomeKind.SKIPPED_NO_VALUE,
            OutcomeKind.SKIPPED_ACCOUNT_NOT_FOUND,
        )

    @property
    def is_failed(self) -> bool:
        return self.kind == OutcomeKind.FAILED


@dataclass
class SyncReport:
    """Summary of a sync run."""

    reconciliation_date: date
    mode: SyncMode
    valuations: dict[str, AccountValuation] = field(default_factory=dict)
    diagnostics: list[str] = field(default_factory=list)
    outcomes: list[ReconciliationOutcome] = field(default_factory=list)
    started_at: datetime = field(default_factory=datetime.now)
    processing_time_seconds: float = 0.0
    config_file_used: Optional[str] = None

    def count(self, kind: OutcomeKind) -> int:
        """Number of outcomes of the given kind."""
        return sum(1 for o in self.outcomes if o.kind == kind)

    @property
    def created_count(self) -> int:
        return self.count(OutcomeKind.CREATED)

    @property
    def updated_count(self) -> int:
        return self.count(OutcomeKind.UPDATED)

    @property
    def skipped_count(self) -> int:
        return sum(1 for o in self.outcomes if o.is_skipped)

    @property
    def failed_count(self) -> int:
        return self.count(OutcomeKind.FAILED)

    @property
    def total_adjustment(self) -> Decimal:
        """Sum of reconciliation amounts for CREATED and UPDATED outcomes."""
        return sum(
            (
                o.amount
                for o in self.outcomes
                if o.kind in (OutcomeKind.CREATED, OutcomeKind.UPDATED)
                and o.amount is not None
            ),
            Decimal("0"),
        )
