"""
Month-end reconciliation engine.

For one Ghostfolio -> Actual account pair, computes the balancing amount
and creates or updates the single tagged reconciliation transaction for
the reconciliation date.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Callable, Mapping, Optional
import logging

from ..config import ReconciliationSettings
from ..clients.base import LedgerGateway
from ..models.sync import (
    LedgerTransaction,
    OutcomeKind,
    ReconciliationOutcome,
    SyncMode,
)
from ..utils.exceptions import AccountLookupError, DataError, SyncError
from .notes import (
    build_reconciliation_note,
    from_minor_units,
    is_reconciliation_note,
    round_currency,
    to_minor_units,
)

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ReconciliationEngine:
    """
    Computes and applies reconciliation transactions.

    The base balance never includes earlier reconciliation transactions, so
    re-running for the same month replaces the adjustment instead of
    compounding it.
    """

    def __init__(
        self,
        settings: Optional[ReconciliationSettings] = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        """
        Initialize the engine.

        Args:
            settings: Tag and payee settings
            clock: Returns the current time; "today" and note timestamps derive from it
        """
        self.settings = settings or ReconciliationSettings()
        self.clock = clock

    def compute_and_apply(
        self,
        source_account_name: str,
        ledger_account_name: str,
        valuations: Mapping[str, Decimal],
        ledger: LedgerGateway,
        reconciliation_date: date,
        mode: SyncMode,
    ) -> ReconciliationOutcome:
        """
        Reconcile one account mapping.

        Args:
            source_account_name: Ghostfolio account name
            ledger_account_name: Actual Budget account name
            valuations: Ghostfolio account name -> value (major units)
            ledger: Open ledger session
            reconciliation_date: Date of the reconciliation transaction
            mode: PREVIEW reports only, EXECUTE writes to the ledger

        Returns:
            Outcome for this mapping; gateway errors become FAILED outcomes
        """
        outcome = ReconciliationOutcome(
            kind=OutcomeKind.FAILED,
            source_account=source_account_name,
            ledger_account=ledger_account_name,
            mode=mode,
        )

        try:
            outcome.target_value = self._target_value(valuations, source_account_name)
        except DataError as e:
            logger.warning(str(e))
            outcome.kind = OutcomeKind.SKIPPED_NO_VALUE
            outcome.reason = str(e)
            return outcome

        try:
            return self._reconcile(outcome, ledger, reconciliation_date)
        except SyncError as e:
            logger.error(
                f"Reconciliation failed for {source_account_name} -> {ledger_account_name}: {e}"
            )
            outcome.kind = OutcomeKind.FAILED
            outcome.applied = False
            outcome.reason = str(e)
            return outcome

    def _reconcile(
        self,
        outcome: ReconciliationOutcome,
        ledger: LedgerGateway,
        reconciliation_date: date,
    ) -> ReconciliationOutcome:
        try:
            account = ledger.require_account(outcome.ledger_account)
        except AccountLookupError as e:
            outcome.kind = OutcomeKind.SKIPPED_ACCOUNT_NOT_FOUND
            outcome.reason = str(e)
            logger.error(outcome.reason)
            return outcome

        if account.closed:
            logger.warning(
                f"Actual Budget account {account.name} is closed; reconciling it anyway"
            )

        now = self.clock()
        transactions = ledger.list_transactions(account.id)

        outcome.base_balance = self.base_balance(transactions, now.date())
        outcome.amount = round_currency(outcome.target_value - outcome.base_balance)
        outcome.note = build_reconciliation_note(
            outcome.source_account, now, self.settings.tag
        )

        existing = self.find_existing(transactions, reconciliation_date)
        if existing is not None:
            outcome.kind = OutcomeKind.UPDATED
            outcome.previous_amount = from_minor_units(existing.amount_minor_units)
        else:
            outcome.kind = OutcomeKind.CREATED

        if outcome.mode == SyncMode.PREVIEW:
            return outcome

        payee_id = ledger.get_or_create_payee(self.settings.payee_name)
        amount_minor_units = to_minor_units(outcome.amount)

        if existing is not None:
            ledger.update_transaction(
                existing.id, amount_minor_units, outcome.note, payee_id
            )
        else:
            ledger.create_transaction(
                account.id, amount_minor_units, reconciliation_date, outcome.note, payee_id
            )

        outcome.applied = True
        logger.info(
            f"{outcome.kind.value.capitalize()} {outcome.source_account} -> "
            f"{outcome.ledger_account}: {outcome.amount:,.2f} "
            f"(Base: {outcome.base_balance:,.2f} -> Target: {outcome.target_value:,.2f})"
        )
        return outcome

    def base_balance(self, transactions: list[LedgerTransaction], today: date) -> Decimal:
        """
        Ledger balance as of today, ignoring reconciliation transactions.

        Future-dated transactions are excluded whether tagged or not.
        """
        total = sum(
            txn.amount_minor_units
            for txn in transactions
            if not (txn.date and txn.date > today)
            and not is_reconciliation_note(txn.notes, self.settings.tag)
        )
        return from_minor_units(total)

    def find_existing(
        self, transactions: list[LedgerTransaction], reconciliation_date: date
    ) -> Optional[LedgerTransaction]:
        """Reconciliation transaction dated exactly on the reconciliation date."""
        return next(
            (
                txn
                for txn in transactions
                if txn.date == reconciliation_date
                and is_reconciliation_note(txn.notes, self.settings.tag)
            ),
            None,
        )

    @staticmethod
    def _target_value(valuations: Mapping[str, Decimal], account_name: str) -> Decimal:
        value = valuations.get(account_name)
        if value is None:
            raise DataError(f"No data found for Ghostfolio account: {account_name}")
        if value <= 0:
            raise DataError(
                f"Ghostfolio account {account_name} has a non-positive value: {value}"
            )
        return Decimal(str(value))
