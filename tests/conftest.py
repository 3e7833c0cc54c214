from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from ghostfolio_actual_sync.clients.base import LedgerGateway, SourceGateway
from ghostfolio_actual_sync.config import SyncConfig
from ghostfolio_actual_sync.models.sync import LedgerAccount, LedgerTransaction
from ghostfolio_actual_sync.reconciliation.engine import ReconciliationEngine
from ghostfolio_actual_sync.utils.exceptions import GatewayError

FIXED_NOW = datetime(2024, 2, 10, 9, 30, tzinfo=timezone.utc)


class FakeLedger(LedgerGateway):
    """In-memory ledger that records every call."""

    def __init__(self, accounts=None, transactions=None):
        self.accounts = accounts or []
        self.transactions = transactions or {}
        self.payees = {}
        self.calls = []
        self.failing_accounts = set()
        self.init_error = None
        self.session_open = False
        self.closed_count = 0

    def initialize_session(self):
        self.calls.append(("initialize_session",))
        if self.init_error is not None:
            raise self.init_error
        self.session_open = True

    def list_accounts(self):
        return list(self.accounts)

    def list_transactions(self, account_id):
        if account_id in self.failing_accounts:
            raise GatewayError(f"Failed to fetch transactions: HTTP 500 for {account_id}")
        return list(self.transactions.get(account_id, []))

    def get_or_create_payee(self, name):
        if name not in self.payees:
            self.calls.append(("create_payee", name))
            self.payees[name] = f"payee-{len(self.payees) + 1}"
        return self.payees[name]

    def create_transaction(self, account_id, amount_minor_units, txn_date, notes, payee_id):
        self.calls.append(("create_transaction", account_id, amount_minor_units, txn_date))
        txns = self.transactions.setdefault(account_id, [])
        txns.append(
            LedgerTransaction(
                id=f"txn-{account_id}-{len(txns) + 1}",
                date=txn_date,
                amount_minor_units=amount_minor_units,
                notes=notes,
                payee_id=payee_id,
            )
        )

    def update_transaction(self, transaction_id, amount_minor_units, notes, payee_id):
        self.calls.append(("update_transaction", transaction_id, amount_minor_units))
        for txns in self.transactions.values():
            for txn in txns:
                if txn.id == transaction_id:
                    txn.amount_minor_units = amount_minor_units
                    txn.notes = notes
                    txn.payee_id = payee_id

    def close_session(self):
        self.closed_count += 1
        self.session_open = False

    def write_calls(self):
        return [c for c in self.calls if c[0] in ("create_transaction", "update_transaction")]


class FakeSource(SourceGateway):
    """Ghostfolio stand-in returning canned account records."""

    def __init__(self, accounts, auth_error=None, refresh_error=None):
        self.accounts = accounts
        self.auth_error = auth_error
        self.refresh_error = refresh_error
        self.list_calls = 0
        self.refresh_calls = 0

    def authenticate(self):
        if self.auth_error is not None:
            raise self.auth_error
        return "session-token"

    def list_accounts(self, session):
        assert session == "session-token"
        self.list_calls += 1
        return self.accounts

    def trigger_auxiliary_refresh(self, session):
        self.refresh_calls += 1
        if self.refresh_error is not None:
            raise self.refresh_error
        return {}


def make_txn(txn_id, day, pence, notes=None):
    return LedgerTransaction(id=txn_id, date=day, amount_minor_units=pence, notes=notes)


@pytest.fixture()
def engine():
    return ReconciliationEngine(clock=lambda: FIXED_NOW)


@pytest.fixture()
def ledger():
    return FakeLedger(
        accounts=[
            LedgerAccount(id="acc-isa", name="Investments: ISA"),
            LedgerAccount(id="acc-pension", name="Investments: Pension"),
        ],
        transactions={
            "acc-isa": [
                make_txn("t1", date(2024, 1, 5), 30000, "Opening deposit"),
                make_txn("t2", date(2024, 2, 1), 20000, "Monthly contribution"),
            ],
        },
    )


@pytest.fixture()
def sync_config():
    return SyncConfig(
        ghostfolio={
            "base_url": "https://ghostfolio.test",
            "access_token": "secret",
            "refetch_delay_seconds": 0,
        },
        actual={
            "base_url": "http://actual.test",
            "api_key": "key",
            "budget_id": "budget-1",
        },
        account_mapping={
            "ISA": "Investments: ISA",
            "Pension": "Investments: Pension",
        },
    )


@pytest.fixture()
def target_values():
    return {"ISA": Decimal("620.00")}
