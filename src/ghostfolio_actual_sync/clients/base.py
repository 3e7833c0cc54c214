"""
Gateway interfaces consumed by the reconciliation engine and coordinator.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Optional

from ..models.sync import LedgerAccount, LedgerTransaction
from ..utils.exceptions import AccountLookupError


class SourceGateway(ABC):
    """Portfolio valuation service (Ghostfolio)."""

    @abstractmethod
    def authenticate(self) -> Any:
        """
        Exchange credentials for a session.

        Returns:
            Session object passed to every other call

        Raises:
            AuthError: If credentials are rejected
        """
        pass

    @abstractmethod
    def list_accounts(self, session: Any) -> list[dict[str, Any]]:
        """Fetch raw account records."""
        pass

    @abstractmethod
    def trigger_auxiliary_refresh(self, session: Any) -> Any:
        """Ask the service to refresh auxiliary market data. Best-effort."""
        pass


class LedgerGateway(ABC):
    """Personal finance ledger (Actual Budget)."""

    @abstractmethod
    def initialize_session(self) -> None:
        """
        Open the ledger session.

        Raises:
            InitError: If the server or budget cannot be reached
        """
        pass

    @abstractmethod
    def list_accounts(self) -> list[LedgerAccount]:
        pass

    def find_account_by_name(self, name: str) -> Optional[LedgerAccount]:
        """Exact-name account lookup; None if absent."""
        return next((a for a in self.list_accounts() if a.name == name), None)

    def require_account(self, name: str) -> LedgerAccount:
        """
        Exact-name account lookup.

        Raises:
            AccountLookupError: If no account has this name
        """
        account = self.find_account_by_name(name)
        if account is None:
            raise AccountLookupError(f"Account not found in Actual Budget: {name}")
        return account

    @abstractmethod
    def list_transactions(self, account_id: str) -> list[LedgerTransaction]:
        pass

    @abstractmethod
    def get_or_create_payee(self, name: str) -> str:
        """Return the id of the payee with this exact name, creating it if needed."""
        pass

    @abstractmethod
    def create_transaction(
        self,
        account_id: str,
        amount_minor_units: int,
        txn_date: date,
        notes: str,
        payee_id: Optional[str],
    ) -> None:
        pass

    @abstractmethod
    def update_transaction(
        self,
        transaction_id: str,
        amount_minor_units: int,
        notes: str,
        payee_id: Optional[str],
    ) -> None:
        pass

    @abstractmethod
    def close_session(self) -> None:
        """Release the session. Never raises."""
        pass
