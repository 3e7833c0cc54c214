"""
Actual Budget client.
Talks to an Actual HTTP API server (https://github.com/jhonderson/actual-http-api)
which fronts the budget file on an Actual server.
"""

from datetime import date
from typing import Any, Optional
import logging

import httpx

from ..config import ActualConfig
from ..models.sync import LedgerAccount, LedgerTransaction
from ..utils.exceptions import GatewayError, InitError
from .base import LedgerGateway

logger = logging.getLogger(__name__)

# The transactions endpoint requires a lower bound
TRANSACTIONS_SINCE = "1970-01-01"

# Error fragments the server reports when the budget file does not exist
BUDGET_NOT_FOUND_MARKERS = ("could not get remote files", "timestamp", "not found")


class ActualClient(LedgerGateway):
    """
    Session-scoped client for one Actual Budget file.

    The underlying ``httpx.Client`` is created by ``initialize_session`` and
    released by ``close_session``.
    """

    def __init__(
        self,
        config: ActualConfig,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            config: Actual connection settings
            transport: Optional httpx transport (used by tests)
        """
        self.server_url = (config.base_url or "").rstrip("/")
        self.api_key = config.api_key
        self.budget_id = config.budget_id
        self.encryption_password = config.encryption_password
        self.timeout = config.timeout_seconds
        self._transport = transport
        self._client: Optional[httpx.Client] = None
        self._accounts: Optional[list[LedgerAccount]] = None
        self._payee_ids: dict[str, str] = {}

    @property
    def initialized(self) -> bool:
        return self._client is not None

    def initialize_session(self) -> None:
        """
        Open the HTTP session and check that the budget can be loaded.

        Raises:
            InitError: Distinguishing a missing budget from other failures
        """
        headers = {"x-api-key": self.api_key or ""}
        if self.encryption_password:
            headers["budget-encryption-password"] = self.encryption_password

        self._client = httpx.Client(
            base_url=f"{self.server_url}/v1/budgets/{self.budget_id}",
            headers=headers,
            timeout=self.timeout,
            transport=self._transport,
        )

        try:
            self._accounts = self._fetch_accounts()
        except GatewayError as e:
            self.close_session()
            message = str(e)
            status = getattr(e.__cause__, "response", None)
            status_code = status.status_code if status is not None else None
            if status_code == 404 or any(
                marker in message.lower() for marker in BUDGET_NOT_FOUND_MARKERS
            ):
                raise InitError(
                    f"Budget '{self.budget_id}' not found. Check that the budget sync ID "
                    f"is correct, that the budget exists on the Actual server, and that "
                    f"the server is running and accessible. ({message})"
                ) from e
            raise InitError(f"Failed to initialize Actual Budget: {message}") from e

        logger.info(f"Opened Actual budget {self.budget_id}")

    def list_accounts(self) -> list[LedgerAccount]:
        """All accounts in the budget, cached for the session."""
        if self._accounts is None:
            self._accounts = self._fetch_accounts()
        return self._accounts

    def _fetch_accounts(self) -> list[LedgerAccount]:
        data = self._request("GET", "/accounts", action="fetch accounts")
        try:
            return [
                LedgerAccount(
                    id=str(item["id"]),
                    name=item.get("name", ""),
                    closed=bool(item.get("closed", False)),
                )
                for item in data or []
            ]
        except (KeyError, TypeError, AttributeError) as e:
            raise GatewayError(f"Malformed accounts response: {e!r}") from e

    def list_transactions(self, account_id: str) -> list[LedgerTransaction]:
        data = self._request(
            "GET",
            f"/accounts/{account_id}/transactions",
            action="fetch transactions",
            params={"since_date": TRANSACTIONS_SINCE},
        )
        if not isinstance(data, list):
            raise GatewayError(
                f"Transactions response for account {account_id} is not a list: "
                f"{type(data).__name__}"
            )
        try:
            return [self._to_transaction(item) for item in data]
        except (ValueError, TypeError, AttributeError) as e:
            raise GatewayError(
                f"Malformed transaction in account {account_id}: {e}"
            ) from e

    def get_or_create_payee(self, name: str) -> str:
        if name in self._payee_ids:
            return self._payee_ids[name]

        payees = self._request("GET", "/payees", action="fetch payees") or []
        payee_id = next((p["id"] for p in payees if p.get("name") == name), None)

        if payee_id is None:
            payee_id = self._request(
                "POST",
                "/payees",
                action=f"create payee '{name}'",
                json={"payee": {"name": name}},
            )
            logger.info(f"Created payee: {name}")

        self._payee_ids[name] = str(payee_id)
        return self._payee_ids[name]

    def create_transaction(
        self,
        account_id: str,
        amount_minor_units: int,
        txn_date: date,
        notes: str,
        payee_id: Optional[str],
    ) -> None:
        transaction = {
            "account": account_id,
            "amount": amount_minor_units,
            "date": txn_date.isoformat(),
            "notes": notes,
            "payee": payee_id,
            "cleared": False,
        }
        self._request(
            "POST",
            f"/accounts/{account_id}/transactions",
            action="create transaction",
            json={"learnCategories": False, "runTransfers": False, "transaction": transaction},
        )

    def update_transaction(
        self,
        transaction_id: str,
        amount_minor_units: int,
        notes: str,
        payee_id: Optional[str],
    ) -> None:
        self._request(
            "PATCH",
            f"/transactions/{transaction_id}",
            action="update transaction",
            json={
                "transaction": {
                    "amount": amount_minor_units,
                    "notes": notes,
                    "payee": payee_id,
                }
            },
        )

    def close_session(self) -> None:
        if self._client is None:
            return
        try:
            self._client.close()
        except Exception as e:
            logger.debug(f"Error during shutdown: {e}")
        finally:
            self._client = None
            self._accounts = None
            self._payee_ids.clear()

    def _request(self, method: str, path: str, action: str, **kwargs: Any) -> Any:
        """
        Send a request and unwrap the ``data`` envelope.

        Raises:
            GatewayError: On transport failure or a non-2xx response
        """
        if self._client is None:
            raise GatewayError(
                f"Cannot {action}: Actual session not initialized. Call initialize_session() first."
            )

        try:
            response = self._client.request(method, path, **kwargs)
            response.raise_for_status()
            body = response.json() if response.content else {}
        except httpx.HTTPStatusError as e:
            raise GatewayError(
                f"Failed to {action}: HTTP {e.response.status_code} {_error_detail(e.response)}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise GatewayError(f"Failed to {action}: {e}") from e

        if isinstance(body, dict) and "data" in body:
            return body["data"]
        return body

    @staticmethod
    def _to_transaction(item: dict[str, Any]) -> LedgerTransaction:
        raw_date = item.get("date")
        try:
            txn_date = date.fromisoformat(str(raw_date)[:10]) if raw_date else None
        except ValueError:
            logger.warning(f"Transaction {item.get('id')}: unparseable date {raw_date!r}")
            txn_date = None

        amount = item.get("amount") or 0
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise ValueError(
                f"transaction {item.get('id')} has a non-integer amount {amount!r}"
            )

        return LedgerTransaction(
            id=str(item.get("id")),
            date=txn_date,
            amount_minor_units=amount,
            notes=item.get("notes"),
            payee_id=item.get("payee"),
            raw_data=item,
        )


def _error_detail(response: httpx.Response) -> str:
    """Best-effort error message from an Actual HTTP API error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict):
        return str(body.get("error") or body.get("message") or body)
    return str(body)[:200]
