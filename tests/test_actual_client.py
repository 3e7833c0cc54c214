from datetime import date
import json

import httpx
import pytest

from conftest import FakeSource
from ghostfolio_actual_sync.clients.actual import ActualClient
from ghostfolio_actual_sync.config import ActualConfig
from ghostfolio_actual_sync.coordinator import SyncCoordinator
from ghostfolio_actual_sync.models.sync import LedgerAccount, OutcomeKind, SyncMode
from ghostfolio_actual_sync.utils.exceptions import AccountLookupError, GatewayError, InitError

BUDGET = "/v1/budgets/budget-1"


class ActualServer:
    """Minimal Actual HTTP API stand-in."""

    def __init__(self):
        self.requests = []
        self.accounts = [
            {"id": "acc-isa", "name": "Investments: ISA", "closed": False},
            {"id": "acc-pension", "name": "Investments: Pension", "closed": False},
            {"id": "acc-old", "name": "Old", "closed": True},
        ]
        self.transactions = {
            "acc-isa": [
                {"id": "t1", "date": "2024-02-01", "amount": 50000, "notes": None, "payee": None},
                {"id": "t2", "date": "2024-02-29", "amount": 12000, "notes": "#ghostfolio Reconciliation - ISA"},
            ],
            "acc-pension": [],
        }
        self.payees = [{"id": "p-existing", "name": "Employer"}]
        self.accounts_status = 200
        self.accounts_error = None

    def __call__(self, request):
        self.requests.append(request)
        path = request.url.path
        body = json.loads(request.content) if request.content else None

        if path == f"{BUDGET}/accounts":
            if self.accounts_status != 200:
                return httpx.Response(self.accounts_status, json={"error": self.accounts_error})
            return httpx.Response(200, json={"data": self.accounts})
        account_id = path.split("/")[-2] if path.endswith("/transactions") else None
        if account_id in self.transactions and request.method == "GET":
            return httpx.Response(200, json={"data": self.transactions[account_id]})
        if account_id in self.transactions and request.method == "POST":
            return httpx.Response(201, json={"message": "ok"})
        if path == f"{BUDGET}/payees" and request.method == "GET":
            return httpx.Response(200, json={"data": self.payees})
        if path == f"{BUDGET}/payees" and request.method == "POST":
            new_id = f"p-{len(self.payees)}"
            self.payees.append({"id": new_id, "name": body["payee"]["name"]})
            return httpx.Response(201, json={"data": new_id})
        if path.startswith(f"{BUDGET}/transactions/") and request.method == "PATCH":
            return httpx.Response(200, json={"message": "ok"})
        return httpx.Response(404, json={"error": "no route"})

    def last(self, method):
        return [r for r in self.requests if r.method == method][-1]


@pytest.fixture()
def server():
    return ActualServer()


@pytest.fixture()
def client(server):
    config = ActualConfig(
        base_url="http://actual.test/",
        api_key="key",
        budget_id="budget-1",
        encryption_password="enc",
    )
    client = ActualClient(config, transport=httpx.MockTransport(server))
    yield client
    client.close_session()


def test_initialize_session_sends_credentials(client, server):
    client.initialize_session()

    assert client.initialized
    request = server.requests[0]
    assert request.headers["x-api-key"] == "key"
    assert request.headers["budget-encryption-password"] == "enc"


def test_initialize_session_budget_not_found(client, server):
    server.accounts_status = 404
    server.accounts_error = "Budget not found"

    with pytest.raises(InitError, match="Budget 'budget-1' not found"):
        client.initialize_session()

    assert not client.initialized


def test_initialize_session_remote_files_error(client, server):
    server.accounts_status = 500
    server.accounts_error = "Could not get remote files"

    with pytest.raises(InitError, match="not found"):
        client.initialize_session()


def test_initialize_session_other_server_error(client, server):
    server.accounts_status = 500
    server.accounts_error = "internal error"

    with pytest.raises(InitError, match="Failed to initialize Actual Budget"):
        client.initialize_session()


def test_requests_before_initialize_fail(client):
    with pytest.raises(GatewayError, match="not initialized"):
        client.list_transactions("acc-isa")


def test_find_account_by_name(client):
    client.initialize_session()

    assert client.find_account_by_name("Investments: ISA") == LedgerAccount(
        id="acc-isa", name="Investments: ISA"
    )
    assert client.find_account_by_name("investments: isa") is None


def test_require_account_raises_for_unknown_name(client):
    client.initialize_session()

    with pytest.raises(AccountLookupError, match="Investments: GIA"):
        client.require_account("Investments: GIA")


def test_list_transactions(client, server):
    client.initialize_session()

    transactions = client.list_transactions("acc-isa")

    assert [t.id for t in transactions] == ["t1", "t2"]
    assert transactions[0].date == date(2024, 2, 1)
    assert transactions[0].amount_minor_units == 50000
    assert server.last("GET").url.params["since_date"] == "1970-01-01"


def test_get_or_create_payee_creates_once(client, server):
    client.initialize_session()

    first = client.get_or_create_payee("Reconciliation Balance Adjustment")
    second = client.get_or_create_payee("Reconciliation Balance Adjustment")

    assert first == second == "p-1"
    assert len([r for r in server.requests if r.method == "POST"]) == 1


def test_get_existing_payee(client, server):
    client.initialize_session()

    assert client.get_or_create_payee("Employer") == "p-existing"
    assert not [r for r in server.requests if r.method == "POST"]


def test_create_transaction_payload(client, server):
    client.initialize_session()

    client.create_transaction("acc-isa", 12000, date(2024, 2, 29), "#ghostfolio Reconciliation", "p-1")

    body = json.loads(server.last("POST").content)
    assert body["transaction"] == {
        "account": "acc-isa",
        "amount": 12000,
        "date": "2024-02-29",
        "notes": "#ghostfolio Reconciliation",
        "payee": "p-1",
        "cleared": False,
    }


def test_update_transaction_payload(client, server):
    client.initialize_session()

    client.update_transaction("t2", 10000, "note", "p-1")

    request = server.last("PATCH")
    assert request.url.path == f"{BUDGET}/transactions/t2"
    assert json.loads(request.content) == {
        "transaction": {"amount": 10000, "notes": "note", "payee": "p-1"}
    }


def test_http_error_becomes_gateway_error(client):
    client.initialize_session()

    with pytest.raises(GatewayError, match="HTTP 404"):
        client.list_transactions("acc-unknown")


def test_close_session_is_idempotent(client):
    client.initialize_session()

    client.close_session()
    client.close_session()

    assert not client.initialized


def test_non_integer_amount_becomes_gateway_error(client, server):
    server.transactions["acc-isa"].append({"id": "t3", "date": "2024-02-03", "amount": "12.5"})
    client.initialize_session()

    with pytest.raises(GatewayError, match="Malformed transaction in account acc-isa"):
        client.list_transactions("acc-isa")


def test_account_without_id_fails_initialization(client, server):
    server.accounts.append({"name": "No id"})

    with pytest.raises(InitError, match="Malformed accounts response"):
        client.initialize_session()


def test_malformed_ledger_rows_fail_only_their_mapping(client, server, sync_config):
    server.transactions["acc-isa"] = [{"id": "bad", "date": "2024-02-01", "amount": "12.5"}]
    source = FakeSource([{"name": "ISA", "value": 620}, {"name": "Pension", "value": 1000}])
    coordinator = SyncCoordinator(sync_config, source=source, ledger=client, sleep=lambda _: None)

    report = coordinator.run(SyncMode.PREVIEW)

    assert [o.kind for o in report.outcomes] == [OutcomeKind.FAILED, OutcomeKind.CREATED]
    assert "12.5" in report.outcomes[0].reason
