from datetime import date
from decimal import Decimal

import pytest

from conftest import FIXED_NOW, FakeSource
from ghostfolio_actual_sync.coordinator import SyncCoordinator
from ghostfolio_actual_sync.models.sync import OutcomeKind, SyncMode
from ghostfolio_actual_sync.reconciliation.engine import ReconciliationEngine
from ghostfolio_actual_sync.utils.exceptions import AuthError, GatewayError, InitError


def make_coordinator(sync_config, source, ledger, sleeps=None):
    return SyncCoordinator(
        sync_config,
        source=source,
        ledger=ledger,
        engine=ReconciliationEngine(sync_config.reconciliation, clock=lambda: FIXED_NOW),
        sleep=(sleeps.append if sleeps is not None else lambda _: None),
    )


@pytest.fixture()
def source():
    return FakeSource([{"name": "ISA", "value": 620}, {"name": "Pension", "value": 1000}])


def test_execute_run_processes_every_mapping(sync_config, source, ledger):
    report = make_coordinator(sync_config, source, ledger).run(SyncMode.EXECUTE)

    assert report.reconciliation_date == date(2024, 2, 29)
    assert [o.kind for o in report.outcomes] == [OutcomeKind.CREATED, OutcomeKind.CREATED]
    assert len(ledger.write_calls()) == 2
    assert ledger.closed_count == 1


def test_preview_run_writes_nothing(sync_config, source, ledger):
    report = make_coordinator(sync_config, source, ledger).run(SyncMode.PREVIEW)

    assert report.mode == SyncMode.PREVIEW
    assert report.created_count == 2
    assert all(not o.applied for o in report.outcomes)
    assert ledger.write_calls() == []


def test_reference_date_selects_month(sync_config, source, ledger):
    report = make_coordinator(sync_config, source, ledger).run(
        SyncMode.PREVIEW, reference_date=date(2023, 2, 10)
    )

    assert report.reconciliation_date == date(2023, 2, 28)


def test_missing_ledger_account_does_not_stop_other_mappings(sync_config, source, ledger):
    sync_config.account_mapping = {
        "Pension": "Investments: Unknown",
        "ISA": "Investments: ISA",
    }

    report = make_coordinator(sync_config, source, ledger).run(SyncMode.EXECUTE)

    assert [o.kind for o in report.outcomes] == [
        OutcomeKind.SKIPPED_ACCOUNT_NOT_FOUND,
        OutcomeKind.CREATED,
    ]
    assert len(ledger.write_calls()) == 1


def test_failure_on_one_mapping_does_not_stop_others(sync_config, source, ledger):
    ledger.failing_accounts.add("acc-isa")

    report = make_coordinator(sync_config, source, ledger).run(SyncMode.EXECUTE)

    assert [o.kind for o in report.outcomes] == [OutcomeKind.FAILED, OutcomeKind.CREATED]
    assert report.failed_count == 1


def test_no_values_skips_every_mapping(sync_config, ledger):
    source = FakeSource([{"name": "Crypto", "value": 5}])

    report = make_coordinator(sync_config, source, ledger).run(SyncMode.EXECUTE)

    assert report.skipped_count == 2
    assert report.diagnostics
    assert ledger.write_calls() == []


def test_refetch_after_delay(sync_config, source, ledger):
    sync_config.ghostfolio.refetch_delay_seconds = 3
    sleeps = []

    make_coordinator(sync_config, source, ledger, sleeps).run(SyncMode.PREVIEW)

    assert sleeps == [3]
    assert source.list_calls == 2


def test_zero_delay_fetches_once(sync_config, source, ledger):
    make_coordinator(sync_config, source, ledger).run(SyncMode.PREVIEW)

    assert source.list_calls == 1


def test_auxiliary_refresh_failure_is_not_fatal(sync_config, ledger):
    sync_config.ghostfolio.trigger_fear_and_greed = True
    source = FakeSource(
        [{"name": "ISA", "value": 620}], refresh_error=GatewayError("HTTP 502")
    )

    report = make_coordinator(sync_config, source, ledger).run(SyncMode.EXECUTE)

    assert source.refresh_calls == 1
    assert report.created_count == 1


def test_auth_error_aborts_and_closes_ledger(sync_config, ledger):
    source = FakeSource([], auth_error=AuthError("bad token"))

    with pytest.raises(AuthError):
        make_coordinator(sync_config, source, ledger).run(SyncMode.EXECUTE)

    assert ledger.closed_count == 1
    assert ledger.write_calls() == []


def test_init_error_aborts_and_closes_ledger(sync_config, source, ledger):
    ledger.init_error = InitError("Budget 'budget-1' not found")

    with pytest.raises(InitError):
        make_coordinator(sync_config, source, ledger).run(SyncMode.EXECUTE)

    assert ledger.closed_count == 1
    assert source.list_calls == 0


def test_total_adjustment_ignores_failed_writes(sync_config, source, ledger):
    def reject(*args):
        raise GatewayError("Failed to create transaction: HTTP 503")

    ledger.create_transaction = reject

    report = make_coordinator(sync_config, source, ledger).run(SyncMode.EXECUTE)

    assert [o.kind for o in report.outcomes] == [OutcomeKind.FAILED, OutcomeKind.FAILED]
    assert report.outcomes[0].amount == Decimal("120.00")
    assert report.total_adjustment == Decimal("0")


def test_total_adjustment_sums_written_amounts(sync_config, source, ledger):
    report = make_coordinator(sync_config, source, ledger).run(SyncMode.EXECUTE)

    assert report.total_adjustment == Decimal("1120.00")
