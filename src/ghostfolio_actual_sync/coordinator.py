"""
Sync coordinator.
Runs one Ghostfolio -> Actual Budget reconciliation pass.
"""

from datetime import date, datetime
from typing import Any, Callable, Iterable, Optional
import logging
import time

from .clients.base import LedgerGateway, SourceGateway
from .config import GhostfolioConfig, SyncConfig
from .extraction.value_extractor import ExtractionResult, ValueExtractor
from .models.sync import SyncMode, SyncReport
from .reconciliation.engine import ReconciliationEngine
from .reconciliation.notes import end_of_month
from .utils.exceptions import GatewayError

logger = logging.getLogger(__name__)


class SyncCoordinator:
    """
    Orchestrates authentication, valuation fetch, and per-account reconciliation.

    Account mappings are processed sequentially in configuration order; a
    failure on one mapping never stops the others.
    """

    def __init__(
        self,
        config: SyncConfig,
        source: SourceGateway,
        ledger: LedgerGateway,
        engine: Optional[ReconciliationEngine] = None,
        extractor: Optional[ValueExtractor] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the coordinator.

        Args:
            config: Application configuration
            source: Ghostfolio gateway
            ledger: Actual Budget gateway (session opened and closed by ``run``)
            engine: Reconciliation engine, built from config if omitted
            extractor: Value extractor, default field priority if omitted
            sleep: Used for the freshness wait
        """
        self.config = config
        self.source = source
        self.ledger = ledger
        self.engine = engine or ReconciliationEngine(config.reconciliation)
        self.extractor = extractor or ValueExtractor()
        self.sleep = sleep

    def run(
        self,
        mode: SyncMode = SyncMode.EXECUTE,
        reference_date: Optional[date] = None,
    ) -> SyncReport:
        """
        Perform one sync pass.

        Args:
            mode: PREVIEW for a dry run, EXECUTE to write transactions
            reference_date: Any date in the month to reconcile (defaults to today)

        Returns:
            SyncReport with one outcome per account mapping

        Raises:
            AuthError: Ghostfolio rejected the credentials
            InitError: Actual Budget session could not be opened
            GatewayError: Ghostfolio accounts could not be fetched
        """
        start_time = datetime.now()
        reconciliation_date = end_of_month(reference_date or self.engine.clock().date())
        report = SyncReport(
            reconciliation_date=reconciliation_date,
            mode=mode,
            started_at=start_time,
            config_file_used=self.config.config_file_path,
        )
        logger.info(
            f"Starting Ghostfolio to Actual Budget sync ({mode.value}, {reconciliation_date})"
        )

        try:
            session = self.source.authenticate()
            self.ledger.initialize_session()

            extraction = self.fetch_valuations(session)
            report.valuations = dict(extraction.valuations)
            report.diagnostics = list(extraction.diagnostics)
            values = extraction.values

            for mapping in self.config.mappings:
                outcome = self.engine.compute_and_apply(
                    mapping.source_account_name,
                    mapping.ledger_account_name,
                    values,
                    self.ledger,
                    reconciliation_date,
                    mode,
                )
                report.outcomes.append(outcome)
        finally:
            self.ledger.close_session()
            report.processing_time_seconds = (datetime.now() - start_time).total_seconds()

        logger.info(
            f"Sync complete in {report.processing_time_seconds:.2f}s: "
            f"{report.created_count} created, {report.updated_count} updated, "
            f"{report.skipped_count} skipped, {report.failed_count} failed"
        )
        return report

    def fetch_valuations(self, session: Any) -> ExtractionResult:
        """Fetch Ghostfolio accounts and extract values for the mapped accounts."""
        return fetch_valuations(
            self.source,
            session,
            self.config.ghostfolio,
            self.config.account_mapping.keys(),
            extractor=self.extractor,
            sleep=self.sleep,
        )


def fetch_valuations(
    source: SourceGateway,
    session: Any,
    ghostfolio_config: GhostfolioConfig,
    interested_names: Iterable[str],
    extractor: Optional[ValueExtractor] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> ExtractionResult:
    """
    Fetch Ghostfolio accounts and extract values for the named accounts.

    The first fetch queues price updates on the Ghostfolio side; after the
    freshness wait a second fetch picks up the refreshed values.
    """
    if ghostfolio_config.trigger_fear_and_greed:
        try:
            logger.info("Triggering fear and greed data update...")
            source.trigger_auxiliary_refresh(session)
        except GatewayError as e:
            logger.warning(f"Could not trigger fear and greed update: {e}")

    logger.info("Fetching account data (triggering price updates)...")
    accounts = source.list_accounts(session)

    delay = ghostfolio_config.refetch_delay_seconds
    if delay > 0:
        logger.info(f"Waiting {delay:g} seconds for price updates to complete...")
        sleep(delay)
        logger.info("Fetching updated account data...")
        accounts = source.list_accounts(session)

    return (extractor or ValueExtractor()).normalize(accounts, interested_names)
