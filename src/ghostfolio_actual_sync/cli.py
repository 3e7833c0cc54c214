"""
Command-line interface for the Ghostfolio to Actual Budget sync.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional
import logging
import sys

import click
from rich.console import Console

from . import __version__
from .clients.actual import ActualClient
from .clients.ghostfolio import GhostfolioClient
from .config import load_config, generate_default_config, SyncConfig
from .coordinator import SyncCoordinator, fetch_valuations
from .models.sync import SyncMode
from .reports.console_report import display_report, display_valuations
from .reports.excel_generator import ExcelReportGenerator
from .utils.exceptions import ConfigurationError
from .utils.logging_config import setup_logging

console = Console()


@click.group()
@click.version_option(version=__version__)
def main():
    """Ghostfolio to Actual Budget month-end reconciliation."""
    pass


@main.command()
@click.option(
    "-c",
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file (YAML or JSON)",
)
@click.option(
    "--dry-run", is_flag=True, help="Show planned reconciliations without changing Actual Budget"
)
@click.option(
    "--date",
    "reference_date",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Reconcile the month containing this date (default: today)",
)
@click.option(
    "-r", "--report", type=click.Path(path_type=Path), help="Also write an Excel report"
)
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
def sync(
    config: Optional[Path],
    dry_run: bool,
    reference_date: Optional[datetime],
    report: Optional[Path],
    verbose: bool,
):
    """
    Write month-end reconciliation transactions so Actual Budget balances
    match Ghostfolio account values.
    """
    mode = SyncMode.PREVIEW if dry_run else SyncMode.EXECUTE

    try:
        sync_config = _load_and_configure(config, verbose)
        sync_config.validate_required()

        coordinator = SyncCoordinator(
            sync_config,
            source=GhostfolioClient(sync_config.ghostfolio),
            ledger=ActualClient(sync_config.actual),
        )
        sync_report = coordinator.run(
            mode=mode,
            reference_date=reference_date.date() if reference_date else None,
        )

        display_report(console, sync_report)

        if report is not None:
            report_path = ExcelReportGenerator().generate_report(sync_report, report)
            console.print(f"\n[green]Report generated: {report_path}[/green]")

        if dry_run:
            console.print("\n[green]Dry run completed successfully![/green]")
        else:
            console.print("[green]Sync completed successfully![/green]")

    except Exception as e:
        label = "Dry run failed" if dry_run else "Sync failed"
        console.print(f"[red]{label}: {e}[/red]")
        if verbose:
            console.print_exception()
        sys.exit(1)


@main.command()
@click.option("-c", "--config", type=click.Path(exists=True, path_type=Path))
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
def values(config: Optional[Path], verbose: bool):
    """
    Fetch and display Ghostfolio values for the mapped accounts.
    """
    try:
        sync_config = _load_and_configure(config, verbose)
        ghostfolio = sync_config.ghostfolio
        if not ghostfolio.base_url or not ghostfolio.access_token:
            raise ConfigurationError(
                "Missing required configuration: ghostfolio.base_url, ghostfolio.access_token"
            )

        client = GhostfolioClient(ghostfolio)
        session = client.authenticate()
        extraction = fetch_valuations(
            client, session, ghostfolio, sync_config.account_mapping.keys()
        )

        display_valuations(console, extraction.valuations)
        for message in extraction.diagnostics:
            console.print(message, style="yellow", markup=False)

        console.print(
            f"\nValues found: {len(extraction.valuations)} of {len(sync_config.account_mapping)}"
        )

    except Exception as e:
        console.print(f"[red]Error fetching values: {e}[/red]")
        if verbose:
            console.print_exception()
        sys.exit(1)


@main.command("init-config")
@click.option(
    "-o", "--output", type=click.Path(path_type=Path), default=Path("config.yaml")
)
def init_config(output: Path):
    """Generate a sample configuration file."""
    generate_default_config(output)
    console.print(f"[green]Configuration file generated: {output}[/green]")


def _load_and_configure(config_path: Optional[Path], verbose: bool) -> SyncConfig:
    """Load configuration and set up logging from it."""
    sync_config = load_config(config_path)

    log_config = sync_config.logging
    setup_logging(
        logging.DEBUG if verbose else log_config.level,
        log_file=Path(log_config.file) if log_config.file else None,
        log_format=log_config.format,
    )
    return sync_config


if __name__ == "__main__":
    main()
