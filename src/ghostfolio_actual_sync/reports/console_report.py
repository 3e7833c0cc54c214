"""Console rendering of valuations and sync outcomes."""

from decimal import Decimal
from typing import Optional

from rich.console import Console
from rich.table import Table

from ..models.sync import (
    AccountValuation,
    OutcomeKind,
    ReconciliationOutcome,
    SyncMode,
    SyncReport,
)

CURRENCY_SYMBOL = "£"

OUTCOME_STYLES = {
    OutcomeKind.CREATED: ("CREATE", "green"),
    OutcomeKind.UPDATED: ("UPDATE", "cyan"),
    OutcomeKind.SKIPPED_NO_VALUE: ("SKIP", "yellow"),
    OutcomeKind.SKIPPED_ACCOUNT_NOT_FOUND: ("SKIP", "yellow"),
    OutcomeKind.FAILED: ("FAILED", "red"),
}


def format_money(amount: Optional[Decimal]) -> str:
    if amount is None:
        return "-"
    return f"{CURRENCY_SYMBOL}{amount:,.2f}"


def display_valuations(
    console: Console, valuations: dict[str, AccountValuation], title: str = "Ghostfolio Account Values"
) -> None:
    """Display selected Ghostfolio values in a table."""
    table = Table(title=title)
    table.add_column("Account", style="cyan")
    table.add_column("Value", justify="right")
    table.add_column("Field")

    for name, valuation in valuations.items():
        table.add_row(name, format_money(valuation.value), valuation.source_field_used)

    console.print(table)


def describe_outcome(outcome: ReconciliationOutcome) -> list[str]:
    """Lines describing one outcome, worded for preview or execution."""
    pair = f"{outcome.source_account} -> {outcome.ledger_account}"
    label, _ = OUTCOME_STYLES[outcome.kind]

    if outcome.is_skipped or outcome.is_failed:
        return [f"{label}: {pair} ({outcome.reason})"]

    if outcome.mode == SyncMode.EXECUTE:
        verb = "Created" if outcome.kind == OutcomeKind.CREATED else "Updated"
        return [
            f"{verb} {pair}: {format_money(outcome.amount)} "
            f"(Base: {format_money(outcome.base_balance)} -> "
            f"Target: {format_money(outcome.target_value)})"
        ]

    lines = [
        f"{label}: {pair}",
        f"   Base Balance: {format_money(outcome.base_balance)}",
        f"   Target Value: {format_money(outcome.target_value)}",
    ]
    if outcome.kind == OutcomeKind.UPDATED:
        lines.append(f"   Old Reconciliation: {format_money(outcome.previous_amount)}")
        lines.append(f"   New Reconciliation: {format_money(outcome.amount)}")
    else:
        lines.append(f"   Reconciliation Amount: {format_money(outcome.amount)}")
    lines.append(f"   Note: {outcome.note}")
    return lines


def display_report(console: Console, report: SyncReport) -> None:
    """Display every outcome of a run followed by a summary table."""
    if report.mode == SyncMode.PREVIEW:
        console.print(f"\n[bold]=== DRY RUN RESULTS ({report.reconciliation_date}) ===[/bold]\n")
        display_valuations(console, report.valuations)
        console.print("\nPlanned Updates:")
    else:
        console.print(f"\n[bold]Reconciliation date: {report.reconciliation_date}[/bold]")

    for message in report.diagnostics:
        console.print(message, style="yellow", markup=False)

    for outcome in report.outcomes:
        _, style = OUTCOME_STYLES[outcome.kind]
        for line in describe_outcome(outcome):
            console.print(f"  {line}", style=style, markup=False)

    table = Table(title="Sync Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Mode", "Dry run" if report.mode == SyncMode.PREVIEW else "Execute")
    table.add_row("Accounts Mapped", str(len(report.outcomes)))
    table.add_row("Values Found", str(len(report.valuations)))
    table.add_row("Created", str(report.created_count))
    table.add_row("Updated", str(report.updated_count))
    table.add_row("Skipped", str(report.skipped_count))
    table.add_row("Failed", str(report.failed_count))
    table.add_row("Processing Time", f"{report.processing_time_seconds:.2f}s")
    console.print(table)

    if report.mode == SyncMode.PREVIEW:
        console.print("\n[bold]=== END DRY RUN ===[/bold]")
        console.print("\nTo execute these changes, run the command without --dry-run.")
