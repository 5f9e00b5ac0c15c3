"""CLI for Defter using Typer."""

import logging
import sys
import uuid
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import Settings, load_settings
from .exceptions import DefterError, UnknownPersonError
from .models import LedgerView, PersonBalance, SettlementTransfer, Snapshot
from .payments import confirm_payment, pending_payments_for, record_payment, reject_payment
from .service import LedgerService
from .snapshot import load_snapshot, save_snapshot, with_payment
from .ui import ask_payment_decision, select_person_interactive

app = typer.Typer(
    name="defter",
    help="Shared purchase ledger: balances and settle-up transfers",
)

console = Console()

FileOption = typer.Option(
    None, "--file", "-f", help="Ledger snapshot (JSON). Defaults to SNAPSHOT_PATH"
)
MonthOption = typer.Option(None, "--month", "-m", help="Only this month (YYYY-MM)")
VerboseOption = typer.Option(False, "--verbose", "-v", help="Verbose output")


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def fail(error: Exception, verbose: bool):
    """Print an error and exit, or re-raise it in verbose mode."""
    console.print(f"\n[bold red]Error:[/bold red] {escape(str(error))}")
    if verbose:
        raise error
    sys.exit(1)


def format_money(amount: Decimal, currency: str = "", use_color: bool = True) -> str:
    """
    Format money in accounting style with alignment.

    Negative amounts use parentheses: (85.02 TRY)
    Positive amounts have spaces:      85.02 TRY
    """
    suffix = f" {currency}" if currency else ""
    abs_amount = abs(amount)
    if amount < 0:
        if use_color:
            return f"([red]{abs_amount:,.2f}{suffix}[/red])"
        return f"({abs_amount:,.2f}{suffix})"
    if use_color:
        return f" [green]{abs_amount:,.2f}{suffix}[/green] "
    return f" {abs_amount:,.2f}{suffix} "


def resolve_person(snapshot: Snapshot, value: str) -> str:
    """Map a person id or (case-insensitive) name to a person id."""
    names = snapshot.names()
    if value in names:
        return value

    matches = [pid for pid, name in names.items() if name.lower() == value.lower()]
    if len(matches) == 1:
        return matches[0]
    if matches:
        raise UnknownPersonError(f"'{value}' matches several people, use an id")
    raise UnknownPersonError(f"No person with id or name '{value}'")


def _load(file: Path | None) -> tuple[Settings, Snapshot]:
    settings = load_settings()
    return settings, load_snapshot(file or settings.snapshot_path)


def _view(settings: Settings, snapshot: Snapshot, month: str | None) -> LedgerView:
    report = LedgerService(settings).build_report(snapshot, month)
    return report.period if report.period is not None else report.all_time


def display_balances(balances: list[PersonBalance], title: str, currency: str):
    """Display balances in a table."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Person", style="cyan")
    table.add_column("Paid", justify="right")
    table.add_column("Share", justify="right")
    table.add_column("Net", justify="right")

    for balance in balances:
        table.add_row(
            balance.person_name,
            format_money(balance.paid, currency, use_color=False),
            format_money(balance.owed, currency, use_color=False),
            format_money(balance.net, currency),
        )

    console.print(table)


def display_transfers(transfers: list[SettlementTransfer], title: str, currency: str):
    """Display suggested transfers in a table."""
    if not transfers:
        console.print(f"[green]✓ {title}: everyone is settled up[/green]")
        return

    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("From", style="cyan")
    table.add_column("To", style="cyan")
    table.add_column("Amount", justify="right")

    for transfer in transfers:
        table.add_row(
            transfer.from_name,
            transfer.to_name,
            format_money(transfer.amount, currency, use_color=False),
        )

    console.print(table)


def display_view(view: LedgerView, label: str, currency: str):
    """Display the balances, open transfers and totals of a view."""
    console.print(f"\n[bold]{label}[/bold]")
    console.print(f"  Purchases total: {format_money(view.purchase_total, currency)}")
    console.print(f"  Participants: {view.participant_count}")
    console.print(f"  Applied payments: {len(view.applied_payments)}")
    console.print()
    display_balances(view.balances, "Balances", currency)
    display_transfers(view.transfers, "Open transfers", currency)


@app.command()
def balances(
    file: Path | None = FileOption,
    month: str | None = MonthOption,
    verbose: bool = VerboseOption,
):
    """Show paid, share and net per person after confirmed payments."""
    setup_logging(verbose)

    try:
        settings, snapshot = _load(file)
        view = _view(settings, snapshot, month)
        display_balances(view.balances, f"Balances {month or ''}".strip(), settings.currency_code)
    except DefterError as e:
        fail(e, verbose)


@app.command()
def transfers(
    file: Path | None = FileOption,
    month: str | None = MonthOption,
    verbose: bool = VerboseOption,
):
    """
    Show open transfers, traceable to the purchases behind them.

    Confirmed payments are already subtracted and opposite debts between
    two people are netted.
    """
    setup_logging(verbose)

    try:
        settings, snapshot = _load(file)
        view = _view(settings, snapshot, month)
        display_transfers(view.transfers, "Open transfers", settings.currency_code)
    except DefterError as e:
        fail(e, verbose)


@app.command()
def optimal(
    file: Path | None = FileOption,
    month: str | None = MonthOption,
    verbose: bool = VerboseOption,
):
    """Show the fewest transfers that settle every balance."""
    setup_logging(verbose)

    try:
        settings, snapshot = _load(file)
        view = _view(settings, snapshot, month)
        display_transfers(
            view.optimal_transfers, "Minimum settle-up transfers", settings.currency_code
        )
    except DefterError as e:
        fail(e, verbose)


@app.command()
def report(
    file: Path | None = FileOption,
    month: str | None = MonthOption,
    verbose: bool = VerboseOption,
):
    """Show the all-time ledger and, with --month, that month's ledger."""
    setup_logging(verbose)

    try:
        settings, snapshot = _load(file)
        ledger_report = LedgerService(settings).build_report(snapshot, month)

        display_view(ledger_report.all_time, "All time", settings.currency_code)
        if ledger_report.period is not None:
            display_view(ledger_report.period, f"Month {month}", settings.currency_code)
    except DefterError as e:
        fail(e, verbose)


@app.command()
def summary(
    person: str | None = typer.Argument(None, help="Person id or name"),
    file: Path | None = FileOption,
    month: str | None = MonthOption,
    verbose: bool = VerboseOption,
):
    """Show what one person is owed and owes."""
    setup_logging(verbose)

    try:
        settings, snapshot = _load(file)

        if person is None:
            person_id = select_person_interactive(snapshot.people)
            if person_id is None:
                console.print("[yellow]No person selected.[/yellow]")
                return
        else:
            person_id = resolve_person(snapshot, person)

        service = LedgerService(settings)
        view = _view(settings, snapshot, month)
        person_summary = service.person_summary(view, person_id, snapshot.names())
        currency = settings.currency_code

        console.print(f"\n[bold]{person_summary.person_name}[/bold]")
        display_transfers(person_summary.receivables, "Owed to you", currency)
        display_transfers(person_summary.debts, "You owe", currency)
        console.print(f"\n  Net: {format_money(person_summary.net, currency)}")
    except DefterError as e:
        fail(e, verbose)


@app.command()
def pay(
    from_person: str = typer.Argument(..., help="Payer id or name"),
    to_person: str = typer.Argument(..., help="Receiver id or name"),
    amount: float = typer.Argument(..., help="Amount paid"),
    by: str = typer.Option(..., "--by", help="Who is recording the payment"),
    paid_at: datetime | None = typer.Option(
        None, "--date", formats=["%Y-%m-%d"], help="Payment date (default: today)"
    ),
    note: str | None = typer.Option(None, "--note", help="Free-form note"),
    file: Path | None = FileOption,
    verbose: bool = VerboseOption,
):
    """
    Record a payment between two people.

    Recorded by the receiver, the payment counts immediately. Recorded by
    the payer, it waits until the receiver confirms it with `defter review`.
    """
    setup_logging(verbose)

    try:
        settings, snapshot = _load(file)
        payment = record_payment(
            from_person_id=resolve_person(snapshot, from_person),
            to_person_id=resolve_person(snapshot, to_person),
            amount=Decimal(str(amount)),
            recorded_by=resolve_person(snapshot, by),
            paid_at=paid_at.date() if paid_at else date.today(),
            note=note,
            payment_id=uuid.uuid4().hex,
        )
        save_snapshot(with_payment(snapshot, payment), file or settings.snapshot_path)

        if payment.status == "confirmed":
            console.print("[bold green]✓ Payment recorded and confirmed[/bold green]")
        else:
            console.print(
                "[yellow]Payment recorded, waiting for the receiver to confirm.[/yellow]"
            )
    except DefterError as e:
        fail(e, verbose)


@app.command()
def review(
    person: str = typer.Argument(..., help="Receiver id or name"),
    file: Path | None = FileOption,
    verbose: bool = VerboseOption,
):
    """Confirm or reject payments waiting for PERSON."""
    setup_logging(verbose)

    try:
        settings, snapshot = _load(file)
        person_id = resolve_person(snapshot, person)
        pending = pending_payments_for(snapshot.payments, person_id)

        if not pending:
            console.print("[green]No pending payments.[/green]")
            return

        console.print(f"\n[bold blue]{len(pending)} pending payment(s)[/bold blue]")
        names = snapshot.names()
        payments = list(snapshot.payments)
        decided = 0

        # Payments may have no id, so replace them by position
        for index, payment in enumerate(payments):
            if payment.status != "pending" or payment.to_person_id != person_id:
                continue

            decision = ask_payment_decision(payment, names)
            if decision == "confirm":
                payments[index] = confirm_payment(payment, person_id)
            elif decision == "reject":
                payments[index] = reject_payment(payment, person_id)
            else:
                continue
            decided += 1

        if decided:
            save_snapshot(
                snapshot.model_copy(update={"payments": payments}),
                file or settings.snapshot_path,
            )
        console.print(f"\n[bold green]✓ Reviewed {decided} payment(s)[/bold green]")
    except DefterError as e:
        fail(e, verbose)


if __name__ == "__main__":
    app()
