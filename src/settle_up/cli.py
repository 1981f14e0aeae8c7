"""CLI for splitting shared expenses and settling up."""

import logging
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from .config import Settings, load_settings
from .exceptions import UnbalancedSplitError
from .ledger import currencies_of, total_owed
from .models import (
    LedgerFile,
    NetBalance,
    ParticipantInput,
    SplitMode,
    SuggestedPayment,
)
from .service import SettlementService
from .store import LedgerStore

app = typer.Typer(
    name="settle-up",
    help="Split shared expenses and work out who owes whom",
)

console = Console()


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def format_money(amount: Decimal, currency: str = "", use_color: bool = True) -> str:
    """
    Format money in accounting style with alignment.

    Negative amounts use parentheses: (85.02)
    Positive amounts have spaces:      85.02
    The spaces keep decimal points aligned in tables.
    """
    text = f"{abs(amount):,.2f}"
    if use_color:
        text = f"[red]{text}[/red]" if amount < 0 else f"[green]{text}[/green]"
    if amount < 0:
        text = f"({text})"
    elif not currency:
        text = f" {text} "
    return f"{text} {currency}" if currency else text


def parse_amount(value: str) -> Decimal:
    """Parse a command line amount, rejecting anything that isn't a number."""
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise typer.BadParameter(f"'{value}' is not a valid amount")
    if not amount.is_finite():
        raise typer.BadParameter(f"'{value}' is not a valid amount")
    return amount


def parse_participant(option: str, mode: SplitMode) -> ParticipantInput:
    """
    Parse a ``--participant`` value.

    Accepts ``ID`` or ``ID=VALUE``. The value is read as a percentage, share
    units or a manual amount depending on the split mode.
    """
    participant_id, _, value = option.partition("=")
    participant_id = participant_id.strip()
    if not participant_id:
        raise typer.BadParameter(f"Missing participant id in '{option}'")

    raw = value.strip() if value else None
    if mode is SplitMode.PERCENTAGE:
        return ParticipantInput(participant_id=participant_id, percentage=raw)
    if mode is SplitMode.SHARES:
        return ParticipantInput(participant_id=participant_id, shares=raw)
    if mode is SplitMode.MANUAL:
        return ParticipantInput(participant_id=participant_id, amount=raw)
    return ParticipantInput(participant_id=participant_id)


def _open(ledger: Path | None) -> tuple[Settings, LedgerStore]:
    """Load settings and the ledger store, honouring a --ledger override."""
    settings = load_settings(ledger_path=ledger) if ledger else load_settings()
    return settings, LedgerStore(settings.ledger_path)


def _build_service(
    settings: Settings, store: LedgerStore
) -> tuple[SettlementService, LedgerFile]:
    """Create a service primed with everything in the ledger file."""
    data = store.load()
    service = SettlementService(
        settings,
        names=data.names(),
        settlements=data.settlements,
        advances=data.advances,
    )
    return service, data


def display_balances(currency: str, balances: list[NetBalance]):
    """Display net balances for one currency."""
    table = Table(
        title=f"{currency} Balances", show_header=True, header_style="bold magenta"
    )
    table.add_column("Participant", style="cyan")
    table.add_column("Net", justify="right")
    for balance in balances:
        table.add_row(balance.display_name, format_money(balance.amount))
    console.print(table)


def display_payments(currency: str, payments: list[SuggestedPayment]):
    """Display suggested payments for one currency."""
    if not payments:
        console.print(f"[green]All settled up for {currency}![/green]")
        return

    table = Table(
        title=f"{currency} Settlements", show_header=True, header_style="bold magenta"
    )
    table.add_column("From", style="cyan")
    table.add_column("To", style="cyan")
    table.add_column("Amount", justify="right")
    for payment in payments:
        table.add_row(
            payment.from_name,
            payment.to_name,
            format_money(payment.amount, use_color=False),
        )
    console.print(table)


@app.command()
def split(
    total: str = typer.Argument(..., help="Expense total"),
    participant: list[str] = typer.Option(
        [], "--participant", "-p", help="Participant as ID or ID=VALUE (repeatable)"
    ),
    mode: SplitMode = typer.Option(
        SplitMode.EQUAL, "--mode", "-m", case_sensitive=False, help="Split mode"
    ),
    currency: str | None = typer.Option(None, "--currency", help="Currency code"),
    ledger: Path | None = typer.Option(None, "--ledger", help="Ledger file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Show how an expense total would be split.

    Exits with status 1 if the split can't be saved, printing what's left
    to assign for unbalanced manual splits.
    """
    setup_logging(verbose)

    try:
        settings, store = _open(ledger)
        service, _ = _build_service(settings, store)

        amount = parse_amount(total)
        inputs = [parse_participant(p, mode) for p in participant]
        for item in inputs:
            item.display_name = service.resolver.names.get(
                item.participant_id, item.participant_id
            )

        result = service.allocate(amount, inputs, mode, currency)

        table = Table(
            title=f"Split ({mode.value})", show_header=True, header_style="bold magenta"
        )
        table.add_column("Participant", style="cyan")
        table.add_column("Owes", justify="right")
        table.add_column("Settled", justify="center", style="dim")
        for share in result.shares:
            table.add_row(
                share.display_name or share.participant_id,
                format_money(share.owed_amount, use_color=False),
                "✓" if share.is_settled else "",
            )
        console.print(table)

        if isinstance(result.error, UnbalancedSplitError):
            console.print(
                f"Remaining: [red]{format_money(result.error.remainder, result.currency, use_color=False)}[/red]"
            )
        if result.error is not None:
            console.print(f"[bold red]Error:[/bold red] {result.error}")
            sys.exit(1)

        console.print(
            f"[green]✓ Total {format_money(result.assigned, result.currency, use_color=False)} assigned[/green]"
        )

    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose:
            raise
        sys.exit(1)


@app.command()
def balances(
    currency: str | None = typer.Option(None, "--currency", help="Only this currency"),
    ledger: Path | None = typer.Option(None, "--ledger", help="Ledger file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show each participant's net balance, per currency."""
    setup_logging(verbose)

    try:
        settings, store = _open(ledger)
        service, data = _build_service(settings, store)

        currencies = (
            [currency]
            if currency
            else currencies_of(data.expenses, data.settlements, data.advances)
        )
        if not currencies:
            console.print("[yellow]No expenses found.[/yellow]")
            return

        for code in currencies:
            display_balances(code, service.balances(data.expenses, code))

    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose:
            raise
        sys.exit(1)


@app.command()
def suggest(
    currency: str | None = typer.Option(None, "--currency", help="Only this currency"),
    ledger: Path | None = typer.Option(None, "--ledger", help="Ledger file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Suggest payments that settle everyone up, per currency."""
    setup_logging(verbose)

    try:
        settings, store = _open(ledger)
        service, data = _build_service(settings, store)

        if currency:
            summary = {currency: service.suggest(data.expenses, currency)}
        else:
            summary = service.suggest_all(data.expenses)

        if not summary:
            console.print("[green]Everyone is settled up![/green]")
            return

        for code, payments in summary.items():
            display_payments(code, payments)

    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose:
            raise
        sys.exit(1)


@app.command()
def record(
    from_id: str = typer.Argument(..., help="Who paid"),
    to_id: str = typer.Argument(..., help="Who received"),
    amount: str = typer.Argument(..., help="Amount paid (may be partial)"),
    currency: str | None = typer.Option(None, "--currency", help="Currency code"),
    ledger: Path | None = typer.Option(None, "--ledger", help="Ledger file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Record a payment between two participants.

    The settlement is appended to the ledger file; existing records are
    never changed.
    """
    setup_logging(verbose)

    try:
        settings, store = _open(ledger)
        service, _ = _build_service(settings, store)

        settlement = service.record_settlement(
            from_id,
            to_id,
            parse_amount(amount),
            currency or settings.default_currency,
        )
        store.append_settlement(settlement)

        console.print(
            f"[green]✓ Recorded {service.resolver(from_id)} → "
            f"{service.resolver(to_id)}: "
            f"{format_money(settlement.amount, settlement.currency, use_color=False)}[/green]"
        )

    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose:
            raise
        sys.exit(1)


@app.command()
def debts(
    ledger: Path | None = typer.Option(None, "--ledger", help="Ledger file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """List split shares still owed to you on expenses you paid."""
    setup_logging(verbose)

    try:
        settings, store = _open(ledger)
        service, data = _build_service(settings, store)

        owed = service.unsettled_debts(data.expenses)
        if not owed:
            console.print("[green]Nobody owes you anything![/green]")
            return

        table = Table(
            title="Debts (Owed to You)", show_header=True, header_style="bold magenta"
        )
        table.add_column("Expense", style="dim")
        table.add_column("For")
        table.add_column("Who", style="cyan")
        table.add_column("Owes", justify="right")
        for debt in owed:
            table.add_row(
                debt.expense_id,
                debt.expense_description,
                debt.display_name,
                format_money(debt.amount, debt.currency, use_color=False),
            )
        console.print(table)

        for code, amount in total_owed(owed).items():
            console.print(
                f"Total owed: {format_money(amount, code, use_color=False)}"
            )

    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose:
            raise
        sys.exit(1)


@app.command(name="settle-share")
def settle_share(
    expense_id: str = typer.Argument(..., help="Expense holding the share"),
    participant_id: str = typer.Argument(..., help="Whose share was paid"),
    ledger: Path | None = typer.Option(None, "--ledger", help="Ledger file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Mark one participant's share of an expense as settled."""
    setup_logging(verbose)

    try:
        settings, store = _open(ledger)
        service, data = _build_service(settings, store)

        index = next(
            (i for i, e in enumerate(data.expenses) if e.id == expense_id), None
        )
        if index is None:
            raise ValueError(f"Expense {expense_id} not found")

        data.expenses[index] = service.mark_share_settled(
            data.expenses[index], participant_id
        )
        store.save(data)

        console.print(
            f"[green]✓ Marked {service.resolver(participant_id)}'s share of "
            f"{expense_id} settled[/green]"
        )

    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose:
            raise
        sys.exit(1)


if __name__ == "__main__":
    app()
