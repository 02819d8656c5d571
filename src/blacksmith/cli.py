"""CLI for BlackSmith using Typer."""

import logging
import sys
from decimal import Decimal
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from .balance import classify_balance, to_currency
from .config import load_settings
from .db import Database
from .models import EXPENSE_TYPES, BalanceSummary, Journey
from .service import JourneyService

app = typer.Typer(
    name="blacksmith",
    help="Track journey pouches, expenses and balances for BlackSmith Traders",
)

console = Console()


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def format_money(amount: Decimal, symbol: str = "₹", use_color: bool = True) -> str:
    """
    Format money in accounting style.

    Profit (zero or more) is green, loss is red and wrapped in parentheses.
    """
    abs_amount = abs(amount)
    if classify_balance(amount) == "loss":
        if use_color:
            return f"([red]{symbol}{abs_amount:,.2f}[/red])"
        return f"({symbol}{abs_amount:,.2f})"
    if use_color:
        return f" [green]{symbol}{abs_amount:,.2f}[/green] "
    return f" {symbol}{abs_amount:,.2f} "


def display_balance(journey: Journey, summary: BalanceSummary, symbol: str):
    """Display a journey's balance breakdown."""
    console.print(
        f"\n[bold]Journey {journey.id}[/bold] "
        f"({journey.vehicle_license_plate} -> {journey.destination}, {journey.status})"
    )

    table = Table(show_header=False, box=None)
    table.add_column("Item", style="cyan")
    table.add_column("Amount", justify="right")
    table.add_row("Pouch", format_money(journey.pouch, symbol))
    table.add_row("Top-ups", format_money(summary.total_top_ups, symbol))
    table.add_row("Expenses", format_money(-summary.total_expenses, symbol))
    table.add_row("[bold]Working balance[/bold]", format_money(summary.working_balance, symbol))
    if summary.is_completed:
        table.add_row("Security deposit", format_money(journey.initial_expense, symbol))
        table.add_row("HYD inward", format_money(summary.total_hyd_inward, symbol))
    table.add_row("[bold]Final balance[/bold]", format_money(summary.final_balance, symbol))
    console.print(table)

    if not summary.is_completed and (
        summary.pending_security > 0 or summary.pending_hyd_inward > 0
    ):
        console.print(
            f"  [dim]Pending on completion: security "
            f"{symbol}{summary.pending_security:,.2f}, HYD inward "
            f"{symbol}{summary.pending_hyd_inward:,.2f}[/dim]"
        )


def _fail(e: Exception, verbose: bool):
    console.print(f"\n[bold red]Error:[/bold red] {e}")
    if verbose:
        raise e
    sys.exit(1)


@app.command("driver-add")
def driver_add(
    username: str = typer.Argument(..., help="Login name"),
    name: str = typer.Argument(..., help="Display name"),
    admin: bool = typer.Option(False, "--admin", help="Grant admin rights"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Register a driver (or admin) account."""
    setup_logging(verbose)
    try:
        settings = load_settings()
        db = Database(settings.database_path)
        driver = JourneyService(settings, db).register_driver(username, name, admin)
        console.print(f"[green]✓ Driver {driver.name} registered (id {driver.id})[/green]")
    except Exception as e:
        _fail(e, verbose)
    finally:
        if "db" in locals():
            db.close()


@app.command("vehicle-add")
def vehicle_add(
    license_plate: str = typer.Argument(..., help="License plate"),
    model: str | None = typer.Option(None, "--model", help="Vehicle model"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Add a vehicle to the fleet."""
    setup_logging(verbose)
    try:
        settings = load_settings()
        db = Database(settings.database_path)
        JourneyService(settings, db).register_vehicle(license_plate, model)
        console.print(f"[green]✓ Vehicle {license_plate} registered[/green]")
    except Exception as e:
        _fail(e, verbose)
    finally:
        if "db" in locals():
            db.close()


@app.command()
def start(
    driver_id: int = typer.Option(..., "--driver", "-d", help="Driver id"),
    vehicle: str = typer.Option(..., "--vehicle", help="Vehicle license plate"),
    destination: str = typer.Option(..., "--to", help="Destination"),
    pouch: str = typer.Option(..., "--pouch", help="Cash handed to the driver"),
    security: str = typer.Option(
        "0", "--security", help="Security deposit held until completion"
    ),
    origin: str | None = typer.Option(None, "--from", help="Origin"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Start a journey."""
    setup_logging(verbose)
    try:
        settings = load_settings()
        db = Database(settings.database_path)
        journey = JourneyService(settings, db).start_journey(
            user_id=driver_id,
            vehicle_license_plate=vehicle,
            destination=destination,
            pouch=to_currency(pouch),
            initial_expense=to_currency(security),
            origin=origin,
        )
        console.print(f"[green]✓ Journey {journey.id} started[/green]")
    except Exception as e:
        _fail(e, verbose)
    finally:
        if "db" in locals():
            db.close()


@app.command()
def expense(
    journey_id: int = typer.Argument(..., help="Journey id"),
    expense_type: str = typer.Argument(
        ..., help=f"Expense type ({', '.join(EXPENSE_TYPES)})"
    ),
    amount: str = typer.Argument(..., help="Amount (must be positive)"),
    notes: str | None = typer.Option(None, "--notes", "-n", help="Optional notes"),
    actor_id: int = typer.Option(
        ..., "--by", "-u", help="Id of the driver or admin recording the entry"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Log an expense, top-up or HYD inward entry against a journey."""
    setup_logging(verbose)
    try:
        settings = load_settings()
        db = Database(settings.database_path)
        service = JourneyService(settings, db)
        saved, alert = service.add_expense(
            journey_id, expense_type, to_currency(amount), actor_id, notes=notes
        )
        console.print(f"[green]✓ Added {saved.type} {saved.amount} (id {saved.id})[/green]")
        if alert:
            console.print(f"[yellow]⚠️  {alert.message}[/yellow]")
    except Exception as e:
        _fail(e, verbose)
    finally:
        if "db" in locals():
            db.close()


@app.command()
def complete(
    journey_id: int = typer.Argument(..., help="Journey id"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Complete a journey and show its final balance."""
    setup_logging(verbose)
    try:
        settings = load_settings()
        db = Database(settings.database_path)
        service = JourneyService(settings, db)
        journey = service.complete_journey(journey_id)
        display_balance(journey, service.get_balance(journey_id), settings.currency_symbol)
    except Exception as e:
        _fail(e, verbose)
    finally:
        if "db" in locals():
            db.close()


@app.command()
def balance(
    journey_id: int = typer.Argument(..., help="Journey id"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show a journey's balance."""
    setup_logging(verbose)
    try:
        settings = load_settings()
        db = Database(settings.database_path)
        service = JourneyService(settings, db)
        display_balance(
            service.get_journey(journey_id),
            service.get_balance(journey_id),
            settings.currency_symbol,
        )
    except Exception as e:
        _fail(e, verbose)
    finally:
        if "db" in locals():
            db.close()


@app.command()
def active(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """List active journeys with their working balances."""
    setup_logging(verbose)
    try:
        settings = load_settings()
        db = Database(settings.database_path)
        service = JourneyService(settings, db)
        journeys = service.list_active_journeys()
        if not journeys:
            console.print("[yellow]No active journeys.[/yellow]")
            return

        names = service.get_driver_names()
        symbol = settings.currency_symbol
        table = Table(title="Active Journeys", header_style="bold magenta")
        table.add_column("ID", style="dim")
        table.add_column("Driver", style="cyan")
        table.add_column("Vehicle")
        table.add_column("Destination")
        table.add_column("Pouch", justify="right")
        table.add_column("Expenses", justify="right")
        table.add_column("Balance", justify="right")
        for journey, summary in journeys:
            table.add_row(
                str(journey.id),
                names.get(journey.user_id, "Unknown"),
                journey.vehicle_license_plate or "",
                journey.destination or "",
                format_money(journey.pouch, symbol),
                format_money(summary.total_expenses, symbol, use_color=False),
                format_money(summary.final_balance, symbol),
            )
        console.print(table)
    except Exception as e:
        _fail(e, verbose)
    finally:
        if "db" in locals():
            db.close()


@app.command("drivers-summary")
def drivers_summary(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show per-driver financial totals."""
    setup_logging(verbose)
    try:
        settings = load_settings()
        db = Database(settings.database_path)
        summaries = JourneyService(settings, db).driver_summaries()
        if not summaries:
            console.print("[yellow]No journeys recorded.[/yellow]")
            return

        symbol = settings.currency_symbol
        table = Table(title="Driver Summary", header_style="bold magenta")
        for header in ("Driver", "Journeys", "Active", "Pouch", "Expenses", "Top-ups", "HYD Inward", "Net"):
            table.add_column(header, justify="left" if header == "Driver" else "right")
        for s in summaries:
            table.add_row(
                s.driver_name,
                str(s.total_journeys),
                str(s.active_journeys),
                format_money(s.total_pouch, symbol, use_color=False),
                format_money(s.total_expenses, symbol, use_color=False),
                format_money(s.total_top_ups, symbol, use_color=False),
                format_money(s.total_hyd_inward, symbol, use_color=False),
                format_money(s.net_balance, symbol),
            )
        console.print(table)
    except Exception as e:
        _fail(e, verbose)
    finally:
        if "db" in locals():
            db.close()


@app.command()
def vehicles(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """List the fleet and each vehicle's availability."""
    setup_logging(verbose)
    try:
        settings = load_settings()
        db = Database(settings.database_path)
        fleet = JourneyService(settings, db).list_vehicles()
        if not fleet:
            console.print("[yellow]No vehicles registered.[/yellow]")
            return

        table = Table(title="Vehicles", header_style="bold magenta")
        table.add_column("License Plate", style="cyan")
        table.add_column("Model")
        table.add_column("Status")
        for vehicle in fleet:
            status_style = "green" if vehicle.status == "available" else "yellow"
            table.add_row(
                vehicle.license_plate,
                vehicle.model or "",
                f"[{status_style}]{vehicle.status}[/{status_style}]",
            )
        console.print(table)
    except Exception as e:
        _fail(e, verbose)
    finally:
        if "db" in locals():
            db.close()


@app.command()
def history(
    driver_id: int = typer.Argument(..., help="Driver id"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show a driver's journeys with their final balances."""
    setup_logging(verbose)
    try:
        settings = load_settings()
        db = Database(settings.database_path)
        journeys = JourneyService(settings, db).journey_history(driver_id)
        if not journeys:
            console.print(f"[yellow]No journeys for driver {driver_id}.[/yellow]")
            return

        symbol = settings.currency_symbol
        table = Table(title=f"Journeys for driver {driver_id}", header_style="bold magenta")
        table.add_column("ID", style="dim")
        table.add_column("Started")
        table.add_column("Vehicle")
        table.add_column("Destination")
        table.add_column("Status")
        table.add_column("Final Balance", justify="right")
        for journey, summary in journeys:
            table.add_row(
                str(journey.id),
                journey.start_time.strftime("%Y-%m-%d"),
                journey.vehicle_license_plate or "",
                journey.destination or "",
                journey.status,
                format_money(summary.final_balance, symbol),
            )
        console.print(table)
    except Exception as e:
        _fail(e, verbose)
    finally:
        if "db" in locals():
            db.close()


@app.command()
def export(
    output: Path | None = typer.Option(None, "--output", "-o", help="Output .xlsx path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Export all journeys to a BlackSmith spreadsheet."""
    setup_logging(verbose)
    try:
        settings = load_settings()
        db = Database(settings.database_path)
        path = JourneyService(settings, db).export_report(output)
        console.print(f"[green]✓ Report written to {path}[/green]")
    except Exception as e:
        _fail(e, verbose)
    finally:
        if "db" in locals():
            db.close()


if __name__ == "__main__":
    app()
