"""Output formatting utilities for CLI."""

from datetime import datetime, timezone
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

console = Console()
error_console = Console(stderr=True)


def format_timestamp(ts: str | datetime | None) -> str:
    """Render a ledger timestamp in UTC, or "-" when there is none."""
    if ts is None:
        return "-"
    if isinstance(ts, str):
        try:
            ts = datetime.fromisoformat(ts)
        except ValueError:
            return ts
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc)
    return ts.strftime("%Y-%m-%d %H:%M:%S UTC")


def format_status(status: str) -> Text:
    """Format status with color."""
    colors = {
        "pending": "yellow",
        "applied": "green",
    }
    color = colors.get(status.lower(), "white")
    return Text(status, style=color)


def print_json(data: Any) -> None:
    """Print data as JSON. Datetimes and other non-JSON values become strings."""
    console.print_json(data=data, default=str)


def print_error(message: str, error: Exception | None = None) -> None:
    """Print an error to stderr, followed by the exception that caused it."""
    error_console.print(f"[bold red]Error:[/bold red] {message}")
    if error is not None:
        error_console.print(f"  [dim]{type(error).__name__}:[/dim] {escape(str(error))}")


def print_success(message: str) -> None:
    console.print(f"[bold green]OK[/bold green] {message}")


def print_warning(message: str) -> None:
    console.print(f"[bold yellow]Warning:[/bold yellow] {message}")


def print_migration_status(data: dict, output_format: str = "table") -> None:
    """Print the result of ``MigrationRunner.get_status``."""
    if output_format == "json":
        print_json(data)
        return

    console.print()
    console.print("[bold]Migration Status[/bold]")
    current = str(data["current_version"])
    if data.get("current_description"):
        current += f" ({data['current_description']})"
    console.print(f"  Current Version: [cyan]{current}[/cyan]")
    console.print(f"  Latest Version:  [cyan]{data['latest_version']}[/cyan]")
    console.print(f"  Migrations:      {data['total_migrations']}")
    console.print(f"  Pending:         [yellow]{data['pending_count']}[/yellow]")
    console.print()

    if data["catalog"]:
        table = Table(title="Migrations", show_header=True)
        table.add_column("Version", style="cyan")
        table.add_column("Name", style="white")
        table.add_column("Description", style="dim")
        table.add_column("Status")

        for m in data["catalog"]:
            table.add_row(str(m["version"]), m["name"] or "-", m["description"], format_status(m["status"]))

        console.print(table)
        console.print()

    if data["history"]:
        table = Table(title="Ledger", show_header=True)
        table.add_column("Version", style="cyan")
        table.add_column("Description", style="white")
        table.add_column("Recorded At", style="green")

        for r in data["history"]:
            table.add_row(str(r["version"]), r["description"], format_timestamp(r["timestamp"]))

        console.print(table)
        console.print()

    if not data["pending"]:
        console.print("[green]All migrations are up to date![/green]")
