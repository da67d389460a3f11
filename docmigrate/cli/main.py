"""CLI entry point for docmigrate."""

from typing import Annotated, Optional

import typer
from rich.console import Console

from docmigrate import __version__
from docmigrate.cli.commands import migrate

# Create main app
app = typer.Typer(
    name="docmigrate",
    help="Versioned MongoDB migrations",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Register sub-commands
app.add_typer(migrate.migrate_app, name="migrate", help="Database migration commands")

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"docmigrate version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
    uri: Annotated[
        Optional[str],
        typer.Option("--uri", "-u", help="MongoDB connection URI"),
    ] = None,
    database: Annotated[
        Optional[str],
        typer.Option("--database", "-d", help="Database to migrate"),
    ] = None,
    collection: Annotated[
        Optional[str],
        typer.Option("--collection", "-c", help="Ledger collection name"),
    ] = None,
    migrations_dir: Annotated[
        Optional[str],
        typer.Option("--dir", help="Directory with migration files"),
    ] = None,
    lock: Annotated[
        Optional[bool],
        typer.Option("--lock/--no-lock", help="Hold a lease lock while migrating"),
    ] = None,
    log_level: Annotated[
        Optional[str],
        typer.Option("--log-level", help="Minimum log level"),
    ] = None,
) -> None:
    """
    Apply and roll back versioned MongoDB migrations.

    [bold]Quick Start:[/bold]

        # Show the current version and pending migrations
        docmigrate migrate status

        # Apply everything pending
        docmigrate migrate up

        # Roll back the latest migration
        docmigrate migrate down -n 1

        # Scaffold a new migration file
        docmigrate migrate create add_email_index

    [bold]Environment Variables:[/bold]

        DOCMIGRATE_MONGODB                - MongoDB URI
        DOCMIGRATE_MONGODB_DATABASE       - Database name
        DOCMIGRATE_MIGRATIONS_COLLECTION  - Ledger collection (default: migrations)
        DOCMIGRATE_MIGRATIONS_DIR         - Migration files directory
        DOCMIGRATE_MIGRATIONS_LOCK_ENABLED - Hold a lease lock while migrating
    """
    # Command line options override environment settings
    overrides = {
        "mongodb": uri,
        "mongodb_database": database,
        "migrations_collection": collection,
        "migrations_dir": migrations_dir,
        "migrations_lock_enabled": lock,
        "log_level": log_level,
    }
    ctx.obj = {key: value for key, value in overrides.items() if value is not None}


if __name__ == "__main__":
    app()
