"""
Migration CLI commands for managing database migrations.
"""

import asyncio
from pathlib import Path
from typing import Annotated, Any, Coroutine, Optional, TypeVar

import typer

from docmigrate.cli.output import (
    console,
    print_error,
    print_migration_status,
    print_success,
    print_warning,
)
from docmigrate.core.config import Settings
from docmigrate.core.mongo import close_client, get_database
from docmigrate.log.logging import logger, setup_logging
from docmigrate.migrations.loader import (
    discover_migrations,
    next_version,
    render_migration_template,
)
from docmigrate.migrations.lock import MongoLeaseLock
from docmigrate.migrations.runner import MigrationRunner

migrate_app = typer.Typer(name="migrate", help="Database migration commands")

T = TypeVar("T")


def get_settings(ctx: typer.Context) -> Settings:
    """Settings from the environment with command line overrides applied."""
    config = Settings(**(ctx.obj or {}))
    setup_logging(config.log_level, config.json_logs)
    return config


async def get_runner(config: Settings) -> MigrationRunner:
    """Get migration runner instance."""
    db = get_database(config)
    runner = MigrationRunner(db, discover_migrations(config.migrations_dir))
    runner.set_migrations_collection(config.migrations_collection)
    runner.set_logger(logger)

    if config.migrations_lock_enabled:
        lock = MongoLeaseLock(db, lock_timeout=config.migrations_lock_timeout)
        await lock.initialize()
        runner.set_lock(lock)

    await runner.store.ensure_initialized()
    return runner


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine to completion and close the MongoDB client."""
    try:
        return asyncio.run(coro)
    finally:
        close_client()


@migrate_app.command("status")
def status(
    ctx: typer.Context,
    output_format: Annotated[
        str,
        typer.Option("--output", "-o", help="Output format (table, json)"),
    ] = "table",
):
    """Show current migration status."""
    config = get_settings(ctx)

    async def _status():
        runner = await get_runner(config)
        return await runner.get_status()

    try:
        result = run_async(_status())
    except Exception as e:
        print_error("Failed to get migration status", e)
        raise typer.Exit(1)

    print_migration_status(result, output_format=output_format)


@migrate_app.command("up")
def up(
    ctx: typer.Context,
    count: Annotated[
        int,
        typer.Option("--count", "-n", help="Number of migrations to apply (0 = all)"),
    ] = 0,
):
    """Apply pending migrations."""
    config = get_settings(ctx)

    async def _up():
        runner = await get_runner(config)
        applied = await runner.up(count)
        version, _ = await runner.current_version()
        return applied, version

    try:
        applied, version = run_async(_up())
    except Exception as e:
        print_error("Migration failed", e)
        raise typer.Exit(1)

    if not applied:
        console.print("[green]No pending migrations to apply.[/green]")
        return

    console.print()
    print_success(f"Applied {len(applied)} migration(s), database is at version {version}:")
    for m in applied:
        console.print(f"  • [cyan]{m.version}[/cyan] - {m.description}")


@migrate_app.command("down")
def down(
    ctx: typer.Context,
    count: Annotated[
        int,
        typer.Option("--count", "-n", help="Number of migrations to roll back (0 = all)"),
    ] = 0,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Skip confirmation prompt"),
    ] = False,
):
    """Rollback migrations."""
    if not force:
        confirm = typer.confirm(
            "Are you sure you want to rollback migrations? This may cause data loss."
        )
        if not confirm:
            print_warning("Rollback cancelled.")
            raise typer.Exit(0)

    config = get_settings(ctx)

    async def _down():
        runner = await get_runner(config)
        reverted = await runner.down(count)
        version, _ = await runner.current_version()
        return reverted, version

    try:
        reverted, version = run_async(_down())
    except Exception as e:
        print_error("Rollback failed", e)
        raise typer.Exit(1)

    if not reverted:
        console.print("[yellow]No migrations to rollback.[/yellow]")
        return

    console.print()
    print_success(f"Rolled back {len(reverted)} migration(s), database is at version {version}:")
    for m in reverted:
        console.print(f"  • [cyan]{m.version}[/cyan] - {m.description}")


@migrate_app.command("set-version")
def set_version(
    ctx: typer.Context,
    version: Annotated[int, typer.Argument(min=0, help="Version to record")],
    description: Annotated[
        str,
        typer.Option("--description", "-d", help="Description to record"),
    ] = "",
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Skip confirmation prompt"),
    ] = False,
):
    """Force the recorded database version without running migrations."""
    if not force:
        confirm = typer.confirm(
            f"Record version {version} without running any migration?"
        )
        if not confirm:
            print_warning("Cancelled.")
            raise typer.Exit(0)

    config = get_settings(ctx)

    async def _set_version():
        runner = await get_runner(config)
        await runner.set_version(version, description)

    try:
        run_async(_set_version())
    except Exception as e:
        print_error("Failed to set version", e)
        raise typer.Exit(1)

    print_success(f"Database version set to {version}")


@migrate_app.command("create")
def create(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Name for the migration (use_underscores)")],
    description: Annotated[
        Optional[str],
        typer.Option("--description", "-d", help="Description of the migration"),
    ] = None,
):
    """Create a new migration file."""
    if not name.replace("_", "").isalnum():
        print_error("Migration name must be alphanumeric with underscores only")
        raise typer.Exit(1)

    config = get_settings(ctx)
    migrations_dir = Path(config.migrations_dir)
    migrations_dir.mkdir(parents=True, exist_ok=True)

    version = next_version(migrations_dir)
    desc = description or name.replace("_", " ")
    filepath = migrations_dir / f"{version:03d}_{name}.py"
    filepath.write_text(render_migration_template(version, desc))

    console.print()
    print_success(f"Created migration file: {filepath}")
