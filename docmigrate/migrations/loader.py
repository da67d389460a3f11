"""
Load migration definitions from a directory of Python files.

A migration file is named ``<version>_<name>.py`` (e.g. ``003_add_email_index.py``)
and may define::

    description = "Add email index"

    async def up(db): ...

    async def down(db): ...

Either action may be left out. A module-level ``version`` is optional but must
match the file name when present.
"""

import importlib.util
import os
import re
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from docmigrate.log.logging import logger
from docmigrate.migrations.exceptions import MigrationLoadError
from docmigrate.migrations.models import Migration, sort_migrations

MIGRATION_FILENAME = re.compile(r"^(\d+)_(\w+)\.py$")

MIGRATION_TEMPLATE = '''"""
Migration: {description}
Created: {created}
"""

from motor.motor_asyncio import AsyncIOMotorDatabase

# Metadata
version = {version}
description = {description!r}


async def up(db: AsyncIOMotorDatabase) -> None:
    """Apply migration."""
    pass


async def down(db: AsyncIOMotorDatabase) -> None:
    """Rollback migration."""
    pass
'''


def load_migration_file(file_path: Union[str, Path]) -> Optional[Migration]:
    """
    Load a migration from a Python file.

    Args:
        file_path: Path to the migration file.

    Returns:
        Migration object, or None if the file is not a migration.

    Raises:
        MigrationLoadError: If the module fails to import or declares a
            version that differs from its file name, or if the file name
            uses version 0.
    """
    file_path = str(file_path)
    filename = os.path.basename(file_path)

    match = MIGRATION_FILENAME.match(filename)
    if not match:
        logger.warning(
            "Skipping invalid migration filename: {filename}",
            filename=filename,
            event_type="migration_skip",
        )
        return None

    version = int(match.group(1))
    name = match.group(2)
    if version == 0:
        raise MigrationLoadError(file_path, "version 0 is reserved for an empty ledger")

    spec = importlib.util.spec_from_file_location(f"docmigrate_migration_{version}", file_path)
    if spec is None or spec.loader is None:
        raise MigrationLoadError(file_path, "not an importable Python file")

    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        raise MigrationLoadError(file_path, str(e)) from e

    declared = getattr(module, "version", version)
    if declared != version:
        raise MigrationLoadError(
            file_path, f"declares version {declared} but file name says {version}"
        )

    up = getattr(module, "up", None)
    down = getattr(module, "down", None)
    if up is None and down is None:
        logger.warning(
            "Migration {filename} defines neither up nor down, skipping",
            filename=filename,
            event_type="migration_invalid",
        )
        return None

    return Migration(
        version=version,
        description=getattr(module, "description", ""),
        up=up,
        down=down,
        name=name,
        file_path=file_path,
    )


def discover_migrations(directory: Union[str, Path]) -> list[Migration]:
    """
    Discover all migration files in a directory.

    Returns:
        List of migrations sorted by version.
    """
    directory = str(directory)
    migrations: list[Migration] = []

    if not os.path.isdir(directory):
        logger.warning(
            "Migrations directory not found: {directory}",
            directory=directory,
            event_type="migrations_dir_missing",
        )
        return migrations

    for filename in sorted(os.listdir(directory)):
        if filename.endswith(".py") and not filename.startswith("_"):
            migration = load_migration_file(os.path.join(directory, filename))
            if migration:
                migrations.append(migration)

    logger.debug(
        "Discovered {count} migrations",
        event_type="migrations_discovered",
        count=len(migrations),
    )

    return sort_migrations(migrations)


def next_version(directory: Union[str, Path]) -> int:
    """Version number for a new migration file in ``directory``."""
    versions = []
    if os.path.isdir(directory):
        for filename in os.listdir(directory):
            match = MIGRATION_FILENAME.match(filename)
            if match:
                versions.append(int(match.group(1)))
    return max(versions, default=0) + 1


def render_migration_template(version: int, description: str) -> str:
    """Source of a new, empty migration file."""
    return MIGRATION_TEMPLATE.format(
        version=version,
        description=description,
        created=datetime.now().strftime("%Y-%m-%d"),
    )
