"""
Migration runner for applying and reverting database migrations.
"""

import inspect
from typing import Any, Iterable, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from docmigrate.migrations.lock import MigrationLock
from docmigrate.migrations.models import (
    ALL_AVAILABLE,
    Migration,
    MigrationAction,
    MigrationStatus,
    effective_count,
    predecessor_of,
    sort_migrations,
    was_reverted,
)
from docmigrate.migrations.store import DEFAULT_MIGRATIONS_COLLECTION, VersionStore


class MigrationRunner:
    """
    Applies and reverts a catalog of migrations against a MongoDB database.

    Every applied or reverted step appends one record to the ledger
    collection; the latest record gives the current database version. The
    runner holds its own copy of the catalog, so later changes to the list
    passed in are not seen.

    Concurrent runners on the same database are not serialized unless a
    lock is set with ``set_lock``.
    """

    def __init__(self, db: AsyncIOMotorDatabase, migrations: Iterable[Migration] = ()):
        """
        Initialize the migration runner.

        Args:
            db: MongoDB database instance, passed unchanged to every action.
            migrations: The catalog. Versions must be unique; duplicates are
                not detected.
        """
        self._db = db
        self._migrations = list(migrations)
        self._store = VersionStore(db, DEFAULT_MIGRATIONS_COLLECTION)
        self._logger: Optional[Any] = None
        self._lock: Optional[MigrationLock] = None

    @property
    def migrations(self) -> list[Migration]:
        """The catalog sorted by version."""
        return sort_migrations(self._migrations)

    @property
    def store(self) -> VersionStore:
        return self._store

    def set_migrations_collection(self, name: str) -> None:
        """Replace the ledger collection name. By default it is "migrations"."""
        self._store.collection_name = name

    def set_logger(self, logger: Any) -> None:
        """Log one line per applied or reverted step to ``logger``."""
        self._logger = logger
        self._store.logger = logger

    def set_lock(self, lock: Optional[MigrationLock]) -> None:
        """Hold ``lock`` for the duration of every ``up`` and ``down`` call."""
        self._lock = lock

    async def current_version(self) -> tuple[int, str]:
        """Current database version and its description."""
        return await self._store.current_version()

    async def is_applied(self, version: int) -> bool:
        """Check whether ``version`` appears anywhere in the ledger."""
        return await self._store.is_applied(version)

    async def set_version(self, version: int, description: str = "") -> None:
        """Force the database version without running any migration."""
        await self._store.record_version(version, description)

    async def up(self, n: int = ALL_AVAILABLE) -> list[Migration]:
        """
        Apply pending migrations in ascending version order.

        Args:
            n: Apply at most this many. ``ALL_AVAILABLE`` (or any n <= 0)
                applies every pending migration.

        Returns:
            The migrations that were applied.

        Raises:
            Whatever the failing action or the ledger insert raised. Steps
            applied before the failure stay recorded.
        """
        if self._lock is None:
            return await self._up(n)
        async with self._lock:
            return await self._up(n)

    async def down(self, n: int = ALL_AVAILABLE) -> list[Migration]:
        """
        Revert applied migrations in descending version order.

        Args:
            n: Revert at most this many. ``ALL_AVAILABLE`` (or any n <= 0)
                reverts everything at or below the current version.

        Returns:
            The migrations that were reverted.
        """
        if self._lock is None:
            return await self._down(n)
        async with self._lock:
            return await self._down(n)

    async def _is_in_effect(self, migration: Migration, ledger: list[int]) -> bool:
        if not await self._store.is_applied(migration.version):
            return False
        # Without a backward action nothing can have reverted it
        if not migration.has_backward:
            return True
        return not was_reverted(ledger, migration.version)

    async def _ledger(self) -> list[int]:
        return [r.version for r in await self._store.history()]

    async def _up(self, n: int) -> list[Migration]:
        ledger = await self._ledger()
        migrations = self.migrations
        n = effective_count(n, len(migrations))
        applied: list[Migration] = []

        for migration in migrations:
            if len(applied) >= n:
                break
            if not migration.has_forward or await self._is_in_effect(migration, ledger):
                continue

            await self._run_action(migration.up)
            self._log_step("UP", migration)
            await self._store.record_version(migration.version, migration.description)
            applied.append(migration)

        return applied

    async def _down(self, n: int) -> list[Migration]:
        current_version, _ = await self._store.current_version()
        migrations = self.migrations
        n = effective_count(n, len(migrations))
        reverted: list[Migration] = []

        for i in range(len(migrations) - 1, -1, -1):
            if len(reverted) >= n:
                break
            migration = migrations[i]
            if migration.version > current_version or not migration.has_backward:
                continue

            await self._run_action(migration.down)
            self._log_step("DOWN", migration)
            # Back to the state before this migration was applied
            version, description = predecessor_of(migrations, i)
            await self._store.record_version(version, description)
            reverted.append(migration)

        return reverted

    async def _run_action(self, action: MigrationAction) -> None:
        result = action(self._db)
        if inspect.isawaitable(result):
            await result

    def _log_step(self, direction: str, migration: Migration) -> None:
        if self._logger is not None:
            self._logger.info(f"MIGRATED {direction}: {migration.version} {migration.description}")

    async def get_status(self) -> dict[str, Any]:
        """
        Get current migration status.

        Returns:
            Dictionary with migration status information.
        """
        current_version, current_description = await self._store.current_version()
        history = await self._store.history()
        ledger = [r.version for r in history]
        migrations = self.migrations

        catalog = []
        for migration in migrations:
            applied = await self._is_in_effect(migration, ledger)
            catalog.append(
                {
                    "version": migration.version,
                    "name": migration.name,
                    "description": migration.description,
                    "status": (MigrationStatus.APPLIED if applied else MigrationStatus.PENDING).value,
                }
            )

        pending = [m for m in catalog if m["status"] == MigrationStatus.PENDING.value]

        return {
            "current_version": current_version,
            "current_description": current_description,
            "latest_version": migrations[-1].version if migrations else 0,
            "total_migrations": len(migrations),
            "pending_count": len(pending),
            "catalog": catalog,
            "pending": pending,
            "history": [
                {
                    "version": r.version,
                    "description": r.description,
                    "timestamp": r.timestamp.isoformat(),
                }
                for r in history
            ],
        }
