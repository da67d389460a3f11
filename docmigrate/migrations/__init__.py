"""
MongoDB migration engine.

This module provides the version ledger and the runner that applies and
reverts a caller-supplied catalog of migrations.
"""

from docmigrate.migrations.exceptions import (
    MigrationError,
    MigrationLoadError,
    MigrationLockError,
)
from docmigrate.migrations.lock import MigrationLock, MongoLeaseLock
from docmigrate.migrations.models import (
    ALL_AVAILABLE,
    Migration,
    MigrationRecord,
    MigrationStatus,
    effective_count,
    predecessor_of,
    was_reverted,
)
from docmigrate.migrations.runner import MigrationRunner
from docmigrate.migrations.store import VersionStore

__all__ = [
    "ALL_AVAILABLE",
    "Migration",
    "MigrationError",
    "MigrationLoadError",
    "MigrationLock",
    "MigrationLockError",
    "MigrationRecord",
    "MigrationRunner",
    "MigrationStatus",
    "MongoLeaseLock",
    "VersionStore",
    "effective_count",
    "predecessor_of",
    "was_reverted",
]
