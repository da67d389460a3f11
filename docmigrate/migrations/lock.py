"""
Exclusive migration lock collaborators.

The runner does not serialize concurrent migrators on its own. A deployment
that may start more than one migrator composes a lock around it with
``MigrationRunner.set_lock``.
"""

import os
import socket
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from docmigrate.log.logging import logger
from docmigrate.migrations.exceptions import MigrationLockError

LOCK_ID = "migration_lock"


class MigrationLock(ABC):
    """Exclusive access to the ledger for the duration of an up/down call."""

    @abstractmethod
    async def acquire(self) -> bool:
        """Try to take the lock; return False if someone else holds it."""

    @abstractmethod
    async def release(self) -> None:
        """Give the lock back."""

    async def __aenter__(self) -> "MigrationLock":
        if not await self.acquire():
            raise MigrationLockError("Unable to acquire migration lock")
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.release()


class MongoLeaseLock(MigrationLock):
    """
    Lease lock stored as a single document in MongoDB.

    The lock expires after ``lock_timeout`` seconds so that a crashed
    migrator does not block the next one forever.
    """

    DEFAULT_LOCK_COLLECTION = "migration_locks"
    DEFAULT_LOCK_TIMEOUT = 300  # 5 minutes

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        collection_name: str = DEFAULT_LOCK_COLLECTION,
        lock_timeout: int = DEFAULT_LOCK_TIMEOUT,
        owner: Optional[str] = None,
    ):
        self._collection = db[collection_name]
        self._lock_timeout = lock_timeout
        self.owner = owner or f"{socket.gethostname()}-{os.getpid()}"

    async def initialize(self) -> None:
        """Create the TTL index that removes expired locks."""
        await self._collection.create_index("expires_at", expireAfterSeconds=0)

    def _lock_document(self, now: datetime) -> dict:
        return {
            "_id": LOCK_ID,
            "locked_at": now,
            "locked_by": self.owner,
            "expires_at": now + timedelta(seconds=self._lock_timeout),
        }

    async def acquire(self) -> bool:
        now = datetime.now(timezone.utc)
        lock = self._lock_document(now)

        try:
            await self._collection.insert_one(lock)
            logger.info("Migration lock acquired", event_type="migration_lock_acquired", locked_by=self.owner)
            return True
        except DuplicateKeyError:
            pass

        # Take over only if the current holder's lease has run out
        result = await self._collection.replace_one(
            {"_id": LOCK_ID, "expires_at": {"$lt": now}},
            lock,
        )
        if result.modified_count > 0:
            logger.info(
                "Migration lock acquired (replaced expired)",
                event_type="migration_lock_acquired",
                locked_by=self.owner,
            )
            return True
        return False

    async def release(self) -> None:
        await self._collection.delete_one({"_id": LOCK_ID, "locked_by": self.owner})
        logger.info("Migration lock released", event_type="migration_lock_released", locked_by=self.owner)
