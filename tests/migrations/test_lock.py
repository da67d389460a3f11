"""Tests for the MongoDB lease lock."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo.errors import DuplicateKeyError

from docmigrate.migrations.exceptions import MigrationLockError
from docmigrate.migrations.lock import LOCK_ID, MongoLeaseLock


@pytest.fixture
def lock_collection():
    collection = MagicMock()
    collection.insert_one = AsyncMock()
    collection.replace_one = AsyncMock(return_value=MagicMock(modified_count=0))
    collection.delete_one = AsyncMock()
    collection.create_index = AsyncMock()
    return collection


@pytest.fixture
def lock_db(lock_collection):
    db = MagicMock()
    db.__getitem__ = MagicMock(return_value=lock_collection)
    return db


class TestMongoLeaseLock:
    def test_default_owner(self, lock_db):
        lock = MongoLeaseLock(lock_db)

        assert "-" in lock.owner
        lock_db.__getitem__.assert_called_with("migration_locks")

    @pytest.mark.asyncio
    async def test_initialize_creates_ttl_index(self, lock_db, lock_collection):
        await MongoLeaseLock(lock_db).initialize()

        lock_collection.create_index.assert_awaited_once_with("expires_at", expireAfterSeconds=0)

    @pytest.mark.asyncio
    async def test_acquire_success(self, lock_db, lock_collection):
        lock = MongoLeaseLock(lock_db, lock_timeout=60, owner="host-1")

        assert await lock.acquire() is True

        doc = lock_collection.insert_one.call_args.args[0]
        assert doc["_id"] == LOCK_ID
        assert doc["locked_by"] == "host-1"
        assert (doc["expires_at"] - doc["locked_at"]).total_seconds() == 60
        lock_collection.replace_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_acquire_held_by_other(self, lock_db, lock_collection):
        lock_collection.insert_one.side_effect = DuplicateKeyError("duplicate key")

        assert await MongoLeaseLock(lock_db).acquire() is False

    @pytest.mark.asyncio
    async def test_acquire_replaces_expired(self, lock_db, lock_collection):
        lock_collection.insert_one.side_effect = DuplicateKeyError("duplicate key")
        lock_collection.replace_one.return_value = MagicMock(modified_count=1)

        assert await MongoLeaseLock(lock_db).acquire() is True

        query = lock_collection.replace_one.call_args.args[0]
        assert query["_id"] == LOCK_ID
        assert "$lt" in query["expires_at"]

    @pytest.mark.asyncio
    async def test_release_only_own_lock(self, lock_db, lock_collection):
        await MongoLeaseLock(lock_db, owner="host-1").release()

        lock_collection.delete_one.assert_awaited_once_with({"_id": LOCK_ID, "locked_by": "host-1"})

    @pytest.mark.asyncio
    async def test_context_manager(self, lock_db, lock_collection):
        async with MongoLeaseLock(lock_db, owner="host-1"):
            lock_collection.delete_one.assert_not_called()

        lock_collection.delete_one.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_context_manager_unavailable(self, lock_db, lock_collection):
        lock_collection.insert_one.side_effect = DuplicateKeyError("duplicate key")

        with pytest.raises(MigrationLockError):
            async with MongoLeaseLock(lock_db):
                pass

        lock_collection.delete_one.assert_not_called()
