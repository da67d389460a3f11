"""
Ledger of applied migration versions.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo.errors import CollectionInvalid, PyMongoError

from docmigrate.migrations.models import MigrationRecord

DEFAULT_MIGRATIONS_COLLECTION = "migrations"


class VersionStore:
    """
    Reads and appends Migration Records in a MongoDB collection.

    Every document is inserted once and never touched again. The current
    database version is the one in the most recently inserted document
    (greatest ``_id``), not the highest version. Nothing is cached: each call
    goes to the database.
    """

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        collection_name: str = DEFAULT_MIGRATIONS_COLLECTION,
        logger: Optional[Any] = None,
    ):
        self._db = db
        self.collection_name = collection_name
        self.logger = logger

    @property
    def collection(self) -> AsyncIOMotorCollection:
        return self._db[self.collection_name]

    async def ensure_initialized(self) -> None:
        """Create the ledger collection if it does not exist yet."""
        names = await self._db.list_collection_names()
        if self.collection_name in names:
            return
        try:
            await self._db.create_collection(self.collection_name)
        except CollectionInvalid:
            # Created by someone else between the listing and the create.
            pass

    async def current_version(self) -> tuple[int, str]:
        """
        Get the version and description of the latest record.

        Returns:
            ``(0, "")`` when the ledger is empty.
        """
        await self.ensure_initialized()
        doc = await self.collection.find_one({}, sort=[("_id", -1)])
        if doc is None:
            return 0, ""
        record = MigrationRecord.from_dict(doc)
        return record.version, record.description

    async def is_applied(self, version: int) -> bool:
        """
        Check whether any record carries ``version``.

        A failed lookup counts as "not applied".
        """
        try:
            await self.ensure_initialized()
            doc = await self.collection.find_one({"version": version})
        except PyMongoError as e:
            if self.logger is not None:
                self.logger.warning(
                    f"Could not check migration {version}, treating it as not applied: {e}"
                )
            return False
        return doc is not None

    async def record_version(self, version: int, description: str = "") -> MigrationRecord:
        """Append a record stamped with the current UTC time."""
        record = MigrationRecord(
            version=version,
            description=description,
            timestamp=datetime.now(timezone.utc),
        )
        await self.collection.insert_one(record.to_dict())
        return record

    async def history(self) -> list[MigrationRecord]:
        """
        Get every record in insertion order.

        Returns:
            List of migration records, oldest first.
        """
        await self.ensure_initialized()
        cursor = self.collection.find({}).sort("_id", 1)

        records = []
        async for doc in cursor:
            records.append(MigrationRecord.from_dict(doc))

        return records
