import itertools
from types import SimpleNamespace

import pytest
from loguru import logger
from pymongo.errors import CollectionInvalid

from docmigrate.migrations.models import Migration


# In-memory stand-in for the parts of a motor database the ledger uses.
class FakeCursor:
    def __init__(self, docs):
        self._docs = list(docs)

    def sort(self, key, direction=1):
        self._docs.sort(key=lambda d: d[key], reverse=direction < 0)
        return self

    def __aiter__(self):
        self._iter = iter(self._docs)
        return self

    async def __anext__(self):
        try:
            return next(self._iter)
        except StopIteration:
            raise StopAsyncIteration


class FakeCollection:
    def __init__(self, name, ids):
        self.name = name
        self.docs = []
        self._ids = ids

    def _matching(self, filter):
        filter = filter or {}
        return [d for d in self.docs if all(d.get(k) == v for k, v in filter.items())]

    async def insert_one(self, doc):
        doc = dict(doc)
        doc.setdefault("_id", next(self._ids))
        self.docs.append(doc)
        return SimpleNamespace(inserted_id=doc["_id"])

    async def find_one(self, filter=None, sort=None):
        docs = self._matching(filter)
        for key, direction in reversed(sort or []):
            docs.sort(key=lambda d: d[key], reverse=direction < 0)
        return dict(docs[0]) if docs else None

    def find(self, filter=None):
        return FakeCursor(dict(d) for d in self._matching(filter))


class FakeDatabase:
    def __init__(self):
        self._ids = itertools.count(1)
        self._collections = {}
        self.created = set()

    def __getitem__(self, name):
        if name not in self._collections:
            self._collections[name] = FakeCollection(name, self._ids)
        return self._collections[name]

    async def list_collection_names(self):
        return sorted(self.created)

    async def create_collection(self, name):
        if name in self.created:
            raise CollectionInvalid(f"collection {name} already exists")
        self.created.add(name)
        return self[name]


class ActionLog:
    """Records the order in which migration actions ran."""

    def __init__(self):
        self.calls = []

    def up(self, version):
        async def action(db):
            self.calls.append(("up", version))

        return action

    def down(self, version):
        async def action(db):
            self.calls.append(("down", version))

        return action

    def count(self, direction):
        return sum(1 for d, _ in self.calls if d == direction)


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop sinks bound to streams captured by the previous test."""
    yield
    logger.remove()


@pytest.fixture
def fake_db():
    """Create an in-memory MongoDB database."""
    return FakeDatabase()


@pytest.fixture
def action_log():
    return ActionLog()


@pytest.fixture
def make_catalog(action_log):
    """Build reversible migrations for the given versions."""

    def _make(*versions):
        return [
            Migration(
                version=v,
                description=f"Migration {v}",
                up=action_log.up(v),
                down=action_log.down(v),
            )
            for v in versions
        ]

    return _make
