"""
Migration data models and catalog helpers.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Sequence, Union

# Used in "up" or "down" to run every eligible migration.
ALL_AVAILABLE = -1

MigrationAction = Callable[[Any], Union[Awaitable[None], None]]


class MigrationStatus(str, Enum):
    """Status of a catalog entry as reported by ``get_status``."""

    PENDING = "pending"
    APPLIED = "applied"


@dataclass(frozen=True)
class Migration:
    """
    A versioned migration supplied by the caller.

    Attributes:
        version: Unique version number for ordering migrations.
        description: Label stored in the ledger when the migration is applied.
        up: Forward action, called with the database handle.
        down: Backward action, called with the database handle.
        name: Human-readable name, taken from the file name by the loader.
        file_path: Path to the migration file, if loaded from disk.
    """

    version: int
    description: str = ""
    up: Optional[MigrationAction] = field(default=None, compare=False)
    down: Optional[MigrationAction] = field(default=None, compare=False)
    name: str = ""
    file_path: str = ""

    def __post_init__(self) -> None:
        # 0 is the version of an empty ledger
        if self.version <= 0:
            raise ValueError(f"Migration version must be positive, got {self.version}")

    @property
    def has_forward(self) -> bool:
        return self.up is not None

    @property
    def has_backward(self) -> bool:
        return self.down is not None


@dataclass
class MigrationRecord:
    """
    A ledger entry: the database reached ``version`` at ``timestamp``.

    The description is left out of the stored document when empty.
    """

    version: int
    description: str
    timestamp: datetime

    def to_dict(self) -> dict:
        """Convert to dictionary for MongoDB storage."""
        doc: dict[str, Any] = {"version": self.version}
        if self.description:
            doc["description"] = self.description
        doc["timestamp"] = self.timestamp
        return doc

    @classmethod
    def from_dict(cls, data: dict) -> "MigrationRecord":
        """Create from MongoDB document."""
        return cls(
            version=data["version"],
            description=data.get("description", ""),
            timestamp=data["timestamp"],
        )


def sort_migrations(migrations: Sequence[Migration]) -> list[Migration]:
    """Return the catalog ordered by version."""
    return sorted(migrations, key=lambda m: m.version)


def effective_count(n: int, total: int) -> int:
    """
    Number of steps a traversal may perform.

    Zero, negative (``ALL_AVAILABLE``) and over-large counts all mean "every
    eligible step".
    """
    if n <= 0 or n > total:
        return total
    return n


def predecessor_of(sorted_catalog: Sequence[Migration], index: int) -> tuple[int, str]:
    """
    Version and description the database is at once the migration at
    ``index`` has been reverted.

    This is the previous catalog entry, or version 0 with no description
    when reverting the first one.
    """
    if index < 0 or index >= len(sorted_catalog):
        raise IndexError(f"Catalog index out of range: {index}")
    if index == 0:
        return 0, ""
    previous = sorted_catalog[index - 1]
    return previous.version, previous.description


def was_reverted(ledger: Sequence[int], version: int) -> bool:
    """
    Whether ``version`` was rolled back after it was last recorded.

    ``ledger`` holds the recorded versions in insertion order. A later record
    with a lower version only counts as a rollback if that lower version (or
    the empty-ledger version 0) was already recorded before: ``[1, 2, 3, 2]``
    reverted 3, while ``[1, 3, 2]`` filled in the gap at 2.
    """
    positions = [i for i, v in enumerate(ledger) if v == version]
    if not positions:
        return False
    last = positions[-1]
    earlier = set(ledger[:last])
    return any(v < version and (v == 0 or v in earlier) for v in ledger[last + 1 :])
