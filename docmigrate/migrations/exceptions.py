"""
Exceptions raised by the migration tooling.

Storage and action errors are never wrapped: the runner lets pymongo errors
and whatever a migration action raises reach the caller unchanged.
"""


class MigrationError(Exception):
    """Base exception for migration errors."""

    pass


class MigrationLockError(MigrationError):
    """Raised when unable to acquire migration lock."""

    pass


class MigrationLoadError(MigrationError):
    """Raised when a migration file cannot be loaded."""

    def __init__(self, file_path: str, reason: str):
        self.file_path = file_path
        self.reason = reason
        super().__init__(f"Cannot load migration {file_path}: {reason}")
