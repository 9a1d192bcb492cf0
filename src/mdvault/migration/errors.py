"""Exceptions raised by the migration engine."""


class MigrationError(Exception):
    """Base exception for all migration errors."""

    pass


class BackupError(MigrationError):
    """Raised when a backup cannot be created or restored.

    A failed backup aborts a migration before any file is modified.
    """

    pass


class SnapshotError(MigrationError):
    """Raised when the applied-schema snapshot is unreadable."""

    pass


class HistoryError(MigrationError):
    """Raised when the migration history file is unreadable."""

    pass
