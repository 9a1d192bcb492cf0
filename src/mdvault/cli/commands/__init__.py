"""CLI commands for mdvault."""

from . import backup, schema

__all__ = [
    "backup",
    "schema",
]
