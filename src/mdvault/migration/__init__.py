"""Schema migration engine for mdvault.

Diffs two schema versions into a MigrationPlan and runs that plan against the
vault's notes, with dry-run previews, backups and per-file error isolation.
"""

from mdvault.migration.changes import apply_changes, calculate_file_changes, calculate_op_changes
from mdvault.migration.diff import diff_schemas
from mdvault.migration.errors import BackupError, HistoryError, MigrationError, SnapshotError
from mdvault.migration.executor import execute_migration, group_operations_by_type
from mdvault.migration.formatting import (
    describe_op,
    format_migration_result,
    format_plan,
    plan_to_json,
    suggest_version_bump,
)
from mdvault.migration.links import is_markdown_link, is_wikilink, to_markdown_link, to_wikilink
from mdvault.migration.models import (
    AddEnumValue,
    AddField,
    AddType,
    AppliedChange,
    DeleteChange,
    FileMigrationResult,
    MigrationOp,
    MigrationPlan,
    MigrationResult,
    NormalizeLinks,
    RemoveEnumValue,
    RemoveField,
    RemoveType,
    RenameChange,
    RenameEnumValue,
    RenameField,
    RenameType,
    ReparentType,
    SetChange,
    enum_mapping_key,
    is_deterministic,
)

__all__ = [
    # Models
    "AddEnumValue",
    "AddField",
    "AddType",
    "AppliedChange",
    "DeleteChange",
    "FileMigrationResult",
    "MigrationOp",
    "MigrationPlan",
    "MigrationResult",
    "NormalizeLinks",
    "RemoveEnumValue",
    "RemoveField",
    "RemoveType",
    "RenameChange",
    "RenameEnumValue",
    "RenameField",
    "RenameType",
    "ReparentType",
    "SetChange",
    "enum_mapping_key",
    "is_deterministic",
    # Diff
    "diff_schemas",
    # Execution
    "apply_changes",
    "calculate_file_changes",
    "calculate_op_changes",
    "execute_migration",
    "group_operations_by_type",
    # Formatting
    "describe_op",
    "format_migration_result",
    "format_plan",
    "plan_to_json",
    "suggest_version_bump",
    # Links
    "is_markdown_link",
    "is_wikilink",
    "to_markdown_link",
    "to_wikilink",
    # Errors
    "BackupError",
    "HistoryError",
    "MigrationError",
    "SnapshotError",
]
