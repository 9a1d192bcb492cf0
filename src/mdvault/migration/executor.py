"""Migration plan executor.

Runs a MigrationPlan against the notes of a vault in two phases:

  1. Plan: parse every file, resolve its type and compute the exact changes.
     Files whose frontmatter cannot be parsed are reported and excluded.
  2. Apply (execute mode only): back up the affected files, then rewrite each
     one. A failed write is recorded and the run continues with the next file.

Dry runs stop after phase 1 and report the same affected count as a real run.
The file codec and backup service are injected so callers and tests can swap
them; by default the real implementations are used.
"""

from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TypeAlias, assert_never

from loguru import logger

from mdvault.discovery import ManagedFile
from mdvault.file_utils import FileError, read_note, write_note
from mdvault.migration.backup import create_backup
from mdvault.migration.changes import apply_changes, calculate_file_changes
from mdvault.migration.errors import BackupError
from mdvault.migration.models import (
    AddEnumValue,
    AddField,
    AddType,
    AppliedChange,
    FileMigrationResult,
    MigrationOp,
    MigrationPlan,
    MigrationResult,
    NormalizeLinks,
    RemoveEnumValue,
    RemoveField,
    RemoveType,
    RenameEnumValue,
    RenameField,
    RenameType,
    ReparentType,
)
from mdvault.schema.parser import FieldDefinition, SchemaError, VaultSchema
from mdvault.schema.resolver import get_ancestors, get_effective_fields, get_relation_fields

ReadNoteFn: TypeAlias = Callable[[Path], Awaitable[tuple[dict[str, Any], str]]]
WriteNoteFn: TypeAlias = Callable[[Path, dict[str, Any], str], Awaitable[None]]
BackupFn: TypeAlias = Callable[[Path, list[Path], str], Awaitable[Path]]


@dataclass
class _PendingFile:
    file: ManagedFile
    frontmatter: dict[str, Any]
    body: str
    changes: list[AppliedChange]


def get_operation_target_type(op: MigrationOp) -> str | None:
    """The type an operation is scoped to, or None for vault-wide operations."""
    match op:
        case (
            AddField(target_type=target)
            | RemoveField(target_type=target)
            | RenameField(target_type=target)
        ):
            return target
        case AddEnumValue() | RemoveEnumValue() | RenameEnumValue() | NormalizeLinks():
            # Enum values and link notation can appear in any note
            return None
        case AddType() | RemoveType() | RenameType() | ReparentType():
            # Structural only, no note frontmatter changes
            return None
        case _:
            assert_never(op)


def group_operations_by_type(
    operations: Iterable[MigrationOp],
) -> dict[str | None, list[MigrationOp]]:
    """Bucket operations by target type; None holds the vault-wide ones."""
    grouped: dict[str | None, list[MigrationOp]] = {}
    for op in operations:
        grouped.setdefault(get_operation_target_type(op), []).append(op)
    return grouped


def resolve_file_type(file: ManagedFile, frontmatter: Mapping[str, Any]) -> str | None:
    """Location-implied type first, then the note's own 'type' field."""
    if file.expected_type:
        return file.expected_type
    declared = frontmatter.get("type")
    return declared if isinstance(declared, str) and declared else None


def _reaches_descendant(
    op: MigrationOp,
    type_fields: Mapping[str, FieldDefinition],
    ancestor_fields: Mapping[str, FieldDefinition],
) -> bool:
    """Whether an ancestor's field operation applies to a note of a subtype.

    A subtype that still declares the field (or overrides it) keeps its own
    values.
    """
    match op:
        case RemoveField(field=field) | RenameField(from_field=field):
            return field not in type_fields
        case AddField(field=field):
            return type_fields.get(field) is ancestor_fields.get(field)
        case _:
            return True


def _operations_for_type(
    schema: VaultSchema,
    type_name: str | None,
    grouped: Mapping[str | None, list[MigrationOp]],
) -> list[MigrationOp]:
    """Operations for a type and its ancestors, followed by vault-wide ones."""
    operations: list[MigrationOp] = []
    if type_name:
        operations.extend(grouped.get(type_name, []))
        try:
            ancestors = get_ancestors(schema, type_name)
            type_fields = get_effective_fields(schema, type_name)
        except SchemaError:
            ancestors, type_fields = [], {}
        for name in ancestors:
            ancestor = schema.types.get(name)
            ancestor_fields = ancestor.fields if ancestor is not None else {}
            operations.extend(
                op
                for op in grouped.get(name, [])
                if _reaches_descendant(op, type_fields, ancestor_fields)
            )
    operations.extend(grouped.get(None, []))
    return operations


def _relation_fields(schema: VaultSchema, type_name: str | None) -> list[str]:
    if not type_name:
        return []
    try:
        return get_relation_fields(schema, type_name)
    except SchemaError:
        return []


async def execute_migration(
    vault_dir: Path,
    files: Sequence[ManagedFile],
    plan: MigrationPlan,
    schema: VaultSchema,
    *,
    execute: bool = False,
    backup: bool = True,
    value_mappings: Mapping[str, Any] | None = None,
    read_fn: ReadNoteFn = read_note,
    write_fn: WriteNoteFn = write_note,
    backup_fn: BackupFn = create_backup,
) -> MigrationResult:
    """Execute a migration plan against vault files.

    Args:
        vault_dir: The vault root, used for backups.
        files: Files to consider, in discovery order.
        plan: The plan to run. Never modified.
        schema: The target schema, used to resolve types and relation fields.
        execute: Write changes when True; dry run otherwise.
        backup: Back up affected files before writing (execute mode only).
        value_mappings: Replacement values for remove-enum-value, keyed
            "enum:<name>:<value>".
        read_fn: Reads a note into (frontmatter, body).
        write_fn: Writes (frontmatter, body) back to a note.
        backup_fn: Creates a backup and returns its path.

    Returns:
        The MigrationResult for this run.

    Raises:
        BackupError: If the backup fails. No file has been modified.
    """
    result = MigrationResult(
        dry_run=not execute,
        from_version=plan.from_version,
        to_version=plan.to_version,
        total_files=len(files),
    )

    operations = list(plan.operations)
    if not operations:
        return result

    grouped = group_operations_by_type(operations)
    logger.debug(
        f"Running migration {plan.from_version} -> {plan.to_version} "
        f"over {len(files)} files (execute={execute})"
    )

    # --- Phase 1: compute changes ---
    pending: list[_PendingFile] = []
    for file in files:
        try:
            frontmatter, body = await read_fn(file.path)
        except (FileError, OSError) as e:
            # Never migrate a file whose metadata we could not understand
            logger.warning(f"Failed to parse {file.relative_path}: {e}")
            result.errors.append(f"Failed to parse {file.relative_path}: {e}")
            continue

        type_name = resolve_file_type(file, frontmatter)
        changes = calculate_file_changes(
            frontmatter,
            _operations_for_type(schema, type_name, grouped),
            _relation_fields(schema, type_name),
            value_mappings,
        )
        if changes:
            pending.append(_PendingFile(file, frontmatter, body, changes))

    # --- Backup before anything is written ---
    if execute and backup and pending:
        label = f"schema migration {plan.from_version} → {plan.to_version}"
        try:
            result.backup_path = await backup_fn(vault_dir, [p.file.path for p in pending], label)
        except BackupError:
            raise
        except Exception as e:
            raise BackupError(f"Failed to create backup: {e}") from e

    # --- Phase 2: apply ---
    for item in pending:
        file_result = FileMigrationResult(
            file_path=item.file.path,
            relative_path=item.file.relative_path,
            changes=item.changes,
        )

        if execute:
            try:
                updated = apply_changes(item.frontmatter, item.changes)
                await write_fn(item.file.path, updated, item.body)
                file_result.applied = True
                logger.debug(f"Migrated {item.file.relative_path} ({len(item.changes)} changes)")
            except (FileError, OSError) as e:
                logger.warning(f"Failed to migrate {item.file.relative_path}: {e}")
                file_result.error = str(e)
                result.errors.append(f"Failed to migrate {item.file.relative_path}: {e}")

        result.file_results.append(file_result)

    result.affected_files = sum(1 for r in result.file_results if r.changes)

    logger.info(
        f"Migration {plan.from_version} -> {plan.to_version}: "
        f"{result.affected_files}/{result.total_files} files affected, "
        f"{len(result.errors)} errors{' (dry run)' if result.dry_run else ''}"
    )
    return result
