"""Text and JSON projections of migration plans and results.

Everything here is a pure function of its input.
"""

import re
from typing import Any, assert_never

from mdvault.migration.models import (
    AddEnumValue,
    AddField,
    AddType,
    AppliedChange,
    DeleteChange,
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
)

VERSION_PATTERN = re.compile(r"^(\d+)\.(\d+)\.(\d+)$")

# Operations that drop data notes may still use
BREAKING_OPS = (RemoveField, RemoveType, RemoveEnumValue)


def describe_op(op: MigrationOp) -> str:
    """One-line, human-readable description of an operation with a +/-/~ marker."""
    match op:
        case AddField(target_type=target, field=name, default=default):
            suffix = f" (default: {default!r})" if default is not None else ""
            return f'+ Add field "{name}" to type "{target}"{suffix}'
        case RemoveField(target_type=target, field=name):
            return f'- Remove field "{name}" from type "{target}"'
        case RenameField(target_type=target, from_field=old, to_field=new):
            return f'~ Rename field "{old}" to "{new}" on type "{target}"'
        case AddType(type_name=name):
            return f'+ Add type "{name}"'
        case RemoveType(type_name=name):
            return f'- Remove type "{name}"'
        case RenameType(from_type=old, to_type=new):
            return f'~ Rename type "{old}" to "{new}"'
        case ReparentType(type_name=name, old_parent=old, new_parent=new):
            return f'~ Change parent of type "{name}" from "{old or "none"}" to "{new or "none"}"'
        case AddEnumValue(enum=enum, value=value):
            return f'+ Add value "{value}" to enum "{enum}"'
        case RemoveEnumValue(enum=enum, value=value, map_to=map_to):
            suffix = f' (map to "{map_to}")' if map_to is not None else ""
            return f'- Remove value "{value}" from enum "{enum}"{suffix}'
        case RenameEnumValue(enum=enum, from_value=old, to_value=new):
            return f'~ Rename value "{old}" to "{new}" in enum "{enum}"'
        case NormalizeLinks(to_format=link_format):
            return f"~ Convert relation links to {link_format} format"
        case _:
            assert_never(op)


def format_plan(plan: MigrationPlan) -> str:
    """Format a migration plan for terminal display."""
    lines: list[str] = []

    if plan.deterministic:
        lines.append("Deterministic changes (will be auto-applied):")
        lines.extend(f"  {describe_op(op)}" for op in plan.deterministic)

    if plan.non_deterministic:
        if lines:
            lines.append("")
        lines.append("Non-deterministic changes (require confirmation):")
        lines.extend(f"  {describe_op(op)}" for op in plan.non_deterministic)

    if not lines:
        return "No changes detected."
    return "\n".join(lines)


def plan_to_json(plan: MigrationPlan) -> dict[str, Any]:
    """JSON-safe projection of a plan with summary counts."""
    data = plan.model_dump(mode="json")
    data["summary"] = {
        "deterministic_count": len(plan.deterministic),
        "non_deterministic_count": len(plan.non_deterministic),
    }
    return data


def _format_value(value: Any) -> str:
    if value is None:
        return "(empty)"
    if isinstance(value, list):
        return f"[{', '.join(str(v) for v in value)}]"
    return str(value)


def format_applied_change(change: AppliedChange) -> str:
    match change:
        case SetChange(field=name, old_value=old, new_value=new):
            return f"{name}: {_format_value(old)} → {_format_value(new)}"
        case DeleteChange(field=name, old_value=old):
            return f"{name}: {_format_value(old)} → (removed)"
        case RenameChange(field=name, new_field=new_name, old_value=old):
            return f"{name} → {new_name}: {_format_value(old)}"
        case _:
            assert_never(change)


def format_migration_result(result: MigrationResult) -> str:
    """Format a migration result for terminal display."""
    lines: list[str] = []

    if result.dry_run:
        lines.append("Dry run - no changes applied\n")

    lines.append(f"Migration: {result.from_version} → {result.to_version}")
    lines.append(f"Files scanned: {result.total_files}")
    lines.append(f"Files affected: {result.affected_files}")

    if result.backup_path:
        lines.append(f"Backup created: {result.backup_path}")

    if result.file_results:
        lines.append("\nChanges:")
        for file_result in result.file_results:
            if not file_result.changes:
                continue
            lines.append(f"  {file_result.relative_path}:")
            lines.extend(f"    {format_applied_change(c)}" for c in file_result.changes)
            if file_result.error:
                lines.append(f"    ERROR: {file_result.error}")

    if result.errors:
        lines.append("\nErrors:")
        lines.extend(f"  {error}" for error in result.errors)

    return "\n".join(lines)


# --- Versions ---


def is_valid_version(version: str) -> bool:
    return VERSION_PATTERN.match(version) is not None


def suggest_version_bump(current_version: str, plan: MigrationPlan) -> str:
    """Suggest the next semver for a plan.

    Removals are breaking (major), additions are minor, other changes such as
    renames are a patch. Unparseable versions are treated as 1.0.0.
    """
    if not plan.has_changes:
        return current_version

    match = VERSION_PATTERN.match(current_version)
    major, minor, patch = (int(part) for part in match.groups()) if match else (1, 0, 0)

    if any(isinstance(op, BREAKING_OPS) for op in plan.non_deterministic):
        return f"{major + 1}.0.0"
    if any(isinstance(op, (AddField, AddType, AddEnumValue)) for op in plan.deterministic):
        return f"{major}.{minor + 1}.0"
    return f"{major}.{minor}.{patch + 1}"
