"""Per-file change calculation for migration operations.

Every calculation is guarded so that running the same plan twice is a no-op
the second time: fields are only added when absent, removed when present, and
renamed when the target name is free.
"""

from typing import Any, Iterable, Mapping, assert_never

from mdvault.migration.links import normalize_link
from mdvault.migration.models import (
    AddEnumValue,
    AddField,
    AddType,
    AppliedChange,
    DeleteChange,
    MigrationOp,
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
)


def _replace_value(frontmatter: Mapping[str, Any], old: str, new: Any) -> SetChange | None:
    """Replace an exact value in the first field that holds it, scalar or list."""
    for key, value in frontmatter.items():
        if isinstance(value, list):
            if old in value:
                return SetChange(
                    field=key,
                    old_value=value,
                    new_value=[new if item == old else item for item in value],
                )
        elif value == old:
            return SetChange(field=key, old_value=value, new_value=new)
    return None


def _normalize_relations(
    frontmatter: Mapping[str, Any],
    relation_fields: Iterable[str],
    link_format: str,
) -> list[AppliedChange]:
    changes: list[AppliedChange] = []
    for name in relation_fields:
        if name not in frontmatter:
            continue
        value = frontmatter[name]
        if isinstance(value, list):
            normalized = [normalize_link(item, link_format) for item in value]
        else:
            normalized = normalize_link(value, link_format)
        # Whole value in one change, even for lists
        if normalized != value:
            changes.append(SetChange(field=name, old_value=value, new_value=normalized))
    return changes


def calculate_op_changes(
    frontmatter: Mapping[str, Any],
    op: MigrationOp,
    relation_fields: Iterable[str] = (),
    value_mappings: Mapping[str, Any] | None = None,
) -> list[AppliedChange]:
    """Calculate the changes one operation makes to one note's frontmatter.

    Args:
        frontmatter: Current frontmatter of the note.
        op: The migration operation.
        relation_fields: Relation field names of the note's resolved type.
        value_mappings: Replacements keyed "enum:<name>:<value>".

    Returns:
        Zero or more changes; empty when the op does not apply.
    """
    match op:
        case AddField(field=name, default=default):
            if name not in frontmatter and default is not None:
                return [SetChange(field=name, old_value=None, new_value=default)]
            return []

        case RemoveField(field=name):
            if name in frontmatter:
                return [DeleteChange(field=name, old_value=frontmatter[name])]
            return []

        case RenameField(from_field=old_name, to_field=new_name):
            # Never overwrite a value already stored under the new name
            if old_name in frontmatter and new_name not in frontmatter:
                return [
                    RenameChange(
                        field=old_name,
                        new_field=new_name,
                        old_value=frontmatter[old_name],
                    )
                ]
            return []

        case NormalizeLinks(to_format=link_format):
            return _normalize_relations(frontmatter, relation_fields, link_format)

        case RemoveEnumValue(enum=enum, value=value, map_to=map_to):
            replacement = (value_mappings or {}).get(enum_mapping_key(enum, value), map_to)
            # Without a replacement the value stays; removing it would lose data
            if replacement is None:
                return []
            change = _replace_value(frontmatter, value, replacement)
            return [change] if change else []

        case RenameEnumValue(from_value=old_value, to_value=new_value):
            change = _replace_value(frontmatter, old_value, new_value)
            return [change] if change else []

        case AddEnumValue() | AddType() | RemoveType() | RenameType() | ReparentType():
            # Structural only
            return []

        case _:
            assert_never(op)


def apply_change(frontmatter: dict[str, Any], change: AppliedChange) -> dict[str, Any]:
    """Return a copy of frontmatter with one change applied.

    Renames keep the key's position so rewritten files stay in field order.
    """
    match change:
        case SetChange(field=name, new_value=new_value):
            updated = dict(frontmatter)
            updated[name] = new_value
            return updated
        case DeleteChange(field=name):
            return {key: value for key, value in frontmatter.items() if key != name}
        case RenameChange(field=name, new_field=new_name):
            return {
                (new_name if key == name else key): value for key, value in frontmatter.items()
            }
        case _:
            assert_never(change)


def apply_changes(
    frontmatter: Mapping[str, Any], changes: Iterable[AppliedChange]
) -> dict[str, Any]:
    """Apply changes in order to a copy of frontmatter."""
    updated = dict(frontmatter)
    for change in changes:
        updated = apply_change(updated, change)
    return updated


def calculate_file_changes(
    frontmatter: Mapping[str, Any],
    operations: Iterable[MigrationOp],
    relation_fields: Iterable[str] = (),
    value_mappings: Mapping[str, Any] | None = None,
) -> list[AppliedChange]:
    """Calculate all changes for one note.

    Operations are evaluated in order against a working copy, so each sees
    the effect of the ones before it.
    """
    relation_fields = list(relation_fields)
    working = dict(frontmatter)
    changes: list[AppliedChange] = []

    for op in operations:
        for change in calculate_op_changes(working, op, relation_fields, value_mappings):
            changes.append(change)
            working = apply_change(working, change)

    return changes
