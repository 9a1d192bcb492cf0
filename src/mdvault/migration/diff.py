"""Schema diff for mdvault.

Compares the last-applied schema snapshot with the current schema and builds
a MigrationPlan. Detected changes:
  - Types: added, removed, renamed (structural match), reparented
  - Fields: added (with default), removed, renamed (same shape), per type
  - Enum values: added, removed, renamed (plausible successor)
  - Link notation: vault-wide link_format switched

Renames are heuristic guesses and always land in the non-deterministic list;
see mdvault.migration.similarity for the matching rules.
"""

from loguru import logger

from mdvault.migration.models import (
    AddEnumValue,
    AddField,
    AddType,
    MigrationOp,
    MigrationPlan,
    NormalizeLinks,
    RemoveEnumValue,
    RemoveField,
    RemoveType,
    RenameEnumValue,
    RenameField,
    RenameType,
    ReparentType,
)
from mdvault.migration.similarity import match_renames, name_similarity
from mdvault.schema.parser import FieldDefinition, TypeDefinition, VaultSchema

# An added enum value this close to a removed one is treated as its successor
ENUM_SUCCESSOR_SIMILARITY = 0.6


def diff_schemas(
    old_schema: VaultSchema | None,
    new_schema: VaultSchema,
    from_version: str,
    to_version: str,
) -> MigrationPlan:
    """Compare two schemas and generate a migration plan.

    Args:
        old_schema: The last-applied schema, or None before the first migration.
        new_schema: The current schema to migrate to.
        from_version: Version label of the old schema.
        to_version: Version label of the new schema.

    Returns:
        A MigrationPlan with operations split by classification.
    """
    # No baseline yet: nothing to migrate, the caller records an initial snapshot
    if old_schema is None:
        return MigrationPlan.empty(from_version, to_version)

    operations: list[MigrationOp] = []

    type_ops, type_pairs = _diff_types(old_schema.types, new_schema.types)
    operations.extend(type_ops)

    for old_name, new_name in type_pairs:
        operations.extend(
            _diff_fields(new_name, old_schema.types[old_name], new_schema.types[new_name])
        )

    operations.extend(_diff_enums(old_schema.enums, new_schema.enums))

    if old_schema.link_format != new_schema.link_format:
        operations.append(NormalizeLinks(to_format=new_schema.link_format))

    plan = MigrationPlan.from_operations(from_version, to_version, operations)
    logger.debug(
        f"Schema diff {from_version} -> {to_version}: "
        f"{len(plan.deterministic)} deterministic, "
        f"{len(plan.non_deterministic)} non-deterministic"
    )
    return plan


# --- Types ---


def _same_type_shape(old_type: TypeDefinition, new_type: TypeDefinition) -> bool:
    """Whether new_type could be old_type under a new name.

    A type with no fields matches anything, so it never counts as a rename.
    """
    if not old_type.fields:
        return False
    if old_type.extends != new_type.extends:
        return False
    return set(new_type.fields) >= set(old_type.fields)


def _diff_types(
    old_types: dict[str, TypeDefinition],
    new_types: dict[str, TypeDefinition],
) -> tuple[list[MigrationOp], list[tuple[str, str]]]:
    """Detect type-level operations.

    Returns:
        The operations, plus (old name, new name) pairs of types considered the
        same across versions, in the new schema's order.
    """
    added = [name for name in new_types if name not in old_types]
    removed = [name for name in old_types if name not in new_types]

    renames = match_renames(
        removed,
        added,
        lambda old, new: _same_type_shape(old_types[old], new_types[new]),
    )
    renamed_to = {new: old for old, new in renames.items()}

    operations: list[MigrationOp] = []

    for name in added:
        if name not in renamed_to:
            operations.append(AddType(type_name=name))

    for name in removed:
        if name in renames:
            operations.append(RenameType(from_type=name, to_type=renames[name]))
        else:
            operations.append(RemoveType(type_name=name))

    pairs: list[tuple[str, str]] = []
    for name, new_type in new_types.items():
        if name in old_types:
            old_type = old_types[name]
            if old_type.extends != new_type.extends:
                operations.append(
                    ReparentType(
                        type_name=name,
                        old_parent=old_type.extends,
                        new_parent=new_type.extends,
                    )
                )
            pairs.append((name, name))
        elif name in renamed_to:
            pairs.append((renamed_to[name], name))

    return operations, pairs


# --- Fields ---


def _field_shape(field_def: FieldDefinition) -> tuple:
    """Properties that must match for a field to be a renamed copy of another."""
    source = field_def.source
    if isinstance(source, list):
        source = tuple(sorted(source))
    return (
        field_def.prompt,
        source,
        field_def.multiple,
        field_def.enum,
        tuple(field_def.options),
    )


def _diff_fields(
    type_name: str,
    old_type: TypeDefinition,
    new_type: TypeDefinition,
) -> list[MigrationOp]:
    """Detect field operations for one type. Operations target the new type name."""
    old_fields, new_fields = old_type.fields, new_type.fields

    added = [name for name in new_fields if name not in old_fields]
    removed = [name for name in old_fields if name not in new_fields]

    renames = match_renames(
        removed,
        added,
        lambda old, new: _field_shape(old_fields[old]) == _field_shape(new_fields[new]),
    )
    renamed_to = set(renames.values())

    operations: list[MigrationOp] = []

    for name in added:
        if name not in renamed_to:
            operations.append(
                AddField(
                    target_type=type_name,
                    field=name,
                    default=new_fields[name].default_value,
                )
            )

    for name in removed:
        if name in renames:
            operations.append(
                RenameField(target_type=type_name, from_field=name, to_field=renames[name])
            )
        else:
            operations.append(RemoveField(target_type=type_name, field=name))

    return operations


# --- Enums ---


def _diff_enum_values(enum: str, old_values: list[str], new_values: list[str]) -> list[MigrationOp]:
    added = [value for value in new_values if value not in old_values]
    removed = [value for value in old_values if value not in new_values]

    # A lone substitution in the same slot is a successor even with a new name
    single_swap = len(added) == 1 and len(removed) == 1

    def is_successor(old: str, new: str) -> bool:
        if name_similarity(old, new) >= ENUM_SUCCESSOR_SIMILARITY:
            return True
        return single_swap and old_values.index(old) == new_values.index(new)

    renames = match_renames(removed, added, is_successor)
    renamed_to = set(renames.values())

    operations: list[MigrationOp] = []
    for value in added:
        if value not in renamed_to:
            operations.append(AddEnumValue(enum=enum, value=value))
    for value in removed:
        if value in renames:
            operations.append(
                RenameEnumValue(enum=enum, from_value=value, to_value=renames[value])
            )
        else:
            operations.append(RemoveEnumValue(enum=enum, value=value))
    return operations


def _diff_enums(
    old_enums: dict[str, list[str]],
    new_enums: dict[str, list[str]],
) -> list[MigrationOp]:
    """Detect enum value operations. A missing enum counts as an empty one."""
    names = list(new_enums) + [name for name in old_enums if name not in new_enums]

    operations: list[MigrationOp] = []
    for name in names:
        operations.extend(
            _diff_enum_values(name, old_enums.get(name, []), new_enums.get(name, []))
        )
    return operations
