"""Type resolution for mdvault schemas.

Types inherit fields from their ancestors through 'extends'. The resolver
walks that chain to answer questions the migration executor needs per note:
which ancestors a type has, which fields it effectively declares, and which
of those are relation fields.
"""

from mdvault.schema.parser import FieldDefinition, SchemaError, VaultSchema


def get_ancestors(schema: VaultSchema, type_name: str) -> list[str]:
    """Return the ancestor chain of a type, parent first.

    An 'extends' pointing at an undeclared type ends the chain there.

    Raises:
        SchemaError: If the inheritance chain contains a cycle.
    """
    ancestors: list[str] = []
    seen = {type_name}

    type_def = schema.types.get(type_name)
    while type_def is not None and type_def.extends:
        parent = type_def.extends
        if parent in seen:
            raise SchemaError(f"Inheritance cycle detected at type '{parent}'")
        seen.add(parent)
        ancestors.append(parent)
        type_def = schema.types.get(parent)

    return ancestors


def get_effective_fields(schema: VaultSchema, type_name: str) -> dict[str, FieldDefinition]:
    """Merge a type's fields with those of its ancestors.

    Ancestor fields come first; a type redeclaring a field overrides it.
    Unknown types have no fields.
    """
    if type_name not in schema.types:
        return {}

    fields: dict[str, FieldDefinition] = {}
    for name in reversed([type_name, *get_ancestors(schema, type_name)]):
        type_def = schema.types.get(name)
        if type_def is not None:
            fields.update(type_def.fields)
    return fields


def get_relation_fields(schema: VaultSchema, type_name: str) -> list[str]:
    """Names of the relation fields a type declares, in declaration order."""
    return [
        name
        for name, field_def in get_effective_fields(schema, type_name).items()
        if field_def.is_relation
    ]
