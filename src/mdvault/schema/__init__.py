"""Schema system for mdvault.

The schema is a JSON document in the vault's .mdvault directory describing
note types, their fields and shared enums. Migrations compare schema versions;
this package only models and resolves them.
"""

from mdvault.schema.parser import (
    FieldDefinition,
    SchemaError,
    TypeDefinition,
    VaultSchema,
    load_raw_schema,
    load_schema,
    parse_schema,
    write_schema,
)
from mdvault.schema.resolver import (
    get_ancestors,
    get_effective_fields,
    get_relation_fields,
)

__all__ = [
    # Parser
    "FieldDefinition",
    "SchemaError",
    "TypeDefinition",
    "VaultSchema",
    "load_raw_schema",
    "load_schema",
    "parse_schema",
    "write_schema",
    # Resolver
    "get_ancestors",
    "get_effective_fields",
    "get_relation_fields",
]
