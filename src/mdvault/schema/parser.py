"""Schema parser for mdvault.

Parses the vault schema (.mdvault/schema.json) into typed dataclass
representations. The schema declares note types, their fields, shared enums
and vault-wide settings such as the link notation used by relation fields.

Layout reference:
  schema_version: "1.2.0"              # user-controlled, bumped on migrate
  config.link_format: wikilink         # or markdown
  enums: {status: [open, done]}        # shared value lists
  types:
    task:
      extends: item                    # optional parent type
      output_dir: Tasks                # where notes of this type live
      fields:
        status: {prompt: select, enum: status, default: open}
        milestone: {prompt: relation, source: milestone}
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from loguru import logger

from mdvault.config import STATE_DIR_NAME
from mdvault.file_utils import write_file_atomic

SCHEMA_FILE = f"{STATE_DIR_NAME}/schema.json"

LINK_FORMATS = frozenset({"wikilink", "markdown"})
DEFAULT_LINK_FORMAT = "wikilink"


class SchemaError(ValueError):
    """Raised when a schema cannot be loaded or is structurally invalid."""

    pass


# --- Data Model ---


@dataclass
class FieldDefinition:
    """A single frontmatter field declared on a type."""

    name: str
    prompt: str | None = None  # text, select, list, date, relation, boolean, number
    value: Any = None  # Static value, also used as a fallback default
    default: Any = None
    options: list[str] = field(default_factory=list)  # Inline select options
    source: str | list[str] | None = None  # Target type(s) of a relation
    enum: str | None = None  # Name of a shared enum
    required: bool = False
    multiple: bool = False

    @property
    def default_value(self) -> Any:
        return self.default if self.default is not None else self.value

    @property
    def is_relation(self) -> bool:
        return self.prompt == "relation"


@dataclass
class TypeDefinition:
    """A note type with its own (non-inherited) fields."""

    name: str
    extends: str | None = None
    fields: dict[str, FieldDefinition] = field(default_factory=dict)
    output_dir: str | None = None


@dataclass
class VaultSchema:
    """A complete vault schema.

    Keeps the raw dict alongside the parsed form so snapshots store exactly
    what the user wrote.
    """

    types: dict[str, TypeDefinition]
    enums: dict[str, list[str]] = field(default_factory=dict)
    schema_version: str | None = None
    link_format: str = DEFAULT_LINK_FORMAT
    ignored_directories: list[str] = field(default_factory=list)
    raw: dict[str, Any] = field(default_factory=dict)


# --- Parsing ---


def parse_field(name: str, data: Any) -> FieldDefinition:
    """Parse one field declaration. Non-dict declarations become untyped fields."""
    if not isinstance(data, dict):
        return FieldDefinition(name=name)

    options = data.get("options") or []
    return FieldDefinition(
        name=name,
        prompt=data.get("prompt"),
        value=data.get("value"),
        default=data.get("default"),
        options=[str(o) for o in options] if isinstance(options, list) else [],
        source=data.get("source"),
        enum=data.get("enum"),
        required=bool(data.get("required", False)),
        multiple=bool(data.get("multiple", False)),
    )


def parse_type(name: str, data: Any) -> TypeDefinition:
    """Parse a type declaration into a TypeDefinition."""
    if not isinstance(data, dict):
        data = {}

    fields_dict = data.get("fields") or {}
    if not isinstance(fields_dict, dict):
        raise SchemaError(f"Type '{name}' has invalid 'fields': expected a mapping")

    return TypeDefinition(
        name=name,
        extends=data.get("extends"),
        fields={key: parse_field(key, value) for key, value in fields_dict.items()},
        output_dir=data.get("output_dir"),
    )


def parse_schema(data: dict) -> VaultSchema:
    """Parse a raw schema dict into a VaultSchema.

    Args:
        data: The decoded schema.json content.

    Returns:
        A VaultSchema with parsed types and enums.

    Raises:
        SchemaError: If the required 'types' mapping is missing or settings are invalid.
    """
    if not isinstance(data, dict):
        raise SchemaError("Schema must be a JSON object")

    types_dict = data.get("types")
    if not isinstance(types_dict, dict):
        raise SchemaError("Schema missing required 'types' mapping")

    config = data.get("config") or {}
    link_format = config.get("link_format", DEFAULT_LINK_FORMAT) if isinstance(config, dict) else DEFAULT_LINK_FORMAT
    if link_format not in LINK_FORMATS:
        raise SchemaError(f"Invalid link_format '{link_format}': expected wikilink or markdown")

    enums_dict = data.get("enums") or {}
    if not isinstance(enums_dict, dict):
        raise SchemaError("Schema 'enums' must be a mapping of name to value list")
    enums = {
        name: [str(v) for v in values] if isinstance(values, list) else [str(values)]
        for name, values in enums_dict.items()
    }

    audit = data.get("audit") or {}
    ignored = audit.get("ignored_directories", []) if isinstance(audit, dict) else []

    version = data.get("schema_version")
    return VaultSchema(
        types={name: parse_type(name, value) for name, value in types_dict.items()},
        enums=enums,
        schema_version=str(version) if version is not None else None,
        link_format=link_format,
        ignored_directories=list(ignored),
        raw=data,
    )


# --- Loading and writing ---


def schema_path(vault_dir: Path) -> Path:
    return vault_dir / SCHEMA_FILE


def load_raw_schema(vault_dir: Path) -> dict:
    """Read the undecorated schema dict from the vault."""
    path = schema_path(vault_dir)
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise SchemaError(f"No schema found at {path}") from None
    except OSError as e:
        raise SchemaError(f"Failed to read schema {path}: {e}") from e

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise SchemaError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise SchemaError(f"Schema {path} must contain a JSON object")
    return data


def load_schema(vault_dir: Path) -> VaultSchema:
    """Load and parse the vault schema."""
    schema = parse_schema(load_raw_schema(vault_dir))
    logger.debug(
        "Loaded schema",
        vault=str(vault_dir),
        types=len(schema.types),
        version=schema.schema_version,
    )
    return schema


async def write_schema(vault_dir: Path, data: dict) -> None:
    """Write a raw schema dict back to the vault atomically."""
    path = schema_path(vault_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    await write_file_atomic(path, json.dumps(data, indent=2, ensure_ascii=False) + "\n")
