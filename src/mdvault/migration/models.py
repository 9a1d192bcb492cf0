"""Data model for schema migrations.

Operations are pydantic models tagged by their 'op' literal so plans and
history records round-trip through JSON. Per-file results are plain
dataclasses, built while planning and only updated while applying.
"""

from dataclasses import asdict, dataclass, field as dataclass_field
from pathlib import Path
from typing import Annotated, Any, Iterator, Literal, Optional, Union, assert_never

from pydantic import BaseModel, ConfigDict, Field, computed_field


# --- Operations ---


class _Op(BaseModel):
    model_config = ConfigDict(frozen=True)


class AddField(_Op):
    op: Literal["add-field"] = "add-field"
    target_type: str
    field: str
    default: Optional[Any] = None


class RemoveField(_Op):
    op: Literal["remove-field"] = "remove-field"
    target_type: str
    field: str


class RenameField(_Op):
    op: Literal["rename-field"] = "rename-field"
    target_type: str
    from_field: str
    to_field: str


class AddType(_Op):
    op: Literal["add-type"] = "add-type"
    type_name: str


class RemoveType(_Op):
    op: Literal["remove-type"] = "remove-type"
    type_name: str


class RenameType(_Op):
    op: Literal["rename-type"] = "rename-type"
    from_type: str
    to_type: str


class ReparentType(_Op):
    op: Literal["reparent-type"] = "reparent-type"
    type_name: str
    old_parent: Optional[str] = None  # None = was a root type
    new_parent: Optional[str] = None  # None = becomes a root type


class AddEnumValue(_Op):
    op: Literal["add-enum-value"] = "add-enum-value"
    enum: str
    value: str


class RemoveEnumValue(_Op):
    op: Literal["remove-enum-value"] = "remove-enum-value"
    enum: str
    value: str
    map_to: Optional[str] = None  # Replacement for notes still using the value


class RenameEnumValue(_Op):
    op: Literal["rename-enum-value"] = "rename-enum-value"
    enum: str
    from_value: str
    to_value: str


class NormalizeLinks(_Op):
    op: Literal["normalize-links"] = "normalize-links"
    to_format: Literal["wikilink", "markdown"]


MigrationOp = Annotated[
    Union[
        AddField,
        RemoveField,
        RenameField,
        AddType,
        RemoveType,
        RenameType,
        ReparentType,
        AddEnumValue,
        RemoveEnumValue,
        RenameEnumValue,
        NormalizeLinks,
    ],
    Field(discriminator="op"),
]


def is_deterministic(op: MigrationOp) -> bool:
    """Whether an operation can be applied without human input.

    Only operations that add capability are deterministic. Anything that
    removes or renames, and global link rewriting, needs confirmation.
    """
    match op:
        case AddField() | AddType() | AddEnumValue():
            return True
        case (
            RemoveField()
            | RenameField()
            | RemoveType()
            | RenameType()
            | ReparentType()
            | RemoveEnumValue()
            | RenameEnumValue()
            | NormalizeLinks()
        ):
            return False
        case _:
            assert_never(op)


def enum_mapping_key(enum: str, value: str) -> str:
    """Key used in value mappings for remove-enum-value replacements."""
    return f"enum:{enum}:{value}"


# --- Plan ---


class MigrationPlan(BaseModel):
    """Ordered operations needed to move the vault between schema versions."""

    model_config = ConfigDict(frozen=True)

    from_version: str
    to_version: str
    deterministic: tuple[MigrationOp, ...] = ()
    non_deterministic: tuple[MigrationOp, ...] = ()

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_changes(self) -> bool:
        return bool(self.deterministic or self.non_deterministic)

    @property
    def operations(self) -> Iterator[MigrationOp]:
        yield from self.deterministic
        yield from self.non_deterministic

    @classmethod
    def empty(cls, from_version: str, to_version: str) -> "MigrationPlan":
        return cls(from_version=from_version, to_version=to_version)

    @classmethod
    def from_operations(
        cls, from_version: str, to_version: str, operations: list[MigrationOp]
    ) -> "MigrationPlan":
        """Build a plan, splitting operations by classification."""
        return cls(
            from_version=from_version,
            to_version=to_version,
            deterministic=tuple(op for op in operations if is_deterministic(op)),
            non_deterministic=tuple(op for op in operations if not is_deterministic(op)),
        )


# --- Applied changes ---


@dataclass(frozen=True)
class SetChange:
    field: str
    old_value: Any
    new_value: Any
    kind: Literal["set"] = "set"


@dataclass(frozen=True)
class DeleteChange:
    field: str
    old_value: Any
    kind: Literal["delete"] = "delete"


@dataclass(frozen=True)
class RenameChange:
    field: str
    new_field: str
    old_value: Any
    kind: Literal["rename"] = "rename"


AppliedChange = Union[SetChange, DeleteChange, RenameChange]


# --- Results ---


@dataclass
class FileMigrationResult:
    """Changes computed for one file and whether they were written."""

    file_path: Path
    relative_path: str
    changes: list[AppliedChange] = dataclass_field(default_factory=list)
    applied: bool = False
    error: str | None = None


@dataclass
class MigrationResult:
    """Outcome of running a plan against a vault."""

    dry_run: bool
    from_version: str
    to_version: str
    total_files: int = 0
    affected_files: int = 0
    file_results: list[FileMigrationResult] = dataclass_field(default_factory=list)
    errors: list[str] = dataclass_field(default_factory=list)
    backup_path: Path | None = None

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe projection of the result."""
        data = asdict(self)
        data["backup_path"] = str(self.backup_path) if self.backup_path else None
        for file_result in data["file_results"]:
            file_result["file_path"] = str(file_result["file_path"])
        return data
