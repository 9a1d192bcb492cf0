"""Schema snapshot management.

The snapshot in .mdvault/schema.applied.json is the full schema as it was
when the last migration was applied. It is the baseline for the next diff.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import BaseModel, ValidationError

from mdvault.config import STATE_DIR_NAME
from mdvault.file_utils import write_file_atomic
from mdvault.migration.errors import SnapshotError

SNAPSHOT_FILE = f"{STATE_DIR_NAME}/schema.applied.json"


class SchemaSnapshot(BaseModel):
    """Immutable copy of a schema captured at migration time."""

    schema_version: str
    snapshot_at: datetime
    # Raw schema dict, exactly as written by the user
    schema_data: dict[str, Any]


def snapshot_path(vault_dir: Path) -> Path:
    return vault_dir / SNAPSHOT_FILE


def has_snapshot(vault_dir: Path) -> bool:
    return snapshot_path(vault_dir).is_file()


def load_snapshot(vault_dir: Path) -> SchemaSnapshot | None:
    """Load the last-applied schema snapshot.

    Returns:
        The snapshot, or None before the first migration.

    Raises:
        SnapshotError: If the snapshot file exists but is unreadable.
    """
    path = snapshot_path(vault_dir)
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except OSError as e:
        raise SnapshotError(f"Failed to read snapshot {path}: {e}") from e

    try:
        return SchemaSnapshot.model_validate_json(content)
    except ValidationError as e:
        raise SnapshotError(f"Invalid snapshot {path}: {e}") from e


async def save_snapshot(
    vault_dir: Path, schema_data: dict[str, Any], schema_version: str
) -> SchemaSnapshot:
    """Save the given raw schema as the applied snapshot."""
    snapshot = SchemaSnapshot(
        schema_version=schema_version,
        snapshot_at=datetime.now(timezone.utc),
        schema_data=schema_data,
    )
    path = snapshot_path(vault_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    await write_file_atomic(path, snapshot.model_dump_json(indent=2) + "\n")
    logger.info(f"Saved schema snapshot version {schema_version}")
    return snapshot
