"""Migration history tracking in .mdvault/migrations.json."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

from mdvault.config import STATE_DIR_NAME
from mdvault.file_utils import write_file_atomic
from mdvault.migration.errors import HistoryError
from mdvault.migration.models import MigrationOp, MigrationPlan, MigrationResult

MIGRATIONS_FILE = f"{STATE_DIR_NAME}/migrations.json"


class AppliedMigration(BaseModel):
    """Record of one applied migration."""

    version: str
    from_version: str
    applied_at: datetime
    operations: list[MigrationOp] = Field(default_factory=list)
    notes_affected: int = 0
    backup_path: Optional[str] = None


class MigrationHistory(BaseModel):
    """Applied migrations, oldest first."""

    applied: list[AppliedMigration] = Field(default_factory=list)


def history_path(vault_dir: Path) -> Path:
    return vault_dir / MIGRATIONS_FILE


def load_history(vault_dir: Path) -> MigrationHistory:
    """Load migration history. A missing file is an empty history.

    Raises:
        HistoryError: If the history file exists but is unreadable.
    """
    path = history_path(vault_dir)
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return MigrationHistory()
    except OSError as e:
        raise HistoryError(f"Failed to read history {path}: {e}") from e

    try:
        return MigrationHistory.model_validate_json(content)
    except ValidationError as e:
        raise HistoryError(f"Invalid history {path}: {e}") from e


async def save_history(vault_dir: Path, history: MigrationHistory) -> None:
    path = history_path(vault_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    await write_file_atomic(path, history.model_dump_json(indent=2) + "\n")


async def record_migration(
    vault_dir: Path, plan: MigrationPlan, result: MigrationResult
) -> AppliedMigration:
    """Append a completed migration to the history."""
    history = load_history(vault_dir)
    record = AppliedMigration(
        version=plan.to_version,
        from_version=plan.from_version,
        applied_at=datetime.now(timezone.utc),
        operations=list(plan.operations),
        notes_affected=result.affected_files,
        backup_path=str(result.backup_path) if result.backup_path else None,
    )
    history.applied.append(record)
    await save_history(vault_dir, history)
    return record


def get_latest_migration(vault_dir: Path) -> AppliedMigration | None:
    history = load_history(vault_dir)
    return history.applied[-1] if history.applied else None
