"""Backups of vault files taken before a migration rewrites them.

Each backup lives in .mdvault/backups/<id>/ with the copied files under
files/ (relative paths preserved) and a manifest.json describing it.
"""

import asyncio
import shutil
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from loguru import logger
from pydantic import BaseModel, ValidationError

from mdvault.config import STATE_DIR_NAME
from mdvault.file_utils import write_file_atomic
from mdvault.migration.errors import BackupError

MANIFEST_FILE = "manifest.json"


class BackupManifest(BaseModel):
    timestamp: datetime
    operation: str
    files: list[str]


@dataclass
class BackupInfo:
    id: str
    timestamp: datetime
    operation: str
    file_count: int
    path: Path


def get_backups_dir(vault_dir: Path) -> Path:
    return vault_dir / STATE_DIR_NAME / "backups"


def _new_backup_dir(vault_dir: Path) -> Path:
    """Timestamped backup directory, suffixed when two backups share a second."""
    backup_id = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S")
    candidate = get_backups_dir(vault_dir) / backup_id
    counter = 1
    while candidate.exists():
        candidate = get_backups_dir(vault_dir) / f"{backup_id}-{counter}"
        counter += 1
    return candidate


async def create_backup(vault_dir: Path, files: Iterable[Path], operation: str) -> Path:
    """Copy files into a new backup directory.

    Args:
        vault_dir: The vault root
        files: Absolute paths of files inside the vault
        operation: Label stored in the manifest

    Returns:
        The backup directory path

    Raises:
        BackupError: If any file cannot be copied or the manifest cannot be written
    """
    backup_dir = _new_backup_dir(vault_dir)
    files_dir = backup_dir / "files"

    relative_files: list[str] = []
    try:
        files_dir.mkdir(parents=True)
        for file_path in files:
            relative = Path(file_path).relative_to(vault_dir)
            destination = files_dir / relative
            destination.parent.mkdir(parents=True, exist_ok=True)
            await asyncio.to_thread(shutil.copy2, file_path, destination)
            relative_files.append(relative.as_posix())

        manifest = BackupManifest(
            timestamp=datetime.now(timezone.utc),
            operation=operation,
            files=relative_files,
        )
        await write_file_atomic(backup_dir / MANIFEST_FILE, manifest.model_dump_json(indent=2))
    except Exception as e:
        logger.error(f"Backup failed: {e}")
        raise BackupError(f"Failed to create backup: {e}") from e

    logger.info(f"Backed up {len(relative_files)} files to {backup_dir}")
    return backup_dir


def _read_manifest(backup_dir: Path) -> BackupManifest | None:
    try:
        return BackupManifest.model_validate_json(
            (backup_dir / MANIFEST_FILE).read_text(encoding="utf-8")
        )
    except (OSError, ValidationError) as e:
        logger.debug(f"Skipping invalid backup {backup_dir}: {e}")
        return None


def get_backup(vault_dir: Path, backup_id: str) -> BackupInfo | None:
    """Look up a backup by id. Returns None if it doesn't exist or is invalid."""
    backup_dir = get_backups_dir(vault_dir) / backup_id
    if not backup_dir.is_dir():
        return None

    manifest = _read_manifest(backup_dir)
    if manifest is None:
        return None

    return BackupInfo(
        id=backup_id,
        timestamp=manifest.timestamp,
        operation=manifest.operation,
        file_count=len(manifest.files),
        path=backup_dir,
    )


def list_backups(vault_dir: Path) -> list[BackupInfo]:
    """List valid backups, newest first."""
    backups_dir = get_backups_dir(vault_dir)
    if not backups_dir.is_dir():
        return []

    backups = [
        info
        for entry in backups_dir.iterdir()
        if (info := get_backup(vault_dir, entry.name)) is not None
    ]
    backups.sort(key=lambda b: b.timestamp, reverse=True)
    return backups


async def restore_backup(vault_dir: Path, backup_id: str) -> list[str]:
    """Copy every file in a backup back into the vault.

    Returns:
        Relative paths of the restored files

    Raises:
        BackupError: If the backup doesn't exist or a file cannot be restored
    """
    backup_dir = get_backups_dir(vault_dir) / backup_id
    manifest = _read_manifest(backup_dir) if backup_dir.is_dir() else None
    if manifest is None:
        raise BackupError(f"Backup not found: {backup_id}")

    restored: list[str] = []
    for relative in manifest.files:
        source = backup_dir / "files" / relative
        destination = vault_dir / relative
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            await asyncio.to_thread(shutil.copy2, source, destination)
        except OSError as e:
            raise BackupError(f"Failed to restore {relative}: {e}") from e
        restored.append(relative)

    logger.info(f"Restored {len(restored)} files from backup {backup_id}")
    return restored
