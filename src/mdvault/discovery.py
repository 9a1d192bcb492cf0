"""Discovery of vault-managed markdown files."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from loguru import logger

from mdvault.config import STATE_DIR_NAME
from mdvault.file_utils import build_gitignore_spec, should_ignore_file
from mdvault.schema.parser import VaultSchema


@dataclass(frozen=True)
class ManagedFile:
    """A markdown file in the vault.

    Attributes:
        path: Absolute path
        relative_path: Path relative to the vault root, POSIX separators
        expected_type: Type implied by the file's location, if any
    """

    path: Path
    relative_path: str
    expected_type: Optional[str] = None


def _normalize_dir(output_dir: str) -> str:
    return output_dir.replace("\\", "/").strip("/")


def _expected_type(relative_path: str, type_dirs: list[tuple[str, str]]) -> Optional[str]:
    """Type whose output_dir contains the file; the deepest directory wins."""
    for directory, type_name in type_dirs:
        if relative_path.startswith(directory + "/"):
            return type_name
    return None


def discover_managed_files(vault_dir: Path, schema: VaultSchema) -> list[ManagedFile]:
    """Find all markdown files the schema manages.

    Skips the .mdvault state directory, hidden directories, gitignored paths
    and the schema's ignored directories.

    Returns:
        Files sorted by relative path
    """
    vault_dir = vault_dir.resolve()
    spec = build_gitignore_spec(vault_dir)
    ignored_dirs = {_normalize_dir(d) for d in schema.ignored_directories}

    # Longest directories first so nested output dirs take precedence
    type_dirs = sorted(
        (
            (_normalize_dir(type_def.output_dir), name)
            for name, type_def in schema.types.items()
            if type_def.output_dir and _normalize_dir(type_def.output_dir)
        ),
        key=lambda item: len(item[0]),
        reverse=True,
    )

    files: list[ManagedFile] = []
    for root, dirs, filenames in os.walk(vault_dir):
        root_path = Path(root)
        relative_root = root_path.relative_to(vault_dir).as_posix()

        # Prune in place so os.walk never descends into skipped directories
        dirs[:] = sorted(
            d
            for d in dirs
            if not d.startswith(".")
            and d != STATE_DIR_NAME
            and (d if relative_root == "." else f"{relative_root}/{d}") not in ignored_dirs
        )

        for filename in filenames:
            if not filename.endswith(".md"):
                continue
            path = root_path / filename
            if should_ignore_file(path, vault_dir, spec):
                continue
            relative_path = path.relative_to(vault_dir).as_posix()
            files.append(
                ManagedFile(
                    path=path,
                    relative_path=relative_path,
                    expected_type=_expected_type(relative_path, type_dirs),
                )
            )

    files.sort(key=lambda f: f.relative_path)
    logger.debug(f"Discovered {len(files)} managed files in {vault_dir}")
    return files
