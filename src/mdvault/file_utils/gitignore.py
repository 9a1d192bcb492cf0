"""Gitignore pattern handling for vault discovery."""

from pathlib import Path
from typing import List

import pathspec

# Always-ignored entries that never hold managed notes
DEFAULT_PATTERNS = [
    # Version control and tool state
    ".git/",
    ".obsidian/",
    ".trash/",
    # Editor and OS files
    ".idea/",
    ".vscode/",
    "*.swp",
    ".DS_Store",
    # Python tooling that sometimes lives next to a vault
    "__pycache__/",
    ".venv/",
    "node_modules/",
]


def get_gitignore_patterns(vault_root: Path) -> List[str]:
    """Get gitignore patterns for a vault.

    Args:
        vault_root: Root directory containing .gitignore

    Returns:
        List of gitignore pattern strings, defaults first
    """
    gitignore_path = vault_root / ".gitignore"
    patterns = list(DEFAULT_PATTERNS)

    if gitignore_path.exists():
        with open(gitignore_path, encoding="utf-8") as f:
            # Add each non-empty line that doesn't start with #
            patterns.extend(
                line.strip() for line in f if line.strip() and not line.strip().startswith("#")
            )

    return patterns


def build_gitignore_spec(vault_root: Path) -> pathspec.PathSpec:
    """Build a PathSpec object from gitignore patterns.

    Args:
        vault_root: Root directory containing .gitignore

    Returns:
        PathSpec object for matching paths
    """
    patterns = get_gitignore_patterns(vault_root)
    return pathspec.PathSpec.from_lines("gitwildmatch", patterns)


def should_ignore_file(file_path: Path, vault_root: Path, spec: pathspec.PathSpec) -> bool:
    """Check if a file should be ignored based on gitignore patterns.

    Args:
        file_path: Path to the file to check
        vault_root: Root directory of the vault
        spec: Pre-built spec from build_gitignore_spec

    Returns:
        True if the file should be ignored, False otherwise
    """
    try:
        relative_path = file_path.relative_to(vault_root)
    except ValueError:
        # Outside the vault, never ours to manage
        return True

    return spec.match_file(relative_path.as_posix())
