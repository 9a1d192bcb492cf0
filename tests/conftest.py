"""Common test fixtures."""

import copy
import json
from pathlib import Path

import pytest

from mdvault.schema.parser import SCHEMA_FILE

BASE_SCHEMA = {
    "schema_version": "1.0.0",
    "config": {"link_format": "wikilink"},
    "enums": {"status": ["open", "in-progress", "done"]},
    "types": {
        "task": {
            "output_dir": "Tasks",
            "fields": {
                "status": {"prompt": "select", "enum": "status", "default": "open"},
                "milestone": {"prompt": "relation", "source": "milestone"},
            },
        },
        "milestone": {
            "output_dir": "Milestones",
            "fields": {"due": {"prompt": "date"}},
        },
    },
    "audit": {"ignored_directories": ["Archive"]},
}


def write_schema_file(vault_dir: Path, data: dict) -> Path:
    path = vault_dir / SCHEMA_FILE
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path


def write_note_file(vault_dir: Path, relative_path: str, content: str) -> Path:
    path = vault_dir / relative_path
    path.parent.mkdir(parents=True, exist_ok=True)
    # newline="" so CRLF content is written as given
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(content)
    return path


def read_file(path: Path) -> str:
    with open(path, encoding="utf-8", newline="") as f:
        return f.read()


@pytest.fixture
def schema_data() -> dict:
    """A fresh copy of the base schema dict, safe to mutate."""
    return copy.deepcopy(BASE_SCHEMA)


@pytest.fixture
def vault(tmp_path, schema_data) -> Path:
    """A vault with the base schema and a few notes."""
    vault_dir = tmp_path / "vault"
    vault_dir.mkdir()
    write_schema_file(vault_dir, schema_data)
    write_note_file(
        vault_dir,
        "Tasks/write-docs.md",
        "---\ntype: task\nstatus: in-progress\nmilestone: Q1 Release\n---\n# Write docs\n",
    )
    write_note_file(
        vault_dir,
        "Tasks/ship.md",
        "---\ntype: task\nstatus: done\n---\nShip it.\n",
    )
    write_note_file(
        vault_dir,
        "Milestones/Q1 Release.md",
        "---\ntype: milestone\ndue: 2025-03-31\n---\n",
    )
    write_note_file(vault_dir, "inbox.md", "Just a loose note.\n")
    return vault_dir


@pytest.fixture
def make_schema_file():
    """Write a schema dict into a vault: make_schema_file(vault_dir, data)."""
    return write_schema_file


@pytest.fixture
def make_note():
    """Write a note into a vault: make_note(vault_dir, relative_path, content)."""
    return write_note_file


@pytest.fixture
def read_raw():
    """Read a file exactly as stored, line endings included."""
    return read_file
