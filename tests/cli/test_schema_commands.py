"""Tests for `mdvault schema` commands."""

import json

import pytest

from mdvault.cli.commands.schema import parse_value_mappings
from mdvault.file_utils import parse_note
from mdvault.migration.history import load_history
from mdvault.migration.snapshot import has_snapshot, load_snapshot
from mdvault.schema.parser import load_raw_schema


# --- Helpers ---


def _frontmatter(vault, relative_path: str) -> dict:
    metadata, _ = parse_note((vault / relative_path).read_text(encoding="utf-8"))
    return metadata


@pytest.fixture
def applied(cli, vault):
    """Vault whose current schema has been recorded as the applied snapshot."""
    result = cli("schema", "migrate", "--execute")
    assert result.exit_code == 0, result.output
    return vault


@pytest.fixture
def with_priority(applied, schema_data, make_schema_file):
    """Applied vault whose schema then gained a task field with a default."""
    schema_data["types"]["task"]["fields"]["priority"] = {"prompt": "select", "default": "medium"}
    make_schema_file(applied, schema_data)
    return applied


@pytest.fixture
def without_in_progress(applied, schema_data, make_schema_file):
    """Applied vault whose schema then dropped the 'in-progress' status."""
    schema_data["enums"]["status"] = ["open", "done"]
    make_schema_file(applied, schema_data)
    return applied


# --- Value mappings ---


class TestParseValueMappings:
    def test_valid(self):
        assert parse_value_mappings(["enum:status:wip=active", "enum:size:xl=l"]) == {
            "enum:status:wip": "active",
            "enum:size:xl": "l",
        }

    def test_value_may_contain_equals(self):
        assert parse_value_mappings(["enum:status:wip=a=b"]) == {"enum:status:wip": "a=b"}

    def test_invalid(self, cli, applied):
        result = cli("schema", "migrate", "--map", "status:wip=active")
        assert result.exit_code == 2


# --- First run ---


class TestInitialSnapshot:
    def test_diff_without_snapshot(self, cli):
        result = cli("schema", "diff")
        assert result.exit_code == 0
        assert "No applied schema snapshot" in result.output

    def test_dry_run_does_not_create_snapshot(self, cli, vault):
        result = cli("schema", "migrate")
        assert result.exit_code == 0
        assert "--execute" in result.output
        assert not has_snapshot(vault)

    def test_execute_records_snapshot(self, cli, vault):
        result = cli("schema", "migrate", "--execute")

        assert result.exit_code == 0
        assert "initial schema snapshot" in result.output
        assert load_snapshot(vault).schema_version == "1.0.0"
        assert load_history(vault).applied == []


# --- Diff ---


class TestDiff:
    def test_no_changes(self, cli, applied):
        result = cli("schema", "diff")
        assert result.exit_code == 0
        assert "No changes detected." in result.output

    def test_text(self, cli, with_priority):
        result = cli("schema", "diff")
        assert result.exit_code == 0
        assert "Deterministic changes" in result.output
        assert 'Add field "priority" to type "task"' in result.output

    def test_json(self, cli, with_priority):
        result = cli("schema", "diff", "-o", "json")

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["has_snapshot"] is True
        assert data["summary"] == {"deterministic_count": 1, "non_deterministic_count": 0}
        assert data["deterministic"][0] == {
            "op": "add-field",
            "target_type": "task",
            "field": "priority",
            "default": "medium",
        }

    def test_missing_schema_json_error(self, cli, vault):
        (vault / ".mdvault/schema.json").unlink()

        result = cli("schema", "diff", "-o", "json")

        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["success"] is False
        assert "No schema found" in data["error"]

    def test_missing_schema_text_error(self, cli, vault):
        (vault / ".mdvault/schema.json").unlink()
        result = cli("schema", "diff")
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_unknown_output_format(self, cli, applied):
        result = cli("schema", "diff", "-o", "yaml")
        assert result.exit_code == 2


# --- Migrate ---


class TestMigrate:
    def test_dry_run(self, cli, with_priority):
        before = (with_priority / "Tasks/ship.md").read_text(encoding="utf-8")

        result = cli("schema", "migrate")

        assert result.exit_code == 0
        assert "Dry run - no changes applied" in result.output
        assert "Files affected: 2" in result.output
        assert (with_priority / "Tasks/ship.md").read_text(encoding="utf-8") == before

    def test_dry_run_json(self, cli, with_priority):
        result = cli("schema", "migrate", "-o", "json")

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["success"] is True
        assert data["result"]["dry_run"] is True
        assert data["result"]["affected_files"] == 2

    def test_execute_with_yes(self, cli, with_priority):
        result = cli("schema", "migrate", "--execute", "--yes")

        assert result.exit_code == 0, result.output
        assert "Schema is now at version 1.1.0" in result.output
        assert _frontmatter(with_priority, "Tasks/ship.md")["priority"] == "medium"
        assert load_raw_schema(with_priority)["schema_version"] == "1.1.0"
        assert load_snapshot(with_priority).schema_version == "1.1.0"

        # Nothing left to migrate
        assert "No changes detected." in cli("schema", "diff").output

    def test_to_version(self, cli, with_priority):
        result = cli("schema", "migrate", "-x", "-y", "--to-version", "1.5.0")
        assert result.exit_code == 0
        assert load_raw_schema(with_priority)["schema_version"] == "1.5.0"

    def test_invalid_version(self, cli, with_priority):
        result = cli("schema", "migrate", "-x", "-y", "--to-version", "next")

        assert result.exit_code == 1
        assert "Invalid schema version" in result.output
        assert "priority" not in _frontmatter(with_priority, "Tasks/ship.md")

    def test_no_backup(self, cli, with_priority):
        result = cli("schema", "migrate", "-x", "-y", "--no-backup")
        assert result.exit_code == 0
        assert not (with_priority / ".mdvault/backups").exists()

    def test_execute_json(self, cli, with_priority):
        result = cli("schema", "migrate", "-x", "-o", "json")

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["success"] is True
        assert data["version"] == "1.1.0"
        assert data["result"]["affected_files"] == 2
        assert data["result"]["backup_path"]


class TestInteractiveMigrate:
    def test_confirm_and_map_removed_value(self, cli, without_in_progress):
        # Accept the removal, map to "open", accept the suggested version
        result = cli("schema", "migrate", "-x", input="y\nopen\n\n")

        assert result.exit_code == 0, result.output
        assert _frontmatter(without_in_progress, "Tasks/write-docs.md")["status"] == "open"
        assert load_raw_schema(without_in_progress)["schema_version"] == "2.0.0"

    def test_empty_replacement_keeps_value(self, cli, without_in_progress):
        result = cli("schema", "migrate", "-x", input="y\n\n\n")

        assert result.exit_code == 0, result.output
        assert _frontmatter(without_in_progress, "Tasks/write-docs.md")["status"] == "in-progress"

    def test_declined_operation_is_skipped(self, cli, without_in_progress):
        result = cli("schema", "migrate", "-x", input="n\n\n")

        assert result.exit_code == 0, result.output
        assert _frontmatter(without_in_progress, "Tasks/write-docs.md")["status"] == "in-progress"
        history = load_history(without_in_progress).applied
        assert history[-1].operations == []
        assert history[-1].version == "1.0.0"

    def test_map_option_skips_replacement_prompt(self, cli, without_in_progress):
        result = cli(
            "schema", "migrate", "-x", "--map", "enum:status:in-progress=done", input="y\n\n"
        )

        assert result.exit_code == 0, result.output
        assert _frontmatter(without_in_progress, "Tasks/write-docs.md")["status"] == "done"

    def test_yes_with_map(self, cli, without_in_progress):
        result = cli("schema", "migrate", "-x", "-y", "--map", "enum:status:in-progress=done")

        assert result.exit_code == 0, result.output
        assert _frontmatter(without_in_progress, "Tasks/write-docs.md")["status"] == "done"
        assert load_raw_schema(without_in_progress)["schema_version"] == "2.0.0"


# --- History ---


class TestHistory:
    def test_empty(self, cli, applied):
        result = cli("schema", "history")
        assert result.exit_code == 0
        assert "No migrations applied yet." in result.output

    def test_after_migration(self, cli, with_priority):
        cli("schema", "migrate", "-x", "-y")

        text = cli("schema", "history")
        assert text.exit_code == 0
        assert "1.1.0" in text.output

        data = json.loads(cli("schema", "history", "-o", "json").stdout)
        assert len(data) == 1
        assert data[0]["version"] == "1.1.0"
        assert data[0]["notes_affected"] == 2
        assert data[0]["operations"][0]["op"] == "add-field"

    def test_limit(self, cli, with_priority, schema_data, make_schema_file):
        cli("schema", "migrate", "-x", "-y")
        schema_data["schema_version"] = "1.1.0"
        schema_data["enums"]["status"].append("blocked")
        make_schema_file(with_priority, schema_data)
        cli("schema", "migrate", "-x", "-y")

        data = json.loads(cli("schema", "history", "--limit", "1", "-o", "json").stdout)

        assert [m["version"] for m in data] == ["1.2.0"]


def test_version_option(cli):
    result = cli("--version")
    assert result.exit_code == 0
    assert "mdvault version:" in result.output
