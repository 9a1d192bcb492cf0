"""Service that orchestrates one schema migration for a vault.

Ties together the schema file, the applied snapshot, discovery, the executor
and history. Prompting and rendering stay in the CLI.
"""

import copy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from loguru import logger

from mdvault.discovery import discover_managed_files
from mdvault.migration.diff import diff_schemas
from mdvault.migration.executor import execute_migration
from mdvault.migration.history import record_migration
from mdvault.migration.models import MigrationPlan, MigrationResult
from mdvault.migration.snapshot import load_snapshot, save_snapshot
from mdvault.schema.parser import VaultSchema, load_schema, parse_schema, write_schema

DEFAULT_VERSION = "1.0.0"


@dataclass
class PlanStatus:
    """A computed plan plus the context the CLI needs to present it."""

    plan: MigrationPlan
    schema: VaultSchema
    has_snapshot: bool

    @property
    def current_version(self) -> str:
        return self.schema.schema_version or DEFAULT_VERSION


class MigrationService:
    """Plans and applies schema migrations for one vault."""

    def __init__(self, vault_dir: Path):
        self.vault_dir = vault_dir.resolve()

    def load_plan(self) -> PlanStatus:
        """Diff the current schema against the applied snapshot.

        Without a snapshot the plan is empty and has_snapshot is False; the
        caller should offer to create the initial snapshot.
        """
        schema = load_schema(self.vault_dir)
        current_version = schema.schema_version or DEFAULT_VERSION

        snapshot = load_snapshot(self.vault_dir)
        if snapshot is None:
            logger.debug("No applied schema snapshot found")
            return PlanStatus(
                plan=MigrationPlan.empty("0.0.0", current_version),
                schema=schema,
                has_snapshot=False,
            )

        old_schema = parse_schema(snapshot.schema_data)
        plan = diff_schemas(old_schema, schema, snapshot.schema_version, current_version)
        return PlanStatus(plan=plan, schema=schema, has_snapshot=True)

    async def preview(
        self,
        plan: MigrationPlan,
        schema: VaultSchema,
        value_mappings: Mapping[str, Any] | None = None,
    ) -> MigrationResult:
        """Dry run: compute every file's changes without writing."""
        files = discover_managed_files(self.vault_dir, schema)
        return await execute_migration(
            self.vault_dir,
            files,
            plan,
            schema,
            execute=False,
            backup=False,
            value_mappings=value_mappings,
        )

    async def migrate(
        self,
        plan: MigrationPlan,
        schema: VaultSchema,
        *,
        new_version: str | None = None,
        backup: bool = True,
        value_mappings: Mapping[str, Any] | None = None,
    ) -> MigrationResult:
        """Apply a plan, then record the new baseline.

        The schema file's version is updated when new_version differs, the
        snapshot is replaced and the run is appended to the history.
        """
        files = discover_managed_files(self.vault_dir, schema)
        result = await execute_migration(
            self.vault_dir,
            files,
            plan,
            schema,
            execute=True,
            backup=backup,
            value_mappings=value_mappings,
        )

        current_version = schema.schema_version or DEFAULT_VERSION
        target_version = new_version or current_version

        raw = copy.deepcopy(schema.raw)
        if target_version != current_version:
            raw["schema_version"] = target_version
            await write_schema(self.vault_dir, raw)

        await save_snapshot(self.vault_dir, raw, target_version)
        recorded_plan = plan.model_copy(update={"to_version": target_version})
        await record_migration(self.vault_dir, recorded_plan, result)

        logger.info(f"Migration to {target_version} recorded")
        return result

    async def create_initial_snapshot(self, schema: VaultSchema) -> str:
        """Record the current schema as the first baseline. Returns its version."""
        version = schema.schema_version or DEFAULT_VERSION
        await save_snapshot(self.vault_dir, schema.raw, version)
        return version
