"""Schema migration CLI commands for mdvault.

Registered as a subcommand group: `mdvault schema diff`, `mdvault schema migrate`,
`mdvault schema history`.
"""

import asyncio
import json
from typing import Annotated, Any, NoReturn, Optional

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from mdvault.cli.app import app
from mdvault.config import MdVaultConfig
from mdvault.file_utils import FileError
from mdvault.migration.errors import MigrationError
from mdvault.migration.formatting import (
    describe_op,
    format_migration_result,
    format_plan,
    is_valid_version,
    plan_to_json,
    suggest_version_bump,
)
from mdvault.migration.history import load_history
from mdvault.migration.models import MigrationPlan, RemoveEnumValue, enum_mapping_key
from mdvault.migration.service import MigrationService

console = Console()

schema_app = typer.Typer(help="Schema migration commands")
app.add_typer(schema_app, name="schema")

OutputOption = Annotated[
    str,
    typer.Option("--output", "-o", help="Output format: text or json"),
]


def _check_output(output: str) -> bool:
    """Validate the output format; returns True for JSON."""
    if output not in ("text", "json"):
        raise typer.BadParameter(f"Unknown output format: {output}", param_hint="--output")
    return output == "json"


def _echo_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2, default=str))


def _fail(message: str, json_output: bool) -> NoReturn:
    """Report an error in the requested format and exit with code 1."""
    if json_output:
        _echo_json({"success": False, "error": message})
    else:
        console.print(f"[red]Error: {message}[/red]")
    raise typer.Exit(1)


def parse_value_mappings(entries: list[str]) -> dict[str, str]:
    """Parse --map entries of the form enum:<name>:<value>=<new>."""
    mappings: dict[str, str] = {}
    for entry in entries:
        key, sep, value = entry.partition("=")
        parts = key.split(":")
        if not sep or len(parts) != 3 or parts[0] != "enum" or not parts[1] or not parts[2]:
            raise typer.BadParameter(
                f"Expected enum:<name>:<value>=<new>, got {entry!r}", param_hint="--map"
            )
        mappings[enum_mapping_key(parts[1], parts[2])] = value
    return mappings


def confirm_operations(
    plan: MigrationPlan, value_mappings: dict[str, str]
) -> tuple[MigrationPlan, dict[str, str]]:
    """Ask the user about each non-deterministic operation.

    Declined operations are dropped from the returned plan. A confirmed
    remove-enum-value with no replacement prompts for one; an empty answer
    leaves the affected notes unchanged.
    """
    mappings = dict(value_mappings)
    accepted = []
    for op in plan.non_deterministic:
        if not typer.confirm(f"Apply: {describe_op(op)}?", default=False):
            continue
        accepted.append(op)

        if isinstance(op, RemoveEnumValue) and op.map_to is None:
            key = enum_mapping_key(op.enum, op.value)
            if key not in mappings:
                replacement = typer.prompt(
                    f'Replacement for "{op.value}" in enum "{op.enum}" (empty to skip)',
                    default="",
                    show_default=False,
                )
                if replacement:
                    mappings[key] = replacement

    confirmed = MigrationPlan(
        from_version=plan.from_version,
        to_version=plan.to_version,
        deterministic=plan.deterministic,
        non_deterministic=tuple(accepted),
    )
    return confirmed, mappings


# --- Diff ---


@schema_app.command()
def diff(
    ctx: typer.Context,
    output: OutputOption = "text",
):
    """Show changes between the applied schema snapshot and the current schema.

    Examples:
        mdvault schema diff
        mdvault schema diff -o json
    """
    config: MdVaultConfig = ctx.obj
    json_output = _check_output(output)
    try:
        status = MigrationService(config.vault_dir).load_plan()
    except (ValueError, MigrationError, FileError) as e:
        logger.error(f"Error loading schema: {e}")
        _fail(str(e), json_output)

    if json_output:
        data = plan_to_json(status.plan)
        data["has_snapshot"] = status.has_snapshot
        _echo_json(data)
        return

    if not status.has_snapshot:
        console.print(
            "[yellow]No applied schema snapshot yet.[/yellow] "
            "Run 'mdvault schema migrate --execute' to record the current schema."
        )
        return

    console.print(f"[bold]Schema {status.plan.from_version} → {status.plan.to_version}[/bold]\n")
    console.print(format_plan(status.plan), markup=False, highlight=False)


# --- Migrate ---


async def _run_migrate(
    config: MdVaultConfig,
    execute: bool,
    backup: bool,
    yes: bool,
    to_version: Optional[str],
    value_mappings: dict[str, str],
    json_output: bool,
) -> None:
    service = MigrationService(config.vault_dir)
    status = service.load_plan()

    # First run: record the baseline, nothing to migrate yet
    if not status.has_snapshot:
        if not execute:
            message = "No applied schema snapshot. Use --execute to create the initial snapshot."
            if json_output:
                _echo_json({"success": True, "has_snapshot": False, "message": message})
            else:
                console.print(f"[yellow]{message}[/yellow]")
            return
        version = await service.create_initial_snapshot(status.schema)
        if json_output:
            _echo_json({"success": True, "initial_snapshot": True, "version": version})
        else:
            console.print(f"[green]Recorded initial schema snapshot at version {version}[/green]")
        return

    plan = status.plan
    if not plan.has_changes:
        if json_output:
            _echo_json({"success": True, "plan": plan_to_json(plan), "result": None})
        else:
            console.print("No changes detected.")
        return

    interactive = not json_output and not yes

    if not execute:
        result = await service.preview(plan, status.schema, value_mappings)
        if json_output:
            _echo_json({"success": True, "plan": plan_to_json(plan), "result": result.to_dict()})
        else:
            console.print(format_plan(plan), markup=False, highlight=False)
            console.print()
            console.print(format_migration_result(result), markup=False, highlight=False)
            console.print("\nRun with --execute to apply these changes.")
        return

    if interactive:
        console.print(format_plan(plan), markup=False, highlight=False)
        console.print()
        plan, value_mappings = confirm_operations(plan, value_mappings)

    new_version = to_version
    if new_version is None:
        suggested = suggest_version_bump(status.current_version, plan)
        if interactive:
            new_version = typer.prompt("New schema version", default=suggested)
        else:
            new_version = suggested
    if not is_valid_version(new_version):
        raise ValueError(f"Invalid schema version: {new_version!r} (expected MAJOR.MINOR.PATCH)")

    result = await service.migrate(
        plan,
        status.schema,
        new_version=new_version,
        backup=backup,
        value_mappings=value_mappings,
    )

    if json_output:
        _echo_json(
            {
                "success": not result.errors,
                "plan": plan_to_json(plan),
                "result": result.to_dict(),
                "version": new_version,
            }
        )
    else:
        console.print(format_migration_result(result), markup=False, highlight=False)
        if result.errors:
            console.print(f"\n[yellow]Completed with {len(result.errors)} error(s)[/yellow]")
        else:
            console.print(f"\n[green]Schema is now at version {new_version}[/green]")


@schema_app.command()
def migrate(
    ctx: typer.Context,
    execute: Annotated[
        bool,
        typer.Option("--execute", "-x", help="Apply changes (default is a dry run)"),
    ] = False,
    no_backup: Annotated[
        bool,
        typer.Option("--no-backup", help="Skip backing up affected files"),
    ] = False,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Accept all operations without prompting"),
    ] = False,
    to_version: Annotated[
        Optional[str],
        typer.Option("--to-version", help="Schema version to record after migrating"),
    ] = None,
    mappings: Annotated[
        Optional[list[str]],
        typer.Option(
            "--map",
            help="Replacement for a removed enum value: enum:<name>:<value>=<new>",
        ),
    ] = None,
    output: OutputOption = "text",
):
    """Migrate notes to the current schema.

    Runs as a dry run unless --execute is given. Non-deterministic changes
    are confirmed one by one unless --yes or JSON output is used.

    Examples:
        mdvault schema migrate
        mdvault schema migrate --execute
        mdvault schema migrate -x -y --map enum:status:wip=active
    """
    config: MdVaultConfig = ctx.obj
    json_output = _check_output(output)
    value_mappings = parse_value_mappings(mappings or [])
    backup = config.backup_enabled and not no_backup

    try:
        asyncio.run(
            _run_migrate(config, execute, backup, yes, to_version, value_mappings, json_output)
        )
    except (ValueError, MigrationError, FileError) as e:
        logger.error(f"Migration failed: {e}")
        _fail(str(e), json_output)


# --- History ---


@schema_app.command()
def history(
    ctx: typer.Context,
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", help="Number of migrations to show"),
    ] = 10,
    output: OutputOption = "text",
):
    """Show applied migrations, newest first."""
    config: MdVaultConfig = ctx.obj
    json_output = _check_output(output)
    try:
        records = load_history(config.vault_dir).applied
    except MigrationError as e:
        logger.error(f"Error loading history: {e}")
        _fail(str(e), json_output)

    recent = list(reversed(records))[:limit]

    if json_output:
        _echo_json([record.model_dump(mode="json") for record in recent])
        return

    if not recent:
        console.print("No migrations applied yet.")
        return

    table = Table(title="Schema Migrations")
    table.add_column("Version", style="cyan", no_wrap=True)
    table.add_column("From")
    table.add_column("Applied", style="dim")
    table.add_column("Operations", justify="right")
    table.add_column("Notes", justify="right")
    table.add_column("Backup", style="dim")

    for record in recent:
        table.add_row(
            record.version,
            record.from_version,
            record.applied_at.strftime("%Y-%m-%d %H:%M:%S"),
            str(len(record.operations)),
            str(record.notes_affected),
            record.backup_path or "",
        )

    console.print(table)
