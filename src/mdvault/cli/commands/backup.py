"""Backup CLI commands: `mdvault backup list`, `mdvault backup restore`."""

import asyncio
from typing import Annotated

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from mdvault.cli.app import app
from mdvault.config import MdVaultConfig
from mdvault.migration.backup import get_backup, list_backups, restore_backup
from mdvault.migration.errors import BackupError

console = Console()

backup_app = typer.Typer(help="Manage migration backups")
app.add_typer(backup_app, name="backup")


@backup_app.command("list")
def list_command(ctx: typer.Context):
    """List backups, newest first."""
    config: MdVaultConfig = ctx.obj
    backups = list_backups(config.vault_dir)

    if not backups:
        console.print("No backups found.")
        return

    table = Table(title="Backups")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Created", style="dim")
    table.add_column("Operation")
    table.add_column("Files", justify="right")

    for info in backups:
        table.add_row(
            info.id,
            info.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            info.operation,
            str(info.file_count),
        )

    console.print(table)


@backup_app.command()
def restore(
    ctx: typer.Context,
    backup_id: Annotated[str, typer.Argument(help="Backup id from 'mdvault backup list'")],
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Restore without confirmation"),
    ] = False,
):
    """Restore the files in a backup, overwriting their current contents."""
    config: MdVaultConfig = ctx.obj

    info = get_backup(config.vault_dir, backup_id)
    if info is None:
        console.print(f"[red]Error: Backup not found: {backup_id}[/red]")
        raise typer.Exit(1)

    if not yes and not typer.confirm(
        f"Restore {info.file_count} files from backup {backup_id}?", default=False
    ):
        console.print("Restore cancelled.")
        raise typer.Exit(0)

    try:
        restored = asyncio.run(restore_backup(config.vault_dir, backup_id))
    except BackupError as e:
        logger.error(f"Restore failed: {e}")
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]Restored {len(restored)} files from backup {backup_id}[/green]")
