from pathlib import Path
from typing import Optional

import typer

from mdvault.config import get_config
from mdvault.utils import setup_logging


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:  # pragma: no cover
        import mdvault

        typer.echo(f"mdvault version: {mdvault.__version__}")
        raise typer.Exit()


app = typer.Typer(name="mdvault")


@app.callback()
def app_callback(
    ctx: typer.Context,
    vault: Optional[Path] = typer.Option(
        None,
        "--vault",
        "-V",
        help="Vault root directory (defaults to MDVAULT_VAULT_DIR or the current directory)",
        file_okay=False,
        resolve_path=True,
    ),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """mdvault - schema-driven frontmatter for markdown vaults."""
    config = get_config(vault)
    setup_logging(level=config.log_level, log_file=config.log_file)
    ctx.obj = config
