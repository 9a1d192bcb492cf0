"""Main CLI entry point for mdvault."""  # pragma: no cover

from mdvault.cli.app import app  # pragma: no cover

# Register commands
from mdvault.cli.commands import backup, schema  # noqa: F401  # pragma: no cover

if __name__ == "__main__":  # pragma: no cover
    app()
