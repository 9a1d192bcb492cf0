"""CLI test fixtures."""

import pytest
from typer.testing import CliRunner

from mdvault.cli.main import app as cli_app


@pytest.fixture
def cli(vault):
    """Invoke the CLI against the test vault: cli("schema", "diff", input="y\\n")."""
    runner = CliRunner()

    def invoke(*args: str, input: str | None = None):
        return runner.invoke(
            cli_app,
            ["--vault", str(vault), *args],
            input=input,
            env={"MDVAULT_LOG_LEVEL": "CRITICAL"},
        )

    return invoke
