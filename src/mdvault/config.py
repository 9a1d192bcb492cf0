"""Configuration for mdvault.

Settings come from environment variables prefixed with MDVAULT_ and can be
overridden by CLI options.
"""

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Directory inside the vault that holds schema, snapshot, history and backups
STATE_DIR_NAME = ".mdvault"


class MdVaultConfig(BaseSettings):
    """Runtime configuration for the CLI and migration service."""

    vault_dir: Path = Field(
        default_factory=Path.cwd,
        description="Root directory of the vault",
    )
    log_level: str = Field(default="INFO", description="Log level for console output")
    log_file: Optional[Path] = Field(default=None, description="Optional log file path")
    backup_enabled: bool = Field(
        default=True,
        description="Create a backup before migrations modify files",
    )

    model_config = SettingsConfigDict(
        env_prefix="MDVAULT_",
        extra="ignore",
    )

    @property
    def state_dir(self) -> Path:
        """Directory holding mdvault state for this vault."""
        return self.vault_dir / STATE_DIR_NAME


def get_config(vault_dir: Optional[Path] = None) -> MdVaultConfig:
    """Load config from the environment, optionally pinning the vault directory."""
    if vault_dir is not None:
        return MdVaultConfig(vault_dir=vault_dir)
    return MdVaultConfig()
