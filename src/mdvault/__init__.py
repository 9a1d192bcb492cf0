"""mdvault - schema-driven frontmatter management for markdown vaults."""

__version__ = "0.3.0"
